"""In-server command tree for group and permission administration."""

from bastion_core.commands.group import register_group_command
from bastion_core.commands.permission import register_permission_command
from bastion_core.commands.tree import (
    CommandContext,
    CommandDispatcher,
    CommandNode,
    CommandSource,
    argument,
    literal,
    require,
)
from bastion_core.engine.admin import GroupAdmin


def build_dispatcher(admin: GroupAdmin) -> CommandDispatcher:
    """Dispatcher with the ``group`` and ``permission`` commands registered."""
    dispatcher = CommandDispatcher()
    register_group_command(dispatcher, admin)
    register_permission_command(dispatcher, admin.engine)
    return dispatcher


__all__ = [
    "CommandContext",
    "CommandDispatcher",
    "CommandNode",
    "CommandSource",
    "argument",
    "build_dispatcher",
    "literal",
    "require",
    "register_group_command",
    "register_permission_command",
]
