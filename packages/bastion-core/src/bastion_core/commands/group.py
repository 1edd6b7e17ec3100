"""`group` command: create, delete and populate groups."""

from __future__ import annotations

from bastion_core.commands.tree import (
    CommandContext,
    CommandDispatcher,
    argument,
    literal,
    require,
)
from bastion_core.engine.admin import GroupAdmin
from bastion_core.errors import ConflictError, NotFoundError
from bastion_core.interfaces.provider import Subject


def _group_name(text: str) -> str:
    return Subject.group(text).id


def _user_id(text: str) -> str:
    return Subject.user(text).id


def register_group_command(dispatcher: CommandDispatcher, admin: GroupAdmin) -> None:
    engine = admin.engine

    def create(ctx: CommandContext) -> int:
        name = ctx.get("name")
        try:
            admin.create_group(name)
        except ConflictError as e:
            ctx.source.send_error(str(e))
            return 0
        ctx.source.send_feedback(f"Group '{name}' created.")
        return 1

    def delete(ctx: CommandContext) -> int:
        name = ctx.get("name")
        try:
            admin.delete_group(name)
        except NotFoundError as e:
            ctx.source.send_error(str(e))
            return 0
        ctx.source.send_feedback(f"Group '{name}' deleted.")
        return 1

    def add_user(ctx: CommandContext) -> int:
        user, group = ctx.get("user"), ctx.get("group")
        try:
            admin.add_member(group, user)
        except (NotFoundError, ConflictError) as e:
            ctx.source.send_error(str(e))
            return 0
        ctx.source.send_feedback(f"User '{user}' added to group '{group}'.")
        return 1

    def remove_user(ctx: CommandContext) -> int:
        user, group = ctx.get("user"), ctx.get("group")
        try:
            admin.remove_member(group, user)
        except (NotFoundError, ConflictError) as e:
            ctx.source.send_error(str(e))
            return 0
        ctx.source.send_feedback(f"User '{user}' removed from group '{group}'.")
        return 1

    def members(ctx: CommandContext) -> int:
        group = ctx.get("group")
        try:
            users = admin.members(group)
        except NotFoundError as e:
            ctx.source.send_error(str(e))
            return 0
        if not users:
            ctx.source.send_feedback(f"No members in group '{group}'.")
        else:
            ctx.source.send_feedback("\n".join(f"- {u}" for u in users))
        return len(users)

    def list_groups(ctx: CommandContext) -> int:
        groups = admin.groups()
        ctx.source.send_feedback("Groups:\n" + "\n".join(f"- {g}" for g in groups))
        return len(groups)

    def group_names(ctx: CommandContext) -> list[str]:
        return admin.groups()

    dispatcher.register(
        literal(
            "group",
            literal(
                "create",
                argument("name", parser=_group_name, executes=create),
                requires=require(engine, "permissions.groups.create", 4),
            ),
            literal(
                "delete",
                argument("name", parser=_group_name, executes=delete, suggests=group_names),
                requires=require(engine, "permissions.groups.delete", 4),
            ),
            literal(
                "add_user",
                argument(
                    "user",
                    argument(
                        "group",
                        parser=_group_name,
                        executes=add_user,
                        suggests=group_names,
                    ),
                    parser=_user_id,
                ),
                requires=require(engine, "permissions.groups.add_user", 3),
            ),
            literal(
                "remove_user",
                argument(
                    "user",
                    argument(
                        "group",
                        parser=_group_name,
                        executes=remove_user,
                        suggests=group_names,
                    ),
                    parser=_user_id,
                ),
                requires=require(engine, "permissions.groups.remove_user", 3),
            ),
            literal(
                "members",
                argument("group", parser=_group_name, executes=members, suggests=group_names),
                requires=require(engine, "permissions.groups.members", 3),
            ),
            literal(
                "list",
                executes=list_groups,
                requires=require(engine, "permissions.groups.list", 3),
            ),
            requires=require(engine, "permissions.groups.?", 3),
        )
    )
