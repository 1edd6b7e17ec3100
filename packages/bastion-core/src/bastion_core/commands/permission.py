"""`permission` command: grant, revoke and list for users and groups."""

from __future__ import annotations

from bastion_core.commands.tree import (
    CommandContext,
    CommandDispatcher,
    argument,
    literal,
    require,
)
from bastion_core.engine.resolver import PermissionEngine
from bastion_core.errors import TreeStructureError
from bastion_core.interfaces.provider import Subject
from bastion_core.syntax import parse_permission


def _format_list(permissions: list[str]) -> str:
    return "Permissions:\n" + "\n".join(f"- {p}" for p in permissions)


def _subject_branch(
    engine: PermissionEngine,
    kind: str,
    make_subject,
    inherited_list: bool,
):
    """Build ``<kind> <id> grant|revoke|list`` for one subject kind."""
    base = f"permissions.edit.{kind}"

    def subject_of(ctx: CommandContext) -> Subject:
        return ctx.get(kind)

    def grant(ctx: CommandContext) -> int:
        try:
            engine.grant(subject_of(ctx), ctx.get("permission"))
        except TreeStructureError as e:
            ctx.source.send_error(str(e))
            return 0
        ctx.source.send_feedback("Permission granted")
        return 1

    def revoke(ctx: CommandContext) -> int:
        engine.revoke(subject_of(ctx), ctx.get("permission"))
        ctx.source.send_feedback("Permission revoked")
        return 1

    def list_(ctx: CommandContext) -> int:
        permissions = engine.list_granted(subject_of(ctx), inherited=inherited_list)
        ctx.source.send_feedback(_format_list(permissions))
        return len(permissions)

    def grantable(ctx: CommandContext) -> list[str]:
        owned = engine.list_granted(subject_of(ctx))
        return engine.registry.suggest(exclude=owned)

    def revocable(ctx: CommandContext) -> list[str]:
        return sorted(engine.list_granted(subject_of(ctx)))

    return literal(
        kind,
        argument(
            kind,
            literal(
                "grant",
                argument(
                    "permission",
                    parser=parse_permission,
                    executes=grant,
                    suggests=grantable,
                ),
                requires=require(engine, f"{base}.grant", 4),
            ),
            literal(
                "revoke",
                argument(
                    "permission",
                    parser=parse_permission,
                    executes=revoke,
                    suggests=revocable,
                ),
                requires=require(engine, f"{base}.revoke", 4),
            ),
            literal(
                "list",
                executes=list_,
                requires=require(engine, f"{base}.list", 4),
            ),
            parser=make_subject,
        ),
        requires=require(engine, f"{base}.?", 4),
    )


def register_permission_command(dispatcher: CommandDispatcher, engine: PermissionEngine) -> None:
    dispatcher.register(
        literal(
            "permission",
            _subject_branch(engine, "group", Subject.group, inherited_list=False),
            _subject_branch(engine, "user", Subject.user, inherited_list=True),
            requires=require(engine, "permissions.edit.?", 4),
        )
    )
