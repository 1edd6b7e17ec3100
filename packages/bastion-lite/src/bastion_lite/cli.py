"""CLI entry point for Bastion."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError
from rich import print as rprint
from rich.syntax import Syntax
from rich.table import Table

from bastion_core.commands import CommandSource, build_dispatcher
from bastion_core.config import BastionConfig, load_config
from bastion_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from bastion_core.engine import GroupAdmin, PermissionEngine
from bastion_core.errors import BastionError
from bastion_core.interfaces import PermissionValue, Subject
from bastion_core.plugins import PluginLoader, PluginNotFoundError
from bastion_core.registry import init_registry
from bastion_core.syntax import parse_permission, parse_query

app = typer.Typer(
    name="bastion",
    help="Bastion: permission trees, groups and checks for your server.",
)

config_app = typer.Typer(help="Manage Bastion configuration.")
app.add_typer(config_app, name="config")

group_app = typer.Typer(help="Create, delete and populate groups.")
app.add_typer(group_app, name="group")

perm_app = typer.Typer(help="Grant, revoke, list and check permissions.")
app.add_typer(perm_app, name="perm")

# Global state
_config: BastionConfig | None = None
_admin: GroupAdmin | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_JSON_FORMAT = (
    '{"time": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s"}'
)


def _get_config() -> BastionConfig:
    if _config is None:
        return load_config()
    return _config


def _configure_logging(cfg: BastionConfig) -> None:
    fmt = _JSON_FORMAT if cfg.log_format == "json" else "%(levelname)s %(name)s: %(message)s"
    logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], format=fmt, force=True)


def _get_admin() -> GroupAdmin:
    """Build engine and admin from config on first use."""
    global _admin
    if _admin is None:
        cfg = _get_config()
        try:
            store = PluginLoader(cfg).create_store()
        except PluginNotFoundError as e:
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
        engine = PermissionEngine(store, registry=init_registry(cfg.registry.seed))
        _admin = GroupAdmin(engine, default_group=cfg.groups.default_group)
        _admin.ensure_default_group()
    return _admin


def _subject(target: str, group: bool) -> Subject:
    try:
        return Subject.group(target) if group else Subject.user(target)
    except ValidationError as e:
        kind = "group name" if group else "user id"
        rprint(f"[red]Error:[/red] Invalid {kind} {target!r}: {e.errors()[0]['msg']}")
        raise typer.Exit(1)


def _name(target: str, group: bool = True) -> str:
    return _subject(target, group).id


def _permission(text: str, existence: bool = False) -> str:
    try:
        return parse_query(text) if existence else parse_permission(text)
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to bastion.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config, _admin
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _admin = None
    _configure_logging(_config)


@app.command()
def init() -> None:
    """Create the database and the default group."""
    admin = _get_admin()
    rprint(f"[green]Ready[/green]: default group '{admin.default_group}' exists.")


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default bastion.yaml in current directory."""
    target = Path("bastion.yaml")
    if target.exists() and not force:
        rprint("[yellow]bastion.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


# ---------------------------------------------------------------------------
# group
# ---------------------------------------------------------------------------


@group_app.command("create")
def group_create(name: str = typer.Argument(..., help="Group name")) -> None:
    """Create an empty group."""
    try:
        _get_admin().create_group(_name(name))
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint(f"[green]Group '{name}' created.[/green]")


@group_app.command("delete")
def group_delete(name: str = typer.Argument(..., help="Group name")) -> None:
    """Delete a group and its permissions."""
    try:
        _get_admin().delete_group(_name(name))
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint(f"[green]Group '{name}' deleted.[/green]")


@group_app.command("add-user")
def group_add_user(
    user: str = typer.Argument(..., help="User id"),
    group: str = typer.Argument(..., help="Group name"),
) -> None:
    """Add a user to a group."""
    try:
        _get_admin().add_member(_name(group), _name(user, group=False))
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint(f"[green]User '{user}' added to group '{group}'.[/green]")


@group_app.command("remove-user")
def group_remove_user(
    user: str = typer.Argument(..., help="User id"),
    group: str = typer.Argument(..., help="Group name"),
) -> None:
    """Remove a user from a group."""
    try:
        _get_admin().remove_member(_name(group), _name(user, group=False))
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint(f"[green]User '{user}' removed from group '{group}'.[/green]")


@group_app.command("members")
def group_members(group: str = typer.Argument(..., help="Group name")) -> None:
    """List the users in a group."""
    try:
        users = _get_admin().members(_name(group))
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    if not users:
        rprint(f"[yellow]No members in group '{group}'.[/yellow]")
        raise typer.Exit(0)
    for user in users:
        rprint(f"- {user}")


@group_app.command("list")
def group_list() -> None:
    """List every group with its member count."""
    admin = _get_admin()
    table = Table(title="Groups")
    table.add_column("group", style="cyan")
    table.add_column("members", justify="right", style="green")
    for name in admin.groups():
        table.add_row(name, str(len(admin.members(name))))
    rprint(table)


# ---------------------------------------------------------------------------
# perm
# ---------------------------------------------------------------------------


@perm_app.command("grant")
def perm_grant(
    target: str = typer.Argument(..., help="User id, or group name with --group"),
    permission: str = typer.Argument(..., help="Dotted permission, e.g. chat.color"),
    group: bool = typer.Option(False, "--group", "-g", help="Target is a group"),
) -> None:
    """Grant a permission to a user or group."""
    subject, permission = _subject(target, group), _permission(permission)
    try:
        _get_admin().engine.grant(subject, permission)
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint("[green]Permission granted[/green]")


@perm_app.command("revoke")
def perm_revoke(
    target: str = typer.Argument(..., help="User id, or group name with --group"),
    permission: str = typer.Argument(..., help="Dotted permission"),
    group: bool = typer.Option(False, "--group", "-g", help="Target is a group"),
) -> None:
    """Revoke a permission from a user or group."""
    subject, permission = _subject(target, group), _permission(permission)
    try:
        _get_admin().engine.revoke(subject, permission)
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint("[green]Permission revoked[/green]")


@perm_app.command("list")
def perm_list(
    target: str = typer.Argument(..., help="User id, or group name with --group"),
    group: bool = typer.Option(False, "--group", "-g", help="Target is a group"),
    inherited: bool = typer.Option(
        False, "--inherited", "-i", help="Include permissions from the user's groups"
    ),
    parent: str | None = typer.Option(
        None, "--parent", help="Only paths under this prefix, prefix stripped"
    ),
) -> None:
    """List the permissions granted to a user or group."""
    permissions = _get_admin().engine.list_granted(
        _subject(target, group), inherited=inherited, parent=parent
    )
    if not permissions:
        rprint("[yellow]No permissions.[/yellow]")
        raise typer.Exit(0)
    for permission in permissions:
        rprint(f"- {permission}")


@perm_app.command("check")
def perm_check(
    target: str = typer.Argument(..., help="User id, or group name with --group"),
    permission: str = typer.Argument(..., help="Dotted permission, or scope.? existence query"),
    group: bool = typer.Option(False, "--group", "-g", help="Target is a group"),
) -> None:
    """Check a permission. Exits 0 when granted, 2 otherwise."""
    subject, permission = _subject(target, group), _permission(permission, existence=True)
    try:
        result = _get_admin().engine.check(subject, permission)
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    if result is PermissionValue.granted:
        rprint(f"[green]{result.value}[/green]")
        return
    rprint(f"[yellow]{result.value}[/yellow]")
    raise typer.Exit(2)


# ---------------------------------------------------------------------------
# events and suggestions
# ---------------------------------------------------------------------------


@app.command()
def known(
    prefix: str = typer.Option("", "--prefix", help="Only permissions starting with this"),
) -> None:
    """Show known permissions used for suggestions."""
    for permission in _get_admin().engine.registry.suggest(prefix):
        rprint(f"- {permission}")


@app.command()
def join(user: str = typer.Argument(..., help="User id of the connecting user")) -> None:
    """Handle a user connection: enrol them in the default group."""
    admin = _get_admin()
    if not _get_config().groups.auto_enroll:
        rprint("[yellow]Auto-enrol is disabled.[/yellow]")
        raise typer.Exit(0)
    if admin.on_connect(_name(user, group=False)):
        rprint(f"[green]Enrolled[/green] {user} in '{admin.default_group}'.")
    else:
        rprint(f"{user} is already in '{admin.default_group}'.")


@app.command("exec")
def exec_(
    line: str = typer.Argument(..., help='Command line, e.g. "group create admins"'),
    as_user: str | None = typer.Option(
        None, "--as", help="Run as this user instead of the console"
    ),
    op_level: int = typer.Option(0, "--op-level", help="Operator level of the user"),
) -> None:
    """Run an in-server command through the command tree."""
    admin = _get_admin()
    dispatcher = build_dispatcher(admin)
    if as_user is None:
        source = CommandSource.console()
    else:
        source = CommandSource(subject=_subject(as_user, False), op_level=op_level)
    try:
        dispatcher.execute(line, source)
    except BastionError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    for message in source.feedback:
        rprint(message)
    for message in source.errors:
        rprint(f"[red]{message}[/red]")
    if source.errors:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
