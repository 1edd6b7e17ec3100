"""Explicit command tree: literal and argument nodes, requirements, dispatch."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from bastion_core.errors import BastionError, CommandSyntaxError
from bastion_core.interfaces.provider import PermissionProvider, PermissionValue, Subject

logger = logging.getLogger(__name__)

CONSOLE_OP_LEVEL = 4


@dataclass
class CommandSource:
    """Who is running a command, and where its feedback goes.

    A source without a subject is the server console and passes every
    requirement.
    """

    subject: Subject | None = None
    op_level: int = 0
    feedback: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @classmethod
    def console(cls) -> CommandSource:
        return cls(subject=None, op_level=CONSOLE_OP_LEVEL)

    @property
    def is_console(self) -> bool:
        return self.subject is None

    def send_feedback(self, message: str) -> None:
        self.feedback.append(message)

    def send_error(self, message: str) -> None:
        self.errors.append(message)


@dataclass
class CommandContext:
    source: CommandSource
    arguments: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str) -> Any:
        return self.arguments[name]


Requirement = Callable[[CommandSource], bool]
Handler = Callable[[CommandContext], int]
Suggester = Callable[[CommandContext], Iterable[str]]
ArgumentParser = Callable[[str], Any]


def _always(source: CommandSource) -> bool:
    return True


@dataclass
class CommandNode:
    """One node of the command tree.

    Literal nodes match their own name; argument nodes convert the token
    with ``parser`` and store it under ``name``.
    """

    name: str
    is_argument: bool = False
    parser: ArgumentParser | None = None
    requirement: Requirement = _always
    handler: Handler | None = None
    suggester: Suggester | None = None
    children: list[CommandNode] = field(default_factory=list)

    def can_use(self, source: CommandSource) -> bool:
        return self.requirement(source)

    def child_for(self, token: str, context: CommandContext) -> CommandNode | None:
        """Pick the child that accepts *token*, storing argument values in *context*.

        Literals take priority over arguments.
        """
        usable = [c for c in self.children if c.can_use(context.source)]
        for child in usable:
            if not child.is_argument and child.name == token:
                return child
        for child in usable:
            if child.is_argument:
                context.arguments[child.name] = child.parse(token)
                return child
        return None

    def parse(self, token: str) -> Any:
        if self.parser is None:
            return token
        try:
            return self.parser(token)
        except ValidationError as e:
            raise CommandSyntaxError(
                f"Invalid value for <{self.name}>: {e.errors()[0]['msg']}"
            ) from e
        except (BastionError, ValueError) as e:
            raise CommandSyntaxError(f"Invalid value for <{self.name}>: {e}") from e

    def usage(self) -> str:
        return f"<{self.name}>" if self.is_argument else self.name


def literal(
    name: str,
    *children: CommandNode,
    requires: Requirement | None = None,
    executes: Handler | None = None,
) -> CommandNode:
    return CommandNode(
        name=name,
        requirement=requires or _always,
        handler=executes,
        children=list(children),
    )


def argument(
    name: str,
    *children: CommandNode,
    parser: ArgumentParser | None = None,
    requires: Requirement | None = None,
    executes: Handler | None = None,
    suggests: Suggester | None = None,
) -> CommandNode:
    return CommandNode(
        name=name,
        is_argument=True,
        parser=parser,
        requirement=requires or _always,
        handler=executes,
        suggester=suggests,
        children=list(children),
    )


def require(provider: PermissionProvider, permission: str, op_level: int) -> Requirement:
    """Pass when *permission* is granted, or else when the operator level suffices."""

    def _check(source: CommandSource) -> bool:
        if source.is_console:
            return True
        if provider.check(source.subject, permission) is PermissionValue.granted:
            return True
        return source.op_level >= op_level

    return _check


class CommandDispatcher:
    """Owns the root commands and runs command lines against them."""

    def __init__(self) -> None:
        self.root = CommandNode(name="")

    def register(self, node: CommandNode) -> CommandNode:
        if any(c.name == node.name for c in self.root.children):
            raise ValueError(f"Command {node.name!r} is already registered")
        self.root.children.append(node)
        return node

    def _tokenize(self, line: str) -> list[str]:
        try:
            return shlex.split(line)
        except ValueError as e:
            raise CommandSyntaxError(f"Malformed command: {e}") from e

    def execute(self, line: str, source: CommandSource) -> int:
        """Run *line* as *source*. Returns the handler's result."""
        tokens = self._tokenize(line)
        context = CommandContext(source=source)
        node = self.root
        for position, token in enumerate(tokens):
            child = node.child_for(token, context)
            if child is None:
                raise CommandSyntaxError(
                    f"Unknown or incomplete command at '{token}'", cursor=position
                )
            node = child
        if node.handler is None:
            raise CommandSyntaxError("Unknown or incomplete command", cursor=len(tokens))
        logger.debug("Executing %r for %s", line, source.subject or "console")
        return node.handler(context)

    def suggest(self, line: str, source: CommandSource) -> list[str]:
        """Completions for the last (possibly empty) token of *line*."""
        tokens = self._tokenize(line)
        partial = ""
        if tokens and not line.endswith(" "):
            partial = tokens.pop()
        context = CommandContext(source=source)
        node = self.root
        try:
            for token in tokens:
                node = node.child_for(token, context)
                if node is None:
                    return []
        except CommandSyntaxError:
            return []

        options: list[str] = []
        for child in node.children:
            if not child.can_use(source):
                continue
            if child.is_argument:
                if child.suggester is not None:
                    options.extend(child.suggester(context))
            else:
                options.append(child.name)
        return sorted(o for o in dict.fromkeys(options) if o.startswith(partial))

    def usage(self, source: CommandSource) -> list[str]:
        """Every complete command path *source* is allowed to run."""
        lines: list[str] = []
        stack: list[tuple[CommandNode, list[str]]] = [
            (c, [c.usage()]) for c in reversed(self.root.children)
        ]
        while stack:
            node, parts = stack.pop()
            if not node.can_use(source):
                continue
            if node.handler is not None:
                lines.append(" ".join(parts))
            for child in reversed(node.children):
                stack.append((child, parts + [child.usage()]))
        return lines
