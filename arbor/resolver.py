"""
Arbor resolver: from an argument vector to a handler result or a help text.

Stages
1. partition: every `--help` token is removed and marks a help request; the
   other `--` tokens are flag tokens; everything else is positional. Both
   classes keep their relative order, but flags may sit anywhere in the vector.
2. walk: starting at the root, descend while the next positional names a child
   of the current node. The walk is greedy and never backtracks, so a
   positional spelled like a subcommand is always taken as that subcommand.
3. outcome: a help request yields Help for the node where the walk stopped,
   before any validation. Otherwise the node is executed with the positionals
   left over:
   - routing node -> CommandNotFoundError
   - global and local flags merged (local wins), flag tokens folded in order
   - arity rule checked against the leftover positionals -> ArityError
   - named arguments bound from the front -> NamedArgumentsError when short
   - handler called with a CommandInput; its result wrapped in Out

Every fault from stage 3 carries the outer context "failed to run command".
Faults raised by the handler itself are not touched.

Entry points
- execute(tree, args) -> Out | Help, raising CommandException subclasses
- run(tree, args) / run_and_handle(tree, handle, args): print help or the
  rendered diagnostic (exit status 1) at the process boundary
"""
import functools
import logging
import shlex
import sys
from collections import deque, namedtuple
from collections.abc import Iterable
from types import MappingProxyType

from rich.console import Console
from rich.text import Text

from .commands import CommandInput, ExactArgs, MinArgs
from .faults import *
from .flags import PREFIX, HELP, merge, update_flags
from .helper import render
from .tree import CommandTree
from .utils import *

logger = logging.getLogger(__name__)

console = Console()

Out = namedtuple("Out", ("value",))
Out.__doc__ = "Successful outcome: the value returned by the command handler."

Help = namedtuple("Help", ("text",))
Help.__doc__ = "Help outcome: the rendered help text for the node the walk stopped at."


def _tokens(args, /):
    """
    Normalize the argument vector.

    - Unset: read sys.argv[1:]
    - str: shell-like string, split with shlex.split
    - Iterable[str]: used as-is (each element must be a string)
    """
    if args is Unset:
        return list(sys.argv[1:])
    if isinstance(args, str):
        return shlex.split(args)
    if isinstance(args, Iterable):
        tokens = list(args)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("execute() arguments must be a string or an iterable of strings")
        return tokens
    raise TypeError("execute() arguments must be a string or an iterable of strings")


def _partition(tokens, /):
    requested = False
    flags = []
    positionals = []
    for token in tokens:
        if token == PREFIX + HELP:
            requested = True
        elif token.startswith(PREFIX):
            flags.append(token)
        else:
            positionals.append(token)
    return requested, flags, positionals


def _resolve(tree, node, path, tokens, positionals, /):
    """
    Validate a walked-to node against the leftover tokens and build the handler input.
    """
    route = " ".join(filter(None, (tree.config.program, *path)))
    if (command := node.command) is None:
        raise CommandNotFoundError(
            "command not found" + (" at %r" % " ".join(path) if path else ""),
            title="command not found",
            code=FaultCode.COMMAND_NOT_FOUND,
            hint="run '%s' to see the available subcommands" % " ".join(filter(None, (route, PREFIX + HELP))),
            path=tuple(path),
        )

    flags = functools.reduce(update_flags, tokens, merge(tree.flags, command.flags))

    match command.arity:
        case ExactArgs(count) | MinArgs(count) as rule if not rule.accepts(len(positionals)):
            raise ArityError(
                "expected %s, got %d" % (rule.describe(), len(positionals)),
                title="invalid number of arguments",
                code=FaultCode.ARITY_MISMATCH,
                hint="run '%s' to see the expected usage" % " ".join(filter(None, (route, PREFIX + HELP))),
                expected=count,
                actual=len(positionals),
                contexts=("invalid number of arguments provided",),
            )

    if len(positionals) < len(named := command.named):
        raise NamedArgumentsError(
            "not enough arguments: expected %d named argument%s (%s), got %d" % (
                len(named), "" if len(named) == 1 else "s", ", ".join(named), len(positionals)
            ),
            title="not enough arguments",
            code=FaultCode.MISSING_NAMED_ARGUMENTS,
            hint="provide a value for %s" % ", ".join("<%s>" % name for name in named[len(positionals):]),
            missing=tuple(named[len(positionals):]),
        )

    front, tail = positionals[:len(named)], positionals[len(named):]
    return command, CommandInput(
        args=tuple(tail),
        flags=MappingProxyType(flags),
        named=MappingProxyType(dict(zip(named, front))),
    )


def execute(tree, args=Unset, /):
    """
    Resolve `args` against `tree` and run the matching command.

    Returns
    - Help(text) when `--help` appears anywhere in `args`
    - Out(value) with the handler's return value otherwise

    Raises
    - CommandException subclasses (see module docstring); the handler's own
      exceptions propagate unchanged.
    """
    if not isinstance(tree, CommandTree):
        raise TypeError("execute() first argument must be a command tree")
    requested, tokens, positionals = _partition(_tokens(args))
    logger.debug("partitioned arguments: help=%s flags=%r positionals=%r", requested, tokens, positionals)

    node, path, positionals = tree.root, [], deque(positionals)
    while positionals and positionals[0] in node.children:
        path.append(segment := positionals.popleft())
        node = node.children[segment]
    logger.debug("walk stopped at %r with %d positional(s) left", " ".join(path) or "<root>", len(positionals))

    if requested:
        return Help(render(tuple(path), node, tree.flags, tree.config))

    try:
        command, input = _resolve(tree, node, path, tokens, list(positionals))
    except CommandException as error:
        raise error.within("failed to run command") from error

    logger.debug("running %r with args=%r named=%r", " ".join(path) or "<root>", input.args, dict(input.named))
    return Out(command.handler(input))


def run_and_handle(tree, handle, args=Unset, /):
    """
    Execute at the process boundary.

    - Help: printed to standard output; returns None.
    - Out: `handle(value)` is called and its result returned.
    - CommandException: rendered with the tree's config and the process exits with status 1.
    """
    if not callable(handle):
        raise TypeError("run_and_handle() second argument must be callable")
    config = tree.config if isinstance(tree, CommandTree) else None
    try:
        result = execute(tree, args)
    except CommandException as error:
        return trigger(
            error,
            name=config.program,
            colorful=config.colorful,
            fancy=config.fancy,
            styles=config.styles,
        )

    match result:
        case Help(text):
            console.print(Text.from_ansi(text), soft_wrap=True)
        case Out(value):
            return handle(value)


def run(tree, args=Unset, /):
    """
    Like run_and_handle(), returning the handler's value unchanged.
    """
    return run_and_handle(tree, lambda value: value, args)


__all__ = (
    "Out",
    "Help",
    "execute",
    "run",
    "run_and_handle",
)
