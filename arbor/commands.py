"""
Arbor command layer: what runs once a path through the tree is resolved.

What this module provides
- ExactArgs(n) / MinArgs(n): arity rules over the residual positional arguments.
- Command: an immutable bundle of handler, local flags, description, arity
  rule and named-argument names. Every builder returns a new Command.
- CommandInput: the snapshot handed to a handler (residual args, resolved
  flags, named arguments).
- Function-style builders mirroring the methods: command(), description(),
  count_args(), named_args(), flag().

Quick start
    from arbor import command, int_flag, one_of, ExactArgs, get_int

    def greet(input):
        return "hello %s (x%d)" % (input.named["name"], get_int(input.flags, "times"))

    hello = (
        command(greet)
        .description("say hello")
        .named_args("name")
        .count_args(ExactArgs(1))
        .flag("times", int_flag(1, "repetitions").constraint(one_of([1, 2, 3])))
    )

Design notes
- Named arguments are taken from the front of the residual positionals. A
  command declaring N names needs at least N positionals regardless of its
  arity rule; the arity rule itself is checked against all residual positionals.
  An ExactArgs count below the number of names can never be met and is
  rejected with ValueError by whichever builder completes the pair.
- The reserved help flag cannot be declared; flag names follow arbor.flags rules.
"""
import builtins
import copy
from collections import namedtuple
from collections.abc import Iterable

from .flags import FlagValue, sanitize_name
from .utils import *


def _plural(count, /):
    return "%d argument%s" % (count, "" if count == 1 else "s")


class ExactArgs(namedtuple("ExactArgs", ("count",))):
    """
    Require exactly `count` residual positional arguments.
    """
    __slots__ = ()

    def __new__(cls, count):
        if not isinstance(count, int) or isinstance(count, bool):
            raise TypeError(f"{cls.__name__} count must be an integer")
        if count < 0:
            raise ValueError(f"{cls.__name__} count cannot be negative")
        return super().__new__(cls, count)

    def accepts(self, count, /):
        return count == self.count

    def describe(self):
        return "exactly %s" % _plural(self.count)


class MinArgs(namedtuple("MinArgs", ("count",))):
    """
    Require at least `count` residual positional arguments.
    """
    __slots__ = ()

    def __new__(cls, count):
        if not isinstance(count, int) or isinstance(count, bool):
            raise TypeError(f"{cls.__name__} count must be an integer")
        if count < 0:
            raise ValueError(f"{cls.__name__} count cannot be negative")
        return super().__new__(cls, count)

    def accepts(self, count, /):
        return count >= self.count

    def describe(self):
        return "at least %s" % _plural(self.count)


def _reconcile(arity, named, /):
    # Named arguments consume positionals, so an exact count below them can never be met.
    match arity:
        case ExactArgs(count) if count < len(named):
            raise ValueError(
                "command expects exactly %s but declares %d named argument%s" % (
                    _plural(count), len(named), "" if len(named) == 1 else "s"
                )
            )
    return arity


CommandInput = namedtuple("CommandInput", ("args", "flags", "named"))
CommandInput.__doc__ = """
Snapshot passed to a command handler.

- args: tuple[str, ...] residual positional arguments, in order.
- flags: read-only mapping of flag name to resolved FlagValue (see arbor.flags getters).
- named: read-only mapping of named-argument name to its positional value.
"""


class Command:
    """
    A runnable command: handler plus the metadata the resolver validates against.

    Fields (read-only)
    - handler: callable receiving a CommandInput; its return value becomes Out.value
    - flags: mapping of local flags (override global flags of the same name)
    - descr: str | None, shown in help
    - arity: ExactArgs | MinArgs | None
    - named: list of named-argument names, in binding order

    Builders (each returns a new Command)
    - description(text), count_args(rule), named_args(*names), flag(name, value)
    """
    __slots__ = ("_handler", "_flags", "_descr", "_arity", "_named")

    handler = mirror("handler")
    flags = mirror("flags")
    descr = mirror("descr")
    arity = mirror("arity")
    named = mirror("named")

    def __init__(self, handler, /):
        if not builtins.callable(handler):
            raise TypeError("command handler must be callable")
        self._handler = handler
        self._flags = {}
        self._descr = None
        self._arity = None
        self._named = ()

    def description(self, descr, /):
        if not isinstance(descr, str):
            raise TypeError("command 'descr' must be a string")
        elif not (descr := descr.strip()):
            raise ValueError("command 'descr' cannot be empty")
        return copy.replace(self, descr=descr)

    def count_args(self, arity, /):
        if not isinstance(arity, ExactArgs | MinArgs):
            raise TypeError("command arity must be ExactArgs or MinArgs")
        return copy.replace(self, arity=_reconcile(arity, self._named))

    def named_args(self, *names):
        # Accept both named_args("a", "b") and named_args(["a", "b"]).
        if len(names) == 1 and isinstance(names[0], Iterable) and not isinstance(names[0], str):
            names, = names
        sanitized = []
        for name in names:
            if not isinstance(name, str):
                raise TypeError("named argument names must be strings")
            elif not (name := name.strip()):
                raise ValueError("named argument names cannot be empty-strings")
            elif name in sanitized:
                raise ValueError(f"named argument {name!r} is declared twice")
            sanitized.append(name)
        _reconcile(self._arity, sanitized)
        return copy.replace(self, named=tuple(sanitized))

    def flag(self, name, value, /):
        name = sanitize_name(name)
        if not isinstance(value, FlagValue):
            raise TypeError(f"command flag {name!r} must be a flag value")
        return copy.replace(self, flags={**self._flags, name: value})

    def __replace__(self, /, **changes):
        if unknown := set(changes) - {"handler", "flags", "descr", "arity", "named"}:
            raise TypeError(f"command has no field(s) {', '.join(sorted(unknown))}")
        clone = object.__new__(type(self))
        clone._handler = changes.get("handler", self._handler)
        clone._flags = dict(changes.get("flags", self._flags))
        clone._descr = changes.get("descr", self._descr)
        clone._arity = changes.get("arity", self._arity)
        clone._named = tuple(changes.get("named", self._named))
        return clone

    def __rich_repr__(self):
        yield "handler", getattr(self._handler, "__name__", self._handler)
        yield "descr", self._descr
        yield "arity", self._arity
        yield "named", self.named
        yield "flags", sorted(self._flags)

    def __repr__(self):
        return f"command({", ".join("%s=%r" % pair for pair in self.__rich_repr__())})"


def command(handler, /):
    """
    Wrap `handler` into a Command with no flags, description, arity or named args.
    """
    return Command(handler)


def _command(caller, object, /):
    if not isinstance(object, Command):
        raise TypeError(f"{caller}() first argument must be a command")
    return object


def description(command, descr, /):
    return _command("description", command).description(descr)


def count_args(command, arity, /):
    return _command("count_args", command).count_args(arity)


def named_args(command, names, /):
    return _command("named_args", command).named_args(names)


def flag(command, name, value, /):
    return _command("flag", command).flag(name, value)


__all__ = (
    # Arity rules
    "ExactArgs",
    "MinArgs",

    # Types
    "Command",
    "CommandInput",

    # Builders
    "command",
    "description",
    "count_args",
    "named_args",
    "flag",
)
