"""
Arbor faults (errors raised while resolving a command) and their rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing failure.
  Codes are grouped by domain so logs and searches stay predictable.
- CommandException: base type carrying a message, a chain of contexts and
  rendering options; knows how to render itself through rich.
- trigger(): surface a fault at the process boundary (print + exit status 1).

Context chain
- Resolution happens in layers (walk, flags, arity, named arguments). Each layer
  that re-raises a fault adds one outer context with within(...), keeping the
  original message intact:

      failed to run command: invalid number of arguments provided: expected 1 argument, got 2

- The most specific subclass survives the wrapping, so callers can still catch
  ConstraintError or ArityError directly.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console()


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    grouping
    - routing (1110x)
      • COMMAND_NOT_FOUND
    - flags (1111x/1112x)
      • MALFORMED_FLAG, UNKNOWN_FLAG, INVALID_FLAG_VALUE, MISSING_FLAG_VALUE,
        CONSTRAINT_VIOLATION
    - positionals (1113x)
      • ARITY_MISMATCH, MISSING_NAMED_ARGUMENTS
    """
    # --- routing errors ---
    COMMAND_NOT_FOUND           = 11101

    # --- flag errors ---
    MALFORMED_FLAG              = 11111
    UNKNOWN_FLAG                = 11112
    INVALID_FLAG_VALUE          = 11113
    MISSING_FLAG_VALUE          = 11114
    CONSTRAINT_VIOLATION        = 11124

    # --- positional errors ---
    ARITY_MISMATCH              = 11131
    MISSING_NAMED_ARGUMENTS     = 11132

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base class for every failure produced while resolving or running a command.

    Options (all optional)
    - code: FaultCode
    - title: short lowercased headline
    - hint: one actionable sentence
    - contexts: tuple[str, ...], outermost first
    - name, colorful, fancy: rendering options merged in by trigger()
    - any other payload the raiser wants to attach (flag, value, expected, ...)
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    @property
    def contexts(self):
        return tuple(self.options.get("contexts", ()))

    def within(self, context, /):
        """
        return a copy of this fault with `context` added as the outermost context.
        """
        if not isinstance(context, str):
            raise TypeError("within() argument must be a string")
        return copy.replace(self, contexts=(context, *self.contexts))

    def __str__(self):
        return ": ".join((*self.contexts, self.message))

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "context": "#9CA3AF",  # muted gray context chain
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}) | dict(self.options.get("styles", {})))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        header = Text.assemble(
            "[ ",
            text(self.options.get("name") or "error", styler("prog-name")),
            " — ",
            text(self.options["code"].normalize() if "code" in self.options else "", styler("code")),
            " | ",
            text(self.options.get("title", "error").title(), styler("error-title")),
            " ]"
        )
        renders = []
        for index, context in enumerate(self.contexts):
            renders.append(Text.assemble("  " * index, text(context, styler("context"))))
        renders.append(Text.assemble("  " * len(self.contexts), text(self.message, styler("error-message"))))
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class CommandNotFoundError(CommandException): ...
class MalformedFlagError(CommandException): ...
class UnknownFlagError(CommandException): ...
class FlagParseError(CommandException): ...
class MissingFlagValueError(CommandException): ...
class ConstraintError(CommandException): ...
class ArityError(CommandException): ...
class NamedArgumentsError(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault at the process boundary with the given rendering options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options (name, colorful, fancy, styles, ...) are merged into the fault via
      copy.replace before triggering.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "CommandException",
    "CommandNotFoundError",
    "MalformedFlagError",
    "UnknownFlagError",
    "FlagParseError",
    "MissingFlagValueError",
    "ConstraintError",
    "ArityError",
    "NamedArgumentsError",
    "FaultCode",
    "trigger",
)
