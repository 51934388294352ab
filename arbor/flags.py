r"""
Arbor flags: typed, constrained values set through `--name=value` tokens.

Overview
- FlagKind: the closed set of flag tags (INT, FLOAT, BOOL, STRING and the list
  variants INTS, FLOATS, STRINGS). A tag's value doubles as its display name.
- FlagValue: one class for every kind. It carries the tag, the current value,
  the default, a description and an ordered tuple of constraints. Per-kind
  behavior is a match over the tag, never a subclass.
- Builders: int_flag, float_flag, bool_flag, string_flag, ints_flag,
  floats_flag, strings_flag, plus flag_constraint(flag, predicate).
- Flag maps: plain dicts from name to FlagValue; merge() layers a command's
  local flags over the global ones and update_flags() folds one `--` token in.
- Getters: get_int, get_float, ... read a resolved value from a handler's flags.

Immutability
- A FlagValue never changes in place. update(), constraint() and copy.replace()
  return new values; the tag is fixed at creation and copy.replace() rejects
  any attempt to change it.

Token grammar
- `--name=value` sets the flag from `value` (list kinds split `value` on ',').
- `--name` alone toggles a BOOL flag; for any other kind it is an error.
- `--help` is reserved and never reaches this module.

Quick example
    >>> from arbor.flags import int_flag, update
    >>> threads = int_flag(1, "worker threads")
    >>> update(threads, "4").value
    4
"""
import builtins
import copy
import difflib
from collections.abc import Iterable, Mapping
from enum import Enum

from .faults import *
from .utils import *

PREFIX = "--"
HELP = "help"


class FlagKind(Enum):
    """
    tags of the flag sum type; the value is the name shown in help output.
    """
    INT = "INT"
    FLOAT = "FLOAT"
    BOOL = "BOOL"
    STRING = "STRING"
    INTS = "INTS"
    FLOATS = "FLOATS"
    STRINGS = "STRINGS"

    @property
    def listed(self):
        """
        True for list kinds, whose payload is a sequence parsed from one comma-separated token.
        """
        return self in (FlagKind.INTS, FlagKind.FLOATS, FlagKind.STRINGS)

    @property
    def scalar(self):
        """
        The element kind of a list kind (the kind itself for scalars).
        """
        return {
            FlagKind.INTS: FlagKind.INT,
            FlagKind.FLOATS: FlagKind.FLOAT,
            FlagKind.STRINGS: FlagKind.STRING,
        }.get(self, self)


def sanitize_name(name, /, *, owner="flag"):
    """
    Internal: validate a flag name (without the `--` prefix) and return it trimmed.

    Rules
    - must be a string, non-empty after trimming;
    - must fit the token grammar: no whitespace, no '=', no leading '-';
    - must not be the reserved help name.
    """
    if not isinstance(name, str):
        raise TypeError(f"{owner} names must be strings")
    elif not (name := name.strip()):
        raise ValueError(f"{owner} names cannot be empty-strings")
    elif name.startswith("-"):
        raise ValueError(f"{owner} name {name!r} must be given without the {PREFIX!r} prefix")
    elif any(character.isspace() or character == "=" for character in name):
        raise ValueError(f"{owner} name {name!r} cannot contain whitespace or '='")
    elif name == HELP:
        raise ValueError(f"{owner} name {HELP!r} is reserved for help requests")
    return name


def _coerce(kind, object, /):
    # Validate a definition-time value (default or replaced value) against the tag.
    match kind:
        case FlagKind.INT if isinstance(object, int) and not isinstance(object, bool):
            return object
        case FlagKind.FLOAT if isinstance(object, int | float) and not isinstance(object, bool):
            return float(object)
        case FlagKind.BOOL if isinstance(object, bool):
            return object
        case FlagKind.STRING if isinstance(object, str):
            return object
        case FlagKind.INTS | FlagKind.FLOATS | FlagKind.STRINGS if (
                isinstance(object, Iterable) and not isinstance(object, str | bytes)
        ):
            return tuple(_coerce(kind.scalar, item) for item in object)
    raise TypeError(f"{kind.value} flag cannot hold {object!r}")


def _parse_scalar(kind, raw, /):
    match kind:
        case FlagKind.INT:
            return int(raw)
        case FlagKind.FLOAT:
            return float(raw)
        case FlagKind.BOOL:
            match raw.strip().lower():
                case "true":
                    return True
                case "false":
                    return False
            raise ValueError(raw)
        case FlagKind.STRING:
            return raw


def parse(kind, raw, /):
    """
    Parse a raw token value into a payload of the given kind.

    - scalars parse the whole token;
    - list kinds split on ',' and parse every element (the list is one unit).

    Raises
    - FlagParseError naming the raw value and the expected kind.
    """
    if not isinstance(kind, FlagKind):
        raise TypeError("parse() first argument must be a flag kind")
    if not isinstance(raw, str):
        raise TypeError("parse() second argument must be a string")
    try:
        if kind.listed:
            return [_parse_scalar(kind.scalar, item) for item in raw.split(",")]
        return _parse_scalar(kind, raw)
    except ValueError:
        raise FlagParseError(
            "invalid value %r, expected %s" % (raw, _expectation(kind)),
            title="invalid flag value",
            code=FaultCode.INVALID_FLAG_VALUE,
            hint="pass a value of type %s (for example: --name=%s)" % (kind.value, _example(kind)),
            raw=raw,
            kind=kind,
        ) from None


def _expectation(kind, /):
    return {
        FlagKind.INT: "an integer",
        FlagKind.FLOAT: "a float",
        FlagKind.BOOL: "'true' or 'false'",
        FlagKind.STRING: "a string",
        FlagKind.INTS: "comma-separated integers",
        FlagKind.FLOATS: "comma-separated floats",
        FlagKind.STRINGS: "comma-separated strings",
    }[kind]


def _example(kind, /):
    return {
        FlagKind.INT: "1",
        FlagKind.FLOAT: "1.5",
        FlagKind.BOOL: "true",
        FlagKind.STRING: "text",
        FlagKind.INTS: "1,2,3",
        FlagKind.FLOATS: "1.5,2.5",
        FlagKind.STRINGS: "a,b,c",
    }[kind]


class FlagValue:
    """
    A typed flag: tag, current value, default, description and constraints.

    Construction
    - FlagValue(kind, default, descr=Unset, constraints=())
      The default must fit the kind (an int is accepted for FLOAT kinds; bool is
      never accepted as INT). The current value starts as the default.

    Fields (read-only)
    - kind: FlagKind
    - value / default: the payload (lists are handed out as fresh lists)
    - descr: str | None
    - constraints: list of predicates, in registration order
    """
    __slots__ = ("_kind", "_value", "_default", "_descr", "_constraints")

    kind = mirror("kind")
    value = mirror("value")
    default = mirror("default")
    descr = mirror("descr")
    constraints = mirror("constraints")

    def __init__(self, kind, default, /, descr=Unset, constraints=()):
        if not isinstance(kind, FlagKind):
            raise TypeError("flag 'kind' must be a flag kind")
        if not isinstance(descr, str | Unset):
            raise TypeError("flag 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError("flag 'descr' cannot be empty")
        self._kind = kind
        self._default = _coerce(kind, default)
        self._value = self._default
        self._descr = coalesce(descr)
        self._constraints = _predicates(constraints)

    def constraint(self, predicate, /):
        """
        Return a new flag with `predicate` appended to the constraints.
        """
        return copy.replace(self, constraints=(*self._constraints, predicate))

    def __replace__(self, /, **changes):
        if unknown := set(changes) - {"kind", "value", "default", "descr", "constraints"}:
            raise TypeError(f"flag has no field(s) {', '.join(sorted(unknown))}")
        if changes.get("kind", self._kind) is not self._kind:
            raise TypeError(f"{self._kind.value} flag cannot change its kind")
        clone = object.__new__(type(self))
        clone._kind = self._kind
        clone._value = _coerce(self._kind, changes["value"]) if "value" in changes else self._value
        clone._default = _coerce(self._kind, changes["default"]) if "default" in changes else self._default
        clone._descr = changes.get("descr", self._descr)
        clone._constraints = _predicates(changes["constraints"]) if "constraints" in changes else self._constraints
        return clone

    def __rich_repr__(self):
        yield "value", self.value
        yield "default", self.default
        yield "descr", self.descr

    def __repr__(self):
        return f"{self._kind.value.lower()}-flag({", ".join("%s=%r" % pair for pair in self.__rich_repr__())})"


def _predicates(constraints, /):
    if isinstance(constraints, str | bytes) or not isinstance(constraints, Iterable):
        raise TypeError("flag 'constraints' must be an iterable of callables")
    constraints = tuple(constraints)
    if not all(map(builtins.callable, constraints)):
        raise TypeError("flag constraints must be callable")
    return constraints


def apply_constraints(flag, value, /):
    """
    Run every constraint of `flag` on `value` in registration order.

    Each predicate receives the output of the previous one; a predicate that
    returns None only checks and leaves the value as it was. The first failure
    short-circuits; a plain ValueError from a user predicate is surfaced as a
    ConstraintError carrying the same message, and so is a result the flag's
    kind cannot hold.
    """
    for predicate in flag._constraints:
        try:
            result = predicate(value)
        except ConstraintError:
            raise
        except ValueError as error:
            raise ConstraintError(
                str(error),
                title="constraint violation",
                code=FaultCode.CONSTRAINT_VIOLATION,
                value=value,
            ) from error
        if result is None:
            continue
        try:
            _coerce(flag._kind, result)
        except TypeError as error:
            raise ConstraintError(
                "constraint %s returned %r, which a %s flag cannot hold" % (
                    getattr(predicate, "__name__", repr(predicate)), result, flag._kind.value
                ),
                title="constraint violation",
                code=FaultCode.CONSTRAINT_VIOLATION,
                value=result,
            ) from error
        value = result
    return value


def update(flag, raw, /):
    """
    Parse `raw`, constrain the result and return a new flag holding it.

    `raw is None` means the token carried no value (`--name`): BOOL flags are
    toggled, any other kind raises MissingFlagValueError.
    """
    if not isinstance(flag, FlagValue):
        raise TypeError("update() first argument must be a flag")
    if raw is None:
        if flag.kind is not FlagKind.BOOL:
            raise MissingFlagValueError(
                "no value provided for %s flag" % flag.kind.value,
                title="missing flag value",
                code=FaultCode.MISSING_FLAG_VALUE,
                hint="only BOOL flags can be toggled without a value (for example: --name=%s)" % _example(flag.kind),
                kind=flag.kind,
            )
        return copy.replace(flag, value=not flag._value)
    return copy.replace(flag, value=apply_constraints(flag, parse(flag.kind, raw)))


def flag_constraint(flag, predicate, /):
    """
    Function form of FlagValue.constraint.
    """
    if not isinstance(flag, FlagValue):
        raise TypeError("flag_constraint() first argument must be a flag")
    return flag.constraint(predicate)


def int_flag(default=0, /, descr=Unset):
    return FlagValue(FlagKind.INT, default, descr)


def float_flag(default=0.0, /, descr=Unset):
    return FlagValue(FlagKind.FLOAT, default, descr)


def bool_flag(default=False, /, descr=Unset):
    return FlagValue(FlagKind.BOOL, default, descr)


def string_flag(default="", /, descr=Unset):
    return FlagValue(FlagKind.STRING, default, descr)


def ints_flag(default=(), /, descr=Unset):
    return FlagValue(FlagKind.INTS, default, descr)


def floats_flag(default=(), /, descr=Unset):
    return FlagValue(FlagKind.FLOATS, default, descr)


def strings_flag(default=(), /, descr=Unset):
    return FlagValue(FlagKind.STRINGS, default, descr)


def merge(global_flags, local_flags, /):
    """
    Layer a command's local flags over the global ones; local wins on collisions.
    """
    return {**global_flags, **local_flags}


def update_flags(flags, token, /):
    """
    Fold one `--name[=value]` token into a flag map and return the new map.

    Raises
    - MalformedFlagError: token without the prefix or without a name.
    - UnknownFlagError: name absent from the map (close matches become the hint).
    - any update() fault, wrapped with the context "failed to update flag 'name'".
    """
    if not isinstance(token, str) or not token.startswith(PREFIX):
        raise MalformedFlagError(
            "bad form of flag %r" % (token,),
            title="malformed flag",
            code=FaultCode.MALFORMED_FLAG,
            hint="flags are spelled %sname=value" % PREFIX,
            token=token,
        )
    name, separator, raw = token.removeprefix(PREFIX).partition("=")
    if not name:
        raise MalformedFlagError(
            "bad form of flag %r" % token,
            title="malformed flag",
            code=FaultCode.MALFORMED_FLAG,
            hint="flags are spelled %sname=value" % PREFIX,
            token=token,
        )

    try:
        flag = flags[name]
    except KeyError:
        suggestions = difflib.get_close_matches(name, list(flags), 5)
        try:
            hint = "did you mean %r? run with %s%s to see all flags" % (PREFIX + suggestions[0], PREFIX, HELP)
        except IndexError:
            hint = "run with %s%s to see all flags" % (PREFIX, HELP)
        raise UnknownFlagError(
            "unknown flag %r" % (PREFIX + name),
            title="unknown flag",
            code=FaultCode.UNKNOWN_FLAG,
            hint=hint,
            name=name,
            suggestions=suggestions,
        ) from None

    try:
        updated = update(flag, raw if separator else None)
    except CommandException as error:
        raise error.within("failed to update flag %r" % name) from error
    return {**flags, name: updated}


def _getter(kind, name, /):
    @rename(name)
    def getter(flags, flag, /):
        if not isinstance(flags, Mapping):
            raise TypeError(f"{name}() first argument must be a flag mapping")
        try:
            value = flags[flag]
        except KeyError:
            raise UnknownFlagError(
                "unknown flag %r" % (PREFIX + flag),
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG,
                name=flag,
            ) from None
        if value.kind is not kind:
            raise TypeError(f"flag {flag!r} is {value.kind.value}, not {kind.value}")
        return value.value
    getter.__doc__ = f"Return the value of the {kind.value} flag named `flag`."
    return getter


get_int = _getter(FlagKind.INT, "get_int")
get_float = _getter(FlagKind.FLOAT, "get_float")
get_bool = _getter(FlagKind.BOOL, "get_bool")
get_string = _getter(FlagKind.STRING, "get_string")
get_ints = _getter(FlagKind.INTS, "get_ints")
get_floats = _getter(FlagKind.FLOATS, "get_floats")
get_strings = _getter(FlagKind.STRINGS, "get_strings")


__all__ = (
    # Types
    "FlagKind",
    "FlagValue",

    # Value operations
    "parse",
    "apply_constraints",
    "update",
    "flag_constraint",

    # Builders
    "int_flag",
    "float_flag",
    "bool_flag",
    "string_flag",
    "ints_flag",
    "floats_flag",
    "strings_flag",

    # Flag maps
    "merge",
    "update_flags",

    # Getters
    "get_int",
    "get_float",
    "get_bool",
    "get_string",
    "get_ints",
    "get_floats",
    "get_strings",
)
