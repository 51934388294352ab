"""
Flag value constraints.

A constraint is any callable taking a parsed flag payload and returning it
(possibly normalized), raising ConstraintError when the payload is rejected.
Constraints attach to flags with flag_constraint(...) / FlagValue.constraint(...)
and run in registration order after parsing.

Quick example
    >>> from arbor import int_flag, ints_flag, one_of, each
    >>> level = int_flag(1, "verbosity").constraint(one_of([1, 2, 3]))
    >>> ports = ints_flag([], "ports").constraint(each(none_of([0])))
"""
import builtins
from collections.abc import Iterable

from .faults import ConstraintError, FaultCode
from .utils import rename


def _choices(caller, choices, /):
    if isinstance(choices, str | bytes) or not isinstance(choices, Iterable):
        raise TypeError(f"{caller}() argument must be an iterable of choices")
    if not (choices := tuple(choices)):
        raise ValueError(f"{caller}() argument cannot be empty")
    return choices


def _listing(choices, /):
    return ", ".join(map(repr, choices))


def one_of(choices, /):
    """
    Accept a value only when it equals a member of `choices`.

    Raises
    - TypeError: when choices is not an iterable (strings are rejected).
    - ValueError: when choices is empty.
    """
    choices = _choices("one_of", choices)

    @rename("one_of")
    def constraint(value):
        if value in choices:
            return value
        raise ConstraintError(
            "invalid value %r, must be one of: %s" % (value, _listing(choices)),
            title="constraint violation",
            code=FaultCode.CONSTRAINT_VIOLATION,
            hint="pick one of: %s" % _listing(choices),
            value=value,
            kind="one of",
        )

    return constraint


def none_of(choices, /):
    """
    Accept a value only when it equals no member of `choices` (complement of one_of).
    """
    choices = _choices("none_of", choices)

    @rename("none_of")
    def constraint(value):
        if value not in choices:
            return value
        raise ConstraintError(
            "invalid value %r, must not be one of: %s" % (value, _listing(choices)),
            title="constraint violation",
            code=FaultCode.CONSTRAINT_VIOLATION,
            hint="avoid these values: %s" % _listing(choices),
            value=value,
            kind="none of",
        )

    return constraint


def each(predicate, /):
    """
    Lift a scalar constraint to a list payload.

    Every element must pass `predicate`; the first failing element aborts with
    that predicate's fault. On success the original elements are returned in
    their original order.
    """
    if not builtins.callable(predicate):
        raise TypeError("each() argument must be callable")

    @rename("each")
    def constraint(values):
        for value in values:
            predicate(value)
        return list(values)

    return constraint


__all__ = (
    "one_of",
    "none_of",
    "each",
)
