"""
Arbor utilities (internal helpers).

Scope
- UnsetType / Unset
  • Singleton sentinel for "value not provided" that does not conflate with None.
- coalesce(value, default=None)
  • Replace Unset with a concrete default; keep None/0/""/[] untouched.
- rename(callable, name) / @rename("name")
  • Give generated callables (constraints, getters) stable names for reprs and tracebacks.
- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr); list-like
    payloads are handed out as fresh lists so callers cannot mutate the backing tuple.

Names not in __all__ are internal and may change without notice.
"""
import builtins
import functools
from collections.abc import Mapping
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return `default` when `object` is Unset, otherwise `object` unchanged.

    Falsey values like None, 0, "" or [] are preserved; only the sentinel is replaced.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator that will.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name)           -> decorator

    Raises
    - TypeError on a non-callable target, a non-string name, or a wrong argument count.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _detach(object):
    """
    Hand out a caller-owned view of a stored field.

    - plain tuple (payload of list flags, named arguments) -> new list
    - Mapping -> read-only MappingProxyType over the same mapping
    - anything else (named tuples included) -> as-is
    """
    if type(object) is tuple:
        return list(object)
    elif isinstance(object, Mapping):
        return MappingProxyType(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private backing attribute "_{name}".

    Example
        class X:
            __slots__ = ("_items",)
            items = mirror("items")
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


Unset = UnsetType()
"""
Internal sentinel for "not provided".

Use Unset as a default when None is a meaningful user value, and materialize it
with coalesce(value, default) where a concrete value is needed.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
