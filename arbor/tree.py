"""
Arbor command tree: where commands live and how the builder grows it.

What this module provides
- Node: an immutable tree node, optional Command plus read-only children.
  A node without a command is a routing node that only hosts subcommands.
- Config: application settings used when rendering help and diagnostics.
- CommandTree: the builder value. Every builder call returns a new tree and
  leaves the previous one untouched, so a tree can be shared freely once built.
- new(), add(), global_flag(), with_config() (+ with_name(), as_module(),
  with_pretty_help()): function-style builders delegating to the methods.

Paths
- A path is an iterable of segment strings (a single string is split on
  whitespace). Segments are trimmed and empty segments dropped before walking,
  so ["db", " migrate "], "db migrate" and ["", "db", "migrate"] are the same path.
- Missing intermediate segments become routing nodes. Re-adding at an existing
  path replaces its command and keeps its children. The empty path is the root.
"""
import logging
from collections import namedtuple
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .commands import Command
from .flags import FlagValue, sanitize_name
from .utils import *

logger = logging.getLogger(__name__)


class Node(namedtuple("Node", ("command", "children"), defaults=(None, MappingProxyType({})))):
    """
    Immutable tree node.

    - command: Command | None (None marks a routing node)
    - children: read-only mapping of segment name to Node
    """
    __slots__ = ()

    @property
    def routing(self):
        return self.command is None


class Config(namedtuple("Config", ("name", "module", "colorful", "fancy", "styles", "width"),
                        defaults=(None, False, False, False, MappingProxyType({}), 80))):
    """
    Application settings attached to a tree.

    - name: str | None, display name of the application in usage lines
    - module: bool, show the program as `python -m <name>`
    - colorful: bool, style help and diagnostics with the palette
    - fancy: bool, wrap help and diagnostics in a panel
    - styles: mapping of palette entries overriding the default theme
    - width: int, rendering width in columns
    """
    __slots__ = ()

    def __new__(cls, name=None, module=False, colorful=False, fancy=False, styles=MappingProxyType({}), width=80):
        if not isinstance(name, str | None):
            raise TypeError(f"{cls.__name__} 'name' must be a string")
        elif isinstance(name, str) and not (name := name.strip()):
            raise ValueError(f"{cls.__name__} 'name' cannot be empty")
        if not isinstance(styles, Mapping):
            raise TypeError(f"{cls.__name__} 'styles' must be a mapping")
        if not isinstance(width, int) or isinstance(width, bool) or width < 20:
            raise ValueError(f"{cls.__name__} 'width' must be an integer of at least 20 columns")
        return super().__new__(
            cls, name, bool(module), bool(colorful), bool(fancy), MappingProxyType(dict(styles)), width
        )

    @property
    def program(self):
        """
        The program as shown in usage lines ("" when the application has no name).
        """
        if not self.name:
            return ""
        return f"python -m {self.name}" if self.module else self.name


def sanitize_path(path, /):
    """
    Normalize a command path into a tuple of non-empty, trimmed segments.
    """
    if isinstance(path, str):
        path = path.split()
    elif not isinstance(path, Iterable):
        raise TypeError("command path must be a string or an iterable of strings")
    segments = []
    for segment in path:
        if not isinstance(segment, str):
            raise TypeError("command path segments must be strings")
        if segment := segment.strip():
            segments.append(segment)
    return tuple(segments)


def _insert(node, path, command, /):
    # Copy-on-write: only the nodes along `path` are rebuilt.
    if not path:
        return node._replace(command=command)
    head, *tail = path
    child = node.children.get(head, Node())
    return node._replace(children=MappingProxyType({**node.children, head: _insert(child, tail, command)}))


class CommandTree:
    """
    Builder value holding the root node, the global flags and the config.

    Fields (read-only)
    - root: Node
    - flags: mapping of global flags (visible to every command)
    - config: Config
    """
    __slots__ = ("_root", "_flags", "_config")

    root = mirror("root")
    flags = mirror("flags")
    config = mirror("config")

    def __init__(self, /, config=Unset):
        config = coalesce(config, Config())
        if not isinstance(config, Config):
            raise TypeError("command tree 'config' must be a Config")
        self._root = Node()
        self._flags = {}
        self._config = config

    def _derive(self, /, root=Unset, flags=Unset, config=Unset):
        clone = object.__new__(type(self))
        clone._root = coalesce(root, self._root)
        clone._flags = coalesce(flags, self._flags)
        clone._config = coalesce(config, self._config)
        return clone

    def add(self, path, command, /):
        """
        Return a new tree with `command` attached at `path`.
        """
        if not isinstance(command, Command):
            raise TypeError("add() command must be a command")
        path = sanitize_path(path)
        logger.debug("attaching command at %r", " ".join(path) or "<root>")
        return self._derive(root=_insert(self._root, path, command))

    def global_flag(self, name, value, /):
        """
        Return a new tree with a global flag; commands' local flags of the same name win.
        """
        name = sanitize_name(name, owner="global flag")
        if not isinstance(value, FlagValue):
            raise TypeError(f"global flag {name!r} must be a flag value")
        return self._derive(flags={**self._flags, name: value})

    def with_config(self, config, /):
        if not isinstance(config, Config):
            raise TypeError("with_config() argument must be a Config")
        return self._derive(config=config)

    def _reconfigure(self, /, **changes):
        # Through Config() rather than _replace() so the changes are validated.
        return self.with_config(Config(**(self._config._asdict() | changes)))

    def with_name(self, name, /):
        return self._reconfigure(name=name)

    def as_module(self):
        return self._reconfigure(module=True)

    def with_pretty_help(self, /, styles=MappingProxyType({})):
        """
        Enable the colored help theme, optionally overriding palette entries.
        """
        if not isinstance(styles, Mapping):
            raise TypeError("with_pretty_help() 'styles' must be a mapping")
        return self._reconfigure(colorful=True, styles={**self._config.styles, **styles})

    def find(self, path, /):
        """
        Return the node at `path` (sanitized), or None when it does not exist.
        """
        node = self._root
        for segment in sanitize_path(path):
            if (node := node.children.get(segment)) is None:
                return None
        return node

    def __rich_repr__(self):
        yield "root", self._root
        yield "flags", sorted(self._flags)
        yield "config", self._config

    def __repr__(self):
        return f"command-tree({", ".join("%s=%r" % pair for pair in self.__rich_repr__())})"


def _tree(caller, object, /):
    if not isinstance(object, CommandTree):
        raise TypeError(f"{caller}() first argument must be a command tree")
    return object


def new():
    """
    Return an empty command tree with the default config and no global flags.
    """
    return CommandTree()


def add(tree, path, command, /):
    return _tree("add", tree).add(path, command)


def global_flag(tree, name, value, /):
    return _tree("global_flag", tree).global_flag(name, value)


def with_config(tree, config, /):
    return _tree("with_config", tree).with_config(config)


def with_name(tree, name, /):
    return _tree("with_name", tree).with_name(name)


def as_module(tree, /):
    return _tree("as_module", tree).as_module()


def with_pretty_help(tree, /, styles=MappingProxyType({})):
    return _tree("with_pretty_help", tree).with_pretty_help(styles)


__all__ = (
    # Types
    "Node",
    "Config",
    "CommandTree",

    # Builders
    "new",
    "add",
    "global_flag",
    "with_config",
    "with_name",
    "as_module",
    "with_pretty_help",
)
