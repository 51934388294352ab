"""
Help assembly: turn a resolved node into the text printed for `--help`.

render(path, node, global_flags, config) is a pure function of its inputs: it
builds rich renderables and prints them into an in-memory console of
config.width columns, so the same inputs always give the same string.

Sections
- usage line: program, path, [ SUBCOMMAND ], <named> arguments, arity notation, [ --flags ]
- description
- subcommands (alphabetical)
- flags: --help first, then global and local flags merged and sorted alphabetically

Palette keys
- usage-label, program-name, usage-section, description-section
- group-label, subcommand, flag-name, flag-kind, argument-description, default
- panel-title

Customization
- Config.styles overrides any palette entry; styling only applies with Config.colorful.
"""
import io
from collections import defaultdict

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .commands import ExactArgs, MinArgs
from .flags import PREFIX, HELP, merge


def _arity(arity, named, /):
    # Usage notation for the residual positionals of a command.
    if named:
        match arity:
            case ExactArgs(count) if count > len(named):
                return _arity(ExactArgs(count - len(named)), ())
            case ExactArgs():
                # count == len(named); Command rejects smaller exact counts.
                return ""
            case _:
                return "..."
    match arity:
        case ExactArgs(0) | None:
            return ""
        case ExactArgs(1):
            return "[ 1 argument ]"
        case ExactArgs(count):
            return "[ %d arguments ]" % count
        case MinArgs(count):
            return "[ %d or more arguments ]" % count


def render(path, node, global_flags, config, /):
    """
    Render help for `node`, reached through `path`, as a string.
    """
    console = Console(
        file=io.StringIO(),
        width=config.width,
        force_terminal=config.colorful,
        color_system="truecolor" if config.colorful else None,
        legacy_windows=False,
    )
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray

        # === Listings ===
        "group-label": "bold #FFFFFF",  # Pure white headers
        "subcommand": "bold #36C5F0",  # Sky-blue subcommands
        "flag-name": "bold #22C55E",  # GREEN for flags
        "flag-kind": "bold #FFD600",  # AMBER for value kinds
        "argument-description": "#9CA3AF",  # Muted gray
        "default": "#737373",  # Dim gray

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    } | dict(config.styles))

    def styler(style):
        return styles[style] if config.colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not config.colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    command = node.command
    renders = []

    # Usage line
    segments = [text(" ".join(filter(None, (config.program, *path))), styler("program-name"))]
    if node.children:
        segments.append(text("[ SUBCOMMAND ]", styler("usage-section")))
    if command is not None:
        segments.extend(text("<%s>" % name, styler("usage-section")) for name in command.named)
        segments.append(text(_arity(command.arity, command.named), styler("usage-section")))
        segments.append(text("[ %sflags ]" % PREFIX, styler("usage-section")))
    usage = Text.assemble(text("usage", styler("usage-label")), ":", " ")
    usage.append(Text(" ").join(segment for segment in segments if segment))
    renders.append(usage)

    # Description
    if command is not None and command.descr:
        renders.append(Text.assemble("\n", text(command.descr, styler("description-section"))))

    # Subcommands
    if node.children:
        table = Table.grid(padding=(0, 2))
        table.add_column(no_wrap=True)
        table.add_column()
        for name, child in sorted(node.children.items()):
            descr = child.command.descr if child.command is not None else None
            table.add_row(
                Text.assemble("  ", text(name, styler("subcommand"))),
                text(descr, styler("argument-description")),
            )
        renders.append(Text.assemble("\n", text("subcommands", styler("group-label")), ":"))
        renders.append(table)

    # Flags
    flags = merge(global_flags, command.flags if command is not None else {})
    table = Table.grid(padding=(0, 2))
    table.add_column(no_wrap=True)
    table.add_column()
    table.add_row(
        Text.assemble("  ", text(PREFIX + HELP, styler("flag-name"))),
        text("print help information", styler("argument-description")),
    )
    for name, flag in sorted(flags.items()):
        descr = Text.assemble(
            text(flag.descr, styler("argument-description")),
            " " if flag.descr else "",
            text("(default: %r)" % (flag.default,), styler("default")),
        )
        table.add_row(
            Text.assemble(
                "  ",
                text(PREFIX + name, styler("flag-name")),
                "=",
                text("<%s>" % flag.kind.value, styler("flag-kind")),
            ),
            descr,
        )
    renders.append(Text.assemble("\n", text("flags", styler("group-label")), ":"))
    renders.append(table)

    renderable = Group(*renders)
    if config.fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[ ", (" ".join((config.name or "", *path)).strip() or "help").upper(), " ]",
                                style=styler("panel-title")),
            title_align="left",
        )

    console.print(renderable)
    return "\n".join(line.rstrip() for line in console.file.getvalue().splitlines()).strip("\n")


__all__ = (
    "render",
)
