"""Terminal rendering for aurtool output.

All user-supplied text goes through rich Text objects, never markup strings,
so package descriptions cannot inject console markup.
"""

from typing import Iterable, Mapping

from rich.console import Console
from rich.padding import Padding
from rich.table import Table
from rich.text import Text

from .local_packages import UpgradeReport, VersionChange
from .models import Package

REPO_STYLES = {
    "core": "blue",
    "extra": "green",
    "community": "cyan",
    "testing": "bold yellow",
    "aur": "magenta",
}

PREFIXES = {
    "message": (":: ", "bold green"),
    "info": (" -> ", "bold blue"),
    "warning": ("WW ", "bold yellow"),
    "error": (">> ", "bold red"),
}


def make_console(colors: bool = True, stderr: bool = False) -> Console:
    """Create a console; ``colors`` is threaded in from configuration."""
    return Console(no_color=not colors, highlight=False, stderr=stderr)


def _prefixed(console: Console, kind: str, text: str) -> None:
    prefix, style = PREFIXES[kind]
    console.print(Text.assemble((prefix, style), text))


def print_message(console: Console, text: str) -> None:
    _prefixed(console, "message", text)


def print_info(console: Console, text: str) -> None:
    _prefixed(console, "info", text)


def print_warning(console: Console, text: str) -> None:
    _prefixed(console, "warning", text)


def print_error(console: Console, text: str) -> None:
    _prefixed(console, "error", text)


def package_brief(package: Package, repo: str = "aur") -> Text:
    """One header line: ``repo/name version [Out Of Date] |votes|``."""
    line = Text.assemble(
        (repo, REPO_STYLES.get(repo, "")),
        "/",
        (package.name, "bold"),
        " ",
        (package.version, "bold red" if package.out_of_date else "bold green"),
    )
    if package.out_of_date:
        line.append(" [Out Of Date]")
    line.append(f" |{package.num_votes}|", style="bold bright_black")
    return line


def print_package_list(console: Console, packages: Iterable[Package]) -> None:
    """Brief listing with descriptions wrapped and indented by four columns."""
    for package in packages:
        console.print(package_brief(package))
        if package.description:
            console.print(Padding(Text(package.description), (0, 0, 0, 4)))


def print_outdated(console: Console, packages: Iterable[Package]) -> bool:
    """Print only out-of-date packages; returns whether any was printed."""
    printed = False
    for package in packages:
        if package.out_of_date:
            console.print(Text.assemble(package.name, " ", (package.version, "bold")))
            printed = True
    return printed


def package_chart(package: Package, base_url: str) -> Mapping[str, str]:
    """Fields shown by ``info``, in the order pacman -Qi uses."""
    return {
        "Repository": "aur",
        "Name": package.name,
        "Version": package.version,
        "URL": package.url,
        "AUR Page": f"{base_url}/packages.php?ID={package.id}",
        "Category": package.category or "None",
        "Licenses": package.license,
        "NumVotes": str(package.num_votes),
        "Out Of Date": "Yes" if package.out_of_date else "No",
        "Description": package.description,
    }


def print_chart(console: Console, chart: Mapping[str, str], sep: str = " : ") -> None:
    """Two-column key/value chart; long values wrap in the right column."""
    table = Table.grid(padding=0)
    table.add_column(no_wrap=True, style="bold")
    table.add_column(no_wrap=True)
    table.add_column(overflow="fold")
    for key, value in chart.items():
        table.add_row(Text(key), sep, Text(value))
    console.print(table)


def _change_line(change: VersionChange, width: int, arrow: str, style: str) -> Text:
    pad = "." * (width - len(change.name) + 1)
    return Text.assemble(
        (change.name, "bold"),
        (pad, "bright_black"),
        (f"{change.local_version} {arrow} {change.aur_version}", style),
    )


def print_upgrade_report(
    console: Console, report: UpgradeReport, quiet: bool = False
) -> None:
    """Per-package lines (unless quiet), then the upgradable names on one line."""
    if not quiet:
        changes = report.upgradable + report.local_newer
        width = max((len(c.name) for c in changes), default=0)
        for change in report.upgradable:
            console.print(_change_line(change, width, "->", "bold green"))
        for change in report.local_newer:
            console.print(_change_line(change, width, ">>", "bold yellow"))

    print_message(console, "Upgradable AUR packages:")
    console.print(Text(" ".join(c.name for c in report.upgradable)))
