"""Print a report of a build published in Artifactory."""

from __future__ import annotations

import argparse
import logging
import sys

from rich import box
from rich.console import Console
from rich.table import Table

from .artifactory import ArtifactoryClient, ArtifactoryError, get_server_details
from .build_diff import Change, get_build_diff, get_build_details

VERSION = "v1.0.4"
DEFAULT_ROW_LENGTH_LIMIT = 200
MODULES_HEADER = ("Module", "Art/Dep", "Name/ID", "Type", "Sha1", "Md5")
MODULES_DIFF_HEADER = ("Module", "Art/Dep", "Name/ID", "Diff Name/Id", "Type", "Sha1", "Md5", "Change")
_DIFF_ROW_ORDER = (Change.NEW, Change.UNCHANGED, Change.UPDATED, Change.REMOVED)
_CHANGE_STYLES = {
    str(Change.NEW): "green",
    str(Change.UNCHANGED): None,
    str(Change.UPDATED): "blue",
    str(Change.REMOVED): "red",
}

log = logging.getLogger(__name__)


def build_details_rows(build_info: dict):
    """Return the header rows and the row of the build details table."""
    headers = [
        ("Name", "Number", "Started", "Artifactory Principal", "Agent", "Agent", "Build Agent", "Build Agent"),
        ("", "", "", "", "Name", "Version", "Name", "Version"),
    ]
    agent = build_info.get("agent") or {}
    build_agent = build_info.get("buildAgent") or {}
    row = (
        build_info.get("name", ""),
        build_info.get("number", ""),
        build_info.get("started", ""),
        build_info.get("principal", ""),
        agent.get("name", ""),
        agent.get("version", ""),
        build_agent.get("name", ""),
        build_agent.get("version", ""),
    )
    return headers, [row]


def build_modules_rows(modules):
    """Return the header rows and the rows listing each module's artifacts and dependencies."""
    rows = []
    for module in modules:
        module_id = module.get("id", "")
        for art in module.get("artifacts") or []:
            rows.append((module_id, "Artifact", art.get("name", ""), art.get("type", ""),
                         art.get("sha1", ""), art.get("md5", "")))
        for dep in module.get("dependencies") or []:
            rows.append((module_id, "Dependency", dep.get("id", ""), dep.get("type", ""),
                         dep.get("sha1", ""), dep.get("md5", "")))
    return [MODULES_HEADER], rows


def _file_row(entry, change: Change) -> tuple:
    if change is Change.REMOVED:
        details = ("", "", "")
    else:
        details = (entry.type, entry.sha1, entry.md5)
    return (entry.module, entry.art_or_dep, entry.id_or_name, entry.diff_id_or_name, *details, str(change))


def modules_diff_rows(diff):
    """Return the header rows and the diff rows, sorted by module and then artifact/dependency."""
    rows = [
        _file_row(entry, change)
        for section in (diff.artifacts, diff.dependencies)
        for change in _DIFF_ROW_ORDER
        for entry in section.get(change, [])
    ]
    rows.sort(key=lambda row: (row[0], row[1]))
    return [MODULES_DIFF_HEADER], rows


def _change_style(row) -> str | None:
    return _CHANGE_STYLES.get(row[-1])


def _merge_repeats(rows, columns: int = 2) -> list[tuple]:
    """Blank the leading cells that repeat the row above, so groups read as merged."""
    merged = []
    previous = None
    for row in rows:
        cells = list(row)
        if previous is not None:
            for index, (current, before) in enumerate(zip(row[:columns], previous[:columns])):
                if current != before:
                    break
                cells[index] = ""
        merged.append(tuple(cells))
        previous = row
    return merged


def render_table(title: str, headers, rows, color=None) -> Table:
    """Build a table; color, if given, maps a row to a rich style for that row."""
    table = Table(title=title, box=box.SQUARE, show_lines=True, title_justify="center")
    for parts in zip(*headers):
        table.add_column(" ".join(part for part in parts if part), overflow="fold")
    for row in rows:
        style = color(row) if color else None
        table.add_row(*(str(cell) for cell in row), style=style)
    return table


def _console(out) -> Console:
    console = Console(file=out or sys.stdout)
    width = DEFAULT_ROW_LENGTH_LIMIT
    if console.is_terminal:
        available = console.size.width - 4
        if available > 0:
            width = available
    console.width = width
    return console


def view(client, build_name: str, build_number: str, diff_number: str = "", out=None) -> None:
    """Print the build details and its modules, or its diff with another build number."""
    build_info = client.get_build_info(build_name, build_number)
    if build_info is None:
        raise ArtifactoryError("build info with provided details was not found in Artifactory")
    diff = get_build_diff(client, build_name, build_number, diff_number)

    console = _console(out)
    headers, rows = build_details_rows(build_info)
    console.print(render_table("Build Details", headers, rows))
    if diff is not None:
        headers, rows = modules_diff_rows(diff)
        color = _change_style if console.is_terminal else None
        console.print(render_table("Modules", headers, _merge_repeats(rows), color))
    else:
        headers, rows = build_modules_rows(build_info.get("modules") or [])
        console.print(render_table("Modules", headers, _merge_repeats(rows)))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="build-report",
        description="Print a report of a published build info in Artifactory to terminal",
    )
    parser.add_argument("--version", action="version", version=VERSION)
    commands = parser.add_subparsers(dest="command", required=True)
    view_parser = commands.add_parser("view", aliases=["v"], help="Print build report of requested build")
    view_parser.add_argument("build_name", nargs="?", help="Name of the build to print report for.")
    view_parser.add_argument("build_number", nargs="?", help="Number of the build to print report for.")
    view_parser.add_argument("--server-id", default="", help="Artifactory server ID configured using the config command.")
    view_parser.add_argument(
        "--diff",
        default="",
        help="A build number to show diff with. Renders the table to show difference in "
        "artifacts, dependencies and properties with the provided build number.",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    arguments = [value for value in (args.build_name, args.build_number) if value is not None]
    try:
        build_name, build_number = get_build_details(arguments)
        client = ArtifactoryClient(get_server_details(args.server_id))
        view(client, build_name, build_number, args.diff)
    except (ArtifactoryError, ValueError) as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())