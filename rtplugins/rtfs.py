"""Run file system commands such as ls and cat against Artifactory."""

from __future__ import annotations

import argparse
import logging
import os
import shutil
import sys
import tempfile
from dataclasses import dataclass

from .artifactory import ArtifactoryClient, ArtifactoryError, get_server_details

VERSION = "v1.1.5"
# The minimal space between ls results on the screen.
MIN_SPACE = 1
_BLUE = 4
_WHITE = 7

log = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """One item found by a search."""

    path: str = ""
    type: str = ""
    size: int = 0
    created: str = ""
    modified: str = ""
    sha1: str = ""
    md5: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "SearchResult":
        return cls(
            path=data.get("path", ""),
            type=data.get("type", ""),
            size=data.get("size", 0) or 0,
            created=data.get("created", ""),
            modified=data.get("modified", ""),
            sha1=data.get("actual_sha1", data.get("sha1", "")),
            md5=data.get("actual_md5", data.get("md5", "")),
        )


def _as_result(item) -> SearchResult:
    if isinstance(item, SearchResult):
        return SearchResult(**vars(item))
    return SearchResult.from_dict(item)


def check_inputs(arguments) -> str:
    """Validate the command arguments and return the single path they hold."""
    arguments = list(arguments)
    if len(arguments) != 1:
        raise ValueError(f"Wrong number of arguments. Expected: 1, Received: {len(arguments)}")
    if "*" in arguments[0]:
        raise ValueError("Wildcards are not supported in paths.")
    return arguments[0]


def trim_folders_from_path(pattern: str, path: str) -> str:
    """Return the last component of path."""
    return path.rpartition("/")[2]


def _split_download_path(download_path: str) -> tuple[str, str, str]:
    parts = download_path.split("/")
    repo, name = parts[0], parts[-1]
    if len(parts) > 2:
        path = download_path[len(repo) + 1 : len(download_path) - len(name) - 1]
    else:
        path = "."
    return repo, path, name


def create_aql(download_path: str) -> str:
    """Return the AQL criteria finding the file at '<repo>/<dir>/<name>'."""
    repo, path, name = _split_download_path(download_path)
    return f'{{"repo":"{repo}","path":"{path}","name":"{name}"}}'


def process_search_results(pattern: str, results) -> tuple[list[SearchResult], int]:
    """Trim each result to its last path component; return the results and the longest path length."""
    processed: list[SearchResult] = []
    max_path_length = 0
    for item in results:
        result = _as_result(item)
        result.path = trim_folders_from_path(pattern, result.path)
        if result.path:
            max_path_length = max(max_path_length, len(result.path))
            processed.append(result)
    return processed, max_path_length


def check_search_results(results, pattern: str) -> None:
    """Raise FileNotFoundError when a search found nothing."""
    if not list(results):
        raise FileNotFoundError(f"ls: cannot access '{pattern}': No such file or directory")


def should_run_second_search(path: str, results) -> bool:
    """Return True when a path without a trailing slash matched exactly one folder."""
    if "/" not in path or path.endswith("/"):
        return False
    results = list(results)
    if len(results) != 1:
        return False
    return _as_result(results[0]).type == "folder"


def _color(text: str, color: int) -> str:
    return f"\033[3{color}m{text}\033[0m"


def format_ls(results, max_path_length: int, width: int) -> str:
    """Lay the results out in columns fitting width, folders in blue."""
    column_width = max_path_length + MIN_SPACE
    per_line = width // column_width or 1
    lines = []
    for index, result in enumerate(results):
        if index > 0 and index % per_line == 0:
            lines.append("\n")
        color = _BLUE if result.type == "folder" else _WHITE
        lines.append(_color(result.path.ljust(column_width), color))
    lines.append("\n")
    return "".join(lines)


def _search(client, path: str) -> list[dict]:
    results = client.search_pattern(path, include_dirs=True, recursive=False)
    check_search_results(results, path)
    if should_run_second_search(path, results):
        results = client.search_pattern(path + "/", include_dirs=True, recursive=False)
    return results


def ls(client, path: str, out=None) -> None:
    """Print the contents of a folder, or the item a path names."""
    out = out or sys.stdout
    results, max_path_length = process_search_results(path, _search(client, path))
    width = shutil.get_terminal_size().columns
    out.write(format_ls(results, max_path_length, width))


def cat(client, path: str, out=None) -> None:
    """Print the content of the file at path."""
    out = out or sys.stdout
    if path.endswith("/") or "/" not in path:
        raise ValueError(
            "cat: " + path + " : Path must be in a form of `<repo>/<name>` or `<repo>/<dir>/<name>`."
        )
    repo, folder, name = _split_download_path(path)
    handle = tempfile.NamedTemporaryFile(prefix="rt-fs-cat", delete=False)
    handle.close()
    try:
        if not client.download_file(repo, folder, name, handle.name):
            raise FileNotFoundError(f"cat: {path}: No such file.")
        with open(handle.name, "rb") as downloaded:
            content = downloaded.read().decode("utf-8", errors="replace")
    finally:
        os.remove(handle.name)
    out.write(content + "\n")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="rt-fs", description="Run file system commands in Artifactory.")
    parser.add_argument("--version", action="version", version=VERSION)
    commands = parser.add_subparsers(dest="command", required=True)
    for name, aliases, help_text in (("ls", ["list"], "Run ls."), ("cat", [], "Run cat.")):
        sub = commands.add_parser(name, aliases=aliases, help=help_text)
        sub.add_argument("paths", nargs="*", metavar="path", help="[Mandatory] Path in Artifactory.")
        sub.add_argument(
            "--server-id", default="", help="Artifactory server ID configured using the config command."
        )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.ERROR, format="[%(levelname)s] %(message)s")
    try:
        path = check_inputs(args.paths)
        client = ArtifactoryClient(get_server_details(args.server_id))
        action = cat if args.command == "cat" else ls
        action(client, path)
    except (ArtifactoryError, ValueError, FileNotFoundError) as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())