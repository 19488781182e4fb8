"""Remove empty folders from Artifactory."""

from __future__ import annotations

import argparse
import logging
import sys

from .artifactory import ArtifactoryClient, ArtifactoryError, get_server_details

VERSION = "v1.0.3"

log = logging.getLogger(__name__)


def is_repo(path: str) -> bool:
    """Return True if the path leads to the root of a repository."""
    slashes = path.count("/")
    if path.endswith("/"):
        return slashes == 1
    return slashes == 0


def filter_empty_folders(items) -> list[dict]:
    """Return the folder items, other than repository roots, that contain no other item."""
    empty: list[dict] = []
    previous_folder = None
    for item in sorted(items, key=lambda entry: entry.get("path", "")):
        path = item.get("path", "")
        if previous_folder is not None and not path.startswith(previous_folder["path"]):
            empty.append(previous_folder)
        if item.get("type") == "folder" and not is_repo(path):
            previous_folder = item
        else:
            previous_folder = None
    if previous_folder is not None:
        empty.append(previous_folder)
    return empty


def _log_found(total: int) -> None:
    if total == 0:
        log.info("Found no empty folders.")
    elif total == 1:
        log.info("Found 1 empty folder.")
    else:
        log.info("Found %d empty folders.", total)


def _confirm_console(paths) -> bool:
    for path in paths:
        print(path)
    answer = input("Are you sure you want to delete the above paths? (y/n) [n]? ")
    return answer.strip().lower() in ("y", "yes")


def delete_empty_folders(client, path: str, quiet: bool = False, confirm=None) -> int:
    """Delete every empty folder under path and return how many were deleted.

    Unless quiet, confirm(paths) is asked first and nothing is deleted if it returns False.
    """
    log.info("Searching for all items under %s", path)
    items = client.search_pattern(path, include_dirs=True, recursive=True)
    empty = filter_empty_folders(items)
    _log_found(len(empty))
    if not empty:
        return 0
    paths = [item["path"] for item in empty]
    if not quiet and not (confirm or _confirm_console)(paths):
        return 0
    return client.delete_paths(paths)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="rm-empty", description="Remove empty folders from Artifactory")
    parser.add_argument("--version", action="version", version=VERSION)
    commands = parser.add_subparsers(dest="command", required=True)
    folders = commands.add_parser(
        "folders",
        aliases=["f"],
        help="Remove all empty folders under the specified path in Artifactory",
    )
    folders.add_argument("path", help="Path in Artifactory. The path should start with a repository")
    folders.add_argument("--server-id", default="", help="Artifactory server ID configured using the config command")
    folders.add_argument("--quiet", action="store_true", help="Skip the delete confirmation message")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    try:
        client = ArtifactoryClient(get_server_details(args.server_id))
        delete_empty_folders(client, args.path, args.quiet)
    except ArtifactoryError as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        return 1
    except (EOFError, KeyboardInterrupt):
        print(file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())