"""Delete artifacts that have not been downloaded or modified for a given time."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys

from .artifactory import ArtifactoryClient, ArtifactoryError, get_server_details

VERSION = "v1.1.2"
_TIME_UNIT_SUFFIXES = {"year": "y", "month": "mo", "day": "d"}
_INTEGER = re.compile(r"[+-]?[0-9]+")

log = logging.getLogger(__name__)


def parse_time_flags(no_download_time: str, time_unit: str) -> str:
    """Combine an amount and a time unit into an AQL relative time, e.g. ('1', 'month') -> '1mo'."""
    if not _INTEGER.fullmatch(no_download_time):
        raise ValueError(f"invalid value for no-dl: {no_download_time!r}")
    amount = str(int(no_download_time))
    unit = time_unit.strip().lower()
    try:
        return amount + _TIME_UNIT_SUFFIXES[unit]
    except KeyError:
        raise ValueError(
            "Wrong timeUnit arguments. Expected: year, month or day. Received: " + unit
        ) from None


def build_aql(repository: str, no_download_time: str) -> str:
    """Return the AQL query finding files not downloaded or modified for at least no_download_time."""
    repo = json.dumps(repository)
    before = json.dumps(no_download_time)
    return (
        "items.find({"
        '"type":"file",'
        f'"repo":{repo},'
        '"$or":['
        '{"$and":['
        f'{{"modified":{{"$before":{before}}}}},'
        f'{{"stat.downloaded":{{"$before":{before}}}}},'
        '{"stat.downloads":{"$gt":"0"}}'
        "]},"
        '{"$and":['
        f'{{"modified":{{"$before":{before}}}}},'
        '{"stat.downloads":{"$eq":null}}'
        "]}"
        "]"
        "})"
    )


def _item_path(item: dict) -> str:
    parts = [item.get("repo", "")]
    parts += [part for part in (item.get("path", ""), item.get("name", "")) if part not in ("", ".")]
    return "/".join(parts)


def clean_artifacts(client, repository: str, no_download_time: str) -> int:
    """Delete the unused artifacts of a repository and return how many were deleted."""
    items = client.search_aql(build_aql(repository, no_download_time))
    paths = [_item_path(item) for item in items]
    log.info("Found %d artifacts to delete.", len(paths))
    if not paths:
        return 0
    return client.delete_paths(paths)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="rt-cleanup", description="Easily clean unused artifacts")
    parser.add_argument("--version", action="version", version=VERSION)
    commands = parser.add_subparsers(dest="command", required=True)
    clean = commands.add_parser(
        "clean",
        aliases=["c"],
        help="Deletes all artifacts that have not been downloaded for the past n time units.",
    )
    clean.add_argument("repository", help="A repository to clean")
    clean.add_argument("--server-id", default="", help="Artifactory server ID configured using the config command.")
    clean.add_argument(
        "--time-unit",
        default="month",
        help="The time unit of the no-dl time. year, month and day are the allowed values.",
    )
    clean.add_argument(
        "--no-dl",
        default="1",
        help="Artifacts that have not been downloaded or modified for at least no-dl will be deleted.",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    try:
        no_download_time = parse_time_flags(args.no_dl, args.time_unit)
        client = ArtifactoryClient(get_server_details(args.server_id))
        clean_artifacts(client, args.repository, no_download_time)
    except (ArtifactoryError, ValueError) as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())