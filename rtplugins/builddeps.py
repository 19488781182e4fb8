"""Show, for each dependency of a build, the build that produced it and its VCS link."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from rich.console import Console
from rich.table import Table

from .aql import create_search_by_sha1_and_repo_aql_query, group_items, optional, optional_vcs_url
from .artifactory import ArtifactoryClient, ArtifactoryError, get_server_details

VERSION = "v1.2.4"
# Artifactory limits the size of one request, so sha1s are searched in batches.
SHA1_BATCH_SIZE = 125
_SEARCH_THREADS = 3
_OUTPUT_WIDTH = 200
_HEADERS = ("Module Id", "Dependency name", "BUILD", "VCS URL")

log = logging.getLogger(__name__)


@dataclass
class DependencyProps:
    """The build and VCS properties found on a dependency."""

    build: str = ""
    vcs_url: str = ""
    vcs_revision: str = ""


def _search_query(repo: str, sha1s: list[str]) -> str:
    criteria = create_search_by_sha1_and_repo_aql_query(repo, sha1s)
    return f'items.find({criteria}).include("name","repo","path","actual_sha1","property")'


def _search_props_by_sha1(repo: str, sha1s: list[str], client) -> list[dict]:
    if not sha1s:
        return []

    def search(batch: list[str]) -> list[dict]:
        start = time.monotonic()
        items = client.search_aql(_search_query(repo, batch))
        log.debug(
            "Finished searching artifacts properties by sha1 in %s. Took %s seconds to complete the operation.",
            repo,
            time.monotonic() - start,
        )
        return items

    with ThreadPoolExecutor(max_workers=_SEARCH_THREADS) as pool:
        pages = list(pool.map(search, group_items(sha1s, SHA1_BATCH_SIZE)))
    return [item for page in pages for item in page]


def get_dependencies_details(modules, repo: str, client) -> dict[str, DependencyProps]:
    """Map each dependency sha1 of the modules to the properties found on it."""
    result: dict[str, DependencyProps] = {}
    for module in modules:
        for dependency in module.get("dependencies") or []:
            result[dependency.get("sha1", "")] = DependencyProps()

    for item in _search_props_by_sha1(repo, list(result), client):
        build_name = build_number = vcs_url = vcs_revision = ""
        for prop in item.get("properties") or []:
            key, value = prop.get("key"), prop.get("value", "")
            if key == "build.name":
                build_name = value + "/"
            elif key == "build.number":
                build_number = value
            elif key == "vcs.url":
                vcs_url = value
            elif key == "vcs.revision":
                vcs_revision = value
        props = result.get(item.get("actual_sha1", ""))
        if props is None:
            continue
        props.build = build_name + build_number
        props.vcs_url = vcs_url
        props.vcs_revision = vcs_revision
    return result


@dataclass
class BuildDepsInfo:
    """Prints the dependencies of one build with their origin build and VCS link."""

    build_name: str
    build_number: str
    repository: str
    client: ArtifactoryClient

    def execute(self, out=None) -> None:
        build_info = self.client.get_build_info(self.build_name, self.build_number)
        if build_info is None:
            raise ArtifactoryError(f"Build '{self.build_name}/{self.build_number}' was not found")
        modules = build_info.get("modules") or []
        try:
            details = get_dependencies_details(modules, self.repository, self.client)
        except ArtifactoryError as exc:
            log.warning("Could not fetch dependency properties: %s", exc)
            details = {}

        console = Console(file=out or sys.stdout)
        if not console.is_terminal:
            console.width = _OUTPUT_WIDTH
        rows: list[tuple[str, ...]] = []
        for module in modules:
            for dependency in module.get("dependencies") or []:
                props = details.get(dependency.get("sha1", ""), DependencyProps())
                rows.append(
                    (
                        module.get("id", ""),
                        optional(dependency.get("id", "")),
                        optional(props.build),
                        optional_vcs_url(props.vcs_url, props.vcs_revision),
                    )
                )
            table = Table(*_HEADERS)
            for row in rows:
                table.add_row(*row)
            console.print(table)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="build-deps-info",
        description="Print the dependencies build and a link to vcs of a specific "
        "build name & build number in Artifactory.",
    )
    parser.add_argument("--version", action="version", version=VERSION)
    commands = parser.add_subparsers(dest="command", required=True)
    show = commands.add_parser("show", aliases=["s"], help="Show the details of the build dependencies")
    show.add_argument("build_name", help="The name of the build you would like to show.")
    show.add_argument("build_number", help="The number of the build name you would like to show.")
    show.add_argument("--repo", default="", help="In which repository in artifactory the dependencies is located")
    show.add_argument(
        "--server-id",
        default="",
        help="Artifactory server ID configured using the config command. "
        "If not specified, the default configured Artifactory server is used.",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    try:
        client = ArtifactoryClient(get_server_details(args.server_id))
        BuildDepsInfo(args.build_name, args.build_number, args.repo, client).execute()
    except ArtifactoryError as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())