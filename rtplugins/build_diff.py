"""Build-info diffs as reported by Artifactory, and build details from arguments or environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import quote

BUILD_NAME_ENV = "JFROG_CLI_BUILD_NAME"
BUILD_NUMBER_ENV = "JFROG_CLI_BUILD_NUMBER"

log = logging.getLogger(__name__)


class Change(Enum):
    """How a file or property changed between two builds."""

    UPDATED = "Updated"
    UNCHANGED = "Unchanged"
    REMOVED = "Removed"
    NEW = "New"

    def __str__(self) -> str:
        return self.value

    @property
    def key(self) -> str:
        """The key of this change in the diff document."""
        return self.value.lower()


@dataclass(frozen=True)
class ArtifactDiff:
    """An artifact entry of a build diff."""

    module: str = ""
    diff_name: str = ""
    name: str = ""
    type: str = ""
    path: str = ""
    sha1: str = ""
    md5: str = ""
    sha256: str = ""

    art_or_dep = "Artifact"

    @classmethod
    def from_dict(cls, data: dict) -> "ArtifactDiff":
        return cls(
            module=data.get("module", ""),
            diff_name=data.get("diffName", ""),
            name=data.get("name", ""),
            type=data.get("type", ""),
            path=data.get("path", ""),
            sha1=data.get("sha1", ""),
            md5=data.get("md5", ""),
            sha256=data.get("sha256", ""),
        )

    @property
    def id_or_name(self) -> str:
        return self.name

    @property
    def diff_id_or_name(self) -> str:
        return self.diff_name


@dataclass(frozen=True)
class DependencyDiff:
    """A dependency entry of a build diff."""

    module: str = ""
    diff_id: str = ""
    id: str = ""
    type: str = ""
    sha1: str = ""
    md5: str = ""
    sha256: str = ""

    art_or_dep = "Dependency"

    @classmethod
    def from_dict(cls, data: dict) -> "DependencyDiff":
        return cls(
            module=data.get("module", ""),
            diff_id=data.get("diffId", ""),
            id=data.get("id", ""),
            type=data.get("type", ""),
            sha1=data.get("sha1", ""),
            md5=data.get("md5", ""),
            sha256=data.get("sha256", ""),
        )

    @property
    def id_or_name(self) -> str:
        return self.id

    @property
    def diff_id_or_name(self) -> str:
        return self.diff_id


@dataclass(frozen=True)
class PropertyDiff:
    """A build property entry of a build diff."""

    key: str = ""
    value: str = ""
    diff_value: str = ""
    compound_key_value: str = ""
    compound_diff_key_value: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "PropertyDiff":
        return cls(
            key=data.get("key", ""),
            value=data.get("value", ""),
            diff_value=data.get("diffValue", ""),
            compound_key_value=data.get("compoundKeyValue", ""),
            compound_diff_key_value=data.get("compoundDiffKeyValue", ""),
        )


def _no_changes() -> dict:
    return {change: [] for change in Change}


def _changes(section, kind) -> dict:
    section = section or {}
    return {change: [kind.from_dict(item) for item in section.get(change.key) or []] for change in Change}


@dataclass
class BuildDiff:
    """The differences between two builds, grouped by kind of change."""

    artifacts: dict = field(default_factory=_no_changes)
    dependencies: dict = field(default_factory=_no_changes)
    properties: dict = field(default_factory=_no_changes)

    @classmethod
    def from_dict(cls, data) -> "BuildDiff":
        data = data or {}
        return cls(
            artifacts=_changes(data.get("artifacts"), ArtifactDiff),
            dependencies=_changes(data.get("dependencies"), DependencyDiff),
            properties=_changes(data.get("properties"), PropertyDiff),
        )


def get_build_diff(client, build_name: str, build_number: str, diff_number: str) -> BuildDiff | None:
    """Fetch the diff between a build and another build number; None when no number is given."""
    if not diff_number:
        return None
    api_path = f"api/build/{quote(build_name, safe='')}/{quote(build_number, safe='')}"
    log.debug("Getting build-info diff from: %s?diff=%s", api_path, diff_number)
    return BuildDiff.from_dict(client.get_json(api_path, {"diff": diff_number}))


def get_build_details(arguments, environ=None) -> tuple[str, str]:
    """Return build name and number from two arguments, or from the environment when none are given."""
    arguments = list(arguments)
    if len(arguments) == 2:
        return arguments[0], arguments[1]
    if arguments:
        raise ValueError(
            "wrong number of arguments. Expected 2 arguments, "
            "or 0 with build details passed as environment variables"
        )
    env = os.environ if environ is None else environ
    build_name = env.get(BUILD_NAME_ENV, "")
    build_number = env.get(BUILD_NUMBER_ENV, "")
    if not build_name or not build_number:
        raise ValueError("build name and build number are expected as command arguments or environment variables")
    return build_name, build_number