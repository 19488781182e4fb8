"""Access to an Artifactory server configured for the JFrog CLI."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

import requests

CONFIG_FILE_NAMES = ("jfrog-cli.conf.v6", "jfrog-cli.conf.v5", "jfrog-cli.conf")
NO_URL_MESSAGE = "no server-id was found, or the server-id has no url"
_REQUEST_TIMEOUT = 120
_AQL_FIELDS = (
    "repo",
    "path",
    "name",
    "type",
    "size",
    "created",
    "modified",
    "actual_sha1",
    "actual_md5",
)


class ArtifactoryError(Exception):
    """Raised when the server or its configuration cannot be used."""


def _with_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"


@dataclass
class ServerDetails:
    """Connection details of one configured server."""

    server_id: str = ""
    url: str = ""
    artifactory_url: str = ""
    user: str = ""
    password: str = ""
    access_token: str = ""

    @property
    def artifactory_base(self) -> str:
        """The base URL of the Artifactory REST API, ending with a slash."""
        if self.artifactory_url:
            return _with_slash(self.artifactory_url)
        return _with_slash(self.url) + "artifactory/"


def _config_dir() -> Path:
    home = os.environ.get("JFROG_CLI_HOME_DIR")
    return Path(home) if home else Path.home() / ".jfrog"


def _load_servers() -> list[dict]:
    directory = _config_dir()
    for name in CONFIG_FILE_NAMES:
        path = directory / name
        if path.is_file():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except ValueError as exc:
                raise ArtifactoryError(f"cannot read {path}: {exc}") from exc
            return list(data.get("servers") or [])
    return []


def get_server_details(server_id: str) -> ServerDetails:
    """Return the details of the given server ID, or of the default server."""
    servers = _load_servers()
    if server_id:
        entry = next((s for s in servers if s.get("serverId") == server_id), None)
        if entry is None:
            raise ArtifactoryError(f"server ID '{server_id}' does not exist")
    else:
        fallback = servers[0] if servers else None
        entry = next((s for s in servers if s.get("isDefault")), fallback)
        if entry is None:
            raise ArtifactoryError(NO_URL_MESSAGE)

    details = ServerDetails(
        server_id=entry.get("serverId", ""),
        url=entry.get("url", ""),
        artifactory_url=entry.get("artifactoryUrl", ""),
        user=entry.get("user", ""),
        password=entry.get("password", ""),
        access_token=entry.get("accessToken", ""),
    )
    if not details.url and not details.artifactory_url:
        raise ArtifactoryError(NO_URL_MESSAGE)
    if details.url:
        details.url = _with_slash(details.url)
    if details.artifactory_url:
        details.artifactory_url = _with_slash(details.artifactory_url)
    return details


def _pattern_query(pattern: str, include_dirs: bool, recursive: bool) -> str:
    repo, _, rest = pattern.partition("/")
    if not repo:
        raise ArtifactoryError("the pattern must start with a repository")
    criteria: dict = {"repo": repo}
    if not rest or rest.endswith("/"):
        folder = rest.rstrip("/") or "."
        if not recursive:
            criteria["path"] = folder
        elif folder != ".":
            criteria["$or"] = [{"path": folder}, {"path": {"$match": folder + "/*"}}]
    else:
        parent, _, name = rest.rpartition("/")
        item = {"path": parent or ".", "name": name}
        if recursive:
            criteria["$or"] = [item, {"path": rest}, {"path": {"$match": rest + "/*"}}]
        else:
            criteria.update(item)
    criteria["type"] = "any" if include_dirs else "file"
    fields = ",".join(json.dumps(field) for field in _AQL_FIELDS)
    return f"items.find({json.dumps(criteria, separators=(',', ':'))}).include({fields})"


def _full_path(item: dict) -> str:
    parts = [item.get("repo", "")]
    parts += [p for p in (item.get("path", ""), item.get("name", "")) if p not in ("", ".")]
    return "/".join(parts)


class ArtifactoryClient:
    """A small client for the Artifactory REST API."""

    def __init__(self, details: ServerDetails):
        self.details = details
        self._base = details.artifactory_base
        self._session = requests.Session()
        if details.access_token:
            self._session.headers["Authorization"] = f"Bearer {details.access_token}"
        elif details.user:
            self._session.auth = (details.user, details.password)

    def _request(self, method: str, api_path: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", _REQUEST_TIMEOUT)
        try:
            return self._session.request(method, self._base + api_path.lstrip("/"), **kwargs)
        except requests.RequestException as exc:
            raise ArtifactoryError(str(exc)) from exc

    @staticmethod
    def _raise_for(response: requests.Response) -> None:
        if response.ok:
            return
        try:
            body = json.dumps(response.json(), indent=2)
        except ValueError:
            body = response.text
        raise ArtifactoryError(
            f"Artifactory response: {response.status_code} {response.reason}\n{body}"
        )

    def get_json(self, api_path: str, params: dict | None = None):
        """GET a REST path and return its decoded JSON body."""
        response = self._request("GET", api_path, params=params)
        self._raise_for(response)
        return response.json()

    def search_aql(self, query: str) -> list[dict]:
        """Run an AQL query and return its result items."""
        response = self._request(
            "POST",
            "api/search/aql",
            data=query.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        self._raise_for(response)
        return list(response.json().get("results") or [])

    def search_pattern(self, pattern: str, include_dirs: bool = False, recursive: bool = True) -> list[dict]:
        """Find items matching a '<repo>/<path>' pattern; 'path' holds the full path."""
        results = self.search_aql(_pattern_query(pattern, include_dirs, recursive))
        return [{**item, "path": _full_path(item)} for item in results]

    def get_build_info(self, build_name: str, build_number: str) -> dict | None:
        """Return a published build info, or None if it does not exist."""
        api_path = f"api/build/{quote(build_name, safe='')}/{quote(build_number, safe='')}"
        response = self._request("GET", api_path)
        if response.status_code == 404:
            return None
        self._raise_for(response)
        return response.json().get("buildInfo")

    def delete_paths(self, paths) -> int:
        """Delete each '<repo>/<path>' given and return how many were deleted."""
        deleted = 0
        for path in paths:
            self._raise_for(self._request("DELETE", quote(path.rstrip("/"))))
            deleted += 1
        return deleted

    def download_file(self, repo: str, path: str, name: str, target) -> bool:
        """Download one file to target; return False if it does not exist."""
        parts = [repo] + ([] if path in ("", ".") else [path]) + [name]
        with self._request("GET", quote("/".join(parts)), stream=True) as response:
            if response.status_code == 404:
                return False
            self._raise_for(response)
            with open(target, "wb") as handle:
                for chunk in response.iter_content(chunk_size=65536):
                    handle.write(chunk)
        return True