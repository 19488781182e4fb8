"""AQL query pieces and small value helpers for dependency reports."""

from __future__ import annotations

DEFAULT_VALUE = "N/A"


def create_search_by_sha1_and_repo_aql_query(repo: str, sha1s) -> str:
    """Return the AQL criteria matching any of the given sha1s, optionally in one repository."""
    return "{" + _repo_query(repo) + _sha1s_query(list(sha1s)) + "}"


def _sha1s_query(sha1s: list[str]) -> str:
    if len(sha1s) > 1:
        clauses = ",".join(f'"actual_sha1": "{sha1}"' for sha1 in sha1s)
        return '"$or":[{' + clauses + "}]"
    return f'"actual_sha1": "{sha1s[0]}"'


def _repo_query(repo: str) -> str:
    if not repo:
        return ""
    return f'"repo": "{repo}",'


def group_items(items, group_size: int) -> list[list]:
    """Split items into consecutive groups of at most group_size; an empty input gives one empty group."""
    if group_size <= 0:
        raise ValueError("group size must be positive")
    items = list(items)
    if not items:
        return [items]
    return [items[start:start + group_size] for start in range(0, len(items), group_size)]


def optional(value: str) -> str:
    """Return value, or the N/A placeholder when it is empty."""
    return value or DEFAULT_VALUE


def optional_vcs_url(url: str, revision: str) -> str:
    """Return a link to the commit when both URL and revision are known."""
    value = optional(url)
    if value != DEFAULT_VALUE and revision:
        value = value.removesuffix(".git") + "/commit/" + revision
    return value