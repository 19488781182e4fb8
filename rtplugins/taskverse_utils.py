"""Shared helpers and constants for running pipeline tasks locally."""

from __future__ import annotations

import dataclasses
import datetime as _dt
import gzip
import json
import os
import shutil
import tarfile

import requests

PLUGIN_NAME = "taskverse"
TOOL_FOLDER = "." + PLUGIN_NAME
BUILD_PLANE_VERSION = "1.29.0"

_DOWNLOAD_TIMEOUT = 300


def resolve_path(path: str) -> str:
    """Return the absolute form of path; raise FileNotFoundError if it does not exist."""
    absolute = os.path.abspath(path)
    if not os.path.exists(absolute):
        raise FileNotFoundError(f"File not found: {absolute}")
    return absolute


def download_file(url: str, target_path: str) -> None:
    """Download url into target_path."""
    with requests.get(url, stream=True, timeout=_DOWNLOAD_TIMEOUT) as response:
        with open(target_path, "wb") as handle:
            for chunk in response.iter_content(chunk_size=65536):
                handle.write(chunk)


def extract_tar_gz(stream, target: str) -> None:
    """Extract a gzip-compressed tar stream holding only directories and regular files into target."""
    with gzip.GzipFile(fileobj=stream) as uncompressed, tarfile.open(fileobj=uncompressed, mode="r|") as archive:
        for member in archive:
            target_name = os.path.join(target, member.name)
            if member.isdir():
                os.mkdir(target_name, 0o755)
            elif member.isreg():
                source = archive.extractfile(member)
                descriptor = os.open(target_name, os.O_CREAT | os.O_RDWR, member.mode & 0o7777)
                with os.fdopen(descriptor, "wb") as out, source:
                    shutil.copyfileobj(source, out)
            else:
                raise ValueError(f"unknown type: {member.type!r} in {member.name}")


def _rfc3339(moment: _dt.datetime) -> str:
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _json_default(value):
    if isinstance(value, _dt.datetime):
        return _rfc3339(value)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"failed to get integration value and environment variable: {value!r}")


def environment_variable_value(value) -> str:
    """Render a value as JSON fit for an environment variable: outer quotes dropped, inner quotes escaped."""
    if value is None:
        return ""
    text = json.dumps(value, default=_json_default, separators=(",", ":"), ensure_ascii=False)
    return text.strip('"').replace('"', '\\"')


def environment_variables_from_fields(fields) -> dict[str, str]:
    """Turn a mapping of field names to values into environment variables.

    Names get a lower-case first letter; list values also give '<name>_len' and '<name>_<index>'.
    """
    variables: dict[str, str] = {}
    for name, value in dict(fields).items():
        key = lower_first(name)
        if isinstance(value, (list, tuple)):
            variables[f"{key}_len"] = str(len(value))
            for index, item in enumerate(value):
                variables[f"{key}_{index}"] = environment_variable_value(item)
        variables[key] = environment_variable_value(value)
    return variables


def lower_first(name: str) -> str:
    """Return name with its first character in lower case."""
    if not name:
        raise ValueError("name must not be empty")
    return name[0].lower() + name[1:]