import datetime
import io
import os
import tarfile

import pytest
import responses

from rtplugins.taskverse_utils import (
    download_file,
    environment_variable_value,
    environment_variables_from_fields,
    extract_tar_gz,
    lower_first,
    resolve_path,
)


def _tar_gz(entries):
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for info, data in entries:
            archive.addfile(info, io.BytesIO(data) if data is not None else None)
    buffer.seek(0)
    return buffer


def _dir(name):
    info = tarfile.TarInfo(name)
    info.type = tarfile.DIRTYPE
    info.mode = 0o755
    return info, None


def _file(name, data):
    info = tarfile.TarInfo(name)
    info.size = len(data)
    info.mode = 0o644
    return info, data


def test_resolve_path_existing(tmp_path):
    assert resolve_path(str(tmp_path)) == os.path.abspath(str(tmp_path))


def test_resolve_path_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        resolve_path(str(tmp_path / "missing"))


def test_download_file(tmp_path):
    body = b"archive content"
    target = tmp_path / "docker.tgz"
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, "https://example.com/docker.tgz", body=body)
        download_file("https://example.com/docker.tgz", str(target))
        assert len(rsps.calls) == 1
    assert target.read_bytes() == body


def test_extract_tar_gz_round_trip(tmp_path):
    payload = b"#!/bin/sh\necho hi\n"
    stream = _tar_gz([_dir("docker"), _file("docker/docker", payload)])
    extract_tar_gz(stream, str(tmp_path))
    assert (tmp_path / "docker").is_dir()
    assert (tmp_path / "docker" / "docker").read_bytes() == payload


def test_extract_tar_gz_rejects_symlinks(tmp_path):
    link = tarfile.TarInfo("link")
    link.type = tarfile.SYMTYPE
    link.linkname = "target"
    with pytest.raises(ValueError):
        extract_tar_gz(_tar_gz([(link, None)]), str(tmp_path))


def test_extract_tar_gz_existing_directory_fails(tmp_path):
    (tmp_path / "docker").mkdir()
    with pytest.raises(FileExistsError):
        extract_tar_gz(_tar_gz([_dir("docker")]), str(tmp_path))


def test_environment_variables_from_fields():
    fields = {
        "Id": 1,
        "Name": "integration",
        "Environments": None,
        "IsInternal": False,
        "FormJSONValues": [{"label": "key", "value": "value"}],
    }
    variables = environment_variables_from_fields(fields)
    assert variables == {
        "id": "1",
        "name": "integration",
        "environments": "",
        "isInternal": "false",
        "formJSONValues": r'[{\"label\":\"key\",\"value\":\"value\"}]',
        "formJSONValues_0": r'{\"label\":\"key\",\"value\":\"value\"}',
        "formJSONValues_len": "1",
    }


def test_environment_variable_value_time():
    moment = datetime.datetime(2023, 1, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)
    assert environment_variable_value(moment) == "2023-01-01T12:00:00Z"


def test_environment_variable_value_none_and_string():
    assert environment_variable_value(None) == ""
    assert environment_variable_value("generic") == "generic"


def test_lower_first():
    assert lower_first("FormJSONValues") == "formJSONValues"
    assert lower_first("masterIntegrationId") == "masterIntegrationId"


def test_lower_first_empty():
    with pytest.raises(ValueError):
        lower_first("")