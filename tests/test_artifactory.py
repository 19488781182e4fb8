import json

import pytest
import responses

from rtplugins.artifactory import (
    ArtifactoryClient,
    ArtifactoryError,
    ServerDetails,
    get_server_details,
)

BASE = "https://rt.example.com/artifactory/"


def _client():
    return ArtifactoryClient(
        ServerDetails(
            server_id="local",
            url="https://rt.example.com/",
            artifactory_url=BASE,
            access_token="token",
        )
    )


def _write_config(tmp_path, monkeypatch, servers):
    (tmp_path / "jfrog-cli.conf.v5").write_text(json.dumps({"servers": servers}))
    monkeypatch.setenv("JFROG_CLI_HOME_DIR", str(tmp_path))


def test_default_and_named_server(tmp_path, monkeypatch):
    _write_config(
        tmp_path,
        monkeypatch,
        [
            {"serverId": "first", "url": "https://one.example.com"},
            {"serverId": "second", "url": "https://two.example.com", "isDefault": True},
        ],
    )
    default = get_server_details("")
    assert default.server_id == "second"
    assert default.url == "https://two.example.com" + "/"
    named = get_server_details("first")
    assert named.url == "https://one.example.com" + "/"
    assert named.artifactory_base == named.url + "artifactory/"


def test_unknown_server(tmp_path, monkeypatch):
    _write_config(tmp_path, monkeypatch, [{"serverId": "first", "url": "https://one.example.com"}])
    with pytest.raises(ArtifactoryError):
        get_server_details("missing")


def test_server_without_url(tmp_path, monkeypatch):
    _write_config(tmp_path, monkeypatch, [{"serverId": "first"}])
    with pytest.raises(ArtifactoryError, match="has no url"):
        get_server_details("first")


def test_no_configuration(tmp_path, monkeypatch):
    monkeypatch.setenv("JFROG_CLI_HOME_DIR", str(tmp_path))
    with pytest.raises(ArtifactoryError, match="no server-id was found"):
        get_server_details("")


def test_search_aql_sends_query_and_token():
    query = 'items.find({"repo":"libs"})'
    items = [{"repo": "libs", "path": ".", "name": "a.jar"}]
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, BASE + "api/search/aql", json={"results": items})
        result = _client().search_aql(query)
        request = rsps.calls[0].request
    assert result == items
    assert request.body.decode() == query
    assert request.headers["Authorization"] == "Bearer token"


def test_get_json_raises_on_error_status():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, BASE + "api/system/ping", json={"errors": []}, status=500)
        with pytest.raises(ArtifactoryError, match="Artifactory response: 500"):
            _client().get_json("api/system/ping")


def test_get_build_info_found_and_missing():
    build = {"name": "build-example", "number": "5", "modules": []}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, BASE + "api/build/build-example/5", json={"buildInfo": build})
        rsps.add(responses.GET, BASE + "api/build/build-example/6", status=404)
        assert _client().get_build_info("build-example", "5") == build
        assert _client().get_build_info("build-example", "6") is None


def test_search_pattern_builds_full_paths():
    items = [
        {"repo": "libs", "path": "org/a", "name": "x.jar", "type": "file"},
        {"repo": "libs", "path": ".", "name": "org", "type": "folder"},
    ]
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, BASE + "api/search/aql", json={"results": items})
        result = _client().search_pattern("libs/org/", include_dirs=False, recursive=False)
        body = rsps.calls[0].request.body.decode()
    assert [r["path"] for r in result] == ["libs/org/a/x.jar", "libs/org"]
    assert '"type":"file"' in body
    assert '"repo":"libs"' in body


def test_download_file(tmp_path):
    target = tmp_path / "out"
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, BASE + "libs/dir/name.txt", body=b"hello")
        rsps.add(responses.GET, BASE + "libs/missing.txt", status=404)
        assert _client().download_file("libs", "dir", "name.txt", target) is True
        assert _client().download_file("libs", ".", "missing.txt", tmp_path / "none") is False
    assert target.read_bytes() == b"hello"
    assert not (tmp_path / "none").exists()


def test_delete_paths_counts_and_fails():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.DELETE, BASE + "libs/a", status=204)
        rsps.add(responses.DELETE, BASE + "libs/b", status=204)
        assert _client().delete_paths(["libs/a", "libs/b/"]) == 2
    with responses.RequestsMock() as rsps:
        rsps.add(responses.DELETE, BASE + "libs/c", status=403)
        with pytest.raises(ArtifactoryError):
            _client().delete_paths(["libs/c"])