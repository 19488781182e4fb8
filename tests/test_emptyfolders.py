import pytest

from rtplugins.emptyfolders import delete_empty_folders, filter_empty_folders, is_repo


def make_items():
    return [
        {"path": "a/b", "type": "folder"},
        {"path": "a/b/c", "type": "folder"},
        {"path": "a/b/c/d", "type": "folder"},
        {"path": "a/b/c/a.zip", "type": "file"},
        {"path": "a/b/1", "type": "folder"},
    ]


EXPECTED_EMPTY = ["a/b/1", "a/b/c/d"]


class FakeClient:
    def __init__(self, items):
        self.items = items
        self.searched = []
        self.deleted = None

    def search_pattern(self, pattern, include_dirs=False, recursive=True):
        self.searched.append((pattern, include_dirs, recursive))
        return self.items

    def delete_paths(self, paths):
        self.deleted = list(paths)
        return len(self.deleted)


def test_filter_empty_folders():
    empty = filter_empty_folders(make_items())
    assert sorted(item["path"] for item in empty) == EXPECTED_EMPTY
    assert all(item["type"] == "folder" for item in empty)


def test_filter_empty_folders_skips_repository_root():
    assert filter_empty_folders([{"path": "repo", "type": "folder"}]) == []


@pytest.mark.parametrize(
    "path, expected",
    [("repo", True), ("repo/", True), ("repo/a", False), ("repo/a/", False)],
)
def test_is_repo(path, expected):
    assert is_repo(path) is expected


def test_delete_empty_folders_quiet():
    client = FakeClient(make_items())
    assert delete_empty_folders(client, "a/", quiet=True) == 2
    assert sorted(client.deleted) == EXPECTED_EMPTY
    assert client.searched == [("a/", True, True)]


def test_delete_empty_folders_declined():
    client = FakeClient(make_items())
    asked = []

    def confirm(paths):
        asked.append(list(paths))
        return False

    assert delete_empty_folders(client, "a/", quiet=False, confirm=confirm) == 0
    assert client.deleted is None
    assert sorted(asked[0]) == EXPECTED_EMPTY


def test_delete_empty_folders_confirmed():
    client = FakeClient(make_items())
    assert delete_empty_folders(client, "a/", confirm=lambda paths: True) == 2
    assert sorted(client.deleted) == EXPECTED_EMPTY


def test_delete_empty_folders_none_found():
    client = FakeClient([{"path": "a/b", "type": "folder"}, {"path": "a/b/f.txt", "type": "file"}])
    assert delete_empty_folders(client, "a/", quiet=True) == 0
    assert client.deleted is None