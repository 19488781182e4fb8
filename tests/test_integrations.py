import json
from datetime import datetime, timezone

import pytest

from rtplugins.integrations import FormJSONValue, IntegrationsParser, ProjectIntegration

STAMP = "2023-01-01T12:00:00Z"

RECORD = dict(
    id=1, masterIntegrationId=1, name="integration", masterIntegrationType="generic",
    projectId=1, masterIntegrationName="generic", providerId=0, environments=None,
    isInternal=False, createdByUserName="user", updatedByUserName="user",
    formJSONValues=[dict(label="key", value="value")],
    createdBy=1, updatedBy=1, createdAt=STAMP, updatedAt=STAMP,
)

ENV_EXPECTATIONS = [
    ("id", "1"), ("masterIntegrationId", "1"), ("name", "integration"),
    ("masterIntegrationType", "generic"), ("providerId", "0"), ("projectId", "1"),
    ("environments", ""), ("masterIntegrationName", "generic"), ("key", "value"),
    ("formJSONValues", r'[{\"label\":\"key\",\"value\":\"value\"}]'),
    ("formJSONValues_0", r'{\"label\":\"key\",\"value\":\"value\"}'),
    ("formJSONValues_len", "1"), ("isInternal", "false"), ("createdBy", "1"),
    ("createdByUserName", "user"), ("updatedBy", "1"), ("updatedByUserName", "user"),
    ("createdAt", STAMP), ("updatedAt", STAMP),
]


@pytest.fixture
def parser(tmp_path):
    path = tmp_path / "integrations.json"
    path.write_text(json.dumps([RECORD]), encoding="utf-8")
    result = IntegrationsParser()
    result.parse(str(path))
    return result


def test_by_name(parser):
    moment = datetime(2023, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    expected = ProjectIntegration(
        id=1, master_integration_id=1, name="integration", master_integration_type="generic",
        project_id=1, master_integration_name="generic", provider_id=0, environments=None,
        is_internal=False, created_by_user_name="user", updated_by_user_name="user",
        form_json_values=[FormJSONValue("key", "value")],
        created_by=1, updated_by=1, created_at=moment, updated_at=moment,
    )
    assert parser.by_name() == {"integration": expected}


def test_simplified(parser):
    expected = dict(id=1, name="integration", masterName="generic", displayName="generic", key="value")
    assert parser.simplified() == {"integration": expected}


def test_environment_variables_keys(parser):
    variables = parser.by_name()["integration"].as_environment_variables()
    assert set(variables) == {key for key, _ in ENV_EXPECTATIONS}


@pytest.mark.parametrize("key, expected", ENV_EXPECTATIONS)
def test_environment_variable(parser, key, expected):
    assert parser.by_name()["integration"].as_environment_variables()[key] == expected


def test_zero_times_when_missing():
    integration = ProjectIntegration.from_dict({"name": "x"})
    assert integration.as_environment_variables()["createdAt"] == "0001-01-01T00:00:00Z"


def test_invalid_time_raises():
    with pytest.raises(ValueError, match="invalid time"):
        ProjectIntegration.from_dict({"createdAt": "yesterday"})


def test_parse_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        IntegrationsParser().parse(str(tmp_path / "missing.json"))


def test_empty_parser():
    parser = IntegrationsParser()
    assert parser.by_name() == {}
    assert parser.simplified() == {}