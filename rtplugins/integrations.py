"""Project integrations read from a JSON file, and their environment variables."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .taskverse_utils import environment_variables_from_fields, lower_first

log = logging.getLogger(__name__)

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_TIME = re.compile(r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$")


def _parse_time(text) -> datetime:
    if not text:
        return _ZERO_TIME
    match = _TIME.match(text)
    if not match:
        raise ValueError(f"invalid time: {text!r}")
    base, fraction, zone = match.groups()
    fraction = (fraction or "")[:6].ljust(6, "0")
    zone = "+00:00" if zone == "Z" else zone
    return datetime.fromisoformat(f"{base}.{fraction}{zone}")


@dataclass(frozen=True)
class FormJSONValue:
    """One labelled value of an integration form."""

    label: str = ""
    value: str = ""

    def to_dict(self) -> dict:
        return {"label": self.label, "value": self.value}


@dataclass
class ProjectIntegration:
    """An integration configured for a project."""

    id: int = 0
    master_integration_id: int = 0
    name: str = ""
    master_integration_type: str = ""
    project_id: int = 0
    master_integration_name: str = ""
    provider_id: int = 0
    environments: Any = None
    is_internal: bool = False
    created_by_user_name: str = ""
    updated_by_user_name: str = ""
    form_json_values: list = field(default_factory=list)
    created_by: int = 0
    updated_by: int = 0
    created_at: datetime = _ZERO_TIME
    updated_at: datetime = _ZERO_TIME

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectIntegration":
        return cls(
            id=data.get("id") or 0,
            master_integration_id=data.get("masterIntegrationId") or 0,
            name=data.get("name") or "",
            master_integration_type=data.get("masterIntegrationType") or "",
            project_id=data.get("projectId") or 0,
            master_integration_name=data.get("masterIntegrationName") or "",
            provider_id=data.get("providerId") or 0,
            environments=data.get("environments"),
            is_internal=bool(data.get("isInternal", False)),
            created_by_user_name=data.get("createdByUserName") or "",
            updated_by_user_name=data.get("updatedByUserName") or "",
            form_json_values=[
                FormJSONValue(item.get("label", ""), item.get("value", ""))
                for item in data.get("formJSONValues") or []
            ],
            created_by=data.get("createdBy") or 0,
            updated_by=data.get("updatedBy") or 0,
            created_at=_parse_time(data.get("createdAt")),
            updated_at=_parse_time(data.get("updatedAt")),
        )

    def _fields(self) -> dict:
        return {
            "Id": self.id,
            "MasterIntegrationId": self.master_integration_id,
            "Name": self.name,
            "MasterIntegrationType": self.master_integration_type,
            "ProjectId": self.project_id,
            "MasterIntegrationName": self.master_integration_name,
            "ProviderId": self.provider_id,
            "Environments": self.environments,
            "IsInternal": self.is_internal,
            "CreatedByUserName": self.created_by_user_name,
            "UpdatedByUserName": self.updated_by_user_name,
            "FormJSONValues": list(self.form_json_values),
            "CreatedBy": self.created_by,
            "UpdatedBy": self.updated_by,
            "CreatedAt": self.created_at,
            "UpdatedAt": self.updated_at,
        }

    def as_environment_variables(self) -> dict[str, str]:
        """Return every field, and every form value by its label, as environment variables."""
        variables = environment_variables_from_fields(self._fields())
        for form_value in self.form_json_values:
            variables[lower_first(form_value.label)] = form_value.value
        return variables


@dataclass
class IntegrationsParser:
    """Holds the integrations read from an integrations file."""

    integrations: list = field(default_factory=list)

    def parse(self, path: str) -> None:
        """Read the integrations listed in the JSON file at path."""
        log.info("Parsing project integrations")
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
        self.integrations = [ProjectIntegration.from_dict(item) for item in data or []]

    def by_name(self) -> dict[str, ProjectIntegration]:
        """Map each integration name to its integration."""
        return {integration.name: integration for integration in self.integrations}

    def simplified(self) -> dict[str, dict]:
        """Map each integration name to its id, names and form values."""
        result: dict[str, dict] = {}
        for integration in self.integrations:
            entry = {
                "id": integration.id,
                "name": integration.name,
                "masterName": integration.master_integration_name,
                "displayName": integration.master_integration_name,
            }
            for form_value in integration.form_json_values:
                entry[form_value.label] = form_value.value
            result[integration.name] = entry
        return result