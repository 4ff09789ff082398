from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..core.exceptions import ConfigurationError


@dataclass(frozen=True)
class RemoteConfig:
    """Connection parameters for the remote document store."""

    project_id: str
    database: str = "(default)"
    credentials_file: Optional[str] = None
    credentials_info: Optional[dict[str, Any]] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"project_id": self.project_id, "database": self.database}
        if self.credentials_file:
            data["credentials_file"] = self.credentials_file
        if self.credentials_info:
            data["credentials_info"] = self.credentials_info
        return data


def _extract_json_object(text: str) -> dict[str, Any]:
    # People paste whole snippets; keep what sits between the outer braces.
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ConfigurationError("الرجاء التأكد من صحة تنسيق JSON")
    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"الرجاء التأكد من صحة تنسيق JSON: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise ConfigurationError("الرجاء التأكد من صحة تنسيق JSON")
    return parsed


def parse_remote_config(raw: Union[str, dict[str, Any], RemoteConfig]) -> RemoteConfig:
    if isinstance(raw, RemoteConfig):
        return raw
    data = _extract_json_object(raw) if isinstance(raw, str) else dict(raw or {})

    credentials_info = data.get("credentials_info")
    if data.get("type") == "service_account":
        credentials_info = dict(data)

    project_id = data.get("project_id") or data.get("projectId")
    if not project_id and isinstance(credentials_info, dict):
        project_id = credentials_info.get("project_id")
    if not project_id or not str(project_id).strip():
        raise ConfigurationError("معرف المشروع (Project ID) مطلوب")

    credentials_file = data.get("credentials_file")
    return RemoteConfig(
        project_id=str(project_id).strip(),
        database=str(data.get("database") or "(default)"),
        credentials_file=str(credentials_file) if credentials_file else None,
        credentials_info=credentials_info if isinstance(credentials_info, dict) else None,
    )
