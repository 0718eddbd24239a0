"""Human-readable JSON metadata for bake outputs (``*.nebula.json``)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

_U32_MAX = 0xFFFF_FFFF


class JsonSerError(Exception):
    """Raised when metadata cannot be written or parsed."""


@dataclass
class NebulaJsonSerializer:
    """Writes and reads JSON metadata, pretty-printed by default."""

    pretty: bool = True

    def serialize_meta(self, writer, value):
        obj = value.to_dict() if hasattr(value, "to_dict") else value
        try:
            if self.pretty:
                text = json.dumps(
                    obj, indent=2, separators=(",", ": "), ensure_ascii=False, allow_nan=False
                )
            else:
                text = json.dumps(
                    obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False
                )
        except (TypeError, ValueError) as exc:
            raise JsonSerError(f"serde_json: {exc}") from exc
        try:
            try:
                writer.write(text)
            except TypeError:
                writer.write(text.encode("utf-8"))
        except OSError as exc:
            raise JsonSerError(f"I/O: {exc}") from exc

    def deserialize_meta(self, reader):
        """Parse JSON from a text or binary reader and return the value."""
        try:
            content = reader.read()
        except OSError as exc:
            raise JsonSerError(f"I/O: {exc}") from exc
        try:
            return json.loads(content)
        except ValueError as exc:
            raise JsonSerError(f"serde_json: {exc}") from exc


@dataclass
class NebulaMeta:
    """Metadata envelope written at the top of every ``.nebula.json`` file."""

    nebula_version: int
    bake_date: str
    scene_name: str
    pass_name: str
    parameters: Any = None

    def to_dict(self):
        return {
            "nebula_version": self.nebula_version,
            "bake_date": self.bake_date,
            "scene_name": self.scene_name,
            "pass": self.pass_name,
            "parameters": self.parameters,
        }

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise JsonSerError("serde_json: invalid type: expected a map")
        for key in ("nebula_version", "bake_date", "scene_name", "pass"):
            if key not in data:
                raise JsonSerError(f"serde_json: missing field `{key}`")
        version = data["nebula_version"]
        if isinstance(version, bool) or not isinstance(version, int) or not 0 <= version <= _U32_MAX:
            raise JsonSerError(f"serde_json: invalid nebula_version {version!r}")
        for key in ("bake_date", "scene_name", "pass"):
            if not isinstance(data[key], str):
                raise JsonSerError(f"serde_json: field `{key}` must be a string")
        return cls(
            nebula_version=version,
            bake_date=data["bake_date"],
            scene_name=data["scene_name"],
            pass_name=data["pass"],
            parameters=data.get("parameters"),
        )