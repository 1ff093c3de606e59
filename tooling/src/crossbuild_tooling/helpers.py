"""Shared helpers for crossbuild_tooling (text, YAML load, path, version, naming).

Used by native, cli, and execute modules.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

SNAPSHOT_SUFFIX = "-SNAPSHOT"

# --- Text ---


def to_pascal_case(name: str) -> str:
    """Split on '_' and '-' and capitalize each word (e.g. android-x86_64 -> AndroidX8664)."""
    return "".join(word.capitalize() for word in re.split(r"[_-]", name) if word)


def split_csv(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Comma-separated string (or list) -> stripped non-empty items."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    return [str(x).strip() for x in items if str(x).strip()]


# --- YAML ---


def load_yaml_mapping(p: Path) -> dict[str, Any]:
    """Load a YAML file that must contain a mapping (empty file -> {}). Raises ValueError on bad YAML or a non-mapping."""
    with p.open() as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML in {p}: {e}"
            raise ValueError(msg) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a mapping at top level of {p}, got {type(data).__name__}"
        raise ValueError(msg)
    return data


def dump_yaml(data: Any, p: Path) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# --- Path ---


def relative_posix(target: Path, start: Path) -> str:
    """Path of target relative to start (may climb with '..'), '/'-separated. Pure path arithmetic."""
    rel = os.path.relpath(os.path.normpath(target), os.path.normpath(start))
    return rel.replace(os.sep, "/")


# --- Version ---


def is_snapshot_version(version: str) -> bool:
    return version.endswith(SNAPSHOT_SUFFIX)


def parse_bool_strict(value: Any) -> bool | None:
    """True/False for bools and 'true'/'false' (any case); None for empty/None. Raises ValueError otherwise."""
    if value is None or isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if not s:
        return None
    if s == "true":
        return True
    if s == "false":
        return False
    msg = f"Expected true or false, got {value!r}"
    raise ValueError(msg)


# --- Naming ---


def default_container_name(prefix: str, project_name: str | None, classifier: str) -> str:
    """dockcross-{project}-{classifier}; project segment dropped when unset."""
    parts = [prefix, project_name, classifier]
    return "-".join(p for p in parts if p)
