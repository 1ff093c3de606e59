"""Run configuration for native cross builds (crossbuild.yaml + CLI overrides + CI/JAVA_HOME env).

The environment is read once, in load_run_config; RunConfig itself holds only explicit values.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from crossbuild_tooling.execute.backends import default_engine
from crossbuild_tooling.execute.errors import ConfigurationError
from crossbuild_tooling.execute.request import RunAs
from crossbuild_tooling.helpers import (
    is_snapshot_version,
    load_yaml_mapping,
    parse_bool_strict,
    split_csv,
)

CONFIG_FILE_NAME = "crossbuild.yaml"
CI_ENV = "CI"
TOOLCHAIN_HOME_ENV = "JAVA_HOME"
TARGET_OVERRIDE_KEYS = ("image", "repository", "tag", "link_mode")

DEFAULT_RUN_CONFIG: dict[str, Any] = {
    "project_name": None,
    "project_version": "0.0.0-SNAPSHOT",
    "release": None,
    "mount_source": ".",
    "project_dir": None,
    "output_root": "build/dockcross",
    "engine": None,
    "toolchain_home": None,
    "parallelism": None,
    "run_as": None,
    "container_name_prefix": "dockcross",
    "extra_classifiers": [],
    "cleanup_images": None,
    "targets": {},
}


def detect_ci(environ: Mapping[str, str]) -> bool:
    """CI counts as set whenever the variable exists, even when empty."""
    return CI_ENV in environ


@dataclass(frozen=True)
class RunConfig:
    """Explicit settings for one orchestrator run. Paths are absolute."""

    mount_source: Path
    project_dir: Path | None = None
    output_root: Path | None = None
    project_name: str | None = None
    project_version: str = "0.0.0-SNAPSHOT"
    release: bool | None = None
    ci: bool = False
    engine: str | None = None
    toolchain_home: Path | None = None
    parallelism: int = field(default_factory=lambda: os.cpu_count() or 1)
    run_as: RunAs | None = None
    container_name_prefix: str = "dockcross"
    image_overrides: Mapping[str, str] = field(default_factory=dict)
    repository_overrides: Mapping[str, str] = field(default_factory=dict)
    tag_overrides: Mapping[str, str] = field(default_factory=dict)
    link_mode_overrides: Mapping[str, str] = field(default_factory=dict)
    extra_classifiers: tuple[str, ...] = ()
    cleanup_images: bool | None = None

    def __post_init__(self) -> None:
        mount = Path(self.mount_source)
        if not mount.is_absolute():
            msg = f"mount_source must be absolute, got {mount}"
            raise ConfigurationError(msg)
        object.__setattr__(self, "mount_source", mount)
        if self.project_dir is None:
            object.__setattr__(self, "project_dir", mount)
        if self.output_root is None:
            object.__setattr__(self, "output_root", mount / "build" / "dockcross")
        if self.parallelism < 1:
            msg = f"parallelism must be >= 1, got {self.parallelism}"
            raise ConfigurationError(msg)
        object.__setattr__(self, "extra_classifiers", tuple(self.extra_classifiers))

    @property
    def is_release(self) -> bool:
        """Explicit release flag, else anything that is not a -SNAPSHOT version."""
        if self.release is not None:
            return self.release
        return not is_snapshot_version(self.project_version)

    @property
    def resolved_engine(self) -> str:
        return self.engine or default_engine(self.ci)

    @property
    def should_cleanup_images(self) -> bool:
        if self.cleanup_images is not None:
            return self.cleanup_images
        return self.ci


def _resolve_path(value: Any, base: Path) -> Path | None:
    if value is None or value == "":
        return None
    p = Path(str(value)).expanduser()
    return p if p.is_absolute() else (base / p).resolve()


def _parse_targets(targets: Any) -> dict[str, dict[str, str]]:
    """targets mapping -> {override key: {classifier: value}} for each of TARGET_OVERRIDE_KEYS."""
    overrides: dict[str, dict[str, str]] = {key: {} for key in TARGET_OVERRIDE_KEYS}
    if not targets:
        return overrides
    if not isinstance(targets, dict):
        msg = f"targets must map classifier -> {{{', '.join(TARGET_OVERRIDE_KEYS)}}}"
        raise ConfigurationError(msg)
    for classifier, entry in targets.items():
        if not isinstance(entry, dict):
            keys = ", ".join(TARGET_OVERRIDE_KEYS)
            msg = f"target override must be a mapping with any of: {keys}"
            raise ConfigurationError(msg, str(classifier))
        unknown = sorted(str(k) for k in set(entry) - set(TARGET_OVERRIDE_KEYS))
        if unknown:
            msg = f"Unknown target override keys: {', '.join(unknown)}"
            raise ConfigurationError(msg, str(classifier))
        for key in TARGET_OVERRIDE_KEYS:
            if entry.get(key):
                overrides[key][str(classifier)] = str(entry[key])
    return overrides


def _parse_parallelism(value: Any) -> int:
    if value is None or value == "":
        return os.cpu_count() or 1
    try:
        return int(value)
    except (TypeError, ValueError):
        msg = f"parallelism must be an integer, got {value!r}"
        raise ConfigurationError(msg) from None


def _parse_run_as(value: Any) -> RunAs | None:
    if value is None or value == "":
        return None
    if isinstance(value, RunAs):
        return value
    if str(value).strip().lower() == "current":
        return RunAs.current()
    return RunAs.parse(str(value))


def resolve_run_config(
    data: Mapping[str, Any] | None,
    base_dir: Path,
    environ: Mapping[str, str],
) -> RunConfig:
    """Build a RunConfig from a raw mapping (defaults filled). Relative paths resolve against base_dir."""
    raw = dict(DEFAULT_RUN_CONFIG)
    if data:
        unknown = sorted(set(data) - set(DEFAULT_RUN_CONFIG))
        if unknown:
            msg = f"Unknown config keys: {', '.join(unknown)}"
            raise ConfigurationError(msg)
        raw.update({k: v for k, v in data.items() if v is not None})

    mount_source = _resolve_path(raw["mount_source"], base_dir) or base_dir.resolve()
    toolchain = _resolve_path(raw["toolchain_home"], base_dir)
    if toolchain is None:
        toolchain = _resolve_path(environ.get(TOOLCHAIN_HOME_ENV), base_dir)
    overrides = _parse_targets(raw["targets"])
    try:
        release = parse_bool_strict(raw["release"])
        cleanup = parse_bool_strict(raw["cleanup_images"])
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    return RunConfig(
        mount_source=mount_source,
        project_dir=_resolve_path(raw["project_dir"], mount_source),
        output_root=_resolve_path(raw["output_root"], mount_source),
        project_name=raw["project_name"] or None,
        project_version=str(raw["project_version"]),
        release=release,
        ci=detect_ci(environ),
        engine=raw["engine"] or None,
        toolchain_home=toolchain,
        parallelism=_parse_parallelism(raw["parallelism"]),
        run_as=_parse_run_as(raw["run_as"]),
        container_name_prefix=str(raw["container_name_prefix"]),
        image_overrides=overrides["image"],
        repository_overrides=overrides["repository"],
        tag_overrides=overrides["tag"],
        link_mode_overrides=overrides["link_mode"],
        extra_classifiers=tuple(split_csv(raw["extra_classifiers"])),
        cleanup_images=cleanup,
    )


def load_run_config(
    path: Path | None = None,
    *,
    base_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> RunConfig:
    """Load crossbuild.yaml (if given/present), apply overrides (None values ignored), read CI and JAVA_HOME.

    Relative paths in the file resolve against the file's directory; without a file, against base_dir (default cwd).
    """
    if environ is None:
        environ = os.environ
    data: dict[str, Any] = {}
    base = (base_dir or Path.cwd()).resolve()
    if path is not None:
        if not path.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigurationError(msg)
        try:
            data = load_yaml_mapping(path)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        base = path.resolve().parent
    data.update({k: v for k, v in overrides.items() if v is not None})
    return resolve_run_config(data, base, environ)
