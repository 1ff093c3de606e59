"""ExecutionRequest: one isolated invocation (image, argv steps, mounts, toolchain, identity)."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import NamedTuple

from crossbuild_tooling.execute.errors import ConfigurationError, WorkdirOutsideMount


class RunAs(NamedTuple):
    """uid/gid the guest process runs as (container backends only)."""

    uid: int
    gid: int

    @classmethod
    def parse(cls, value: str) -> RunAs:
        """Parse "uid:gid". Raises ConfigurationError on anything else."""
        uid, sep, gid = value.partition(":")
        if not sep or not uid.isdigit() or not gid.isdigit():
            msg = f"run_as must look like <uid>:<gid>, got {value!r}"
            raise ConfigurationError(msg)
        return cls(int(uid), int(gid))

    @classmethod
    def current(cls) -> RunAs:
        """uid/gid of the orchestrating process, so container output stays owned by the caller."""
        return cls(os.getuid(), os.getgid())

    def __str__(self) -> str:
        return f"{self.uid}:{self.gid}"


def _normalize_commands(commands: Sequence[Sequence[str]]) -> tuple[tuple[str, ...], ...]:
    if isinstance(commands, str):
        msg = "commands must be a sequence of argv sequences, not a string"
        raise ConfigurationError(msg)
    out: list[tuple[str, ...]] = []
    for argv in commands:
        if isinstance(argv, str):
            msg = f"each command must be an argv sequence, not a string: {argv!r}"
            raise ConfigurationError(msg)
        argv_t = tuple(str(a) for a in argv)
        if not argv_t:
            msg = "empty argv in commands"
            raise ConfigurationError(msg)
        out.append(argv_t)
    if not out:
        msg = "an execution request needs at least one command"
        raise ConfigurationError(msg)
    return tuple(out)


def _require_absolute(name: str, p: Path) -> None:
    if not p.is_absolute():
        msg = f"{name} must be an absolute path, got {p}"
        raise ConfigurationError(msg)


@dataclass(frozen=True)
class ExecutionRequest:
    """Immutable description of one invocation.

    commands holds one argv per script step; backends run them strictly in order.
    workdir must be mount_source or a descendant of it when a container backend is used.
    """

    image: str
    commands: tuple[tuple[str, ...], ...]
    mount_source: Path
    workdir: Path
    run_as: RunAs | None = None
    toolchain_home: Path | None = None
    container_name: str | None = None
    mount_read_only: bool = field(default=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", _normalize_commands(self.commands))
        object.__setattr__(self, "mount_source", Path(self.mount_source))
        object.__setattr__(self, "workdir", Path(self.workdir))
        _require_absolute("mount_source", self.mount_source)
        _require_absolute("workdir", self.workdir)
        if self.toolchain_home is not None:
            object.__setattr__(self, "toolchain_home", Path(self.toolchain_home))
            _require_absolute("toolchain_home", self.toolchain_home)
        if self.container_name == "":
            object.__setattr__(self, "container_name", None)

    def relative_workdir(self) -> PurePosixPath:
        """workdir relative to mount_source, by path arithmetic only (no symlink resolution).

        Raises WorkdirOutsideMount when the result would climb above mount_source.
        """
        rel = os.path.relpath(os.path.normpath(self.workdir), os.path.normpath(self.mount_source))
        parts = PurePosixPath(rel.replace(os.sep, "/")).parts
        if parts and parts[0] == "..":
            msg = f"workdir {self.workdir} is not inside mount source {self.mount_source}"
            raise WorkdirOutsideMount(msg)
        if rel == os.curdir:
            return PurePosixPath()
        return PurePosixPath(*parts)

    def for_command(self, argv: Sequence[str]) -> ExecutionRequest:
        """Copy of this request carrying exactly one step."""
        return replace(self, commands=(tuple(argv),))
