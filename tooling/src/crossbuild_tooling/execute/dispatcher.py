"""Process dispatch: run one literal argv in a working directory with an environment overlay."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from crossbuild_tooling.execute.errors import ExecutionFailed

log = logging.getLogger(__name__)

# Shell convention for "command not found"; used when the process cannot be spawned at all.
EXIT_NOT_FOUND = 127


@runtime_checkable
class CliDispatcher(Protocol):
    """Runs a command synchronously; raises ExecutionFailed on non-zero exit."""

    def execute(
        self,
        workdir: Path,
        command: Sequence[str],
        extra_env: Mapping[str, str] | None = None,
    ) -> None: ...


class SubprocessDispatcher:
    """Dispatch via subprocess.run with stdio inherited, so build output is visible live.

    extra_env is merged over the current environment; its keys win. One attempt, no retry.
    """

    def execute(
        self,
        workdir: Path,
        command: Sequence[str],
        extra_env: Mapping[str, str] | None = None,
    ) -> None:
        argv = [str(a) for a in command]
        env = dict(os.environ)
        if extra_env:
            env.update(extra_env)
        log.info("Command: %s (cwd=%s)", shlex.join(argv), workdir)
        try:
            r = subprocess.run(argv, cwd=str(workdir), env=env)
        except OSError as e:
            # Missing engine binary or workdir: same failure path as a non-zero exit.
            log.debug("spawn failed for %s: %s", argv[0], e)
            raise ExecutionFailed(EXIT_NOT_FOUND, argv) from e
        if r.returncode != 0:
            raise ExecutionFailed(r.returncode, argv)


class DryRunDispatcher:
    """Record and print commands instead of running them."""

    def __init__(self, echo: bool = True) -> None:
        self.echo = echo
        self.calls: list[tuple[Path, tuple[str, ...], dict[str, str]]] = []

    def execute(
        self,
        workdir: Path,
        command: Sequence[str],
        extra_env: Mapping[str, str] | None = None,
    ) -> None:
        argv = tuple(str(a) for a in command)
        env = dict(extra_env or {})
        self.calls.append((Path(workdir), argv, env))
        if self.echo:
            env_prefix = "".join(f"{k}={shlex.quote(v)} " for k, v in env.items())
            print(f"[dry-run] would: (cd {workdir} && {env_prefix}{shlex.join(argv)})")

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [argv for _, argv, _ in self.calls]
