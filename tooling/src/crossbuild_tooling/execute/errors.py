"""Error taxonomy for cross-build execution. Configuration errors are raised before any process spawns."""

from __future__ import annotations

import shlex
from collections.abc import Sequence


class CrossBuildError(Exception):
    """Base class for everything the cross-build core raises."""


class ConfigurationError(CrossBuildError):
    """A target or request is misconfigured. Fatal for that target only."""

    def __init__(self, message: str, classifier: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.classifier = classifier

    def __str__(self) -> str:
        if self.classifier:
            return f"[{self.classifier}] {self.message}"
        return self.message


class MissingImage(ConfigurationError):
    """No image override and no default image for a target."""


class UnknownLinkMode(ConfigurationError):
    """Link mode string does not name a LinkMode."""


class WorkdirOutsideMount(ConfigurationError):
    """workdir (or the cmake project_dir) is not contained within mount_source."""


class ExecutionFailed(CrossBuildError):
    """A spawned process exited non-zero (or could not be spawned at all)."""

    def __init__(self, exit_code: int, command: Sequence[str]) -> None:
        self.exit_code = exit_code
        self.command = tuple(command)
        super().__init__(str(self))

    @property
    def command_line(self) -> str:
        return shlex.join(self.command)

    def __str__(self) -> str:
        return f"Command failed (exit={self.exit_code}): {self.command_line}"


class OutputDirError(CrossBuildError):
    """Host-side I/O on a target's output directory failed (path blocked by a file, permissions)."""

    def __init__(self, classifier: str, path: str, cause: OSError) -> None:
        self.classifier = classifier
        self.path = path
        self.cause = cause
        super().__init__(f"[{classifier}] cannot use output directory {path}: {cause}")
