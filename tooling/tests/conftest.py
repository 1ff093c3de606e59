"""Pytest fixtures for crossbuild tooling tests."""

from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

from crossbuild_tooling.execute.dispatcher import DryRunDispatcher
from crossbuild_tooling.execute.errors import ExecutionFailed


class FailingDispatcher(DryRunDispatcher):
    """Records like DryRunDispatcher; raises ExecutionFailed when argv contains fail_on (optionally only for one image)."""

    def __init__(self, fail_on: str, exit_code: int = 2, only_image: str | None = None) -> None:
        super().__init__(echo=False)
        self.fail_on = fail_on
        self.exit_code = exit_code
        self.only_image = only_image

    def execute(
        self,
        workdir: Path,
        command: Sequence[str],
        extra_env: Mapping[str, str] | None = None,
    ) -> None:
        super().execute(workdir, command, extra_env)
        argv = list(command)
        if self.fail_on in argv and (self.only_image is None or self.only_image in argv):
            raise ExecutionFailed(self.exit_code, argv)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Temporary project root with a core/ subproject. Returns the root (mount source)."""
    (tmp_path / "core").mkdir()
    return tmp_path


@pytest.fixture
def recorder() -> DryRunDispatcher:
    return DryRunDispatcher(echo=False)


@pytest.fixture
def failing_dispatcher() -> type[FailingDispatcher]:
    return FailingDispatcher
