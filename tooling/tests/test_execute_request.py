"""Tests for crossbuild_tooling.execute.request."""

from pathlib import Path, PurePosixPath
from unittest.mock import patch

import pytest

from crossbuild_tooling.execute import (
    ConfigurationError,
    ExecutionRequest,
    RunAs,
    WorkdirOutsideMount,
)


def _request(**kw) -> ExecutionRequest:
    base = {
        "image": "repo/linux-x64:tag1",
        "commands": [["cmake", "."], ["make", "-j4"]],
        "mount_source": Path("/proj"),
        "workdir": Path("/proj/build/x86_64"),
    }
    base.update(kw)
    return ExecutionRequest(**base)


class TestExecutionRequest:
    def test_commands_normalized_to_tuples(self) -> None:
        req = _request()
        assert req.commands == (("cmake", "."), ("make", "-j4"))

    def test_is_immutable(self) -> None:
        req = _request()
        with pytest.raises(AttributeError):
            req.image = "other"  # type: ignore[misc]

    def test_empty_commands_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(commands=[])

    def test_empty_argv_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(commands=[["make"], []])

    def test_string_command_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(commands=["make -j4"])

    def test_relative_mount_source_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(mount_source=Path("proj"))

    def test_relative_toolchain_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(toolchain_home=Path("jdk"))

    def test_empty_container_name_is_none(self) -> None:
        assert _request(container_name="").container_name is None

    def test_for_command_keeps_everything_but_commands(self) -> None:
        req = _request(toolchain_home=Path("/jdk"), run_as=RunAs(1, 2), container_name="c")
        step = req.for_command(["make", "-j4"])
        assert step.commands == (("make", "-j4"),)
        assert step.image == req.image
        assert step.workdir == req.workdir
        assert step.toolchain_home == req.toolchain_home
        assert step.run_as == req.run_as
        assert step.container_name == "c"


class TestRelativeWorkdir:
    def test_descendant(self) -> None:
        assert _request().relative_workdir() == PurePosixPath("build/x86_64")

    def test_same_directory_is_empty(self) -> None:
        rel = _request(workdir=Path("/proj")).relative_workdir()
        assert rel.parts == ()

    def test_normalizes_dot_segments(self) -> None:
        rel = _request(workdir=Path("/proj/build/../build/x86_64")).relative_workdir()
        assert rel == PurePosixPath("build/x86_64")

    def test_sibling_directory_is_configuration_error(self) -> None:
        with pytest.raises(WorkdirOutsideMount):
            _request(workdir=Path("/other/build")).relative_workdir()

    def test_prefix_lookalike_is_outside(self) -> None:
        with pytest.raises(WorkdirOutsideMount):
            _request(workdir=Path("/project/build")).relative_workdir()

    def test_never_starts_with_parent_segment(self) -> None:
        for wd in ("/proj/a", "/proj/a/b/c", "/proj/a/../b"):
            rel = _request(workdir=Path(wd)).relative_workdir()
            assert not rel.parts or rel.parts[0] != ".."


class TestRunAs:
    def test_parse(self) -> None:
        assert RunAs.parse("1000:100") == RunAs(1000, 100)

    @pytest.mark.parametrize("value", ["1000", "a:b", ":1", "1:", ""])
    def test_parse_invalid(self, value: str) -> None:
        with pytest.raises(ConfigurationError):
            RunAs.parse(value)

    def test_str(self) -> None:
        assert str(RunAs(1, 2)) == "1:2"

    def test_current_uses_process_ids(self) -> None:
        with (
            patch("crossbuild_tooling.execute.request.os.getuid", return_value=501),
            patch("crossbuild_tooling.execute.request.os.getgid", return_value=20),
        ):
            assert RunAs.current() == RunAs(501, 20)
