"""Tests for the crossbuild CLI (targets, build, command, main dispatch)."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from crossbuild_tooling.cli.build import run_build_argv, run_command_argv
from crossbuild_tooling.cli.main import main
from crossbuild_tooling.cli.targets_cmd import describe_target, run_targets_argv
from crossbuild_tooling.native import RunConfig
from crossbuild_tooling.native.targets import DEFAULT_TARGETS, BuildTarget


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    monkeypatch.delenv("CI", raising=False)
    monkeypatch.delenv("JAVA_HOME", raising=False)


def _exit_code(fn, argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        fn(argv)
    return exc_info.value.code


class TestTargets:
    def test_lists_default_matrix(self, project: Path, capsys) -> None:
        assert _exit_code(run_targets_argv, ["--project-root", str(project)]) == 0
        out, _ = capsys.readouterr()
        lines = out.splitlines()
        assert len(lines) == len(DEFAULT_TARGETS)
        assert lines[0].split()[:3] == ["x86_64", "DYNAMIC", "arch-detect"]
        assert "compileNativeForX8664" in lines[0]
        assert "docker.io/dockcross/linux-x64:20240418-88c04a4" in lines[0]

    def test_config_file_extra_and_overrides(self, project: Path, capsys) -> None:
        (project / "crossbuild.yaml").write_text(
            "extra_classifiers: loongarch64,mips\n"
            "targets:\n"
            "  loongarch64: {image: 'example/loongarch64:1'}\n"
            "  riscv64: {link_mode: bogus}\n"
        )
        assert _exit_code(run_targets_argv, ["--project-root", str(project)]) == 0
        out, _ = capsys.readouterr()
        by_cls = {line.split()[0]: line for line in out.splitlines()}
        assert by_cls["loongarch64"].endswith("example/loongarch64:1")
        assert by_cls["mips"].endswith("<missing>")
        assert "<invalid:" in by_cls["riscv64"]

    def test_bad_config_exits_1(self, project: Path, capsys) -> None:
        (project / "crossbuild.yaml").write_text("nope: 1\n")
        assert _exit_code(run_targets_argv, ["--project-root", str(project)]) == 1
        _, err = capsys.readouterr()
        assert "Unknown config keys: nope" in err

    def test_bad_parallelism_exits_1(self, project: Path, capsys) -> None:
        (project / "crossbuild.yaml").write_text("parallelism: lots\n")
        assert _exit_code(run_targets_argv, ["--project-root", str(project)]) == 1
        _, err = capsys.readouterr()
        assert "❌ parallelism must be an integer" in err

    def test_repository_and_tag_overrides_listed(self, project: Path, capsys) -> None:
        (project / "crossbuild.yaml").write_text(
            "targets:\n"
            "  x86_64: {tag: '20250101-abcdef0'}\n"
            "  riscv64: {repository: mirror.local/linux-riscv64}\n"
        )
        assert _exit_code(run_targets_argv, ["--project-root", str(project)]) == 0
        out, _ = capsys.readouterr()
        by_cls = {line.split()[0]: line for line in out.splitlines()}
        assert by_cls["x86_64"].endswith("docker.io/dockcross/linux-x64:20250101-abcdef0")
        assert by_cls["riscv64"].endswith("mirror.local/linux-riscv64:20240418-88c04a4")

    def test_describe_target_override_link_mode(self, project: Path) -> None:
        cfg = RunConfig(mount_source=project, link_mode_overrides={"x86_64": "static"})
        target = BuildTarget("linux-x64", "x86_64", arch_detect=True)
        assert describe_target(target, cfg).split()[1] == "STATIC"


class TestBuild:
    def test_dry_run_prints_container_commands(self, project: Path, capsys) -> None:
        argv = ["x86_64", "--engine", "docker", "--dry-run", "--project-root", str(project)]
        assert _exit_code(run_build_argv, argv) == 0
        out, _ = capsys.readouterr()
        assert "[dry-run] would:" in out
        assert "docker run --rm --tty" in out
        assert "--workdir /work/build/dockcross/x86_64/native" in out
        assert "make -j" in out
        assert "✅ x86_64" in out

    def test_release_flag_and_parallelism(self, project: Path, capsys) -> None:
        argv = [
            "x86_64",
            "--engine",
            "podman",
            "--dry-run",
            "--release",
            "--parallelism",
            "3",
            "--project-version",
            "1.0.0-SNAPSHOT",
            "--project-root",
            str(project),
        ]
        assert _exit_code(run_build_argv, argv) == 0
        out, _ = capsys.readouterr()
        assert "-DIS_RELEASE=1" in out
        assert "-DPROJECT_VERSION=1.0.0-SNAPSHOT" in out
        assert "make -j3" in out

    def test_blocked_output_dir_still_prints_summary(self, project: Path, capsys) -> None:
        (project / "build" / "dockcross").mkdir(parents=True)
        (project / "build" / "dockcross" / "x86_64").write_text("")
        argv = [
            "x86_64",
            "x86_32",
            "--engine",
            "docker",
            "--dry-run",
            "--jobs",
            "2",
            "--project-root",
            str(project),
        ]
        assert _exit_code(run_build_argv, argv) == 1
        out, err = capsys.readouterr()
        assert "✅ x86_32" in out
        assert "❌ x86_64: [x86_64] cannot use output directory" in err

    def test_unknown_target_exits_1(self, project: Path, capsys) -> None:
        argv = ["sparc", "--dry-run", "--project-root", str(project)]
        assert _exit_code(run_build_argv, argv) == 1
        _, err = capsys.readouterr()
        assert "Unknown target 'sparc'" in err

    def test_missing_image_for_extra_fails_only_that_target(self, project: Path, capsys) -> None:
        argv = [
            "x86_64",
            "loongarch64",
            "--extra",
            "loongarch64",
            "--engine",
            "docker",
            "--dry-run",
            "--project-root",
            str(project),
        ]
        assert _exit_code(run_build_argv, argv) == 1
        out, err = capsys.readouterr()
        assert "✅ x86_64" in out
        assert "❌ loongarch64:" in err

    def test_host_only(self, project: Path, capsys) -> None:
        argv = ["--host", "--engine", "docker", "--dry-run", "--project-root", str(project)]
        assert _exit_code(run_build_argv, argv) == 0
        out, _ = capsys.readouterr()
        assert "Building 0 target(s)" in out
        assert "✅ host" in out
        assert "docker run" not in out

    def test_failed_command_reports_exit_code(self, project: Path, capsys) -> None:
        argv = ["x86_64", "--engine", "docker", "--project-root", str(project)]
        with patch("subprocess.run") as mock_run:
            mock_run.return_value.returncode = 2
            assert _exit_code(run_build_argv, argv) == 1
        assert mock_run.call_count == 1
        _, err = capsys.readouterr()
        assert "exit code 2" in err
        assert "docker run --rm --tty" in err

    def test_arch_detect_manifest(self, project: Path, capsys) -> None:
        manifest = project / "arch-detect.yaml"
        argv = [
            "all-except-android",
            "--engine",
            "docker",
            "--dry-run",
            "--project-root",
            str(project),
            "--arch-detect-manifest",
            str(manifest),
        ]
        assert _exit_code(run_build_argv, argv) == 0
        data = yaml.safe_load(manifest.read_text())
        assert "x86_64" in data
        assert "armv5" not in data
        assert not any(k.startswith("android-") for k in data)


class TestCommand:
    def test_prints_container_argv_per_step(self, project: Path, capsys) -> None:
        argv = ["x86_64", "--engine", "podman", "--project-root", str(project)]
        assert _exit_code(run_command_argv, argv) == 0
        out, _ = capsys.readouterr()
        lines = out.splitlines()
        assert lines[0] == "# x86_64"
        assert len(lines) == 3
        assert lines[1].startswith("podman run --rm --tty ")
        assert " cmake " in lines[1]
        assert " make -j" in lines[2]

    def test_host_engine_prints_cd(self, project: Path, capsys) -> None:
        argv = ["armv5", "--engine", "none", "--project-root", str(project)]
        assert _exit_code(run_command_argv, argv) == 0
        out, _ = capsys.readouterr()
        lines = out.splitlines()
        assert lines[1].startswith("cd ")
        assert "&& cmake " in lines[1]

    def test_bad_engine(self, project: Path, capsys) -> None:
        argv = ["x86_64", "--engine", "lxc", "--project-root", str(project)]
        assert _exit_code(run_command_argv, argv) == 1
        _, err = capsys.readouterr()
        assert "Unknown container engine" in err


class TestMain:
    def test_no_command_prints_usage(self, capsys) -> None:
        with patch("sys.argv", ["crossbuild"]), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        _, err = capsys.readouterr()
        assert "Usage: crossbuild" in err

    def test_help(self, capsys) -> None:
        with patch("sys.argv", ["crossbuild", "--help"]), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0

    def test_unknown_command(self, capsys) -> None:
        with patch("sys.argv", ["crossbuild", "deploy"]), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        _, err = capsys.readouterr()
        assert "Unknown command: deploy" in err

    def test_dispatches_targets(self, project: Path, capsys) -> None:
        argv = ["crossbuild", "targets", "--project-root", str(project)]
        with patch("sys.argv", argv), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
        out, _ = capsys.readouterr()
        assert "riscv64" in out
