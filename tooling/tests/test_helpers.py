"""Tests for crossbuild_tooling.helpers."""

from pathlib import Path

import pytest

from crossbuild_tooling.helpers import (
    default_container_name,
    dump_yaml,
    is_snapshot_version,
    load_yaml_mapping,
    parse_bool_strict,
    relative_posix,
    split_csv,
    to_pascal_case,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("x86_64", "X8664"),
        ("android-arm64", "AndroidArm64"),
        ("android-x86_32", "AndroidX8632"),
        ("android-x86_64", "AndroidX8664"),
        ("armv7l", "Armv7l"),
    ],
)
def test_to_pascal_case(name: str, expected: str) -> None:
    assert to_pascal_case(name) == expected


def test_split_csv() -> None:
    assert split_csv(" a, b,,c ") == ["a", "b", "c"]
    assert split_csv(["x", " ", "y "]) == ["x", "y"]
    assert split_csv(None) == []


def test_yaml_load_and_dump(tmp_path: Path) -> None:
    p = tmp_path / "nested" / "out.yaml"
    dump_yaml({"b": [1], "a": "x"}, p)
    assert list(load_yaml_mapping(p)) == ["b", "a"]


def test_load_yaml_rejects_list(tmp_path: Path) -> None:
    p = tmp_path / "list.yaml"
    p.write_text("- 1\n")
    with pytest.raises(ValueError, match="Expected a mapping"):
        load_yaml_mapping(p)


def test_relative_posix_climbs() -> None:
    assert relative_posix(Path("/p/core"), Path("/p/core/build/dockcross/x/native")) == "../../../.."
    assert relative_posix(Path("/p/core/build/a.so"), Path("/p/core")) == "build/a.so"


def test_snapshot_version() -> None:
    assert is_snapshot_version("3.5.0-SNAPSHOT")
    assert not is_snapshot_version("3.5.0")
    assert not is_snapshot_version("3.5.0-snapshot")


def test_parse_bool_strict() -> None:
    assert parse_bool_strict("TRUE") is True
    assert parse_bool_strict(False) is False
    assert parse_bool_strict("") is None
    with pytest.raises(ValueError):
        parse_bool_strict("yes")


def test_default_container_name() -> None:
    assert default_container_name("dockcross", "javacan-core", "riscv64") == "dockcross-javacan-core-riscv64"
    assert default_container_name("dockcross", None, "riscv64") == "dockcross-riscv64"
