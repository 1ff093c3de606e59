"""`crossbuild targets`: list the target matrix with resolved images and link modes."""

from __future__ import annotations

import argparse
import sys

from crossbuild_tooling.cli.common import add_common_args, configure_logging, load_config_from_args
from crossbuild_tooling.execute.errors import ConfigurationError, MissingImage
from crossbuild_tooling.native.config import RunConfig
from crossbuild_tooling.native.orchestrator import resolve_image_ref
from crossbuild_tooling.native.targets import BuildTarget, build_matrix, parse_link_mode


def describe_target(target: BuildTarget, config: RunConfig) -> str:
    """One line: classifier, image (or <missing>), link mode, arch-detect flag, task label."""
    try:
        image = resolve_image_ref(target, config)
    except MissingImage:
        image = "<missing>"
    except ConfigurationError as e:
        image = f"<invalid: {e.message}>"
    override = config.link_mode_overrides.get(target.classifier)
    try:
        link_mode = parse_link_mode(override or target.link_mode, target.classifier).name
    except ConfigurationError as e:
        link_mode = f"<invalid: {e.message}>"
    arch = "arch-detect" if target.arch_detect else "-"
    return f"{target.classifier:<16} {link_mode:<8} {arch:<12} {target.task_label:<32} {image}"


def run_targets(args: argparse.Namespace) -> int:
    configure_logging(args.verbose)
    try:
        config = load_config_from_args(args)
        matrix = build_matrix(config.extra_classifiers)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    for target in matrix:
        print(describe_target(target, config))
    return 0


def run_targets_argv(argv: list[str] | None = None) -> None:
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(prog="crossbuild targets", description="List the target matrix")
    add_common_args(ap)
    sys.exit(run_targets(ap.parse_args(argv)))
