"""Shared CLI flags for crossbuild subcommands (--config, --project-root, --extra, -v)."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from crossbuild_tooling.native.config import CONFIG_FILE_NAME, RunConfig, load_run_config


def path_resolver(s: str) -> Path:
    """Resolve a path argument to absolute Path (e.g. --project-root, --config)."""
    return Path(s).resolve()


def add_common_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument(
        "--config",
        type=path_resolver,
        default=None,
        help=f"Run config YAML (default: <project-root>/{CONFIG_FILE_NAME} if present)",
    )
    ap.add_argument(
        "--project-root",
        type=path_resolver,
        default=None,
        help="Directory relative paths resolve against when no config file is used (default: cwd)",
    )
    ap.add_argument(
        "--extra",
        default=None,
        help="Extra classifiers, comma-separated (each needs targets.<classifier>.image)",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def config_path_from_args(args: argparse.Namespace) -> Path | None:
    if args.config is not None:
        return args.config
    root = args.project_root or Path.cwd()
    candidate = root / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def load_config_from_args(args: argparse.Namespace, **overrides: object) -> RunConfig:
    """load_run_config with --config/--project-root/--extra applied. Raises ConfigurationError."""
    return load_run_config(
        config_path_from_args(args),
        base_dir=args.project_root,
        extra_classifiers=args.extra,
        **overrides,
    )
