"""`crossbuild build`: run the cmake/make script per target; `crossbuild command`: print engine argv."""

from __future__ import annotations

import argparse
import shlex
import sys

from crossbuild_tooling.cli.common import (
    add_common_args,
    configure_logging,
    load_config_from_args,
    path_resolver,
)
from crossbuild_tooling.execute.backends import backend_for_engine
from crossbuild_tooling.execute.dispatcher import DryRunDispatcher, SubprocessDispatcher
from crossbuild_tooling.execute.errors import ConfigurationError, ExecutionFailed
from crossbuild_tooling.native.config import RunConfig
from crossbuild_tooling.native.orchestrator import (
    RunReport,
    TargetOrchestrator,
    TargetResult,
    TargetState,
    write_arch_detect_manifest,
)
from crossbuild_tooling.native.targets import GROUP_ALL, build_matrix, select_targets


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="crossbuild build",
        description="Cross-compile native code for each target in a container (or on the host)",
    )
    ap.add_argument(
        "names",
        nargs="*",
        help="Classifiers or groups (all, all-except-android). Default: all, unless only --host",
    )
    add_common_args(ap)
    ap.add_argument(
        "--engine",
        default=None,
        help="docker, podman, or none (default: docker in CI, else podman)",
    )
    ap.add_argument("--project-version", default=None, help="Version passed to cmake")
    rel = ap.add_mutually_exclusive_group()
    rel.add_argument("--release", dest="release", action="store_const", const=True, default=None)
    rel.add_argument("--snapshot", dest="release", action="store_const", const=False)
    ap.add_argument(
        "--toolchain-home", default=None, help="Toolchain (JAVA_HOME) to mount read-only"
    )
    ap.add_argument("--run-as", default=None, help="uid:gid, or 'current'")
    ap.add_argument(
        "--parallelism", type=int, default=None, help="make -j value (default: CPU count)"
    )
    ap.add_argument(
        "--jobs", type=int, default=1, help="Targets to build concurrently (default: 1)"
    )
    ap.add_argument(
        "--fail-fast", action="store_true", help="Do not start new targets after a failure"
    )
    ap.add_argument("--dry-run", action="store_true", help="Print commands instead of running them")
    ap.add_argument(
        "--host", action="store_true", help="Also build for the host, without a container"
    )
    ap.add_argument(
        "--arch-detect-manifest",
        type=path_resolver,
        default=None,
        help="Write YAML listing artifacts of arch-detect targets",
    )
    return ap


def _load(args: argparse.Namespace) -> RunConfig:
    return load_config_from_args(
        args,
        engine=args.engine,
        project_version=args.project_version,
        release=args.release,
        toolchain_home=args.toolchain_home,
        run_as=args.run_as,
        parallelism=args.parallelism,
    )


def _print_result(res: TargetResult) -> None:
    if res.state is TargetState.SUCCEEDED:
        print(f"  ✅ {res.classifier}: {len(res.artifacts)} artifact(s) in {res.output_dir}")
    elif res.state is TargetState.FAILED:
        print(f"  ❌ {res.classifier}: {res.error}", file=sys.stderr)
        if isinstance(res.error, ExecutionFailed):
            print(f"     exit code {res.error.exit_code}; reproduce with:", file=sys.stderr)
            print(f"     {res.error.command_line}", file=sys.stderr)
    else:
        print(f"  ⏸  {res.classifier}: not started")


def print_summary(report: RunReport) -> None:
    print("📦 Native build summary:")
    for res in report.results.values():
        _print_result(res)


def run_build(args: argparse.Namespace) -> int:
    """Returns 0 when every selected target (and host, if requested) succeeded, else 1."""
    configure_logging(args.verbose)
    try:
        config = _load(args)
        matrix = build_matrix(config.extra_classifiers)
        names = args.names or ([] if args.host else [GROUP_ALL])
        targets = select_targets(matrix, names)
        backend = backend_for_engine(config.resolved_engine)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    dispatcher = DryRunDispatcher() if args.dry_run else SubprocessDispatcher()
    orchestrator = TargetOrchestrator(backend, dispatcher, config)
    print(f"🔨 Building {len(targets)} target(s) with {backend.name}")
    report = orchestrator.run(targets, max_workers=args.jobs, fail_fast=args.fail_fast)
    if args.host and not (args.fail_fast and report.failed):
        host = orchestrator.run_host()
        report.results[host.classifier] = host

    print_summary(report)
    if args.arch_detect_manifest is not None:
        manifest = write_arch_detect_manifest(report, args.arch_detect_manifest, config.output_root)
        print(f"📝 Arch-detect manifest ({len(manifest)} target(s)): {args.arch_detect_manifest}")
    return 0 if report.ok else 1


def run_build_argv(argv: list[str] | None = None) -> None:
    """Parse argv and run the build. argv defaults to sys.argv[2:] (skip 'crossbuild build')."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    args = _build_parser().parse_args(argv)
    sys.exit(run_build(args))


def run_command(args: argparse.Namespace) -> int:
    """Print the argv each step would run for the given classifiers. Nothing is executed."""
    configure_logging(args.verbose)
    try:
        config = load_config_from_args(args, engine=args.engine)
        targets = select_targets(build_matrix(config.extra_classifiers), args.names)
        backend = backend_for_engine(config.resolved_engine)
        recorder = DryRunDispatcher(echo=False)
        orchestrator = TargetOrchestrator(backend, recorder, config)
        for target in targets:
            print(f"# {target.classifier}")
            _, _, requests = orchestrator.plan(target)
            for request in requests:
                backend.run(recorder, request)
            for workdir, argv, env in recorder.calls:
                env_prefix = "".join(f"{k}={shlex.quote(v)} " for k, v in env.items())
                prefix = "" if backend.is_container else f"cd {shlex.quote(str(workdir))} && "
                print(f"{prefix}{env_prefix}{shlex.join(argv)}")
            recorder.calls.clear()
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


def run_command_argv(argv: list[str] | None = None) -> None:
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(
        prog="crossbuild command",
        description="Print the container (or host) command line for each build step",
    )
    ap.add_argument("names", nargs="+", help="Classifiers or groups")
    add_common_args(ap)
    ap.add_argument("--engine", default=None, help="docker, podman, or none")
    sys.exit(run_command(ap.parse_args(argv)))
