"""Main CLI entry point for crossbuild tooling."""

import sys

from crossbuild_tooling.cli import build as build_cli
from crossbuild_tooling.cli import targets_cmd


def _usage() -> None:
    print("Usage: crossbuild <command> [args...]", file=sys.stderr)
    print("Commands:", file=sys.stderr)
    print(
        "  targets            - List target matrix (image, link mode, arch-detect)",
        file=sys.stderr,
    )
    print(
        "  build [names...]   - Run cmake + make per target in docker/podman or on the host",
        file=sys.stderr,
    )
    print(
        "  command <names...> - Print the engine command line for each build step",
        file=sys.stderr,
    )


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        _usage()
        sys.exit(1)

    command = sys.argv[1]
    if command == "targets":
        targets_cmd.run_targets_argv()
    elif command == "build":
        build_cli.run_build_argv()
    elif command == "command":
        build_cli.run_command_argv()
    elif command in ("-h", "--help", "help"):
        _usage()
        sys.exit(0)
    else:
        print(f"Error: Unknown command: {command}", file=sys.stderr)
        _usage()
        sys.exit(1)


if __name__ == "__main__":
    main()
