"""Execution backends: docker/podman-style containers, or the host itself.

DockerLike is one implementation parameterized by the launcher binary; docker and podman
differ only in that name. NoContainer reuses the same ExecutionRequest without translating paths.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from crossbuild_tooling.execute.dispatcher import CliDispatcher
from crossbuild_tooling.execute.errors import ConfigurationError, MissingImage
from crossbuild_tooling.execute.request import ExecutionRequest

log = logging.getLogger(__name__)

CONTAINER_MOUNT_POINT = "/work"
CONTAINER_TOOLCHAIN_POINT = "/java-toolchain"
TOOLCHAIN_ENV = "JAVA_HOME"

NO_CONTAINER_ENGINES = ("none", "host")


@runtime_checkable
class ExecutionBackend(Protocol):
    """Turns an ExecutionRequest into dispatcher invocations."""

    name: str
    is_container: bool

    def run(self, dispatcher: CliDispatcher, request: ExecutionRequest) -> None: ...

    def cleanup_image(self, dispatcher: CliDispatcher, image: str) -> None: ...


class DockerLike:
    """Container engine with a docker-compatible `run` CLI (docker, podman)."""

    is_container = True

    def __init__(self, binary: str = "docker") -> None:
        if not binary:
            msg = "container engine binary name must not be empty"
            raise ConfigurationError(msg)
        self.binary = binary

    @property
    def name(self) -> str:
        return self.binary

    def __repr__(self) -> str:
        return f"DockerLike({self.binary!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DockerLike) and other.binary == self.binary

    def __hash__(self) -> int:
        return hash(("DockerLike", self.binary))

    def container_workdir(self, request: ExecutionRequest) -> str:
        """Guest-side workdir: mount point joined with workdir relative to mount_source."""
        rel = request.relative_workdir()
        if not rel.parts:
            return CONTAINER_MOUNT_POINT
        return f"{CONTAINER_MOUNT_POINT}/{rel.as_posix()}"

    def build_argv(self, request: ExecutionRequest, command: Sequence[str]) -> list[str]:
        """Full engine argv for one step of request."""
        if not request.image:
            msg = f"{self.binary} backend needs an image"
            raise MissingImage(msg)
        argv = [self.binary, "run", "--rm", "--tty"]
        if request.container_name:
            argv += ["--name", request.container_name]
        if request.run_as is not None:
            argv += ["-u", f"{request.run_as.uid}:{request.run_as.gid}"]
        ro = ":ro" if request.mount_read_only else ""
        argv += ["-v", f"{request.mount_source}:{CONTAINER_MOUNT_POINT}{ro}"]
        if request.toolchain_home is not None:
            argv += [
                "-v",
                f"{request.toolchain_home}:{CONTAINER_TOOLCHAIN_POINT}:ro",
                "-e",
                f"{TOOLCHAIN_ENV}={CONTAINER_TOOLCHAIN_POINT}",
            ]
        argv += ["--workdir", self.container_workdir(request)]
        argv.append(request.image)
        argv.extend(command)
        return argv

    def build_argvs(self, request: ExecutionRequest) -> list[list[str]]:
        """One engine argv per step. Validates workdir before anything runs."""
        self.container_workdir(request)
        return [self.build_argv(request, command) for command in request.commands]

    def run(self, dispatcher: CliDispatcher, request: ExecutionRequest) -> None:
        # One ephemeral container per step; only the bind mount carries state between steps.
        for argv in self.build_argvs(request):
            log.info("Command: %s", shlex.join(argv))
            dispatcher.execute(Path.cwd(), argv)

    def cleanup_image(self, dispatcher: CliDispatcher, image: str) -> None:
        log.info("Removing image %s", image)
        dispatcher.execute(Path.cwd(), [self.binary, "rmi", image])


class NoContainer:
    """Run directly on the host in request.workdir; JAVA_HOME is set only if a toolchain is given."""

    name = "none"
    is_container = False

    def __repr__(self) -> str:
        return "NoContainer()"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NoContainer)

    def __hash__(self) -> int:
        return hash("NoContainer")

    def environment(self, request: ExecutionRequest) -> dict[str, str]:
        if request.toolchain_home is None:
            return {}
        return {TOOLCHAIN_ENV: str(request.toolchain_home)}

    def run(self, dispatcher: CliDispatcher, request: ExecutionRequest) -> None:
        env = self.environment(request)
        for command in request.commands:
            dispatcher.execute(request.workdir, command, env)

    def cleanup_image(self, dispatcher: CliDispatcher, image: str) -> None:
        log.debug("No container engine; nothing to clean up for %s", image)


def docker() -> DockerLike:
    return DockerLike("docker")


def podman() -> DockerLike:
    return DockerLike("podman")


def default_engine(ci: bool) -> str:
    """docker in CI, rootless podman otherwise."""
    return "docker" if ci else "podman"


def backend_for_engine(engine: str) -> DockerLike | NoContainer:
    """Map an engine name from config/CLI to a backend."""
    name = engine.strip().lower()
    if name in NO_CONTAINER_ENGINES:
        return NoContainer()
    if name in ("docker", "podman"):
        return DockerLike(name)
    msg = f"Unknown container engine {engine!r} (expected docker, podman, or none)"
    raise ConfigurationError(msg)
