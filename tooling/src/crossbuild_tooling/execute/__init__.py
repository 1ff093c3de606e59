"""Execution layer: requests, process dispatch, and container/host backends."""

from .backends import (
    CONTAINER_MOUNT_POINT,
    CONTAINER_TOOLCHAIN_POINT,
    TOOLCHAIN_ENV,
    DockerLike,
    ExecutionBackend,
    NoContainer,
    backend_for_engine,
    default_engine,
    docker,
    podman,
)
from .dispatcher import CliDispatcher, DryRunDispatcher, SubprocessDispatcher
from .errors import (
    ConfigurationError,
    CrossBuildError,
    ExecutionFailed,
    MissingImage,
    OutputDirError,
    UnknownLinkMode,
    WorkdirOutsideMount,
)
from .request import ExecutionRequest, RunAs

__all__ = [
    "CONTAINER_MOUNT_POINT",
    "CONTAINER_TOOLCHAIN_POINT",
    "TOOLCHAIN_ENV",
    "CliDispatcher",
    "ConfigurationError",
    "CrossBuildError",
    "DockerLike",
    "DryRunDispatcher",
    "ExecutionBackend",
    "ExecutionFailed",
    "ExecutionRequest",
    "MissingImage",
    "NoContainer",
    "OutputDirError",
    "RunAs",
    "SubprocessDispatcher",
    "UnknownLinkMode",
    "WorkdirOutsideMount",
    "backend_for_engine",
    "default_engine",
    "docker",
    "podman",
]
