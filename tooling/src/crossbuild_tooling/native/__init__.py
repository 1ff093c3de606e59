"""Native cross builds: target matrix, run configuration, and the per-target orchestrator."""

from .config import RunConfig, detect_ci, load_run_config, resolve_run_config
from .orchestrator import (
    RunReport,
    TargetOrchestrator,
    TargetResult,
    TargetState,
    resolve_image_ref,
    write_arch_detect_manifest,
)
from .targets import (
    DEFAULT_TARGETS,
    DOCKCROSS_VERSION,
    BuildTarget,
    LinkMode,
    build_matrix,
    default_image_ref,
    host_target,
    parse_link_mode,
    select_targets,
    split_image_ref,
)

__all__ = [
    "DEFAULT_TARGETS",
    "DOCKCROSS_VERSION",
    "BuildTarget",
    "LinkMode",
    "RunConfig",
    "RunReport",
    "TargetOrchestrator",
    "TargetResult",
    "TargetState",
    "build_matrix",
    "default_image_ref",
    "detect_ci",
    "host_target",
    "load_run_config",
    "parse_link_mode",
    "resolve_image_ref",
    "resolve_run_config",
    "select_targets",
    "split_image_ref",
    "write_arch_detect_manifest",
]
