"""Target orchestrator: per target, resolve image/link mode, build the cmake+make script, run it via a backend.

Targets are independent: a failure stops that target's remaining steps and nothing else.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from crossbuild_tooling.execute.backends import ExecutionBackend, NoContainer
from crossbuild_tooling.execute.dispatcher import CliDispatcher
from crossbuild_tooling.execute.errors import (
    ConfigurationError,
    CrossBuildError,
    ExecutionFailed,
    MissingImage,
    OutputDirError,
    WorkdirOutsideMount,
)
from crossbuild_tooling.execute.request import ExecutionRequest
from crossbuild_tooling.helpers import default_container_name, dump_yaml, relative_posix
from crossbuild_tooling.native.config import RunConfig
from crossbuild_tooling.native.targets import (
    DEFAULT_TAG,
    BuildTarget,
    LinkMode,
    default_image_ref,
    host_target,
    parse_link_mode,
    split_image_ref,
)

log = logging.getLogger(__name__)

NATIVE_DIR = "native"
ARTIFACT_GLOB = "*.so"


class TargetState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class TargetResult:
    target: BuildTarget
    state: TargetState = TargetState.PENDING
    image: str | None = None
    link_mode: LinkMode | None = None
    output_dir: Path | None = None
    artifacts: list[Path] = field(default_factory=list)
    error: CrossBuildError | None = None
    steps_run: int = 0

    @property
    def classifier(self) -> str:
        return self.target.classifier


@dataclass
class RunReport:
    """Per-classifier results in matrix order."""

    results: dict[str, TargetResult] = field(default_factory=dict)

    @property
    def succeeded(self) -> list[TargetResult]:
        return [r for r in self.results.values() if r.state is TargetState.SUCCEEDED]

    @property
    def failed(self) -> list[TargetResult]:
        return [r for r in self.results.values() if r.state is TargetState.FAILED]

    @property
    def ok(self) -> bool:
        return all(r.state is TargetState.SUCCEEDED for r in self.results.values())

    @property
    def arch_detect(self) -> dict[str, list[Path]]:
        """Artifacts of succeeded arch-detect targets (bookkeeping for runtime arch detection)."""
        return {
            r.classifier: list(r.artifacts)
            for r in self.succeeded
            if r.target.arch_detect
        }


def resolve_image_ref(target: BuildTarget, config: RunConfig) -> str:
    """Image for target: full override or docker.io/dockcross/{image}:{version}, then
    per-classifier repository/tag overrides. Raises MissingImage when no repository is known.
    """
    classifier = target.classifier
    base = config.image_overrides.get(classifier) or default_image_ref(target)
    repository, tag = split_image_ref(base) if base else (None, DEFAULT_TAG)
    repository = config.repository_overrides.get(classifier) or repository
    tag = config.tag_overrides.get(classifier) or tag
    if not repository:
        msg = "No image configured for target (set targets.<classifier>.image or .repository)"
        raise MissingImage(msg, classifier)
    return f"{repository}:{tag}"


class TargetOrchestrator:
    """Drives one backend over a target matrix. backend and dispatcher are injected; nothing is late-bound."""

    def __init__(
        self,
        backend: ExecutionBackend,
        dispatcher: CliDispatcher,
        config: RunConfig,
    ) -> None:
        self.backend = backend
        self.dispatcher = dispatcher
        self.config = config

    # --- Resolution (no processes spawned) ---

    def resolve_image(self, target: BuildTarget) -> str:
        return resolve_image_ref(target, self.config)

    def resolve_link_mode(self, target: BuildTarget) -> LinkMode:
        override = self.config.link_mode_overrides.get(target.classifier)
        if override:
            return parse_link_mode(override, target.classifier)
        return target.link_mode

    def output_dir(self, target: BuildTarget) -> Path:
        return self.config.output_root / target.classifier / NATIVE_DIR

    def container_name(self, target: BuildTarget) -> str:
        return default_container_name(
            self.config.container_name_prefix, self.config.project_name, target.classifier
        )

    def build_script(self, link_mode: LinkMode, output_dir: Path) -> list[list[str]]:
        """cmake configure (version, release, link mode) then make with the parallelism hint."""
        cfg = self.config
        source = relative_posix(cfg.project_dir, output_dir)
        return [
            [
                "cmake",
                source,
                f"-DPROJECT_VERSION={cfg.project_version}",
                f"-DIS_RELEASE={1 if cfg.is_release else 0}",
                f"-DLINK_STATICALLY={1 if link_mode is LinkMode.STATIC else 0}",
            ],
            ["make", f"-j{cfg.parallelism}"],
        ]

    def build_requests(
        self,
        target: BuildTarget,
        image: str,
        link_mode: LinkMode,
    ) -> list[ExecutionRequest]:
        """One request per script step; all share image, mounts, toolchain and workdir."""
        out_dir = self.output_dir(target)
        script = self.build_script(link_mode, out_dir)
        base = ExecutionRequest(
            image=image,
            commands=script,
            mount_source=self.config.mount_source,
            workdir=out_dir,
            run_as=self.config.run_as,
            toolchain_home=self.config.toolchain_home,
            container_name=self.container_name(target),
        )
        return [base.for_command(step) for step in base.commands]

    def plan(
        self,
        target: BuildTarget,
        backend: ExecutionBackend | None = None,
    ) -> tuple[str, LinkMode, list[ExecutionRequest]]:
        """Resolve image, link mode and requests for target; validate container paths.

        Raises ConfigurationError. Host (no-container) plans need no image.
        """
        backend = backend or self.backend
        if backend.is_container:
            image = self.resolve_image(target)
        else:
            image = self.config.image_overrides.get(target.classifier) or ""
        link_mode = self.resolve_link_mode(target)
        requests = self.build_requests(target, image, link_mode)
        if backend.is_container:
            requests[0].relative_workdir()
            self._check_project_dir(target)
        return image, link_mode, requests

    def _check_project_dir(self, target: BuildTarget) -> None:
        # cmake's source argument is resolved inside the container, so it must sit under the mount.
        rel = relative_posix(self.config.project_dir, self.config.mount_source)
        if rel == ".." or rel.startswith("../"):
            msg = (
                f"project_dir {self.config.project_dir} is outside mount_source "
                f"{self.config.mount_source}"
            )
            raise WorkdirOutsideMount(msg, target.classifier)

    # --- Execution ---

    def run_target(self, target: BuildTarget) -> TargetResult:
        return self._run(target, self.backend)

    def run_host(self) -> TargetResult:
        """Build for the host's own architecture, without a container."""
        return self._run(host_target(), NoContainer())

    def _run(self, target: BuildTarget, backend: ExecutionBackend) -> TargetResult:
        result = TargetResult(target=target)
        try:
            image, link_mode, requests = self.plan(target, backend)
        except ConfigurationError as e:
            if e.classifier is None:
                e.classifier = target.classifier
            log.error("%s", e)
            result.state = TargetState.FAILED
            result.error = e
            return result

        result.image = image or None
        result.link_mode = link_mode
        result.output_dir = self.output_dir(target)

        result.state = TargetState.RUNNING
        log.info("[%s] running %d step(s) with %s", target.classifier, len(requests), backend.name)
        try:
            result.output_dir.mkdir(parents=True, exist_ok=True)
            for i, request in enumerate(requests, start=1):
                step = request.commands[0][0]
                print(f"🔨 [{target.classifier}] step {i}/{len(requests)}: {step}")
                backend.run(self.dispatcher, request)
                result.steps_run = i
            artifacts = sorted(result.output_dir.glob(ARTIFACT_GLOB))
        except (ExecutionFailed, ConfigurationError) as e:
            log.error("[%s] %s", target.classifier, e)
            result.state = TargetState.FAILED
            result.error = e
        except OSError as e:
            err = OutputDirError(target.classifier, str(result.output_dir), e)
            log.error("%s", err)
            result.state = TargetState.FAILED
            result.error = err
        else:
            result.state = TargetState.SUCCEEDED
            result.artifacts = artifacts
        finally:
            if backend.is_container and self.config.should_cleanup_images:
                self._cleanup_image(backend, image)
        log.info("[%s] %s", target.classifier, result.state.value)
        return result

    def _cleanup_image(self, backend: ExecutionBackend, image: str) -> None:
        try:
            backend.cleanup_image(self.dispatcher, image)
        except ExecutionFailed as e:
            log.warning("Image cleanup failed for %s: %s", image, e)

    def run(
        self,
        targets: Iterable[BuildTarget],
        *,
        max_workers: int = 1,
        fail_fast: bool = False,
    ) -> RunReport:
        """Run targets independently. With fail_fast, targets not started after a failure stay PENDING."""
        targets = list(targets)
        report = RunReport({t.classifier: TargetResult(target=t) for t in targets})
        if max_workers <= 1:
            for t in targets:
                res = self.run_target(t)
                report.results[t.classifier] = res
                if fail_fast and res.state is TargetState.FAILED:
                    break
            return report

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures: dict[Future[TargetResult], str] = {
                pool.submit(self.run_target, t): t.classifier for t in targets
            }
            for fut in as_completed(futures):
                if fut.cancelled():
                    continue
                res = fut.result()
                report.results[futures[fut]] = res
                if fail_fast and res.state is TargetState.FAILED:
                    for other in futures:
                        other.cancel()
        return report


def write_arch_detect_manifest(
    report: RunReport, path: Path, output_root: Path
) -> dict[str, list[str]]:
    """Write {classifier: [artifact paths relative to output_root]} as YAML. Returns the manifest."""
    manifest = {
        classifier: [relative_posix(a, output_root) for a in artifacts]
        for classifier, artifacts in report.arch_detect.items()
    }
    dump_yaml(manifest, path)
    return manifest
