"""Target matrix: dockcross images, classifiers, link modes, and arch-detect membership."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from crossbuild_tooling.execute.errors import ConfigurationError, UnknownLinkMode
from crossbuild_tooling.helpers import split_csv, to_pascal_case

DOCKCROSS_VERSION = "20240418-88c04a4"
DEFAULT_REPOSITORY_TEMPLATE = "docker.io/dockcross/{image}"
DEFAULT_TAG = "latest"

HOST_CLASSIFIER = "host"
ANDROID_PREFIX = "android-"

GROUP_ALL = "all"
GROUP_ALL_EXCEPT_ANDROID = "all-except-android"


class LinkMode(Enum):
    DYNAMIC = "DYNAMIC"
    STATIC = "STATIC"


def parse_link_mode(value: str | LinkMode, classifier: str | None = None) -> LinkMode:
    """Case-insensitive LinkMode lookup. Raises UnknownLinkMode."""
    if isinstance(value, LinkMode):
        return value
    try:
        return LinkMode[str(value).strip().upper()]
    except KeyError:
        expected = ", ".join(m.name for m in LinkMode)
        msg = f"Unknown link mode {value!r} (expected one of {expected})"
        raise UnknownLinkMode(msg, classifier) from None


@dataclass(frozen=True)
class BuildTarget:
    """One architecture variant. image is the dockcross image name (without repo/tag), or None."""

    image: str | None
    classifier: str
    link_mode: LinkMode = LinkMode.DYNAMIC
    arch_detect: bool = False

    @property
    def is_android(self) -> bool:
        return self.classifier.startswith(ANDROID_PREFIX)

    @property
    def task_label(self) -> str:
        return f"compileNativeFor{to_pascal_case(self.classifier)}"


def _t(
    image: str,
    classifier: str,
    link_mode: LinkMode = LinkMode.DYNAMIC,
    arch_detect: bool = False,
) -> BuildTarget:
    return BuildTarget(image, classifier, link_mode, arch_detect)


DEFAULT_TARGETS: tuple[BuildTarget, ...] = (
    _t("linux-x64", "x86_64", arch_detect=True),
    _t("linux-x86", "x86_32", arch_detect=True),
    _t("linux-armv5", "armv5"),
    _t("linux-armv6", "armv6", arch_detect=True),
    _t("linux-armv7", "armv7", arch_detect=True),
    _t("linux-armv7a", "armv7a", arch_detect=True),
    _t("linux-armv7l-musl", "armv7l", LinkMode.STATIC, arch_detect=True),
    _t("linux-arm64", "aarch64", arch_detect=True),
    _t("linux-riscv32", "riscv32", arch_detect=True),
    _t("linux-riscv64", "riscv64", arch_detect=True),
    _t("android-arm", "android-arm"),
    _t("android-arm64", "android-arm64"),
    _t("android-x86_64", "android-x86_64"),
    _t("android-x86", "android-x86_32"),
)


def host_target() -> BuildTarget:
    """The build host's own architecture; runs without a container so it needs no image."""
    return BuildTarget(image=None, classifier=HOST_CLASSIFIER)


def default_image_ref(
    target: BuildTarget,
    tag: str = DOCKCROSS_VERSION,
    repository_template: str = DEFAULT_REPOSITORY_TEMPLATE,
) -> str | None:
    """docker.io/dockcross/{image}:{tag}, or None when the target names no image."""
    if not target.image:
        return None
    return f"{repository_template.format(image=target.image)}:{tag}"


def split_image_ref(ref: str) -> tuple[str, str]:
    """Split "<repository>:<tag>" on the first colon. Tag defaults to latest."""
    repo, sep, tag = ref.partition(":")
    if not repo:
        msg = f"Invalid image reference: {ref!r}"
        raise ConfigurationError(msg)
    return repo, (tag if sep and tag else DEFAULT_TAG)


def extra_targets(classifiers: str | Iterable[str] | None) -> list[BuildTarget]:
    """Extra classifiers (comma-separated or list): dynamic, not arch-detect, image must be overridden."""
    if classifiers is not None and not isinstance(classifiers, str):
        classifiers = list(classifiers)
    return [BuildTarget(image=None, classifier=c) for c in split_csv(classifiers)]


def build_matrix(
    extra: str | Iterable[str] | None = None,
    base: Iterable[BuildTarget] = DEFAULT_TARGETS,
) -> list[BuildTarget]:
    """Default matrix plus extras. Classifiers must be unique."""
    matrix = list(base) + extra_targets(extra)
    seen: set[str] = set()
    for t in matrix:
        if t.classifier in seen:
            msg = f"Duplicate classifier in target matrix: {t.classifier}"
            raise ConfigurationError(msg, t.classifier)
        seen.add(t.classifier)
    return matrix


def select_targets(matrix: list[BuildTarget], names: Iterable[str]) -> list[BuildTarget]:
    """Resolve classifiers and groups (all, all-except-android) to targets, in matrix order."""
    by_classifier = {t.classifier: t for t in matrix}
    wanted: set[str] = set()
    for name in names:
        if name == GROUP_ALL:
            wanted.update(by_classifier)
        elif name == GROUP_ALL_EXCEPT_ANDROID:
            wanted.update(t.classifier for t in matrix if not t.is_android)
        elif name in by_classifier:
            wanted.add(name)
        else:
            msg = f"Unknown target {name!r}"
            raise ConfigurationError(msg, name)
    return [t for t in matrix if t.classifier in wanted]
