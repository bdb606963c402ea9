"""Build classification.

``classify`` maps every BuildContext to exactly one classification using an
ordered rule table; the first matching rule wins:

1. tag ref            -> release, or prerelease when the tag names a pre-release kind
2. main branch        -> development (``dev-<short_hash>``)
3. schedule, manual dispatch, or opt-in marker in the commit message
                      -> development
4. anything else      -> none (nothing is built or published)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from relkit.build.context import BuildContext, TriggerKind
from relkit.core.result import Err, Ok, Result

__all__ = [
    "BuildClassification",
    "BuildType",
    "ClassificationError",
    "ClassifierRules",
    "DEFAULT_RULES",
    "PrereleaseKind",
    "check_classification",
    "classification_outputs",
    "classify",
    "prerelease_kind",
]

PrereleaseKind = Literal["alpha", "beta", "rc"]

_PRERELEASE_MARKERS: tuple[PrereleaseKind, ...] = ("alpha", "beta", "rc")


class BuildType(StrEnum):
    NONE = "none"
    DEVELOPMENT = "development"
    RELEASE = "release"
    PRERELEASE = "prerelease"


def prerelease_kind(tag: str) -> PrereleaseKind | None:
    """Return the pre-release kind named by a tag, checked in order alpha, beta, rc.

    This is a plain substring test: ``1.0.0-beta.2`` is beta, ``1.0.0`` is None.
    Both classification and release-notes wording use this function.
    """
    for marker in _PRERELEASE_MARKERS:
        if marker in tag:
            return marker
    return None


@dataclass(frozen=True, slots=True)
class BuildClassification:
    build_type: BuildType
    version: str
    is_prerelease: bool
    short_hash: str = ""
    on_main_branch: bool = False

    def __post_init__(self) -> None:
        if self.build_type is BuildType.NONE and self.version:
            raise ValueError("a 'none' classification carries no version")
        if self.is_prerelease != (self.build_type is BuildType.PRERELEASE):
            raise ValueError("is_prerelease must match build_type")

    @property
    def should_build(self) -> bool:
        return self.build_type is not BuildType.NONE

    @property
    def is_tagged(self) -> bool:
        """True for builds that go through the release lifecycle."""
        return self.build_type in (BuildType.RELEASE, BuildType.PRERELEASE)

    @property
    def prerelease_kind(self) -> PrereleaseKind | None:
        if not self.is_prerelease:
            return None
        return prerelease_kind(self.version)


@dataclass(frozen=True, slots=True)
class ClassifierRules:
    main_branch: str = "main"
    build_marker: str = "--build"


DEFAULT_RULES = ClassifierRules()


def _tagged(ctx: BuildContext, rules: ClassifierRules) -> BuildClassification | None:
    if not ctx.is_tag_ref:
        return None
    tag = ctx.resolved_tag or ""
    is_pre = prerelease_kind(tag) is not None
    return BuildClassification(
        build_type=BuildType.PRERELEASE if is_pre else BuildType.RELEASE,
        version=tag,
        is_prerelease=is_pre,
        short_hash=ctx.short_hash,
    )


def _development(ctx: BuildContext, rules: ClassifierRules) -> BuildClassification:
    return BuildClassification(
        build_type=BuildType.DEVELOPMENT,
        version=f"dev-{ctx.short_hash}",
        is_prerelease=False,
        short_hash=ctx.short_hash,
        on_main_branch=ctx.is_branch(rules.main_branch),
    )


def _main_branch(ctx: BuildContext, rules: ClassifierRules) -> BuildClassification | None:
    if not ctx.is_branch(rules.main_branch):
        return None
    return _development(ctx, rules)


def _opt_in(ctx: BuildContext, rules: ClassifierRules) -> BuildClassification | None:
    requested = ctx.trigger in (TriggerKind.SCHEDULE, TriggerKind.MANUAL_DISPATCH)
    marked = bool(rules.build_marker) and rules.build_marker in (ctx.commit_message or "")
    if not (requested or marked):
        return None
    return _development(ctx, rules)


_Rule = Callable[[BuildContext, ClassifierRules], BuildClassification | None]

_RULES: tuple[_Rule, ...] = (_tagged, _main_branch, _opt_in)


def classify(ctx: BuildContext, rules: ClassifierRules = DEFAULT_RULES) -> BuildClassification:
    """Classify a build trigger. Total and deterministic; never raises."""
    for rule in _RULES:
        found = rule(ctx, rules)
        if found is not None:
            return found
    return BuildClassification(
        build_type=BuildType.NONE,
        version="",
        is_prerelease=False,
        short_hash=ctx.short_hash,
    )


@dataclass(frozen=True, slots=True)
class ClassificationError:
    message: str
    hint: str | None = None


def check_classification(
    classification: BuildClassification,
) -> Result[BuildClassification, ClassificationError]:
    """Reject classifications that cannot name artifacts unambiguously."""
    if classification.is_tagged and not classification.version.strip():
        return Err(
            ClassificationError(
                message="tag build without a tag name",
                hint="expected a ref like refs/tags/1.2.3",
            )
        )
    if classification.build_type is BuildType.DEVELOPMENT and not classification.short_hash:
        return Err(
            ClassificationError(
                message="development build without a commit hash",
                hint="set GITHUB_SHA or pass --short-sha",
            )
        )
    return Ok(classification)


def classification_outputs(classification: BuildClassification) -> list[tuple[str, str]]:
    """Key/value pairs in the format downstream CI jobs consume."""
    return [
        ("should_build", "true" if classification.should_build else "false"),
        ("build_type", str(classification.build_type)),
        ("version", classification.version),
        ("short_sha", classification.short_hash),
        ("is_prerelease", "true" if classification.is_prerelease else "false"),
    ]
