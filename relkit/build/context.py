"""Immutable description of what triggered a pipeline run."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from relkit.core.structured import get_bool, get_raw_str, get_table

__all__ = [
    "BRANCH_REF_PREFIX",
    "BuildContext",
    "TAG_REF_PREFIX",
    "TriggerKind",
    "context_from_github",
]

TAG_REF_PREFIX = "refs/tags/"
BRANCH_REF_PREFIX = "refs/heads/"


class TriggerKind(StrEnum):
    TAG_PUSH = "tag-push"
    BRANCH_PUSH = "branch-push"
    SCHEDULE = "schedule"
    MANUAL_DISPATCH = "manual-dispatch"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class BuildContext:
    """Inputs of a single pipeline invocation.

    Attributes:
        trigger: What started the run.
        ref: Full git ref, e.g. ``refs/tags/1.2.3`` or ``refs/heads/main``.
        short_hash: Abbreviated commit hash.
        tag_name: Explicit tag name; derived from ``ref`` when omitted.
        commit_message: Head commit message, if the event carries one.
        build_docker: Manual flag controlling the downstream image build
            (None when the trigger did not provide it).
    """

    trigger: TriggerKind
    ref: str
    short_hash: str
    tag_name: str | None = None
    commit_message: str | None = None
    build_docker: bool | None = None

    @property
    def is_tag_ref(self) -> bool:
        return self.ref.startswith(TAG_REF_PREFIX)

    @property
    def resolved_tag(self) -> str | None:
        if self.tag_name is not None:
            return self.tag_name
        if self.is_tag_ref:
            return self.ref.removeprefix(TAG_REF_PREFIX)
        return None

    def is_branch(self, branch: str) -> bool:
        return self.ref == f"{BRANCH_REF_PREFIX}{branch}"


_EVENT_KINDS: dict[str, TriggerKind] = {
    "schedule": TriggerKind.SCHEDULE,
    "workflow_dispatch": TriggerKind.MANUAL_DISPATCH,
}


def _trigger_kind(event_name: str, ref: str) -> TriggerKind:
    if event_name in _EVENT_KINDS:
        return _EVENT_KINDS[event_name]
    if event_name == "push":
        if ref.startswith(TAG_REF_PREFIX):
            return TriggerKind.TAG_PUSH
        if ref.startswith(BRANCH_REF_PREFIX):
            return TriggerKind.BRANCH_PUSH
    return TriggerKind.UNKNOWN


def context_from_github(
    environ: Mapping[str, str],
    event: Mapping[str, object] | None = None,
    *,
    short_hash: str | None = None,
) -> BuildContext:
    """Build a context from GitHub Actions variables and the event payload.

    ``short_hash`` overrides the abbreviation of ``GITHUB_SHA`` (e.g. with the
    output of ``git rev-parse --short HEAD``).
    """
    ref = environ.get("GITHUB_REF", "")
    event_name = environ.get("GITHUB_EVENT_NAME", "")
    sha = environ.get("GITHUB_SHA", "")

    commit_message: str | None = None
    build_docker: bool | None = None
    if event is not None:
        head_commit = get_table(event, "head_commit")
        if head_commit is not None:
            commit_message = get_raw_str(head_commit, "message")
        inputs = get_table(event, "inputs")
        if inputs is not None:
            build_docker = get_bool(inputs, "build_docker")

    return BuildContext(
        trigger=_trigger_kind(event_name, ref),
        ref=ref,
        short_hash=short_hash or sha[:7],
        commit_message=commit_message,
        build_docker=build_docker,
    )
