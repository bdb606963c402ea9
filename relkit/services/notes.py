from __future__ import annotations

from relkit.build.classify import BuildClassification, prerelease_kind

__all__ = ["release_kind_label", "release_notes", "release_title"]


def release_kind_label(classification: BuildClassification) -> str:
    """``alpha``/``beta``/``rc`` for prereleases, ``release`` otherwise."""
    if not classification.is_prerelease:
        return "release"
    return prerelease_kind(classification.version) or "prerelease"


def release_title(classification: BuildClassification, *, display_name: str) -> str:
    if classification.is_prerelease:
        return f"{display_name} {classification.version} ({release_kind_label(classification)})"
    return f"{display_name} {classification.version}"


def release_notes(classification: BuildClassification, tag_message: str | None) -> str:
    """The tag's annotation when it has one, else a generated line."""
    if tag_message is not None and tag_message.strip():
        return tag_message.strip()
    if classification.is_prerelease:
        return f"Pre-release {classification.version} ({release_kind_label(classification)})"
    return f"Release {classification.version}"
