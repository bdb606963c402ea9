from __future__ import annotations

from relkit.build.classify import BuildClassification, BuildType
from relkit.services.notes import release_kind_label, release_notes, release_title

from ._support import PRERELEASE, RELEASE

BETA = BuildClassification(build_type=BuildType.PRERELEASE, version="2.0.0-beta.1", is_prerelease=True)


def test_kind_labels() -> None:
    assert release_kind_label(RELEASE) == "release"
    assert release_kind_label(PRERELEASE) == "rc"
    assert release_kind_label(BETA) == "beta"


def test_titles() -> None:
    assert release_title(RELEASE, display_name="RustFS") == "RustFS 1.2.3"
    assert release_title(PRERELEASE, display_name="RustFS") == "RustFS 1.2.3-rc1 (rc)"


def test_notes_prefer_tag_message() -> None:
    assert release_notes(RELEASE, "  Highlights\n- faster\n") == "Highlights\n- faster"


def test_generated_notes() -> None:
    assert release_notes(RELEASE, None) == "Release 1.2.3"
    assert release_notes(RELEASE, "   ") == "Release 1.2.3"
    assert release_notes(BETA, None) == "Pre-release 2.0.0-beta.1 (beta)"
