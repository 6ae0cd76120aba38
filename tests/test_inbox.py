"""Unit tests for moderated_panel/inbox.py, no API calls."""

import os
import textwrap
from pathlib import Path

from moderated_panel.inbox import archive_file, build_payload, ensure_dirs, panel_inbox, parse_file, scan_inbox
from moderated_panel.panel_types import build_run_config


def test_parse_file_no_frontmatter(tmp_path: Path) -> None:
    f = tmp_path / "article.md"
    f.write_text("Remote work is plateauing.", encoding="utf-8")
    content, metadata = parse_file(f)
    assert content == "Remote work is plateauing."
    assert metadata == {}


def test_build_payload_from_frontmatter(tmp_path: Path) -> None:
    f = tmp_path / "auth.md"
    f.write_text(
        textwrap.dedent("""\
            ---
            subject: Token storage review
            interactions: 3
            focus: Prioritised fixes
            ---
            Tokens live in localStorage.
        """),
        encoding="utf-8",
    )
    payload = build_payload(f, "security")
    assert payload == {
        "sourceText": "Tokens live in localStorage.",
        "discussionSubject": "Token storage review",
        "panelType": "security",
        "source": str(f),
        "panelInteractions": 3,
        "summaryFocus": "Prioritised fixes",
    }
    config = build_run_config(payload)
    assert config.panel_interactions == 3
    assert config.source == str(f)


def test_build_payload_subject_from_filename(tmp_path: Path) -> None:
    f = tmp_path / "queue_redesign-v2.md"
    f.write_text("Body", encoding="utf-8")
    payload = build_payload(f, "techreview")
    assert payload["discussionSubject"] == "queue redesign v2"
    assert "panelInteractions" not in payload


def test_frontmatter_panel_type_wins(tmp_path: Path) -> None:
    f = tmp_path / "x.md"
    f.write_text("---\npanel_type: techreview\n---\nBody", encoding="utf-8")
    assert build_payload(f, "discussion")["panelType"] == "techreview"


def test_scan_inbox_oldest_first(tmp_path: Path) -> None:
    newer = tmp_path / "b.md"
    older = tmp_path / "a.md"
    newer.write_text("new", encoding="utf-8")
    older.write_text("old", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))
    assert scan_inbox(tmp_path) == [older, newer]


def test_scan_missing_inbox_is_empty(tmp_path: Path) -> None:
    assert scan_inbox(tmp_path / "missing") == []


def test_panel_inbox_path(tmp_path: Path) -> None:
    assert panel_inbox(tmp_path, "security") == tmp_path / "security"


def test_ensure_dirs(tmp_path: Path) -> None:
    ensure_dirs(tmp_path / "in" / "security", tmp_path / "archive")
    assert (tmp_path / "in" / "security").is_dir()
    assert (tmp_path / "archive").is_dir()


def test_archive_file_success(tmp_path: Path) -> None:
    src = tmp_path / "topic.md"
    src.write_text("A topic", encoding="utf-8")
    dest = archive_file(src, tmp_path / "archive")
    assert not src.exists()
    assert dest.exists()
    assert dest.name.endswith("_topic.md")
    assert not dest.name.startswith("FAILED_")


def test_archive_file_failed_prefix(tmp_path: Path) -> None:
    src = tmp_path / "topic.md"
    src.write_text("A topic", encoding="utf-8")
    dest = archive_file(src, tmp_path / "archive", failed=True)
    assert dest.name.startswith("FAILED_")
