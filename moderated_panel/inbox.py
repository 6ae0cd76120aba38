"""Inbox folders: one per panel type, markdown files with optional YAML frontmatter.

Frontmatter keys: ``subject``, ``interactions``, ``focus``, ``panel_type``.
The body is the source material.
"""

import shutil
from datetime import datetime
from pathlib import Path
from typing import Any

import frontmatter


def panel_inbox(input_dir: Path, panel_type: str) -> Path:
    return input_dir / panel_type


def ensure_dirs(inbox_dir: Path, archive_dir: Path) -> None:
    """Create inbox and archive directories if they don't exist."""
    inbox_dir.mkdir(parents=True, exist_ok=True)
    archive_dir.mkdir(parents=True, exist_ok=True)


def scan_inbox(inbox_dir: Path) -> list[Path]:
    """Return all .md files in inbox_dir, oldest first."""
    if not inbox_dir.is_dir():
        return []
    return sorted(inbox_dir.glob("*.md"), key=lambda p: p.stat().st_mtime)


def parse_file(file_path: Path) -> tuple[str, dict]:
    """Parse a markdown file with optional YAML frontmatter.

    Returns:
        (content, metadata); metadata is {} without frontmatter.
    """
    post = frontmatter.load(str(file_path))
    return post.content.strip(), dict(post.metadata)


def build_payload(file_path: Path, panel_type: str) -> dict[str, Any]:
    """Turn an inbox file into a run payload for build_run_config.

    The subject defaults to the file stem with separators turned into spaces;
    a ``panel_type`` key in the frontmatter wins over the folder's type.
    """
    content, metadata = parse_file(file_path)
    subject = metadata.get("subject") or file_path.stem.replace("_", " ").replace("-", " ")
    payload: dict[str, Any] = {
        "sourceText": content,
        "discussionSubject": str(subject),
        "panelType": str(metadata.get("panel_type") or panel_type),
        "source": str(file_path),
    }
    if metadata.get("interactions") is not None:
        payload["panelInteractions"] = metadata["interactions"]
    if metadata.get("focus"):
        payload["summaryFocus"] = str(metadata["focus"])
    return payload


def archive_file(file_path: Path, archive_dir: Path, *, failed: bool = False) -> Path:
    """Move file to archive_dir with a timestamp prefix ("FAILED_" first on failure)."""
    archive_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%dT%H%M%S")
    prefix = "FAILED_" if failed else ""
    dest = archive_dir / f"{prefix}{timestamp}_{file_path.name}"
    shutil.move(str(file_path), str(dest))
    return dest
