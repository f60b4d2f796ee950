"""Segment showing the Git branch and working tree state."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from enum import Enum

from ccline.config import SegmentId
from ccline.input import InputData
from ccline.segments.base import Segment, SegmentData

_U32_MAX = 2**32 - 1


class GitStatus(Enum):
    CLEAN = "Clean"
    DIRTY = "Dirty"
    CONFLICTS = "Conflicts"

    @property
    def symbol(self) -> str:
        return {"Clean": "✓", "Dirty": "●", "Conflicts": "⚠"}[self.value]


@dataclass
class GitInfo:
    branch: str
    status: GitStatus
    ahead: int
    behind: int
    sha: str | None = None


def _git(working_dir: str, *args: str) -> subprocess.CompletedProcess | None:
    try:
        return subprocess.run(
            ["git", "--no-optional-locks", *args],
            cwd=working_dir,
            capture_output=True,
            check=False,
        )
    except OSError:
        return None


class _Undecodable(Exception):
    pass


def _successful_output(working_dir: str, *args: str) -> str | None:
    """Trimmed stdout of a successful git command; raises _Undecodable on bad UTF-8."""
    result = _git(working_dir, *args)
    if result is None or result.returncode != 0:
        return None
    try:
        return result.stdout.decode("utf-8").strip()
    except UnicodeDecodeError:
        raise _Undecodable from None


class GitSegment(Segment):
    segment_id = SegmentId.GIT

    def __init__(self, show_sha: bool = False) -> None:
        self.show_sha = show_sha

    def with_sha(self, show_sha: bool) -> GitSegment:
        return GitSegment(show_sha=show_sha)

    def git_info(self, working_dir: str) -> GitInfo | None:
        """Branch, status, ahead/behind counts and optional SHA, or None outside a repo."""
        probe = _git(working_dir, "rev-parse", "--git-dir")
        if probe is None or probe.returncode != 0:
            return None
        return GitInfo(
            branch=self._branch(working_dir) or "detached",
            status=self._status(working_dir),
            ahead=self._commit_count(working_dir, "@{u}..HEAD"),
            behind=self._commit_count(working_dir, "HEAD..@{u}"),
            sha=self._sha(working_dir) if self.show_sha else None,
        )

    @staticmethod
    def _branch(working_dir: str) -> str | None:
        try:
            for args in (("branch", "--show-current"), ("symbolic-ref", "--short", "HEAD")):
                branch = _successful_output(working_dir, *args)
                if branch:
                    return branch
        except _Undecodable:
            return None
        return None

    @staticmethod
    def _status(working_dir: str) -> GitStatus:
        result = _git(working_dir, "status", "--porcelain")
        if result is None or result.returncode != 0:
            return GitStatus.CLEAN
        try:
            text = result.stdout.decode("utf-8")
        except UnicodeDecodeError:
            text = ""
        if not text.strip():
            return GitStatus.CLEAN
        if any(marker in text for marker in ("UU", "AA", "DD")):
            return GitStatus.CONFLICTS
        return GitStatus.DIRTY

    @staticmethod
    def _commit_count(working_dir: str, revision_range: str) -> int:
        try:
            text = _successful_output(working_dir, "rev-list", "--count", revision_range)
        except _Undecodable:
            return 0
        if text is None or not re.fullmatch(r"\+?[0-9]+", text):
            return 0
        count = int(text)
        return count if count <= _U32_MAX else 0

    @staticmethod
    def _sha(working_dir: str) -> str | None:
        try:
            sha = _successful_output(working_dir, "rev-parse", "--short=7", "HEAD")
        except _Undecodable:
            return None
        return sha or None

    def collect(self, input_data: InputData) -> SegmentData | None:
        info = self.git_info(input_data.workspace.current_dir)
        if info is None:
            return None

        metadata = {
            "branch": info.branch,
            "status": info.status.value,
            "ahead": str(info.ahead),
            "behind": str(info.behind),
        }
        parts = [info.status.symbol]
        if info.ahead > 0:
            parts.append(f"↑{info.ahead}")
        if info.behind > 0:
            parts.append(f"↓{info.behind}")
        if info.sha is not None:
            metadata["sha"] = info.sha
            parts.append(info.sha)

        return SegmentData(primary=info.branch, secondary=" ".join(parts), metadata=metadata)