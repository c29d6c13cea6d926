"""Pydantic models for repository changes and their analyses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class FileDiff(BaseModel):
    """Diff text for a single changed file."""

    model_config = ConfigDict(frozen=True)

    path: str
    diff_text: str

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Reject empty paths."""
        if not v.strip():
            raise ValueError("path must not be empty")
        return v


class FileAnalysis(BaseModel):
    """Generated explanation for one FileDiff."""

    model_config = ConfigDict(frozen=True)

    path: str
    explanation: str


class ContributorStats(BaseModel):
    """Aggregated commit statistics for one author in a repository."""

    author: str
    commits: int = 0
    insertions: int = 0
    deletions: int = 0
    files_touched: int = 0
    first_commit: str | None = None
    last_commit: str | None = None
    recent_subjects: list[str] = []

    def to_text(self) -> str:
        """Render the statistics as the plain-text blob sent to a backend."""
        lines = [
            f"Author: {self.author}",
            f"Commits: {self.commits}",
            f"Lines added: {self.insertions}",
            f"Lines removed: {self.deletions}",
            f"Files touched: {self.files_touched}",
        ]
        if self.first_commit:
            lines.append(f"First commit: {self.first_commit}")
        if self.last_commit:
            lines.append(f"Last commit: {self.last_commit}")
        if self.recent_subjects:
            lines.append("Recent commit subjects:")
            lines.extend(f"- {subject}" for subject in self.recent_subjects)
        return "\n".join(lines)
