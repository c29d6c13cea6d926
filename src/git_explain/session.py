"""Session state for git-explain.

A Session pairs the active analysis backend with the repository being
analyzed. Sessions are immutable values: switching backend or repository
returns a new Session and leaves the old one untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from git_explain.ai.backends import AnalysisBackend
from git_explain.git import Repository, get_file_diffs
from git_explain.models import FileAnalysis
from git_explain.pipeline import ChangeAnalysisPipeline, DiffSource
from git_explain.progress import ProgressCallback

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """The active backend and the validated repository path.

    Attributes:
        backend: Backend answering every analysis request
        repository_path: Path that ``open_repository`` already accepted
    """

    backend: AnalysisBackend
    repository_path: str

    async def generate_commit_message(self, full_diff_text: str) -> str:
        """Generate a commit message for the full diff.

        Raises:
            GenerationError: If the backend call fails
        """
        return await self.backend.generate_commit_message(full_diff_text)

    async def analyze_contributor(self, stats_text: str) -> str:
        """Summarize a contributor from statistics text.

        Raises:
            GenerationError: If the backend call fails
        """
        return await self.backend.analyze_contributor(stats_text)

    async def analyze_changes(
        self,
        repo: Repository,
        diff_source: DiffSource = get_file_diffs,
        progress_callback: ProgressCallback | None = None,
    ) -> list[FileAnalysis]:
        """Explain every changed file of ``repo`` with the active backend.

        Raises:
            PipelineError: See ``ChangeAnalysisPipeline.run``
        """
        pipeline = ChangeAnalysisPipeline(
            self.backend,
            diff_source=diff_source,
            progress_callback=progress_callback,
        )
        return await pipeline.run(repo)

    def with_replaced_backend(self, backend: AnalysisBackend) -> Session:
        """Return a copy using ``backend``; the repository is not re-validated."""
        logger.info(f"Switching backend from {self.backend.name} to {backend.name}")
        return replace(self, backend=backend)

    def with_replaced_repository(self, repository_path: str) -> Session:
        """Return a copy pointing at ``repository_path``.

        The caller must already have opened the path successfully.
        """
        logger.info(f"Switching repository from {self.repository_path} to {repository_path}")
        return replace(self, repository_path=repository_path)
