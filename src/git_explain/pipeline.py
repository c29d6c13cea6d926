"""Change analysis pipeline.

Reads the per-file diffs of a repository, sends every file to the analysis
backend at once and collects the explanations in the order the diff source
returned the files. The batch always runs to completion: a failing file does
not cancel its siblings, and once everything has finished the first failure
in input order is reported.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence

from git_explain.ai.backends import AnalysisBackend
from git_explain.exceptions import PipelineError
from git_explain.git import Repository, get_file_diffs
from git_explain.models import FileAnalysis, FileDiff
from git_explain.progress import ProgressCallback, ProgressNotifier

logger = logging.getLogger(__name__)

DiffSource = Callable[[Repository], Sequence[FileDiff]]


class ChangeAnalysisPipeline:
    """Fan a repository's file diffs out to a backend and gather the results."""

    def __init__(
        self,
        backend: AnalysisBackend,
        diff_source: DiffSource = get_file_diffs,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            backend: Backend that explains each file
            diff_source: Returns the changed files of a repository, in order
            progress_callback: Receives an event as each file finishes
        """
        self.backend = backend
        self.diff_source = diff_source
        self.notifier = ProgressNotifier(progress_callback)

    async def run(self, repo: Repository) -> list[FileAnalysis]:
        """Explain every changed file in ``repo``.

        Returns:
            One FileAnalysis per changed file, in diff source order

        Raises:
            PipelineError: If the diff source fails (no backend call is made)
                or any file analysis fails; the error names the earliest
                failing file in input order
        """
        try:
            diffs = list(self.diff_source(repo))
        except Exception as e:
            logger.error(f"Diff source failed for {repo.path}: {e}")
            raise PipelineError(f"Failed to read changes: {e}", cause=e) from e

        if not diffs:
            logger.info("No changes to analyze")
            return []

        total = len(diffs)
        finished = 0
        self.notifier.started(f"Analyzing {total} changed files", total=total)

        async def analyze(diff: FileDiff) -> str:
            nonlocal finished
            try:
                explanation = await self.backend.analyze_file_changes(diff.diff_text)
            except Exception:
                finished += 1
                self.notifier.file_finished(diff.path, finished, total, failed=True)
                raise
            finished += 1
            self.notifier.file_finished(diff.path, finished, total)
            return explanation

        logger.info(f"Dispatching {total} file analyses to {self.backend.name}")
        # Wait for every task, successful or not, before inspecting any result
        results = await asyncio.gather(
            *(analyze(diff) for diff in diffs), return_exceptions=True
        )

        for diff, result in zip(diffs, results):
            if isinstance(result, Exception):
                logger.error(f"Analysis of {diff.path} failed: {result}")
                raise PipelineError(str(result), path=diff.path, cause=result) from result
            if isinstance(result, BaseException):
                raise result

        self.notifier.completed(f"Analyzed {total} files")
        return [
            FileAnalysis(path=diff.path, explanation=explanation)
            for diff, explanation in zip(diffs, results)
        ]
