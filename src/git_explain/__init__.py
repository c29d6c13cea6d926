"""git-explain - AI explanations of the changes in a git repository.

Library API:

    from git_explain import ModelManager, Session, open_repository

    repo = open_repository(".")
    backend = ModelManager().list_available_backends()[0].build()
    session = Session(backend=backend, repository_path=repo.path)

    analyses = await session.analyze_changes(repo)
    session = session.with_replaced_backend(other_backend)
"""

__version__ = "0.1.0"

from git_explain.ai.backends import AnalysisBackend, LiteLLMBackend
from git_explain.ai_models import BackendDescriptor, ModelManager
from git_explain.config import Config
from git_explain.exceptions import (
    ConfigurationError,
    GenerationError,
    GitExplainError,
    InputCancelled,
    PipelineError,
    RepositoryError,
)
from git_explain.git import Repository, get_file_diffs, open_repository
from git_explain.models import ContributorStats, FileAnalysis, FileDiff
from git_explain.pipeline import ChangeAnalysisPipeline
from git_explain.session import Session

__all__ = [
    # Core API
    "Session",
    "ChangeAnalysisPipeline",
    "AnalysisBackend",
    "LiteLLMBackend",
    "ModelManager",
    "BackendDescriptor",
    "Repository",
    "open_repository",
    "get_file_diffs",
    # Models
    "FileDiff",
    "FileAnalysis",
    "ContributorStats",
    # Exceptions
    "GitExplainError",
    "RepositoryError",
    "GenerationError",
    "PipelineError",
    "InputCancelled",
    "ConfigurationError",
    "Config",
    "__version__",
]
