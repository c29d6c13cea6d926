"""Test the public library API imports and basic functionality."""

import pytest


class TestPublicAPIImports:
    """Test that the public API can be imported correctly."""

    def test_basic_import(self):
        import git_explain

        assert hasattr(git_explain, "__version__")
        assert hasattr(git_explain, "__all__")

    def test_all_exports_resolve(self):
        import git_explain

        for name in git_explain.__all__:
            assert hasattr(git_explain, name), name

    def test_exception_hierarchy(self):
        from git_explain import (
            GenerationError,
            GitExplainError,
            InputCancelled,
            PipelineError,
            RepositoryError,
        )

        for error in (GenerationError, InputCancelled, PipelineError, RepositoryError):
            assert issubclass(error, GitExplainError)

    def test_pipeline_error_message(self):
        from git_explain import GenerationError, PipelineError

        cause = GenerationError("rate limited")
        error = PipelineError("rate limited", path="b.txt", cause=cause)

        assert str(error) == "b.txt: rate limited"
        assert error.cause is cause
        assert str(PipelineError("no diff")) == "no diff"

    def test_analysis_backend_is_abstract(self):
        from git_explain import AnalysisBackend

        with pytest.raises(TypeError):
            AnalysisBackend()
