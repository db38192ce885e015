"""File rewriting module."""

from .rewriter import (
    COMMIT_STRATEGIES,
    ON_ERROR_MODES,
    CommitStrategy,
    FileRewriter,
    RewriteResult,
    RewriteSummary,
    rewrite_files,
    rewrite_line,
    rewrite_lines,
)

__all__ = [
    'COMMIT_STRATEGIES',
    'CommitStrategy',
    'FileRewriter',
    'ON_ERROR_MODES',
    'RewriteResult',
    'RewriteSummary',
    'rewrite_files',
    'rewrite_line',
    'rewrite_lines',
]
