"""Git Operations Package"""

from gitscribe.git.analyzer import GitAnalyzer, GitError, RepoContext

__all__ = [
    "GitAnalyzer",
    "GitError",
    "RepoContext",
]
