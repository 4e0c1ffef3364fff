"""Git Analyzer - Collect the repository context that prompts are built from."""

import subprocess
from dataclasses import dataclass


@dataclass
class RepoContext:
    """Raw git text handed to the generation operations."""
    status: str = ""
    diff: str = ""
    branch: str = ""
    log: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.diff.strip()


class GitError(Exception):
    """Raised when git operations fail."""
    pass


class GitAnalyzer:
    """Reads status, diffs, branch and history from one repository."""

    LOG_LIMIT = 10

    def __init__(self, path: str = "."):
        self.path = path
        self.root = self._find_root()

    def _run_git(self, *args: str) -> str:
        """Run a git command in the repository and return stdout."""
        try:
            result = subprocess.run(
                ['git', '-C', self.path, *args],
                capture_output=True,
                text=True,
                check=True,
                encoding='utf-8',
                errors='replace'
            )
            return result.stdout
        except subprocess.CalledProcessError as e:
            raise GitError(f"Git command failed: git {' '.join(args)}\n{e.stderr}")
        except FileNotFoundError:
            raise GitError("Git is not installed or not in PATH")

    def _find_root(self) -> str:
        """Repository top level; used as the config context key."""
        try:
            return self._run_git('rev-parse', '--show-toplevel').strip()
        except GitError as e:
            if "not installed" in str(e):
                raise
            raise GitError("Not inside a git repository")

    def current_branch(self) -> str:
        return self._run_git('branch', '--show-current').strip()

    def status(self) -> str:
        return self._run_git('status', '--short')

    def working_diff(self) -> str:
        """Staged and unstaged changes, labelled by section."""
        sections = []
        staged = self._run_git('diff', '--cached')
        if staged:
            sections.append(f"=== STAGED CHANGES ===\n{staged}")
        unstaged = self._run_git('diff')
        if unstaged:
            sections.append(f"=== UNSTAGED CHANGES ===\n{unstaged}")
        return "\n".join(sections)

    def diff_from(self, base: str) -> str:
        """Everything on this branch that isn't on base."""
        return self._run_git('diff', base)

    def recent_log(self) -> str:
        try:
            return self._run_git('log', '--oneline', f'-{self.LOG_LIMIT}')
        except GitError:
            # Fresh repository without commits
            return ""

    def commit_context(self) -> RepoContext:
        return RepoContext(
            status=self.status(),
            diff=self.working_diff(),
            branch=self.current_branch(),
            log=self.recent_log(),
        )
