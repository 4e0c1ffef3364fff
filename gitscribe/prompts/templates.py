"""Prompt Templates - built-in prompts and user overrides per operation.

Placeholders are plain ``{name}`` markers replaced literally:
commit prompts use {status}, {diff}, {branch} and {log}; branch name and
PR prompts use {diff}.
"""

from dataclasses import dataclass, asdict, fields


DEFAULT_COMMIT_PROMPT = """## Context

- Current git status: {status}
- Current git diff (staged and unstaged changes): {diff}
- Current branch: {branch}
- Recent commits: {log}

## Your task

Based on the above changes, generate a one-line conventional commit message following the Conventional Commits specification.

Return ONLY the commit message text (no explanation, no markdown formatting, no extra text).

Format: <type>: <description>

Examples:
- feat: add user authentication system
- fix: resolve database connection timeout
- refactor: simplify error handling logic
- docs: update API documentation
- chore: bump dependencies to latest versions

Requirements:
- Single line only
- Start with type (feat, fix, refactor, docs, chore, style, test, perf, ci, build, revert)
- Concise description in lowercase
- No period at the end"""

DEFAULT_BRANCH_NAME_PROMPT = """Generate a short, semantic git branch name for these changes.

Return ONLY the branch name (lowercase, kebab-case, max 40 characters). No explanations or markdown.

Examples: fix-login-bug, feat-dark-theme, refactor-api-client

Git diff:
{diff}"""

DEFAULT_PR_PROMPT = """Generate a pull request title and release notes style description for these changes.

Return ONLY valid JSON in this format (no markdown, no extra text):
{"title": "...", "description": "..."}

Requirements:
- title: MUST be 72 characters or less. Present tense, user-friendly summary.
- description: Release notes in markdown format following the structure below.

Description format (markdown):
## What's Changed

### Security & Fixes
- Brief user-facing description

### Improvements
- Enhancement description

Guidelines:
- Use simple, user-friendly language
- Keep each item to ONE short line (max ~80 characters)
- Only include categories that have relevant changes
- Focus on user-facing benefits, not implementation details

Example JSON response:
{"title": "Add dark mode support and improve performance", "description": "## What's Changed\\n\\n### Improvements\\n- New dark mode theme with automatic system preference detection"}

Git diff:
{diff}"""

DEFAULT_PROMPTS = {
    'commit_message': DEFAULT_COMMIT_PROMPT,
    'branch_name': DEFAULT_BRANCH_NAME_PROMPT,
    'pr_content': DEFAULT_PR_PROMPT,
}

# Placeholders each prompt is expected to contain
PLACEHOLDERS = {
    'commit_message': ("{status}", "{diff}", "{branch}", "{log}"),
    'branch_name': ("{diff}",),
    'pr_content': ("{diff}",),
}


@dataclass
class PromptSet:
    """Global prompt overrides. An empty field means the built-in prompt."""
    commit_message: str = ""
    branch_name: str = ""
    pr_content: str = ""

    def get(self, kind: str) -> str:
        """Effective prompt for an operation: override, else built-in."""
        if kind not in DEFAULT_PROMPTS:
            raise KeyError(f"Unknown prompt kind: {kind}")
        return getattr(self, kind) or DEFAULT_PROMPTS[kind]

    def override(self, kind: str) -> str:
        """The raw override for an operation ("" when using the default)."""
        if kind not in DEFAULT_PROMPTS:
            raise KeyError(f"Unknown prompt kind: {kind}")
        return getattr(self, kind)

    def is_default(self, kind: str) -> bool:
        return not self.override(kind)

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v}

    @classmethod
    def from_dict(cls, data: dict | None) -> 'PromptSet':
        """Build from the persisted ``ai_prompts`` object, ignoring unknown keys."""
        if not isinstance(data, dict):
            return cls()
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid_keys and isinstance(v, str)})


def missing_placeholders(kind: str, template: str) -> list[str]:
    """Placeholders the template leaves out; used to warn, never to reject."""
    return [p for p in PLACEHOLDERS[kind] if p not in template]
