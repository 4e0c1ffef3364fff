"""Prompt Templates Package"""

from gitscribe.prompts.templates import (
    DEFAULT_BRANCH_NAME_PROMPT,
    DEFAULT_COMMIT_PROMPT,
    DEFAULT_PR_PROMPT,
    DEFAULT_PROMPTS,
    PLACEHOLDERS,
    PromptSet,
    missing_placeholders,
)

__all__ = [
    "DEFAULT_COMMIT_PROMPT",
    "DEFAULT_BRANCH_NAME_PROMPT",
    "DEFAULT_PR_PROMPT",
    "DEFAULT_PROMPTS",
    "PLACEHOLDERS",
    "PromptSet",
    "missing_placeholders",
]
