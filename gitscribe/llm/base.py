"""LLM Base Classes and Shared Code"""

import re
from dataclasses import dataclass


class LLMError(Exception):
    """Raised when LLM operations fail."""
    pass


class ConfigurationError(LLMError):
    """A required client setting is missing or invalid."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"configuration error for {field}: {message}")


class GenerationError(LLMError):
    """Base for failures while talking to a backend or reading its reply."""
    pass


class TransportError(GenerationError):
    """The request never got an HTTP response (DNS, refused, timeout)."""
    pass


class APIError(GenerationError):
    """Structured error object returned by the provider."""

    def __init__(self, error_type: str, message: str):
        self.type = error_type
        self.message = message
        super().__init__(f"API error ({error_type}): {message}")


class RequestError(GenerationError):
    """Non-200 response without a structured provider error."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        if status_code > 0:
            super().__init__(f"request failed with status {status_code}: {body}")
        else:
            super().__init__(f"request failed: {body}")


class NoResponseError(GenerationError):
    """The completion envelope carried zero choices."""
    pass


class EmptyResultError(GenerationError):
    """The model answered, but nothing usable survived cleanup."""
    pass


class ParseError(GenerationError):
    """The model reply was not the JSON shape we asked for."""
    pass


class OperationError(GenerationError):
    """Any generation failure, tagged with the operation that hit it."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: {cause}")


@dataclass
class PRContent:
    """Title and release-notes description for a pull request."""
    title: str
    description: str = ""


_BRANCH_ALLOWED = re.compile(r'[^a-z0-9-]')

MAX_BRANCH_NAME_LENGTH = 40


def strip_code_fence(content: str) -> str:
    """Trim a model reply and unwrap a surrounding markdown code fence.

    Handles ```json\\n...\\n```, ```\\n...\\n``` and the single-line
    ```json{...}``` form.
    """
    content = content.strip()
    if not content.startswith("```"):
        return content

    newline = content.find("\n")
    if newline != -1:
        content = content[newline + 1:]
    else:
        content = content.removeprefix("```json")
        content = content.removeprefix("```")

    content = content.removesuffix("```")
    return content.strip()


def clean_branch_name(raw: str) -> str:
    """Force a model reply into a git-safe kebab-case branch name.

    Returns "" when nothing usable is left.
    """
    name = raw.strip().lower()
    name = name.replace(" ", "-").replace("_", "-")
    name = _BRANCH_ALLOWED.sub("", name)
    name = name.strip("-")
    # The cut can land right after a hyphen
    return name[:MAX_BRANCH_NAME_LENGTH].strip("-")


def substitute(template: str, values: dict[str, str]) -> str:
    """Replace {key} placeholders literally, one key after another.

    No escaping and no recursion into substituted text beyond what plain
    sequential replacement does.
    """
    for key, value in values.items():
        template = template.replace("{" + key + "}", value)
    return template
