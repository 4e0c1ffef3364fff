"""
Generator

Runs a generation operation against a repository's active profile and fails
over once to its fallback profile.

    manager = ConfigManager()
    generator = Generator(manager)
    result = generator.commit_message(repo, status=..., diff=..., branch=..., log=...)
    print(result.value, result.served_by)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from gitscribe.config import ConfigManager, Profile
from gitscribe.llm import GenerationError, LLMError, OpenAICompatClient, get_client

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    COMMIT_MESSAGE = "commit_message"
    BRANCH_NAME = "branch_name"
    PR_CONTENT = "pr_content"


SERVED_BY_ACTIVE = "active"
SERVED_BY_FALLBACK = "fallback"


class NoProviderError(LLMError):
    """Neither the active nor the fallback profile is usable."""

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(
            f"No AI provider configured for {repo}. "
            "Add a profile with an API key, base URL and model, then select it:\n"
            "  gitscribe profile add NAME --api-key KEY --model MODEL\n"
            "  gitscribe profile use NAME"
        )


class FailoverError(LLMError):
    """Every usable profile was tried and failed."""

    def __init__(self, active_error: Optional[Exception], fallback_error: Optional[Exception]):
        self.active_error = active_error
        self.fallback_error = fallback_error
        parts = []
        if active_error is not None:
            parts.append(f"active profile failed: {active_error}")
        else:
            parts.append("active profile not usable")
        if fallback_error is not None:
            parts.append(f"fallback profile failed: {fallback_error}")
        else:
            parts.append("no usable fallback profile")
        super().__init__("; ".join(parts))


@dataclass
class GenerationResult:
    """Generated value plus which profile produced it."""
    value: Any
    served_by: str
    profile_name: str

    @property
    def from_fallback(self) -> bool:
        return self.served_by == SERVED_BY_FALLBACK


ClientFactory = Callable[[Profile], OpenAICompatClient]


def client_for_profile(profile: Profile) -> OpenAICompatClient:
    return get_client(
        api_key=profile.api_key,
        base_url=profile.effective_base_url,
        model=profile.model,
    )


class Generator:
    """Resolves profiles from a ConfigManager and calls the backend."""

    def __init__(self, manager: ConfigManager, client_factory: ClientFactory = client_for_profile):
        self.manager = manager
        self.client_factory = client_factory

    def generate(self, repo: str, operation, inputs: Mapping[str, str]) -> GenerationResult:
        """Run one operation: active profile first, then the fallback once.

        Usability is re-read from the current config on every call.
        """
        operation = Operation(operation)
        active = self.manager.get_active_profile(repo)
        active_error = None

        if active is not None and active.is_usable:
            try:
                value = self._run(active, operation, inputs)
                return GenerationResult(value, SERVED_BY_ACTIVE, active.name)
            except GenerationError as e:
                active_error = e
                logger.warning("Active profile %r failed, trying fallback: %s", active.name, e)
        else:
            logger.debug("Active profile for %s missing or not usable", repo)

        fallback = self.manager.get_fallback_profile(repo)
        if fallback is None or not fallback.is_usable:
            if active_error is None:
                raise NoProviderError(repo)
            raise FailoverError(active_error, None) from active_error

        try:
            value = self._run(fallback, operation, inputs)
        except GenerationError as e:
            raise FailoverError(active_error, e) from e
        logger.info("Served by fallback profile %r", fallback.name)
        return GenerationResult(value, SERVED_BY_FALLBACK, fallback.name)

    def _run(self, profile: Profile, operation: Operation, inputs: Mapping[str, str]):
        client = self.client_factory(profile)
        custom_prompt = inputs.get("custom_prompt")
        if custom_prompt is None:
            # Overrides only; the client falls back to its built-in prompt on ""
            custom_prompt = self.manager.get_prompts().override(operation.value)

        if operation is Operation.COMMIT_MESSAGE:
            return client.generate_commit_message(
                inputs.get("status", ""),
                inputs.get("diff", ""),
                inputs.get("branch", ""),
                inputs.get("log", ""),
                custom_prompt,
            )
        if operation is Operation.BRANCH_NAME:
            return client.generate_branch_name(inputs.get("diff", ""), custom_prompt)
        return client.generate_pr_content(inputs.get("diff", ""), custom_prompt)

    # Convenience wrappers

    def commit_message(self, repo: str, status: str = "", diff: str = "", branch: str = "",
                       log: str = "") -> GenerationResult:
        return self.generate(repo, Operation.COMMIT_MESSAGE,
                             {"status": status, "diff": diff, "branch": branch, "log": log})

    def branch_name(self, repo: str, diff: str) -> GenerationResult:
        return self.generate(repo, Operation.BRANCH_NAME, {"diff": diff})

    def pr_content(self, repo: str, diff: str) -> GenerationResult:
        """Result value is a PRContent."""
        return self.generate(repo, Operation.PR_CONTENT, {"diff": diff})


__all__ = [
    "Operation",
    "Generator",
    "GenerationResult",
    "NoProviderError",
    "FailoverError",
    "client_for_profile",
    "SERVED_BY_ACTIVE",
    "SERVED_BY_FALLBACK",
]
