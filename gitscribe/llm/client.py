"""OpenAI-compatible Chat Completions Client"""

import json
import http.client
import logging
import math
import os
import socket
import sys
import urllib.request
import urllib.error

from gitscribe.llm.base import (
    APIError,
    ConfigurationError,
    EmptyResultError,
    GenerationError,
    NoResponseError,
    OperationError,
    ParseError,
    PRContent,
    RequestError,
    TransportError,
    clean_branch_name,
    strip_code_fence,
    substitute,
)
from gitscribe.prompts import DEFAULT_BRANCH_NAME_PROMPT, DEFAULT_COMMIT_PROMPT, DEFAULT_PR_PROMPT

logger = logging.getLogger(__name__)


class OpenAICompatClient:
    """Client for OpenAI, Azure OpenAI and any /chat/completions endpoint.

    One synchronous request per generation call. Replies are trimmed and
    unwrapped from markdown fences before each operation parses them.
    """

    TEMPERATURE = 0.3  # Low temperature for deterministic output
    DEFAULT_TIMEOUT = 30
    COMMIT_DIFF_LIMIT = 5000
    BRANCH_DIFF_LIMIT = 3000
    PR_DIFF_LIMIT = 5000
    TEST_PROMPT = "Respond with exactly: OK"

    def __init__(self, api_key: str, base_url: str, model: str, timeout: float | None = None):
        if not api_key:
            raise ConfigurationError("api_key", "API key is required")
        if not base_url:
            raise ConfigurationError("base_url", "base URL is required")
        if not model:
            raise ConfigurationError("model", "model is required")

        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout if timeout is not None else self._timeout_from_env()

    def _timeout_from_env(self) -> float:
        """GITSCRIBE_TIMEOUT in seconds; invalid values fall back to the default."""
        raw = os.environ.get("GITSCRIBE_TIMEOUT")
        if not raw:
            return float(self.DEFAULT_TIMEOUT)
        try:
            timeout = float(raw)
        except ValueError:
            timeout = 0
        if not math.isfinite(timeout) or timeout <= 0:
            print(f"Warning: Invalid GITSCRIBE_TIMEOUT '{raw}', using {self.DEFAULT_TIMEOUT}", file=sys.stderr)
            return float(self.DEFAULT_TIMEOUT)
        return timeout

    @property
    def name(self) -> str:
        return f"{self.model} @ {self.base_url}"

    def generate_commit_message(self, status: str, diff: str, branch: str, log: str,
                                custom_prompt: str = "") -> str:
        """Generate a one-line conventional commit subject."""
        # Raw character cut, keeps prompts under provider token limits
        diff = diff[:self.COMMIT_DIFF_LIMIT]
        prompt = substitute(custom_prompt or DEFAULT_COMMIT_PROMPT, {
            "status": status,
            "diff": diff,
            "branch": branch,
            "log": log,
        })

        try:
            subject = self._call_api(prompt).strip()
            if not subject:
                raise EmptyResultError("AI generated empty commit subject")
        except GenerationError as e:
            raise OperationError("generate commit message", e) from e
        return subject

    def generate_branch_name(self, diff: str, custom_prompt: str = "") -> str:
        """Generate a kebab-case branch name of at most 40 characters."""
        diff = diff[:self.BRANCH_DIFF_LIMIT]
        prompt = substitute(custom_prompt or DEFAULT_BRANCH_NAME_PROMPT, {"diff": diff})

        try:
            name = clean_branch_name(self._call_api(prompt))
            if not name:
                raise EmptyResultError("AI generated invalid branch name")
        except GenerationError as e:
            raise OperationError("generate branch name", e) from e
        return name

    def generate_pr_content(self, diff: str, custom_prompt: str = "") -> PRContent:
        """Generate a PR title and markdown description from a JSON reply."""
        diff = diff[:self.PR_DIFF_LIMIT]
        prompt = substitute(custom_prompt or DEFAULT_PR_PROMPT, {"diff": diff})

        try:
            content = self._parse_pr_content(self._call_api(prompt))
        except GenerationError as e:
            raise OperationError("generate PR content", e) from e
        return content

    def test_connection(self) -> None:
        """Make a tiny request to check the endpoint and credentials."""
        try:
            self._call_api(self.TEST_PROMPT)
        except GenerationError as e:
            raise OperationError("test connection", e) from e

    def _parse_pr_content(self, reply: str) -> PRContent:
        try:
            data = json.loads(reply)
        except json.JSONDecodeError as e:
            raise ParseError(f"failed to parse AI response: {e}") from e

        if not isinstance(data, dict):
            raise ParseError("failed to parse AI response: expected a JSON object")
        # null reads as a missing field
        title = data.get("title")
        title = "" if title is None else title
        description = data.get("description")
        description = "" if description is None else description
        if not isinstance(title, str) or not isinstance(description, str):
            raise ParseError("failed to parse AI response: title and description must be strings")

        title = title.strip()
        if not title:
            raise EmptyResultError("AI generated empty PR title")
        return PRContent(title=title, description=description.strip())

    def _send(self, payload: dict) -> tuple[int, str]:
        """POST the payload; return (status, body) for any HTTP response."""
        url = f"{self.base_url}/chat/completions"
        data = json.dumps(payload).encode('utf-8')
        logger.debug("POST %s model=%s", url, self.model)

        try:
            req = urllib.request.Request(
                url,
                data=data,
                method="POST",
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                }
            )
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return response.status, response.read().decode('utf-8', errors='replace')
        except urllib.error.HTTPError as e:
            # HTTPError must come before URLError (it's a subclass)
            try:
                body = e.read().decode('utf-8', errors='replace')
            finally:
                e.close()
            return e.code, body
        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                raise TransportError(f"API request failed: timed out after {self.timeout}s") from e
            raise TransportError(f"API request failed: {e.reason}") from e
        except (socket.timeout, TimeoutError) as e:
            raise TransportError(f"API request failed: timed out after {self.timeout}s") from e
        except (http.client.HTTPException, OSError) as e:
            raise TransportError(f"API request failed: {e}") from e
        except ValueError as e:
            # Malformed URL, e.g. a base URL without a scheme
            raise TransportError(f"failed to create request: {e}") from e

    def _call_api(self, prompt: str) -> str:
        """Run one chat completion and return the normalized reply text."""
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.TEMPERATURE,
        }
        status, body = self._send(payload)
        logger.debug("Response status=%s bytes=%d", status, len(body))

        try:
            envelope = json.loads(body)
        except json.JSONDecodeError:
            raise RequestError(status, body)
        if not isinstance(envelope, dict):
            raise RequestError(status, body)

        # A structured provider error wins over whatever the status says
        error = envelope.get("error")
        if isinstance(error, dict):
            raise APIError(str(error.get("type") or ""), str(error.get("message") or ""))

        if status != 200:
            raise RequestError(status, body)

        choices = envelope.get("choices")
        if not isinstance(choices, list) or not choices:
            raise NoResponseError("no response from API")

        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        return strip_code_fence(content if isinstance(content, str) else "")
