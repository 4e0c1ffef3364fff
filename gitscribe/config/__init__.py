"""
Configuration Package

Provider profiles per repository plus global prompt overrides, kept in one
JSON document (default: ~/.config/gitscribe/config.json).

Document format:
{
    "repositories": {
        "/path/to/repo": {
            "ai_provider": {
                "profiles": {"work": {"name": "work", "type": "openai", ...}},
                "active_profile": "work",
                "fallback_profile": ""
            }
        }
    },
    "ai_prompts": {"commit_message": "", "branch_name": "", "pr_content": ""}
}

The whole document is read once and rewritten in full after every change.
Changes are applied to a copy first, so a failed write leaves both the file
and the in-memory state untouched.
"""

import copy
import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gitscribe.llm.base import ConfigurationError
from gitscribe.llm.providers import ProviderType, default_base_url, is_valid_provider
from gitscribe.prompts import DEFAULT_PROMPTS, PromptSet

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration operations fail."""
    pass


class NotFoundError(ConfigError):
    """No profile with the given name exists in this repository."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"profile '{name}' not found")


class PersistenceError(ConfigError):
    """The config document could not be written; nothing was changed."""
    pass


def _type_value(provider_type) -> str:
    return provider_type.value if isinstance(provider_type, ProviderType) else str(provider_type)


@dataclass
class Profile:
    """A named backend: provider type, endpoint, key and model."""
    name: str
    type: ProviderType = ProviderType.OPENAI
    base_url: str = ""
    api_key: str = ""
    model: str = ""

    @property
    def type_name(self) -> str:
        return _type_value(self.type)

    @property
    def effective_base_url(self) -> str:
        return self.base_url or default_base_url(self.type)

    @property
    def is_usable(self) -> bool:
        """Everything a client needs is filled in."""
        return bool(self.api_key and self.effective_base_url and self.model)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": _type_value(self.type),
            "base_url": self.base_url,
            "api_key": self.api_key,
            "model": self.model,
        }

    @classmethod
    def from_dict(cls, data: dict, name: str = "") -> 'Profile':
        """Build from a persisted profile; the map key wins over a missing name."""
        raw_type = data.get("type") or ProviderType.OPENAI.value
        # Keep unknown types as-is so a rewrite doesn't silently change them
        provider_type = ProviderType(raw_type) if is_valid_provider(raw_type) else raw_type
        return cls(
            name=data.get("name") or name,
            type=provider_type,
            base_url=data.get("base_url") or "",
            api_key=data.get("api_key") or "",
            model=data.get("model") or "",
        )


@dataclass
class ProviderSelection:
    """Which profiles serve a repository. Names may point at deleted profiles."""
    active_profile: str = ""
    fallback_profile: str = ""


def default_config_path() -> Path:
    env_path = os.environ.get("GITSCRIBE_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "gitscribe" / "config.json"


class ConfigManager:
    """Owns the config document. Create one at startup and pass it around."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_config_path()
        self._data = self._load()

    # ------------------------------------------------------------------
    # Document I/O
    # ------------------------------------------------------------------

    def _load(self) -> dict:
        if not self.path.exists():
            return {"repositories": {}}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            print(f"Warning: Could not load {self.path}: {e}", file=sys.stderr)
            return {"repositories": {}}

        if not isinstance(data, dict):
            print(f"Warning: Could not load {self.path}: expected a JSON object", file=sys.stderr)
            return {"repositories": {}}
        if not isinstance(data.get("repositories"), dict):
            data["repositories"] = {}
        return data

    def reload(self) -> None:
        """Re-read the document from disk, dropping in-memory state."""
        self._data = self._load()

    def _write(self, data: dict) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            try:
                tmp_path.unlink()
            except OSError:
                pass
            raise PersistenceError(f"Could not save {self.path}: {e}") from e
        logger.debug("Saved config to %s", self.path)

    def _commit(self, draft: dict) -> None:
        """Persist the draft, then make it the current state."""
        self._write(draft)
        self._data = draft

    def _draft_provider(self, draft: dict, repo: str) -> dict:
        """The repo's ai_provider record inside a draft, created if missing."""
        repos = draft.setdefault("repositories", {})
        repo_config = repos.get(repo)
        if not isinstance(repo_config, dict):
            repo_config = repos[repo] = {}
        record = repo_config.get("ai_provider")
        if not isinstance(record, dict):
            record = repo_config["ai_provider"] = {}
        if not isinstance(record.get("profiles"), dict):
            record["profiles"] = {}
        record.setdefault("active_profile", "")
        record.setdefault("fallback_profile", "")
        return record

    def _provider(self, repo: str) -> dict:
        """Read-only view of the repo's ai_provider record ({} when absent)."""
        repo_config = self._data.get("repositories", {}).get(repo)
        if not isinstance(repo_config, dict):
            return {}
        record = repo_config.get("ai_provider")
        return record if isinstance(record, dict) else {}

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def list_profiles(self, repo: str) -> dict[str, Profile]:
        profiles = self._provider(repo).get("profiles")
        if not isinstance(profiles, dict):
            return {}
        return {
            name: Profile.from_dict(data, name=name)
            for name, data in profiles.items()
            if isinstance(data, dict)
        }

    def get_profile(self, repo: str, name: str) -> Optional[Profile]:
        return self.list_profiles(repo).get(name) if name else None

    def add_profile(self, repo: str, profile: Profile) -> None:
        """Create or replace the profile with this name."""
        self._check_profile(profile)
        draft = copy.deepcopy(self._data)
        record = self._draft_provider(draft, repo)
        record["profiles"][profile.name] = profile.to_dict()
        self._commit(draft)
        logger.debug("Saved profile %r for %s", profile.name, repo)

    def update_profile(self, repo: str, profile: Profile) -> None:
        """Overwrite an existing profile; NotFoundError if there is none."""
        self._check_profile(profile)
        if profile.name not in self.list_profiles(repo):
            raise NotFoundError(profile.name)
        draft = copy.deepcopy(self._data)
        record = self._draft_provider(draft, repo)
        record["profiles"][profile.name] = profile.to_dict()
        self._commit(draft)

    def delete_profile(self, repo: str, name: str) -> None:
        """Remove a profile and clear active/fallback pointers naming it."""
        if name not in self.list_profiles(repo):
            raise NotFoundError(name)
        draft = copy.deepcopy(self._data)
        record = self._draft_provider(draft, repo)
        del record["profiles"][name]
        if record.get("active_profile") == name:
            record["active_profile"] = ""
        if record.get("fallback_profile") == name:
            record["fallback_profile"] = ""
        self._commit(draft)
        logger.debug("Deleted profile %r for %s", name, repo)

    def _check_profile(self, profile: Profile) -> None:
        if not profile.name:
            raise ConfigurationError("name", "profile name is required")
        if not is_valid_provider(profile.type):
            raise ConfigurationError("type", f"unknown provider '{profile.type}'")

    # ------------------------------------------------------------------
    # Active / fallback selection
    # ------------------------------------------------------------------

    def get_selection(self, repo: str) -> ProviderSelection:
        record = self._provider(repo)
        return ProviderSelection(
            active_profile=record.get("active_profile") or "",
            fallback_profile=record.get("fallback_profile") or "",
        )

    def get_active(self, repo: str) -> str:
        return self.get_selection(repo).active_profile

    def get_fallback(self, repo: str) -> str:
        return self.get_selection(repo).fallback_profile

    def set_active(self, repo: str, name: str) -> None:
        """Point the repo at a profile; "" clears the pointer."""
        self._set_pointer(repo, "active_profile", name)

    def set_fallback(self, repo: str, name: str) -> None:
        """Choose the profile tried when the active one fails; "" clears it."""
        self._set_pointer(repo, "fallback_profile", name)

    def _set_pointer(self, repo: str, key: str, name: str) -> None:
        if name and name not in self.list_profiles(repo):
            raise NotFoundError(name)
        draft = copy.deepcopy(self._data)
        record = self._draft_provider(draft, repo)
        record[key] = name
        self._commit(draft)

    def get_active_profile(self, repo: str) -> Optional[Profile]:
        """The active profile, or None if unset or it no longer exists."""
        return self.get_profile(repo, self.get_active(repo))

    def get_fallback_profile(self, repo: str) -> Optional[Profile]:
        return self.get_profile(repo, self.get_fallback(repo))

    def has_usable_active_provider(self, repo: str) -> bool:
        profile = self.get_active_profile(repo)
        return profile is not None and profile.is_usable

    # ------------------------------------------------------------------
    # Prompt overrides (global)
    # ------------------------------------------------------------------

    def get_prompts(self) -> PromptSet:
        return PromptSet.from_dict(self._data.get("ai_prompts"))

    def set_prompt(self, kind: str, text: str) -> None:
        """Override one prompt globally; "" restores the built-in prompt."""
        if kind not in DEFAULT_PROMPTS:
            raise KeyError(f"Unknown prompt kind: {kind}")
        draft = copy.deepcopy(self._data)
        prompts = draft.get("ai_prompts")
        if not isinstance(prompts, dict):
            prompts = draft["ai_prompts"] = {}
        prompts[kind] = text
        self._commit(draft)

    def reset_prompts(self) -> None:
        draft = copy.deepcopy(self._data)
        draft["ai_prompts"] = {}
        self._commit(draft)


__all__ = [
    "ConfigError",
    "NotFoundError",
    "PersistenceError",
    "Profile",
    "ProviderSelection",
    "ConfigManager",
    "default_config_path",
]
