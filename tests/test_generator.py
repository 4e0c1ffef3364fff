"""
Tests for the Generator: active/fallback resolution and failover.

Run with:
    pytest tests/test_generator.py -v
"""

import pytest

from gitscribe.config import Profile
from gitscribe.generator import (
    FailoverError,
    Generator,
    NoProviderError,
    Operation,
    SERVED_BY_ACTIVE,
    SERVED_BY_FALLBACK,
)
from gitscribe.llm import (
    ConfigurationError,
    EmptyResultError,
    OperationError,
    PRContent,
    ProviderType,
    TransportError,
)

REPO = "/test/repo"


class FakeClient:
    """Stands in for OpenAICompatClient; records calls, replays scripted results."""

    def __init__(self, profile, script, calls):
        self.profile = profile
        self._script = script
        self._calls = calls

    def _result(self, operation, *args):
        self._calls.append((self.profile.name, operation, args))
        outcome = self._script[self.profile.name]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def generate_commit_message(self, status, diff, branch, log, custom_prompt=""):
        return self._result("commit_message", status, diff, branch, log, custom_prompt)

    def generate_branch_name(self, diff, custom_prompt=""):
        return self._result("branch_name", diff, custom_prompt)

    def generate_pr_content(self, diff, custom_prompt=""):
        return self._result("pr_content", diff, custom_prompt)


@pytest.fixture
def calls():
    return []


@pytest.fixture
def fake_generator(manager, calls):
    """Generator whose clients answer from a per-profile script."""
    def _make(script):
        return Generator(manager, client_factory=lambda profile: FakeClient(profile, script, calls))
    return _make


def failure(message="boom"):
    return OperationError("generate commit message", EmptyResultError(message))


# ---------------------------------------------------------------------------
# Resolution and failover with fake clients
# ---------------------------------------------------------------------------

class TestFailover:

    def test_active_serves(self, manager, make_profile, fake_generator, calls):
        manager.add_profile(REPO, make_profile("main"))
        manager.set_active(REPO, "main")

        result = fake_generator({"main": "feat: a"}).commit_message(REPO, diff="d")
        assert result.value == "feat: a"
        assert result.served_by == SERVED_BY_ACTIVE
        assert result.profile_name == "main"
        assert not result.from_fallback
        assert [c[0] for c in calls] == ["main"]

    def test_fallback_after_active_failure(self, manager, make_profile, fake_generator, calls):
        manager.add_profile(REPO, make_profile("main"))
        manager.add_profile(REPO, make_profile("backup"))
        manager.set_active(REPO, "main")
        manager.set_fallback(REPO, "backup")

        result = fake_generator({"main": failure(), "backup": "fix: b"}).commit_message(REPO, diff="d")
        assert result.value == "fix: b"
        assert result.served_by == SERVED_BY_FALLBACK
        assert result.from_fallback
        assert [c[0] for c in calls] == ["main", "backup"]

    def test_fallback_receives_same_inputs(self, manager, make_profile, fake_generator, calls):
        manager.add_profile(REPO, make_profile("main"))
        manager.add_profile(REPO, make_profile("backup"))
        manager.set_active(REPO, "main")
        manager.set_fallback(REPO, "backup")

        fake_generator({"main": failure(), "backup": "name"}).branch_name(REPO, diff="the diff")
        assert calls[0][1:] == calls[1][1:]

    def test_unusable_active_goes_straight_to_fallback(self, manager, make_profile, fake_generator, calls):
        manager.add_profile(REPO, make_profile("main", api_key=""))
        manager.add_profile(REPO, make_profile("backup"))
        manager.set_active(REPO, "main")
        manager.set_fallback(REPO, "backup")

        result = fake_generator({"main": "never", "backup": "fix: b"}).commit_message(REPO)
        assert result.served_by == SERVED_BY_FALLBACK
        assert [c[0] for c in calls] == ["backup"]

    def test_no_active_uses_fallback(self, manager, make_profile, fake_generator):
        manager.add_profile(REPO, make_profile("backup"))
        manager.set_fallback(REPO, "backup")

        result = fake_generator({"backup": "x"}).branch_name(REPO, diff="d")
        assert result.served_by == SERVED_BY_FALLBACK

    def test_both_fail(self, manager, make_profile, fake_generator):
        manager.add_profile(REPO, make_profile("main"))
        manager.add_profile(REPO, make_profile("backup"))
        manager.set_active(REPO, "main")
        manager.set_fallback(REPO, "backup")
        active_err, fallback_err = failure("first"), failure("second")

        with pytest.raises(FailoverError) as exc:
            fake_generator({"main": active_err, "backup": fallback_err}).commit_message(REPO)
        assert exc.value.active_error is active_err
        assert exc.value.fallback_error is fallback_err
        assert "first" in str(exc.value)
        assert "second" in str(exc.value)

    def test_active_fails_without_fallback(self, manager, make_profile, fake_generator):
        manager.add_profile(REPO, make_profile("main"))
        manager.set_active(REPO, "main")

        with pytest.raises(FailoverError) as exc:
            fake_generator({"main": failure()}).commit_message(REPO)
        assert exc.value.fallback_error is None
        assert "no usable fallback" in str(exc.value)

    def test_only_one_hop(self, manager, make_profile, fake_generator, calls):
        manager.add_profile(REPO, make_profile("main"))
        manager.add_profile(REPO, make_profile("backup"))
        manager.set_active(REPO, "main")
        manager.set_fallback(REPO, "backup")

        with pytest.raises(FailoverError):
            fake_generator({"main": failure(), "backup": failure()}).commit_message(REPO)
        assert len(calls) == 2

    def test_configuration_error_is_not_swallowed(self, manager, make_profile):
        manager.add_profile(REPO, make_profile("main"))
        manager.add_profile(REPO, make_profile("backup"))
        manager.set_active(REPO, "main")
        manager.set_fallback(REPO, "backup")

        def broken_factory(profile):
            raise ConfigurationError("model", "model is required")

        with pytest.raises(ConfigurationError):
            Generator(manager, client_factory=broken_factory).commit_message(REPO)


class TestNoProvider:

    def test_nothing_configured(self, manager, fake_generator, calls):
        with pytest.raises(NoProviderError):
            fake_generator({}).commit_message(REPO)
        assert calls == []

    def test_neither_usable(self, manager, make_profile, fake_generator, calls):
        manager.add_profile(REPO, make_profile("main", api_key=""))
        manager.add_profile(REPO, make_profile("backup", type="custom", base_url=""))
        manager.set_active(REPO, "main")
        manager.set_fallback(REPO, "backup")

        with pytest.raises(NoProviderError) as exc:
            fake_generator({"main": "x", "backup": "y"}).pr_content(REPO, diff="d")
        assert "No AI provider configured" in str(exc.value)
        assert calls == []

    def test_dangling_pointers(self, manager, make_profile, fake_generator):
        manager.add_profile(REPO, make_profile("main"))
        manager.set_active(REPO, "main")
        manager.delete_profile(REPO, "main")

        with pytest.raises(NoProviderError):
            fake_generator({}).commit_message(REPO)

    def test_reevaluates_config_each_call(self, manager, make_profile, fake_generator):
        generator = fake_generator({"main": "feat: later"})
        with pytest.raises(NoProviderError):
            generator.commit_message(REPO)

        manager.add_profile(REPO, make_profile("main"))
        manager.set_active(REPO, "main")
        assert generator.commit_message(REPO).value == "feat: later"


# ---------------------------------------------------------------------------
# Dispatch and prompt overrides
# ---------------------------------------------------------------------------

class TestDispatch:

    @pytest.fixture(autouse=True)
    def active(self, manager, make_profile):
        manager.add_profile(REPO, make_profile("main"))
        manager.set_active(REPO, "main")

    def test_commit_inputs_in_order(self, fake_generator, calls):
        fake_generator({"main": "x"}).commit_message(REPO, status="S", diff="D", branch="B", log="L")
        assert calls[0][1] == "commit_message"
        assert calls[0][2] == ("S", "D", "B", "L", "")

    @pytest.mark.parametrize("operation", list(Operation))
    def test_generate_accepts_string_operation(self, fake_generator, calls, operation):
        fake_generator({"main": "x"}).generate(REPO, operation.value, {"diff": "D"})
        assert calls[0][1] == operation.value

    def test_unknown_operation(self, fake_generator):
        with pytest.raises(ValueError):
            fake_generator({"main": "x"}).generate(REPO, "poem", {})

    def test_global_prompt_override_is_used(self, manager, fake_generator, calls):
        manager.set_prompt("branch_name", "Name it: {diff}")
        fake_generator({"main": "x"}).branch_name(REPO, diff="D")
        assert calls[0][2] == ("D", "Name it: {diff}")

    def test_caller_prompt_beats_override(self, manager, fake_generator, calls):
        manager.set_prompt("pr_content", "global {diff}")
        fake_generator({"main": PRContent("t")}).generate(
            REPO, Operation.PR_CONTENT, {"diff": "D", "custom_prompt": "mine {diff}"})
        assert calls[0][2] == ("D", "mine {diff}")


# ---------------------------------------------------------------------------
# End to end against local HTTP backends
# ---------------------------------------------------------------------------

class TestEndToEnd:

    def test_commit_message_from_active(self, manager, backend):
        manager.add_profile(REPO, Profile(
            name="p1", type=ProviderType.OPENAI, base_url=backend.url, api_key="sk-x", model="gpt-4"))
        manager.set_active(REPO, "p1")
        backend.reply("  feat: add login  ")

        result = Generator(manager).commit_message(REPO, status="M a.py", diff="+x", branch="main", log="")
        assert result.value == "feat: add login"
        assert result.served_by == SERVED_BY_ACTIVE
        assert backend.requests[0]["headers"]["authorization"] == "Bearer sk-x"

    def test_unreachable_active_falls_back(self, manager, backend, dead_url, monkeypatch):
        monkeypatch.setenv("GITSCRIBE_TIMEOUT", "2")
        manager.add_profile(REPO, Profile(
            name="down", type=ProviderType.CUSTOM, base_url=dead_url, api_key="k", model="m"))
        manager.add_profile(REPO, Profile(
            name="up", type=ProviderType.CUSTOM, base_url=backend.url, api_key="k2", model="m2"))
        manager.set_active(REPO, "down")
        manager.set_fallback(REPO, "up")
        backend.reply("Fix Login_Bug!")

        result = Generator(manager).branch_name(REPO, diff="d")
        assert result.value == "fix-login-bug"
        assert result.served_by == SERVED_BY_FALLBACK
        assert result.profile_name == "up"

    def test_base_url_without_scheme_falls_back(self, manager, backend):
        manager.add_profile(REPO, Profile(
            name="bad", type=ProviderType.CUSTOM, base_url="api.example.com/v1", api_key="k", model="m"))
        manager.add_profile(REPO, Profile(
            name="good", type=ProviderType.CUSTOM, base_url=backend.url, api_key="k", model="m"))
        manager.set_active(REPO, "bad")
        manager.set_fallback(REPO, "good")
        backend.reply("fix: handle missing scheme")

        result = Generator(manager).commit_message(REPO, diff="d")
        assert result.value == "fix: handle missing scheme"
        assert result.served_by == SERVED_BY_FALLBACK

    def test_timeout_on_active_falls_back(self, manager, backend, silent_url, monkeypatch):
        monkeypatch.setenv("GITSCRIBE_TIMEOUT", "0.5")
        manager.add_profile(REPO, Profile(
            name="slow", type=ProviderType.CUSTOM, base_url=silent_url, api_key="k", model="m"))
        manager.add_profile(REPO, Profile(
            name="fast", type=ProviderType.CUSTOM, base_url=backend.url, api_key="k", model="m"))
        manager.set_active(REPO, "slow")
        manager.set_fallback(REPO, "fast")
        backend.reply("perf-cache")

        result = Generator(manager).branch_name(REPO, diff="d")
        assert result.value == "perf-cache"
        assert result.served_by == SERVED_BY_FALLBACK
        assert result.profile_name == "fast"

    def test_timeout_without_fallback_is_failover_error(self, manager, silent_url, monkeypatch):
        monkeypatch.setenv("GITSCRIBE_TIMEOUT", "0.5")
        manager.add_profile(REPO, Profile(
            name="slow", type=ProviderType.CUSTOM, base_url=silent_url, api_key="k", model="m"))
        manager.set_active(REPO, "slow")

        with pytest.raises(FailoverError) as exc:
            Generator(manager).commit_message(REPO, diff="d")
        assert isinstance(exc.value.active_error.cause, TransportError)

    def test_api_error_on_active_falls_back(self, manager, backend, second_backend):
        manager.add_profile(REPO, Profile(
            name="a", type=ProviderType.CUSTOM, base_url=backend.url, api_key="k", model="m"))
        manager.add_profile(REPO, Profile(
            name="b", type=ProviderType.CUSTOM, base_url=second_backend.url, api_key="k", model="m"))
        manager.set_active(REPO, "a")
        manager.set_fallback(REPO, "b")
        backend.respond(429, {"error": {"type": "rate_limit", "message": "slow down"}})
        second_backend.reply('```json\n{"title": "Add export", "description": ""}\n```')

        result = Generator(manager).pr_content(REPO, diff="d")
        assert result.value == PRContent("Add export", "")
        assert result.from_fallback
