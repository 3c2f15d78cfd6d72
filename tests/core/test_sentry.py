"""Tests for the Sentry hook. No real Sentry SDK calls are made."""

from unittest.mock import patch

from snapshots.core.sentry import _scrub_dict, _scrub_secrets, init_sentry


class TestScrubDict:
    def test_redacts_token_values(self) -> None:
        d = {"github_token": "ghp_abc", "package": "core"}
        _scrub_dict(d)
        assert d["github_token"] == "[REDACTED]"
        assert d["package"] == "core"

    def test_recurses_into_nested_dicts(self) -> None:
        d = {"settings": {"sentry_dsn": "https://sentry.io/1"}}
        _scrub_dict(d)
        assert d["settings"]["sentry_dsn"] == "[REDACTED]"

    def test_case_insensitive_matching(self) -> None:
        d = {"SNAPSHOT_BUILDS_GITHUB_TOKEN": "x"}
        _scrub_dict(d)
        assert d["SNAPSHOT_BUILDS_GITHUB_TOKEN"] == "[REDACTED]"


class TestScrubSecrets:
    def test_redacts_credentials_in_exception_messages(self) -> None:
        event = {
            "exception": {
                "values": [
                    {"type": "GitCommandError",
                     "value": "fatal: unable to access 'https://tok123@github.com/org/core-builds.git/'"},
                ]
            }
        }
        result = _scrub_secrets(event, None)
        value = result["exception"]["values"][0]["value"]
        assert "tok123" not in value
        assert "https://***@github.com/org/core-builds.git" in value

    def test_handles_missing_keys(self) -> None:
        event: dict = {}
        assert _scrub_secrets(event, None) is event


class TestInitSentry:
    def test_no_op_when_dsn_is_empty(self) -> None:
        with patch("snapshots.core.sentry.sentry_sdk.init") as init:
            init_sentry(dsn="")
            init_sentry(dsn="   ")
        init.assert_not_called()

    def test_initialises_with_scrub_hook(self) -> None:
        with patch("snapshots.core.sentry.sentry_sdk.init") as init:
            init_sentry(dsn="https://key@sentry.example.com/1", environment="test")
        kwargs = init.call_args.kwargs
        assert kwargs["environment"] == "test"
        assert kwargs["send_default_pii"] is False
        assert kwargs["before_send"] is _scrub_secrets
