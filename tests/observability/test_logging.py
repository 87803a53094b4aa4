"""Tests for structured logging."""

import importlib
import io
import json
import logging
from collections.abc import Iterator

import pytest
import structlog

import auth_audience.observability.logging as logging_module
from auth_audience.observability.logging import (
    REDACTED_PLACEHOLDER,
    ROOT_LOGGER_NAME,
    bind_context,
    configure_logging,
    get_logger,
    sanitize_for_logging,
    unbind_context,
)


@pytest.fixture
def package_logger() -> Iterator[logging.Logger]:
    """The auth_audience logger, restored to its prior state afterwards."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    installed = logging_module._installed_handler
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
    logging_module._installed_handler = installed


class TestLibraryLogging:
    """Logging from library code without any configuration."""

    def test_import_leaves_host_logging_untouched(self) -> None:
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level

        for module in ("auth_audience", "auth_audience.plugin", "auth_audience.auth.middleware"):
            importlib.import_module(module)
        get_logger("auth_audience.tests").info("auth_audience.tests.event")

        assert root.handlers == handlers
        assert root.level == level

    def test_events_reach_stdlib_with_fields(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger=ROOT_LOGGER_NAME)

        get_logger("auth_audience.tests").info("auth_audience.chain.failed", strategy="jwt", attempts=2)

        record = caplog.records[-1]
        assert record.name == "auth_audience.tests"
        assert record.getMessage() == "auth_audience.chain.failed"
        assert record.strategy == "jwt"
        assert record.attempts == 2

    def test_credentials_are_redacted_before_emitting(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger=ROOT_LOGGER_NAME)

        get_logger("auth_audience.tests").info(
            "auth_audience.config.resolved", audience="api", key="s3cret", authorization="Bearer abc"
        )

        record = caplog.records[-1]
        assert record.audience == "api"
        assert record.key == REDACTED_PLACEHOLDER
        assert record.authorization == REDACTED_PLACEHOLDER

    def test_bound_context_is_attached(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger=ROOT_LOGGER_NAME)
        bind_context(method="GET", path="/orders")
        try:
            get_logger("auth_audience.tests").info("auth_audience.tests.event")
        finally:
            unbind_context("method", "path")

        record = caplog.records[-1]
        assert record.method == "GET"
        assert record.path == "/orders"
        assert "method" not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    """Tests for the opt-in configure_logging."""

    def test_installs_one_handler_on_package_logger_only(self, package_logger: logging.Logger) -> None:
        root_handlers = list(logging.getLogger().handlers)

        handler = configure_logging(log_level="WARNING", force=True)

        assert handler in package_logger.handlers
        assert package_logger.level == logging.WARNING
        assert package_logger.propagate is False
        assert logging.getLogger().handlers == root_handlers

    def test_second_call_is_a_no_op_unless_forced(self, package_logger: logging.Logger) -> None:
        first = configure_logging(force=True)

        assert configure_logging() is first
        second = configure_logging(force=True)

        assert second is not first
        assert first not in package_logger.handlers
        assert package_logger.handlers.count(second) == 1

    def test_environment_selects_level(
        self, package_logger: logging.Logger, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AUTH_AUDIENCE_LOG_LEVEL", "debug")

        configure_logging(force=True)

        assert package_logger.level == logging.DEBUG

    def test_json_output_carries_service_and_redacts(self, package_logger: logging.Logger) -> None:
        handler = configure_logging(log_format="json", service_name="orders-api", force=True)
        stream = io.StringIO()
        assert isinstance(handler, logging.StreamHandler)
        handler.setStream(stream)

        get_logger("auth_audience.tests").info("auth_audience.verify.failed", key="s3cret", error="expired")

        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["event"] == "auth_audience.verify.failed"
        assert line["service"] == "orders-api"
        assert line["key"] == REDACTED_PLACEHOLDER
        assert line["error"] == "expired"
        assert line["level"] == "info"


class TestSanitizeForLogging:
    """Tests for sanitize_for_logging."""

    def test_redacts_keys_and_tokens(self) -> None:
        data = {"audience": "api", "key": "s3cret", "access_token": "abc", "jwt": {"sub": "u"}}

        assert sanitize_for_logging(data) == {
            "audience": "api",
            "key": REDACTED_PLACEHOLDER,
            "access_token": REDACTED_PLACEHOLDER,
            "jwt": REDACTED_PLACEHOLDER,
        }

    def test_handles_nested_structures(self) -> None:
        data = {
            "domains": {"field": {"key": "k", "issuer": "i"}},
            "rules": [{"secret": "x"}, "y"],
            "audience": ("a", "b"),
        }

        assert sanitize_for_logging(data) == {
            "domains": {"field": {"key": REDACTED_PLACEHOLDER, "issuer": "i"}},
            "rules": [{"secret": REDACTED_PLACEHOLDER}, "y"],
            "audience": ("a", "b"),
        }

    def test_empty_input(self) -> None:
        assert sanitize_for_logging({}) == {}
