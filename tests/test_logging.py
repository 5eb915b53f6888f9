# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for tc3sign/logging.py."""

import io
import logging

from tc3sign.config import Credentials
from tc3sign.logging import SecretFilter, configure_logging


def _record(msg: str, args: tuple = ()) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=args,
        exc_info=None,
    )


class TestSecretFilter:
    """Tests for SecretFilter class."""

    def test_filter_returns_true(self) -> None:
        """Filter should always return True (never suppress records)."""
        assert SecretFilter().filter(_record("test message")) is True

    def test_no_secrets_no_redaction(self) -> None:
        """Without registered secrets, messages pass through unchanged."""
        record = _record("signing with testkey")
        SecretFilter().filter(record)
        assert record.msg == "signing with testkey"

    def test_redacts_registered_secret(self) -> None:
        SecretFilter.register_secret("testkey")
        record = _record("Using key: testkey")
        SecretFilter().filter(record)
        assert record.msg == "Using key: [REDACTED]"

    def test_redacts_multiple_secrets(self) -> None:
        SecretFilter.register_secret("secret1")
        SecretFilter.register_secret("secret2")
        record = _record("Keys: secret1 and secret2")
        SecretFilter().filter(record)
        assert record.msg == "Keys: [REDACTED] and [REDACTED]"

    def test_overlapping_secrets_fully_redacted(self) -> None:
        """A secret that contains another is replaced as a whole."""
        SecretFilter.register_secret("abc")
        SecretFilter.register_secret("abcdef")
        record = _record("token=abcdef")
        SecretFilter().filter(record)
        assert record.msg == "token=[REDACTED]"

    def test_redacts_in_args(self) -> None:
        """Secrets in log args should also be redacted."""
        SecretFilter.register_secret("password123")
        record = _record("Login with %s", ("password123", 42))
        SecretFilter().filter(record)
        assert record.args == ("[REDACTED]", 42)

    def test_ignores_empty_secret(self) -> None:
        SecretFilter.register_secret("")
        assert len(SecretFilter._secrets) == 0
        assert SecretFilter._pattern is None

    def test_clear_secrets(self) -> None:
        SecretFilter.register_secret("secret1")
        SecretFilter.register_secret("secret2")
        SecretFilter.clear_secrets()
        assert len(SecretFilter._secrets) == 0
        assert SecretFilter._pattern is None

    def test_redacts_special_regex_chars(self) -> None:
        """Secrets with regex special characters should be escaped."""
        SecretFilter.register_secret("pass[word].*")
        record = _record("Secret: pass[word].*")
        SecretFilter().filter(record)
        assert record.msg == "Secret: [REDACTED]"

    def test_credentials_register_key_and_token(self) -> None:
        """Creating credentials registers the key and token, not the id."""
        Credentials(secret_id="AKIDpublic", secret_key="sk-1", token="tok-1")
        record = _record("%s %s %s", ("AKIDpublic", "sk-1", "tok-1"))
        SecretFilter().filter(record)
        assert record.args == ("AKIDpublic", "[REDACTED]", "[REDACTED]")


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def teardown_method(self) -> None:
        """Reset logging after each test."""
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.WARNING)

    def test_sets_log_level(self) -> None:
        configure_logging(level=logging.DEBUG)
        assert logging.getLogger().level == logging.DEBUG

    def test_adds_handler(self) -> None:
        configure_logging()
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_custom_format(self) -> None:
        configure_logging(format_string="%(message)s")
        formatter = logging.getLogger().handlers[0].formatter
        assert formatter is not None
        assert formatter._fmt == "%(message)s"

    def test_adds_secret_filter_by_default(self) -> None:
        configure_logging()
        filters = logging.getLogger().handlers[0].filters
        assert any(isinstance(f, SecretFilter) for f in filters)

    def test_can_disable_secret_filter(self) -> None:
        configure_logging(add_secret_filter=False)
        filters = logging.getLogger().handlers[0].filters
        assert not any(isinstance(f, SecretFilter) for f in filters)

    def test_removes_existing_handlers(self) -> None:
        """Calling configure_logging twice should not duplicate handlers."""
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_emitted_output_is_redacted(self) -> None:
        """Secrets never reach the configured stream."""
        Credentials(secret_id="AKID123", secret_key="testkey")
        configure_logging(format_string="%(message)s")
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        stream = io.StringIO()
        handler.setStream(stream)

        logging.getLogger("tc3sign.test").info("key is %s", "testkey")

        assert stream.getvalue() == "key is [REDACTED]\n"
