"""Tests for structured logging context."""

from uuid import uuid4

import pytest
import structlog
from structlog.testing import CapturingLogger

from src.portal.core.config import get_settings
from src.portal.core.logging import (
    bind_request_context,
    bind_user_context,
    clear_request_context,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def capturing_logger():
    """Route structlog output to a capturing logger for the test."""
    cap_logger = CapturingLogger()
    old_config = structlog.get_config()

    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=lambda *args, **kwargs: cap_logger,
        cache_logger_on_first_use=False,
    )

    clear_request_context()
    yield cap_logger
    clear_request_context()
    structlog.configure(**old_config)


def test_bind_request_context(capturing_logger):
    bind_request_context("test-request-123")
    structlog.get_logger().info("test message")

    entries = capturing_logger.calls
    assert len(entries) == 1
    assert entries[0].kwargs["request_id"] == "test-request-123"


def test_bind_request_context_with_none(capturing_logger):
    bind_request_context(None)
    structlog.get_logger().info("test message")

    assert "request_id" not in capturing_logger.calls[0].kwargs


def test_bind_user_context_omits_email_by_default(capturing_logger):
    user_id = uuid4()

    bind_user_context(user_id, "consultancy_admin", "admin@example.com")
    structlog.get_logger().info("test message")

    kwargs = capturing_logger.calls[0].kwargs
    assert kwargs["user_id"] == str(user_id)
    assert kwargs["role"] == "consultancy_admin"
    assert "user_email" not in kwargs


def test_bind_user_context_with_email_logging(capturing_logger, monkeypatch):
    monkeypatch.setattr(get_settings(), "log_user_emails", True)

    bind_user_context(uuid4(), "student", "jane@example.com")
    structlog.get_logger().info("test message")

    assert capturing_logger.calls[0].kwargs["user_email"] == "jane@example.com"


def test_clear_request_context(capturing_logger):
    bind_request_context("req-1")
    bind_user_context(uuid4(), "student")
    clear_request_context()
    structlog.get_logger().info("test message")

    kwargs = capturing_logger.calls[0].kwargs
    assert "request_id" not in kwargs
    assert "user_id" not in kwargs
