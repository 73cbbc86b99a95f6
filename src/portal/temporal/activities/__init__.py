"""Temporal activities - fine-grained, idempotent operations."""

from src.portal.temporal.activities.retention import (
    cleanup_audit_logs,
    cleanup_refresh_tokens,
    cleanup_sessions,
)

__all__ = [
    "cleanup_audit_logs",
    "cleanup_refresh_tokens",
    "cleanup_sessions",
]
