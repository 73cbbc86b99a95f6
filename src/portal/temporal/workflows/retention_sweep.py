"""
Retention Sweep Workflow.

Deletes data past its retention window:
1. Sessions that ended (or expired) more than 30 days ago
2. Refresh tokens expired more than 30 days ago
3. Audit logs older than 90 days

Designed to be run on a schedule (e.g., daily at 3am UTC via Temporal cron).
"""

from dataclasses import dataclass
from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.portal.temporal.activities import (
        cleanup_audit_logs,
        cleanup_refresh_tokens,
        cleanup_sessions,
    )

ACTIVITY_TIMEOUT = timedelta(minutes=5)
RETRY_POLICY = RetryPolicy(maximum_attempts=3, initial_interval=timedelta(seconds=2))


@dataclass
class RetentionSweepInput:
    refresh_token_retention_days: int = 30
    session_retention_days: int = 30
    audit_log_retention_days: int = 90


@workflow.defn
class RetentionSweepWorkflow:
    """Run the three retention activities.

    Sessions go first because they hold a foreign key to their refresh
    token; token and audit cleanup then run in parallel.
    """

    @workflow.run
    async def run(self, params: RetentionSweepInput) -> dict[str, int]:
        workflow.logger.info("Starting retention sweep")

        sessions = await workflow.execute_activity(
            cleanup_sessions,
            params.session_retention_days,
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=RETRY_POLICY,
        )

        refresh_tokens_task = workflow.start_activity(
            cleanup_refresh_tokens,
            params.refresh_token_retention_days,
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=RETRY_POLICY,
        )
        audit_logs_task = workflow.start_activity(
            cleanup_audit_logs,
            params.audit_log_retention_days,
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=RETRY_POLICY,
        )
        refresh_tokens = await refresh_tokens_task
        audit_logs = await audit_logs_task

        result = {
            "sessions": sessions,
            "refresh_tokens": refresh_tokens,
            "audit_logs": audit_logs,
            "total": sessions + refresh_tokens + audit_logs,
        }
        workflow.logger.info(
            f"Retention sweep complete: {sessions} sessions, "
            f"{refresh_tokens} refresh tokens, {audit_logs} audit logs"
        )
        return result
