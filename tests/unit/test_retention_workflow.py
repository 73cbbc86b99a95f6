"""Tests for the retention sweep workflow."""

import pytest
from temporalio import activity
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import Worker

from src.portal.temporal.workflows import RetentionSweepInput, RetentionSweepWorkflow

pytestmark = pytest.mark.unit

TASK_QUEUE = "test-retention"


@pytest.fixture
def calls() -> list[tuple[str, int]]:
    return []


@pytest.fixture
def activities(calls: list[tuple[str, int]]) -> list:
    """Stand-in activities registered under the real activity names."""

    @activity.defn(name="cleanup_sessions")
    async def cleanup_sessions(retention_days: int) -> int:
        calls.append(("sessions", retention_days))
        return 3

    @activity.defn(name="cleanup_refresh_tokens")
    async def cleanup_refresh_tokens(retention_days: int) -> int:
        calls.append(("refresh_tokens", retention_days))
        return 5

    @activity.defn(name="cleanup_audit_logs")
    async def cleanup_audit_logs(retention_days: int) -> int:
        calls.append(("audit_logs", retention_days))
        return 7

    return [cleanup_sessions, cleanup_refresh_tokens, cleanup_audit_logs]


class TestRetentionSweepWorkflow:
    @pytest.mark.asyncio
    async def test_runs_all_cleanups_sessions_first(
        self, activities: list, calls: list[tuple[str, int]]
    ) -> None:
        async with await WorkflowEnvironment.start_time_skipping() as env:  # noqa: SIM117
            async with Worker(
                env.client,
                task_queue=TASK_QUEUE,
                workflows=[RetentionSweepWorkflow],
                activities=activities,
            ):
                result = await env.client.execute_workflow(
                    RetentionSweepWorkflow.run,
                    RetentionSweepInput(),
                    id="test-retention-sweep",
                    task_queue=TASK_QUEUE,
                )

        assert result == {"sessions": 3, "refresh_tokens": 5, "audit_logs": 7, "total": 15}
        assert calls[0] == ("sessions", 30)
        assert set(calls[1:]) == {("refresh_tokens", 30), ("audit_logs", 90)}

    @pytest.mark.asyncio
    async def test_custom_retention_windows(
        self, activities: list, calls: list[tuple[str, int]]
    ) -> None:
        async with await WorkflowEnvironment.start_time_skipping() as env:  # noqa: SIM117
            async with Worker(
                env.client,
                task_queue=TASK_QUEUE,
                workflows=[RetentionSweepWorkflow],
                activities=activities,
            ):
                await env.client.execute_workflow(
                    RetentionSweepWorkflow.run,
                    RetentionSweepInput(
                        refresh_token_retention_days=7,
                        session_retention_days=14,
                        audit_log_retention_days=365,
                    ),
                    id="test-retention-sweep-custom",
                    task_queue=TASK_QUEUE,
                )

        assert set(calls) == {("sessions", 14), ("refresh_tokens", 7), ("audit_logs", 365)}
