"""
Temporal Worker - Separate process from API.

Run with:
    python -m src.portal.temporal.worker
"""

import asyncio

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.worker import Worker

from src.portal.core.config import get_settings
from src.portal.core.db import dispose_engine
from src.portal.core.logging import get_logger, setup_logging
from src.portal.temporal.activities import (
    cleanup_audit_logs,
    cleanup_refresh_tokens,
    cleanup_sessions,
)
from src.portal.temporal.client import close_temporal_client, get_temporal_client
from src.portal.temporal.workflows import RetentionSweepInput, RetentionSweepWorkflow

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001
RETENTION_WORKFLOW_ID = "retention-sweep"


def create_worker(client: Client, task_queue: str) -> Worker:
    """Create the maintenance worker with the retention workflow and activities."""
    return Worker(
        client,
        task_queue=task_queue,
        workflows=[RetentionSweepWorkflow],
        activities=[cleanup_sessions, cleanup_refresh_tokens, cleanup_audit_logs],
        max_concurrent_activities=10,
        max_concurrent_workflow_tasks=10,
    )


async def schedule_retention_sweep(client: Client) -> None:
    """Start the cron retention sweep if RETENTION_SCHEDULE is configured.

    Starting it again while it already runs is a no-op.
    """
    settings = get_settings()
    if not settings.retention_schedule:
        logger.info("No retention schedule configured")
        return

    try:
        await client.start_workflow(
            RetentionSweepWorkflow.run,
            RetentionSweepInput(
                refresh_token_retention_days=settings.refresh_token_retention_days,
                session_retention_days=settings.session_retention_days,
                audit_log_retention_days=settings.audit_log_retention_days,
            ),
            id=RETENTION_WORKFLOW_ID,
            task_queue=settings.temporal_task_queue,
            cron_schedule=settings.retention_schedule,
        )
        logger.info("Retention sweep scheduled", schedule=settings.retention_schedule)
    except WorkflowAlreadyStartedError:
        logger.info("Retention sweep already scheduled")


async def run_health_server(task_queue: str, port: int = WORKER_HEALTH_PORT) -> None:
    """Run a lightweight health server for K8s probes."""
    health_app = FastAPI(title="Temporal Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": "temporal-worker",
            "task_queue": task_queue,
        }

    config = uvicorn.Config(
        health_app,
        host="0.0.0.0",
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    logger.info(f"Starting health server on port {port}")
    await server.serve()


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.debug)

    client = await get_temporal_client()
    task_queue = settings.temporal_task_queue

    await schedule_retention_sweep(client)

    worker = create_worker(client, task_queue)
    logger.info(f"Starting worker on queue: {task_queue}")

    try:
        await asyncio.gather(worker.run(), run_health_server(task_queue))
    finally:
        await close_temporal_client()
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
