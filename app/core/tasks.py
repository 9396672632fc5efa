"""Deferred tasks and best-effort background outcomes.

The conversation pipeline schedules follow-up work through ``TaskQueue``:
delivery is at-least-once with no ordering across unrelated tasks. The arq
implementation is the production backend; tests pass their own queue.

Background enrichments (memory, titles) never raise into the user-facing
flow: ``run_best_effort`` turns failures into a ``TaskOutcome`` that is
recorded through ``record_task_outcome``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from arq import ArqRedis

from app.core.logging import get_logger

logger = get_logger(__name__)

# ── Task names (registered in app.workers.settings) ──────────────────

TASK_STREAM_REPLY = "stream_reply"
TASK_SUMMARIZE_MEMORY = "summarize_memory"
TASK_GENERATE_TITLE = "generate_title"


class TaskQueue(Protocol):
    """Enqueue a named unit of work with a JSON-serializable payload."""

    async def enqueue(self, name: str, **payload: Any) -> None: ...


class ArqTaskQueue:
    """TaskQueue backed by an arq Redis pool."""

    def __init__(self, pool: ArqRedis) -> None:
        self._pool = pool

    async def enqueue(self, name: str, **payload: Any) -> None:
        job = await self._pool.enqueue_job(name, **payload)
        logger.info(
            "task_enqueued",
            task_name=name,
            job_id=job.job_id if job else None,
        )


# ── Best-effort outcomes ─────────────────────────────────────────────


@dataclass(frozen=True)
class TaskOutcome:
    """Result of a best-effort background task."""

    task: str
    ok: bool
    detail: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, task: str, detail: str | None = None) -> TaskOutcome:
        return cls(task=task, ok=True, detail=detail)

    @classmethod
    def skipped(cls, task: str, reason: str) -> TaskOutcome:
        return cls(task=task, ok=True, detail=f"skipped: {reason}")

    @classmethod
    def failure(cls, task: str, error: str) -> TaskOutcome:
        return cls(task=task, ok=False, error=error)


def record_task_outcome(outcome: TaskOutcome, **fields: Any) -> TaskOutcome:
    """Log a background task outcome and hand it back."""
    if outcome.ok:
        logger.info(
            "background_task_completed",
            task_name=outcome.task,
            detail=outcome.detail,
            **fields,
        )
    else:
        logger.warning(
            "background_task_failed",
            task_name=outcome.task,
            error=outcome.error,
            **fields,
        )
    return outcome


async def run_best_effort(
    task: str,
    fn: Callable[[], Awaitable[TaskOutcome]],
    **log_fields: Any,
) -> TaskOutcome:
    """Run ``fn`` and convert any exception into a failed outcome."""
    try:
        outcome = await fn()
    except Exception as e:
        logger.exception("background_task_exception", task_name=task, **log_fields)
        outcome = TaskOutcome.failure(task, f"{type(e).__name__}: {e}")
    return record_task_outcome(outcome, **log_fields)
