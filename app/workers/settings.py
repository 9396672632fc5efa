"""Arq worker configuration.

Run with: arq app.workers.settings.WorkerSettings
"""

from arq.connections import RedisSettings

from app.config import get_settings
from app.core.llm import LLMClient, LLMConfig
from app.core.logging import get_logger, setup_logging
from app.workers.chat_tasks import generate_title, stream_reply, summarize_memory

settings = get_settings()
logger = get_logger(__name__)

redis_settings = RedisSettings.from_dsn(settings.redis_url)


async def startup(ctx: dict) -> None:
    setup_logging()
    ctx["llm"] = LLMClient(LLMConfig.from_settings(settings))
    logger.info("worker_started", max_jobs=settings.worker_max_jobs)


async def shutdown(ctx: dict) -> None:
    logger.info("worker_stopped")


class WorkerSettings:
    functions = [stream_reply, summarize_memory, generate_title]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = redis_settings
    max_jobs = settings.worker_max_jobs
    job_timeout = settings.worker_job_timeout
