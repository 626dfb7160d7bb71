"""
Push dispatchers - hand a push message off the request's critical path.

background: FastAPI BackgroundTasks run after the response is sent
arq:        enqueue send_push_notification_task for servicedome.worker
disabled:   drop the push (the in-app notification log is still written)
"""

import asyncio
import logging
from typing import Optional

from arq import create_pool
from fastapi import BackgroundTasks

from ...config import PUSH_DISPATCH_MODE
from ...services.push_service import ExpoPushClient
from ...worker import get_redis_settings

logger = logging.getLogger(__name__)


class PushDispatcher:
    """Disabled dispatcher; also the interface the other modes implement"""

    mode = "disabled"

    async def dispatch(
        self, token: str, payload: dict, background_tasks: Optional[BackgroundTasks] = None
    ) -> bool:
        logger.debug(f"Push dispatch disabled, dropping push for {token}")
        return False


class BackgroundPushDispatcher(PushDispatcher):
    mode = "background"

    def __init__(self, client: Optional[ExpoPushClient] = None):
        self.client = client or ExpoPushClient()
        self._pending: set[asyncio.Task] = set()

    async def dispatch(
        self, token: str, payload: dict, background_tasks: Optional[BackgroundTasks] = None
    ) -> bool:
        args = (token, payload.get("title", ""), payload.get("body", ""), payload.get("data"))
        if background_tasks is not None:
            background_tasks.add_task(self.client.send, *args)
        else:
            # Outside a request: run on the loop without awaiting
            task = asyncio.get_running_loop().create_task(self.client.send(*args))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return True


class ArqPushDispatcher(PushDispatcher):
    mode = "arq"

    def __init__(self, redis_settings=None, enqueue_timeout: float = 5.0):
        self.redis_settings = redis_settings
        self.enqueue_timeout = enqueue_timeout
        self._pool = None

    async def _get_pool(self):
        if self._pool is None:
            if self.redis_settings is None:
                self.redis_settings = get_redis_settings()
            self._pool = await create_pool(self.redis_settings)
        return self._pool

    async def dispatch(
        self, token: str, payload: dict, background_tasks: Optional[BackgroundTasks] = None
    ) -> bool:
        try:
            pool = await asyncio.wait_for(self._get_pool(), timeout=self.enqueue_timeout)
            job = await asyncio.wait_for(
                pool.enqueue_job("send_push_notification_task", token, payload),
                timeout=self.enqueue_timeout,
            )
            logger.info(f"📋 Push job queued: {job.job_id if job else 'duplicate'}")
            return True
        except Exception as e:
            logger.error(f"❌ Failed to queue push notification: {e}")
            return False


def build_push_dispatcher(mode: str) -> PushDispatcher:
    if mode == "background":
        return BackgroundPushDispatcher()
    if mode == "arq":
        return ArqPushDispatcher()
    if mode != "disabled":
        logger.warning(f"⚠️ Unknown PUSH_DISPATCH_MODE '{mode}', push disabled")
    return PushDispatcher()


_dispatcher: Optional[PushDispatcher] = None


def get_push_dispatcher() -> PushDispatcher:
    """Dependency returning the process-wide dispatcher for PUSH_DISPATCH_MODE"""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_push_dispatcher(PUSH_DISPATCH_MODE)
    return _dispatcher
