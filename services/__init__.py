"""
Service container.

build_services() constructs every component once, from a config mapping,
and wires the dependencies explicitly. The Flask app keeps the result on
app.extensions["services"].
"""
from __future__ import annotations

import atexit
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping

from apscheduler.schedulers.background import BackgroundScheduler

from models.db_storage import DBStorage
from models.credential_store import CredentialStore
from services.notifications import NotificationQueue
from services.rate_limiter import RateLimiter
from services.scheduler import build_scheduler
from services.todo_query import TodoQueryEngine
from services.token_service import TokenService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    storage: DBStorage
    credentials: CredentialStore
    tokens: TokenService
    todos: TodoQueryEngine
    notifications: NotificationQueue
    rate_limiter: RateLimiter
    scheduler: BackgroundScheduler | None = None

    def start_background(self, config: Mapping) -> bool:
        """Start the worker and scheduler as configured. Returns True if anything started."""
        started = False
        if config.get("NOTIFICATIONS_ENABLED", True):
            self.notifications.start()
            started = True
        if config.get("SCHEDULER_ENABLED", True) and self.scheduler is None:
            self.scheduler = build_scheduler(self, config)
            self.scheduler.start()
            logger.info("Background scheduler started")
            started = True
        if started:
            atexit.register(self.shutdown)
        return started

    def shutdown(self):
        atexit.unregister(self.shutdown)
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Background scheduler stopped")
        self.scheduler = None
        self.notifications.stop()
        self.storage.close()


def build_services(config: Mapping) -> Services:
    storage = DBStorage(config["DATABASE_URL"], echo=config.get("SQL_ECHO", False))
    storage.reload()

    credentials = CredentialStore(storage)
    tokens = TokenService(
        credentials,
        secret=config["JWT_SECRET"],
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
        access_token_ttl=timedelta(hours=config.get("JWT_EXPIRY_HOURS", 24)),
        refresh_token_ttl=timedelta(days=config.get("REFRESH_TOKEN_DAYS", 7)),
    )
    return Services(
        storage=storage,
        credentials=credentials,
        tokens=tokens,
        todos=TodoQueryEngine(storage),
        notifications=NotificationQueue(
            capacity=config.get("NOTIFICATION_QUEUE_SIZE", 100),
            delivery_delay=config.get("NOTIFICATION_DELIVERY_DELAY", 0.0),
        ),
        rate_limiter=RateLimiter(
            rate=config.get("RATE_LIMIT_REQUESTS", 100),
            window=config.get("RATE_LIMIT_WINDOW_SECONDS", 60),
        ),
    )
