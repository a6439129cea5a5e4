"""Background consumer threads feeding the ingestion handler."""

from __future__ import annotations

import os
import socket
from random import random
from threading import Event, Lock, Thread

from packages.bookkeeper_shared.logging import fields as log_fields
from packages.bookkeeper_shared.logging import get_logger
from resources.adapters.event_channel.adapter import (
    ConsumeResult,
    EventChannel,
    MessageHandler,
    Subscription,
)
from services.state.event_log_authority.config import EventLogAuthoritySettings

_LOGGER = get_logger(__name__)


class IngestionWorker:
    """Run ``worker_concurrency`` consume loops until stopped.

    Each thread uses its own consumer name so pending entries are attributed
    to the thread that read them. Channel reads block for at most the
    channel's ``block_ms``, so ``stop`` is observed within one poll.
    """

    def __init__(
        self,
        *,
        channel: EventChannel,
        handler: MessageHandler,
        settings: EventLogAuthoritySettings,
    ) -> None:
        self._channel = channel
        self._handler = handler
        self._settings = settings
        self._stop_event = Event()
        self._lock = Lock()
        self._threads: list[Thread] = []
        self._subscription: Subscription | None = None

    @property
    def is_running(self) -> bool:
        """Return ``True`` while any consume thread is alive."""
        with self._lock:
            return any(thread.is_alive() for thread in self._threads)

    def consumer_names(self) -> list[str]:
        """Return the consumer name used by each thread, in thread order."""
        prefix = self._settings.consumer_name.strip() or (
            f"{socket.gethostname()}-{os.getpid()}"
        )
        return [
            f"{prefix}-{index}" for index in range(self._settings.worker_concurrency)
        ]

    def start(self) -> None:
        """Start consume threads once; repeated calls are no-ops while running."""
        with self._lock:
            if any(thread.is_alive() for thread in self._threads):
                return
            self._stop_event.clear()
            self._threads = [
                Thread(
                    target=self._run_loop,
                    args=(consumer,),
                    name=f"event-log-ingest-{index}",
                    daemon=True,
                )
                for index, consumer in enumerate(self.consumer_names())
            ]
            for thread in self._threads:
                thread.start()
        _LOGGER.info(
            "ingestion worker started",
            extra={
                log_fields.QUEUE: self._settings.queue_name,
                "concurrency": self._settings.worker_concurrency,
            },
        )

    def stop(self, timeout: float | None = None) -> bool:
        """Signal every thread and join them; return ``True`` when all exited."""
        self._stop_event.set()
        deadline = self._settings.shutdown_timeout_seconds if timeout is None else timeout
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout=deadline)
        stopped = not any(thread.is_alive() for thread in threads)
        if not stopped:
            _LOGGER.warning("ingestion worker did not stop within timeout")
        return stopped

    def run_once(self, consumer: str) -> ConsumeResult:
        """Run one consume pass for ``consumer``, declaring the queue if needed."""
        subscription = self._ensure_subscription()
        return self._channel.consume(
            subscription=subscription,
            handler=self._handler,
            consumer=consumer,
            max_messages=self._settings.messages_per_poll,
        )

    def _ensure_subscription(self) -> Subscription:
        with self._lock:
            if self._subscription is None:
                self._subscription = self._channel.declare_subscription(
                    queue=self._settings.queue_name,
                    binding_pattern=self._settings.binding_pattern,
                )
            return self._subscription

    def _run_loop(self, consumer: str) -> None:
        """Consume until stopped, backing off after failed passes."""
        backoff = self._settings.failure_backoff_initial_seconds
        while not self._stop_event.is_set():
            try:
                self.run_once(consumer)
            except Exception:
                _LOGGER.exception(
                    "ingestion consume pass failed",
                    extra={log_fields.CONSUMER: consumer},
                )
                self._stop_event.wait(self._jittered(backoff))
                backoff = min(
                    backoff * self._settings.failure_backoff_multiplier,
                    self._settings.failure_backoff_max_seconds,
                )
                continue
            backoff = self._settings.failure_backoff_initial_seconds

    def _jittered(self, base: float) -> float:
        ratio = self._settings.failure_backoff_jitter_ratio
        return max(0.0, base + base * ratio * (random() * 2 - 1))
