"""
services/events.py
------------------
Lifecycle event publishing.

Publishing happens after the store write has succeeded and is
fire-and-forget: a failing sink is logged, never raised to the caller.
"""

from typing import Any, Protocol

from models.schedule import ScheduleEvent
from utils.logger import get_logger

logger = get_logger(__name__)


class EventSink(Protocol):
    def publish(self, kind: ScheduleEvent, payload: dict[str, Any]) -> None: ...


class LoggingEventSink:
    """Default sink: writes each event to the application log."""

    def publish(self, kind: ScheduleEvent, payload: dict[str, Any]) -> None:
        logger.info(f"Event schedule.{kind.value}: {payload}")


def publish_safely(sink: EventSink, kind: ScheduleEvent, payload: dict[str, Any]) -> None:
    try:
        sink.publish(kind, payload)
    except Exception as e:
        logger.error(f"Failed to publish schedule.{kind.value} event {payload}: {e}")
