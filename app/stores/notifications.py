"""User-facing notifications raised by store actions."""

import logging
from enum import Enum
from typing import List

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ToastEvent(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Notification(BaseModel):
    kind: ToastEvent
    message: str


class Notifier:
    """Collects notifications until the caller drains them."""

    def __init__(self):
        self._pending: List[Notification] = []

    def notify(self, kind: ToastEvent, message: str) -> None:
        logger.debug("%s: %s", kind.value, message)
        self._pending.append(Notification(kind=kind, message=message))

    def success(self, message: str) -> None:
        self.notify(ToastEvent.SUCCESS, message)

    def error(self, message: str) -> None:
        self.notify(ToastEvent.ERROR, message)

    def warning(self, message: str) -> None:
        self.notify(ToastEvent.WARNING, message)

    def info(self, message: str) -> None:
        self.notify(ToastEvent.INFO, message)

    @property
    def pending(self) -> List[Notification]:
        return list(self._pending)

    def drain(self) -> List[Notification]:
        drained, self._pending = self._pending, []
        return drained
