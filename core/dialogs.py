"""Modal state shared by the panel: one message modal and one confirm modal."""
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from loguru import logger


@dataclass
class DialogMessage:
    kind: str  # error | success | info
    message: str


@dataclass
class PendingConfirmation:
    message: str
    action: Callable[[], Any]


class DialogState:
    def __init__(self):
        self._lock = threading.Lock()
        self.current: Optional[DialogMessage] = None
        self.pending: Optional[PendingConfirmation] = None
        self.history: List[DialogMessage] = []

    def _show(self, kind: str, message: str) -> None:
        with self._lock:
            self.current = DialogMessage(kind=kind, message=message)
            self.history.append(self.current)

    def show_error(self, message: str) -> None:
        logger.warning(f"Error modal: {message}")
        self._show("error", message)

    def show_success(self, message: str) -> None:
        self._show("success", message)

    def show_info(self, message: str) -> None:
        self._show("info", message)

    def dismiss(self, message: Optional[str] = None) -> None:
        """Close the message modal, or only the given message when one is named."""
        with self._lock:
            if message is None or (self.current is not None and self.current.message == message):
                self.current = None

    def ask(self, message: str, action: Callable[[], Any]) -> PendingConfirmation:
        """Queue a destructive action behind an explicit confirm step."""
        with self._lock:
            self.pending = PendingConfirmation(message=message, action=action)
            return self.pending

    def confirm(self) -> Any:
        with self._lock:
            pending, self.pending = self.pending, None
        if pending is None:
            return None
        return pending.action()

    def cancel(self) -> None:
        with self._lock:
            self.pending = None
