"""Responsive popup sizing and viewport clamping."""
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from core.viewport import MapViewport

# (max viewport width, popup max width, popup max height)
POPUP_BREAKPOINTS = [
    (320, 160, 200),
    (375, 180, 220),
    (480, 200, 240),
    (640, 220, 260),
]
DEFAULT_POPUP_SIZE = (260, 300)


@dataclass(frozen=True)
class PopupRect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


def viewport_padding(viewport_width: int) -> int:
    return 10 if viewport_width <= 320 else 20


def popup_max_size(viewport_width: int) -> Tuple[int, int]:
    for limit, width, height in POPUP_BREAKPOINTS:
        if viewport_width <= limit:
            return (width, height)
    return DEFAULT_POPUP_SIZE


def auto_pan_padding(viewport_width: int) -> Tuple[int, int]:
    if viewport_width <= 320:
        return (20, 20)
    if viewport_width <= 375:
        return (30, 30)
    return (40, 40)


def clamp_popup(rect: PopupRect, viewport_width: int, viewport_height: int) -> PopupRect:
    """Translate a popup back on-screen if any edge is outside the padded viewport."""
    padding = viewport_padding(viewport_width)
    top, left = rect.top, rect.left

    if rect.bottom > viewport_height - padding:
        top = viewport_height - rect.height - padding
    if rect.top < padding:
        top = padding
    if rect.right > viewport_width - padding:
        left = viewport_width - rect.width - padding
    if rect.left < padding:
        left = padding

    return replace(rect, top=top, left=left)


class PopupTracker:
    """Clamps each popup once when it opens and hands the view back on close."""

    def __init__(self, viewport: MapViewport):
        self.viewport = viewport
        self.open_popups: Dict[str, PopupRect] = {}

    def opened(self, popup_id: str, rect: PopupRect) -> PopupRect:
        if popup_id in self.open_popups:
            return self.open_popups[popup_id]
        clamped = clamp_popup(rect, self.viewport.width, self.viewport.height)
        self.open_popups[popup_id] = clamped
        self.viewport.popup_opened()
        return clamped

    def closed(self, popup_id: str) -> Optional[PopupRect]:
        rect = self.open_popups.pop(popup_id, None)
        if not self.open_popups:
            self.viewport.popup_closed()
        return rect
