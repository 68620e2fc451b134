"""SVG marker icons keyed by location type, with an event badge overlay."""
import base64
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

ICON_SIZE = (32, 32)
ICON_ANCHOR = (16, 16)
POPUP_ANCHOR = (0, -16)

SHADOW_FILTER = (
    '<filter id="shadow" x="-50%" y="-50%" width="200%" height="200%">'
    '<feDropShadow dx="1" dy="2" stdDeviation="2" flood-color="#000000" flood-opacity="0.3"/>'
    '</filter>'
)

GLYPHS = {
    'SCHOOL': '<path d="M-6 -8 L6 -8 L6 6 L-6 6 Z M-4 -6 L4 -6 L4 4 L-4 4 Z M-2 -4 L2 -4 M-2 -2 L2 -2 M-2 0 L2 0 M-2 2 L2 2" stroke="white" stroke-width="1.5" fill="none"/>',
    'GOVERNMENT': '<path d="M-8 6 L8 6 L8 4 L-8 4 Z M-6 4 L-6 -2 L6 -2 L6 4 M-4 -2 L-4 -6 L4 -6 L4 -2 M-2 -6 L-2 -8 L2 -8 L2 -6" stroke="white" stroke-width="1.5" fill="none"/>',
    'HEALTH': '<path d="M-2 -8 L2 -8 L2 -2 L8 -2 L8 2 L2 2 L2 8 L-2 8 L-2 2 L-8 2 L-8 -2 L-2 -2 Z" fill="white"/>',
    'COMMERCIAL': '<path d="M-8 6 L8 6 L8 -6 L-8 -6 Z M-6 4 L6 4 L6 -4 L-6 -4 Z M-4 2 L4 2 M-4 0 L4 0 M-4 -2 L4 -2" stroke="white" stroke-width="1.5" fill="none"/>',
    'SPORTS': '<circle cx="0" cy="0" r="7" stroke="white" stroke-width="1.5" fill="none"/><path d="M-7 0 Q0 -7 7 0 Q0 7 -7 0" stroke="white" stroke-width="1.5" fill="none"/>',
    'RELIGIOUS': '<path d="M0 -8 L0 8 M-6 -2 L6 -2" stroke="white" stroke-width="2"/>',
    'EMERGENCY': '<path d="M-1 -8 L1 -8 L1 -1 L8 -1 L8 1 L1 1 L1 8 L-1 8 L-1 1 L-8 1 L-8 -1 L-1 -1 Z" fill="white"/>',
    'RESIDENTIAL': '<path d="M-8 6 L8 6 L8 0 L0 -8 L-8 0 Z M-4 6 L-4 2 L4 2 L4 6 M0 6 L0 2" stroke="white" stroke-width="1.5" fill="none"/>',
    'RECREATION': '<path d="M-8 -8 L8 -8 L8 8 L-8 8 Z M-6 -6 L6 -6 L6 6 L-6 6 Z" stroke="white" stroke-width="1.5" fill="none"/><circle cx="0" cy="0" r="3" fill="white"/>',
    'GYMNASIUM': '<path d="M-8 6 L8 6 L8 -6 L-8 -6 Z M-6 4 L6 4 L6 -4 L-6 -4 Z M-3 1 L3 1 L3 -1 L-3 -1 Z" stroke="white" stroke-width="1.5" fill="none"/>',
}
DEFAULT_GLYPH = '<circle cx="0" cy="0" r="4" fill="white"/>'

COLORS = {
    'SCHOOL': '#3B82F6',
    'GOVERNMENT': '#DC2626',
    'HEALTH': '#059669',
    'COMMERCIAL': '#7C3AED',
    'SPORTS': '#EA580C',
    'RELIGIOUS': '#EAB308',
    'EMERGENCY': '#EF4444',
    'RESIDENTIAL': '#6B7280',
    'RECREATION': '#06B6D4',
    'GYMNASIUM': '#4F46E5',
}
DEFAULT_COLOR = '#6B7280'

EVENT_BADGE = (
    '<circle cx="24" cy="8" r="6" fill="#ef4444" stroke="white" stroke-width="2">'
    '<animate attributeName="opacity" values="1;0.3;1" dur="1.5s" repeatCount="indefinite"/>'
    '</circle>'
    '<text x="24" y="10" text-anchor="middle" fill="white" font-size="8" font-weight="bold">!</text>'
)


@dataclass(frozen=True)
class MarkerIcon:
    kind: str
    color: str
    svg: str
    has_events: bool = False
    icon_size: Tuple[int, int] = ICON_SIZE
    icon_anchor: Tuple[int, int] = ICON_ANCHOR
    popup_anchor: Tuple[int, int] = POPUP_ANCHOR

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.svg.encode('utf-8')).decode('ascii')
        return f"data:image/svg+xml;base64,{encoded}"


def _svg(body: str, color: str, stroke_width: int = 2, dashed: bool = False) -> str:
    dash = ' stroke-dasharray="5,3"' if dashed else ''
    return (
        '<svg width="32" height="32" viewBox="0 0 32 32" xmlns="http://www.w3.org/2000/svg">'
        f'<defs>{SHADOW_FILTER}</defs>'
        f'<circle cx="16" cy="16" r="15" fill="{color}" stroke="white" stroke-width="{stroke_width}"{dash} filter="url(#shadow)"/>'
        f'{body}'
        '</svg>'
    )


@lru_cache(maxsize=64)
def icon_for(location_type: str, has_events: bool = False) -> MarkerIcon:
    """Icon for a location type. Unknown types get the generic dot."""
    key = str(location_type or '').strip().upper()
    color = COLORS.get(key, DEFAULT_COLOR)
    body = f'<g transform="translate(16, 16)">{GLYPHS.get(key, DEFAULT_GLYPH)}</g>'
    if has_events:
        body += EVENT_BADGE
    kind = key.lower() if key in GLYPHS else 'default'
    return MarkerIcon(kind=kind, color=color, svg=_svg(body, color), has_events=has_events)


def temp_marker_icon() -> MarkerIcon:
    body = '<g transform="translate(16, 16)"><path d="M-6 0 L6 0 M0 -6 L0 6" stroke="white" stroke-width="3" stroke-linecap="round"/></g>'
    return MarkerIcon(kind='new', color='#10B981', svg=_svg(body, '#10B981', stroke_width=3, dashed=True))


def youth_icon() -> MarkerIcon:
    body = f'<g transform="translate(16, 16)">{GLYPHS["RESIDENTIAL"]}</g>'
    return MarkerIcon(kind='youth', color=COLORS['RESIDENTIAL'], svg=_svg(body, COLORS['RESIDENTIAL']))


def user_location_icon() -> MarkerIcon:
    svg = (
        '<svg width="32" height="32" viewBox="0 0 32 32" xmlns="http://www.w3.org/2000/svg">'
        '<circle cx="16" cy="16" r="15" fill="#10B981" stroke="white" stroke-width="2"/>'
        '<circle cx="16" cy="16" r="6" fill="white"/>'
        '<circle cx="16" cy="16" r="3" fill="#10B981"/>'
        '</svg>'
    )
    return MarkerIcon(kind='user', color='#10B981', svg=svg)
