"""Documentation status badge, written as shields.io JSON and a static SVG."""

from __future__ import annotations

import json
from dataclasses import dataclass
from html import escape
from pathlib import Path

SUBJECT = "docs"
NO_BUILDS = "no builds"
SUCCESS_COLOR = "#4d76ae"
FAILURE_COLOR = "#e05d44"

JSON_NAME = "badge.json"
SVG_NAME = "badge.svg"

# Verdana 11px averages about 7px per character, plus 5px padding each side
_CHAR_WIDTH = 7
_PADDING = 10

_SVG_TEMPLATE = """\
<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="20" role="img" aria-label="{label}: {value}">
  <linearGradient id="smooth" x2="0" y2="100%">
    <stop offset="0" stop-color="#bbb" stop-opacity=".1"/>
    <stop offset="1" stop-opacity=".1"/>
  </linearGradient>
  <mask id="round">
    <rect width="{width}" height="20" rx="3" fill="#fff"/>
  </mask>
  <g mask="url(#round)">
    <rect width="{left}" height="20" fill="#555"/>
    <rect x="{left}" width="{right}" height="20" fill="{color}"/>
    <rect width="{width}" height="20" fill="url(#smooth)"/>
  </g>
  <g fill="#fff" text-anchor="middle" font-family="DejaVu Sans,Verdana,Geneva,sans-serif" font-size="11">
    <text x="{label_x}" y="14">{label}</text>
    <text x="{value_x}" y="14">{value}</text>
  </g>
</svg>
"""


def _text_width(text: str) -> int:
    return len(text) * _CHAR_WIDTH + _PADDING


@dataclass(frozen=True)
class Badge:
    """A two-part ``docs | <status>`` badge."""

    status: str = NO_BUILDS
    color: str = FAILURE_COLOR
    subject: str = SUBJECT

    @classmethod
    def for_publish(cls, version: str | None, docs_copied: bool) -> Badge:
        """Version badge when both the version and the docs are there, else ``no builds``."""
        if version is None or not docs_copied:
            return cls()
        return cls(status=version, color=SUCCESS_COLOR)

    @property
    def success(self) -> bool:
        return self.color == SUCCESS_COLOR

    def to_dict(self) -> dict[str, object]:
        return {
            "schemaVersion": 1,
            "label": self.subject,
            "message": self.status,
            "color": self.color,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def to_svg(self) -> str:
        left = _text_width(self.subject)
        right = _text_width(self.status)
        return _SVG_TEMPLATE.format(
            width=left + right,
            left=left,
            right=right,
            color=escape(self.color),
            label=escape(self.subject),
            value=escape(self.status),
            label_x=left / 2,
            value_x=left + right / 2,
        )

    def write(self, directory: Path) -> tuple[Path, Path]:
        """Write ``badge.json`` and ``badge.svg`` into ``directory``."""
        json_path = directory / JSON_NAME
        svg_path = directory / SVG_NAME
        json_path.write_text(self.to_json(), encoding="utf-8")
        svg_path.write_text(self.to_svg(), encoding="utf-8")
        return json_path, svg_path
