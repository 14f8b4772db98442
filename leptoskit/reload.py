"""Messages sent to the browser over the live-reload websocket."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional, Union

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

LIVE_RELOAD_ROUTE = "/live_reload"
DEFAULT_SITE_ADDR = ("127.0.0.1", 3000)


def css_link_for(site_path: PathLike) -> str:
    """The site-relative link of a CSS file, always separated by ``/``."""
    return "/".join(PurePath(site_path).parts)


@dataclass(frozen=True)
class BrowserMessage:
    """Tells the browser to reload a stylesheet, patch the view or reload everything."""

    css: Optional[str] = None
    view: Optional[str] = None
    all: bool = False

    @classmethod
    def css(cls, link: str) -> "BrowserMessage":  # type: ignore[override]
        if not link:
            log.error("Reload internal error: sending css reload but no css file is set.")
        return cls(css=link)

    @classmethod
    def view(cls, data: str) -> "BrowserMessage":  # type: ignore[override]
        return cls(view=data)

    @classmethod
    def all(cls) -> "BrowserMessage":  # type: ignore[override]
        return cls(all=True)

    def to_json(self) -> str:
        return json.dumps(
            {"css": self.css, "view": self.view, "all": self.all},
            separators=(",", ":"),
        )

    def __str__(self) -> str:
        return f"reload {self.css}" if self.css is not None else "reload all"