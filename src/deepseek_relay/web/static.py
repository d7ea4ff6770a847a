"""Serve the front-end bundle from a fixed directory."""

from __future__ import annotations

import html
from pathlib import Path

import structlog
from aiohttp import web

logger = structlog.get_logger()

MIME_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".js": "text/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

_NOT_FOUND_PAGE = """<!DOCTYPE html>
<html>
<head><title>404 Not Found</title></head>
<body>
    <h1>404 - Page not found</h1>
    <p>The requested file does not exist: {path}</p>
    <p><a href="/">Back to home</a></p>
</body>
</html>
"""


def mime_type_for(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower(), DEFAULT_MIME_TYPE)


class StaticFiles:
    """Resolves request paths inside one root directory.

    Anything that resolves outside the root (``..`` segments, absolute
    paths, symlinks pointing elsewhere) is treated as missing.
    """

    def __init__(self, root: str | Path, index: str = "index.html") -> None:
        self._root = Path(root).resolve()
        self._index = index

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, request_path: str) -> Path | None:
        """Map a URL path to a file under the root, or None."""
        relative = request_path.lstrip("/")
        if not relative:
            relative = self._index

        try:
            candidate = (self._root / relative).resolve()
        except (OSError, ValueError):
            return None

        if not candidate.is_relative_to(self._root):
            return None
        if candidate.is_dir():
            candidate = candidate / self._index
        if not candidate.is_file():
            return None
        return candidate

    async def handle(self, request: web.Request) -> web.StreamResponse:
        path = self.resolve(request.path)
        if path is None:
            logger.info("static_file_not_found", path=request.path)
            return web.Response(
                status=404,
                text=_NOT_FOUND_PAGE.format(path=html.escape(request.path)),
                content_type="text/html",
            )
        return web.FileResponse(path, headers={"Content-Type": mime_type_for(path)})
