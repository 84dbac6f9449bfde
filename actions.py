"""Desktop action executor: phone links, web pages and app launch URLs."""

from __future__ import annotations

import logging

try:
    from PySide6.QtCore import QUrl
    from PySide6.QtGui import QDesktopServices
except Exception:  # pragma: no cover
    QUrl = None  # type: ignore
    QDesktopServices = None  # type: ignore

logger = logging.getLogger(__name__)

# Desktop entry points for the apps the interpreter knows about.
APP_URLS = {
    "youtube": "https://www.youtube.com",
    "whatsapp": "whatsapp://",
}


class DesktopActionExecutor:
    """Hands URLs to the desktop's registered handlers.

    Every method returns False and logs when no handler can take the URL; it
    never raises for an unavailable handler.
    """

    def __init__(self, app_urls: dict[str, str] | None = None) -> None:
        self._app_urls = dict(APP_URLS if app_urls is None else app_urls)

    def dial(self, digits: str) -> bool:
        return self._open(f"tel:{digits}")

    def browse(self, url: str) -> bool:
        return self._open(url)

    def launch_app(self, app_id: str) -> bool:
        url = self._app_urls.get(app_id)
        if url is None:
            logger.warning("No launcher registered for app %r", app_id)
            return False
        return self._open(url)

    def _open(self, url: str) -> bool:
        if QDesktopServices is None or QUrl is None:
            logger.warning("PySide6 is not installed, cannot open %s", url)
            return False
        opened = bool(QDesktopServices.openUrl(QUrl(url)))
        if not opened:
            logger.warning("No handler available for %s", url)
        return opened
