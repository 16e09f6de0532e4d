from __future__ import annotations

import asyncio
import logging

from playwright.async_api import async_playwright

from app.core.errors import RenderError

logger = logging.getLogger(__name__)


class ScreenshotRenderer:
    """Capture a PNG of a web page with headless Chromium."""

    def __init__(
        self,
        timeout: float = 60.0,
        viewport: tuple[int, int] = (1200, 800),
        settle_seconds: float = 5.0,
    ) -> None:
        self.timeout = timeout
        self.viewport = viewport
        self.settle_seconds = settle_seconds

    async def _capture(self, url: str) -> bytes:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=True, args=["--no-sandbox", "--disable-setuid-sandbox"])
            try:
                page = await browser.new_page(viewport={"width": self.viewport[0], "height": self.viewport[1]})
                await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout * 1000)
                # the bubble map draws client-side after the DOM is ready
                await asyncio.sleep(self.settle_seconds)
                return await page.screenshot(type="png")
            finally:
                await browser.close()

    async def render(self, url: str) -> bytes:
        try:
            image = await asyncio.wait_for(self._capture(url), timeout=self.timeout)
        except Exception as exc:  # noqa: BLE001
            raise RenderError(f"Screenshot failed for {url}: {exc!r}") from exc
        if not image:
            raise RenderError(f"Empty screenshot for {url}")
        return image
