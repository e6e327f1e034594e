"""Capture the API signing key from the RematchTracker web app.

The site signs its own API calls in the browser with a key it imports through
``crypto.subtle.importKey``. We load the site in headless Chromium with an
init script that copies the raw HMAC key aside and then passes the call
through untouched, make the page sign one harmless request, and read the copy.
"""

from __future__ import annotations

import logging

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .errors import ExtractionFailed
from .secret_store import SigningSecret
from .utils import now_ms

logger = logging.getLogger(__name__)

APP_ORIGIN = "https://www.rematchtracker.com"

KEY_CAPTURE_SCRIPT = """
(() => {
    const originalImportKey = crypto.subtle.importKey.bind(crypto.subtle);
    crypto.subtle.importKey = async function(format, keyData, algorithm, extractable, keyUsages) {
        const name = algorithm && (algorithm.name || algorithm);
        if (format === 'raw' && name === 'HMAC') {
            window.__capturedSecret = new TextDecoder().decode(keyData);
        }
        return originalImportKey(format, keyData, algorithm, extractable, keyUsages);
    };
})();
"""

# fired without awaiting: the key import happens before the request goes out
TRIGGER_SCRIPT = """
() => {
    Promise.resolve()
        .then(() => window.api.post('/scrap/resolve', { platform: 'steam', identifier: 'test' }))
        .catch(() => {});
}
"""

READY_PREDICATE = "() => window.api !== undefined"
CAPTURED_PREDICATE = "() => !!window.__capturedSecret"
READ_SLOT = "() => window.__capturedSecret || null"


class SecretExtractor:
    """One-shot browser run that returns the key seen during a key import."""

    def __init__(
        self,
        origin: str = APP_ORIGIN,
        headless: bool = True,
        navigation_timeout_ms: int = 60000,
        ready_timeout_ms: int = 15000,
        settle_ms: int = 1000,
    ) -> None:
        self.origin = origin
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.ready_timeout_ms = ready_timeout_ms
        self.settle_ms = settle_ms

    def extract(self) -> SigningSecret:
        try:
            captured = self._run_browser()
        except PlaywrightError as exc:
            raise ExtractionFailed(f"Browser automation failed: {exc}") from exc
        if not captured:
            raise ExtractionFailed("Signing key was never imported by the page")
        return SigningSecret(value=captured, acquired_at=now_ms())

    def _run_browser(self) -> str | None:
        with sync_playwright() as p:
            browser = p.chromium.launch(
                headless=self.headless,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
            try:
                context = browser.new_context()
                context.add_init_script(KEY_CAPTURE_SCRIPT)
                page = context.new_page()
                logger.debug("Opening %s", self.origin)
                page.goto(
                    self.origin,
                    wait_until="domcontentloaded",
                    timeout=self.navigation_timeout_ms,
                )
                page.wait_for_function(READY_PREDICATE, timeout=self.ready_timeout_ms)
                page.evaluate(TRIGGER_SCRIPT)
                try:
                    # a timeout of 0 would disable the limit in Playwright
                    page.wait_for_function(CAPTURED_PREDICATE, timeout=max(1, self.settle_ms))
                except PlaywrightTimeoutError:
                    logger.debug("No key import seen within %d ms", self.settle_ms)
                return page.evaluate(READ_SLOT)
            finally:
                browser.close()
