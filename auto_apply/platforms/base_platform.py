"""Base class for portal-specific Playwright automation modules.

Provides shared Playwright helpers for tolerant (optional) field filling and
clicking, required-element waits, navigation, and the standardised
result/error types. Portal modules (clearinghouse.py) inherit from
BasePortalAutomation and implement ``run()`` as a linear sequence of steps.

Optional helpers never raise on a missing element: they log and return
``False``. Required helpers raise ``PortalAutomationError`` so the caller's
top-level handler can capture a screenshot and tear the session down.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from playwright.async_api import (
    Error as PlaywrightError,
    Locator,
    Page,
    TimeoutError as PlaywrightTimeoutError,
)

from config.settings import PortalConfig

logger = logging.getLogger(__name__)

__all__ = ["BasePortalAutomation", "UploadResult", "PortalAutomationError"]


# ---------------------------------------------------------------------------
# Result / Error Types
# ---------------------------------------------------------------------------


@dataclass
class UploadResult:
    """Return value of a completed portal run.

    Failures are raised, never returned, so every instance describes a run
    that reached its last step.

    Attributes:
        platform: Portal module name (e.g. ``"fmcsa_clearinghouse"``).
        company_uuid: Employer identifier the upload was made under.
        file_path: Absolute path of the uploaded file.
        final_url: Page URL when the run finished.
        steps_completed: Number of steps executed.
        steps_total: Total steps defined by the portal module.
    """

    platform: str
    company_uuid: str
    file_path: str
    final_url: str
    steps_completed: int
    steps_total: int


class PortalAutomationError(Exception):
    """A required element or condition was missing during a portal run.

    Attributes:
        step: Name of the step that failed (e.g. ``"select_employer"``).
    """

    def __init__(self, step: str, message: str) -> None:
        super().__init__(message)
        self.step = step


# ---------------------------------------------------------------------------
# Base Class
# ---------------------------------------------------------------------------


class BasePortalAutomation(ABC):
    """Abstract base for portal-specific Playwright automation modules.

    Subclasses must set ``PLATFORM_NAME`` and ``STEPS_TOTAL`` class
    variables and implement the ``run()`` coroutine.

    Constructor Args:
        page: Live Playwright async Page object.
        portal: Portal account and URL configuration.
        element_timeout_ms: Wait applied to required elements.
    """

    PLATFORM_NAME: str = "base"
    STEPS_TOTAL: int = 1

    def __init__(
        self,
        page: Page,
        portal: PortalConfig,
        element_timeout_ms: int = 10000,
    ) -> None:
        self.page = page
        self.portal = portal
        self.element_timeout_ms = element_timeout_ms
        self.steps_completed: int = 0
        self.logger = logging.getLogger(
            f"{__name__}.{self.__class__.__name__}"
        )

    # ------------------------------------------------------------------
    # Optional Element Helpers
    # ------------------------------------------------------------------

    async def _first_visible(self, selector: str) -> Locator | None:
        """Return the first match of ``selector`` if it is visible now.

        Does not wait. Returns ``None`` when nothing matches or the first
        match is hidden.
        """
        locator: Locator = self.page.locator(selector)
        if await locator.count() > 0 and await locator.first.is_visible():
            return locator.first
        return None

    async def _fill_if_visible(
        self,
        selector: str,
        value: str,
        label: str,
    ) -> bool:
        """Fill the first visible match of ``selector``.

        Args:
            selector: CSS selector (comma-separated alternatives allowed).
            value: Value to fill.
            label: Human-readable field name for logging. Never the value.

        Returns:
            True if the field was filled, False if absent or not fillable.
        """
        try:
            field = await self._first_visible(selector)
            if field is None:
                self.logger.info("%s field not found, skipping", label)
                return False
            await field.fill(value)
            self.logger.info("Filled %s.", label)
            return True
        except PlaywrightError as e:
            self.logger.warning("Could not fill %s: %s", label, e)
            return False

    async def _click_if_present(
        self,
        selector: str,
        label: str,
        require_visible: bool = True,
    ) -> bool:
        """Click the first match of ``selector`` if one exists.

        Args:
            selector: CSS selector (comma-separated alternatives allowed).
            label: Human-readable button name for logging.
            require_visible: Also require the match to be visible.

        Returns:
            True if a click was made, False otherwise.
        """
        try:
            if require_visible:
                button = await self._first_visible(selector)
            else:
                locator = self.page.locator(selector)
                button = locator.first if await locator.count() > 0 else None
            if button is None:
                self.logger.info("%s button not found, moving on", label)
                return False
            await button.click()
            self.logger.info("Clicked %s.", label)
            return True
        except PlaywrightError as e:
            self.logger.warning("Could not click %s: %s", label, e)
            return False

    async def _wait_and_click(
        self,
        selector: str,
        label: str,
        timeout: int = 5000,
    ) -> bool:
        """Wait up to ``timeout`` ms for a button, click it, await network idle.

        Returns:
            True on click, False if the button never became clickable.
        """
        button: Locator = self.page.locator(selector).first
        try:
            await button.wait_for(state="visible", timeout=timeout)
            await button.click()
            await self.page.wait_for_load_state("networkidle")
            self.logger.info("Clicked %s.", label)
            return True
        except PlaywrightError:
            self.logger.info(
                "%s button not found or not clickable, moving on...", label
            )
            return False

    async def _wait_visible(self, selector: str, timeout: int) -> Locator | None:
        """Wait up to ``timeout`` ms for ``selector``; ``None`` if it never shows."""
        locator: Locator = self.page.locator(selector).first
        try:
            await locator.wait_for(state="visible", timeout=timeout)
            return locator
        except PlaywrightTimeoutError:
            return None

    # ------------------------------------------------------------------
    # Required Element Helpers
    # ------------------------------------------------------------------

    async def _require_visible(self, selector: str, step: str) -> Locator:
        """Wait for a required element, failing the run if it never shows.

        Raises:
            PortalAutomationError: If ``selector`` is not visible within
                ``element_timeout_ms``.
        """
        locator = await self._wait_visible(selector, self.element_timeout_ms)
        if locator is None:
            raise PortalAutomationError(
                step,
                f"Required element {selector} not visible after "
                f"{self.element_timeout_ms} ms (current URL: {self.page.url})",
            )
        return locator

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def _navigate(self, url: str) -> None:
        """Go to ``url`` and wait for ``domcontentloaded``."""
        await self.page.goto(url)
        await self.page.wait_for_load_state("domcontentloaded")

    # ------------------------------------------------------------------
    # Result Builder
    # ------------------------------------------------------------------

    def _build_result(self, company_uuid: str, file_path: str) -> UploadResult:
        return UploadResult(
            platform=self.PLATFORM_NAME,
            company_uuid=company_uuid,
            file_path=file_path,
            final_url=self.page.url,
            steps_completed=self.steps_completed,
            steps_total=self.STEPS_TOTAL,
        )

    # ------------------------------------------------------------------
    # Abstract Interface
    # ------------------------------------------------------------------

    @abstractmethod
    async def run(self) -> UploadResult:
        """Execute the full portal flow.

        Returns:
            UploadResult describing the completed run.

        Raises:
            PortalAutomationError: When a required element is missing.
        """
        ...
