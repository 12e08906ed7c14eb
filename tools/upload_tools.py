"""Bulk upload tool: the single entry point into the portal automation.

``run_bulk_upload`` is the narrow seam between the durable parts of the
system (HTTP intake, TSV export) and the fragile portal-specific selector
logic. It owns the Playwright session lifecycle:

1. Resolve the employer identifier and upload file. Fails before any
   browser is launched.
2. Launch Chromium (optionally headed, optionally recording video).
3. Run ``ClearinghouseBulkUpload``.
4. On failure, capture a best-effort full-page screenshot and re-raise.
5. Always close the context (flushing video) and the browser.

No retries: a failed run is reported to the caller as-is.
"""

from __future__ import annotations

import logging
import os
from importlib import resources
from pathlib import Path
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError, Page, async_playwright

from auto_apply.platforms.base_platform import UploadResult
from auto_apply.platforms.clearinghouse import ClearinghouseBulkUpload
from config.settings import (
    BrowserConfig,
    PortalConfig,
    browser_config,
    portal_config,
)

logger = logging.getLogger(__name__)

__all__ = ["run_bulk_upload", "resolve_company_uuid", "DEFAULT_SAMPLE_FILE"]

# Shipped as package data so non-editable installs can run without --file.
DEFAULT_SAMPLE_FILE: Path = Path(resources.files("tools") / "samples" / "sample.tsv")

VIDEO_SIZE: dict[str, int] = {"width": 1280, "height": 720}


def resolve_company_uuid(
    company_uuid: Optional[str],
    portal: PortalConfig,
) -> str:
    """Return the explicit employer identifier, else the configured default.

    Raises:
        ValueError: If neither is set.
    """
    target: str = company_uuid or portal.company_uuid
    if not target:
        raise ValueError(
            "Company UUID is required. Please provide it as an argument "
            "or set COMPANY_UUID in your environment variables."
        )
    return target


async def _capture_error_screenshot(page: Page, path: str) -> None:
    """Save a full-page screenshot to ``path``; failures are only logged."""
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        await page.screenshot(path=path, full_page=True)
        logger.info("Saved error screenshot to %s", path)
    except (PlaywrightError, OSError) as ss_exc:
        logger.warning("Error screenshot failed: %s", ss_exc)


async def run_bulk_upload(
    data_file_path: Optional[str | Path] = None,
    company_uuid: Optional[str] = None,
    *,
    portal: Optional[PortalConfig] = None,
    browser_settings: Optional[BrowserConfig] = None,
) -> UploadResult:
    """Log in to the Clearinghouse and upload a TSV for one employer.

    Args:
        data_file_path: TSV to upload. Defaults to the bundled
            ``tools/samples/sample.tsv``.
        company_uuid: Employer identifier. Defaults to ``COMPANY_UUID``.
        portal: Portal configuration override (defaults to the singleton).
        browser_settings: Browser configuration override (defaults to the
            singleton).

    Returns:
        UploadResult of the completed run.

    Raises:
        ValueError: No employer identifier in argument or configuration.
        FileNotFoundError: The upload file does not exist.
        PortalAutomationError: A required portal element was missing.
        playwright.async_api.Error: Any other browser failure.
    """
    portal = portal or portal_config
    browser_settings = browser_settings or browser_config

    target_uuid: str = resolve_company_uuid(company_uuid, portal)
    file_path: Path = (
        Path(data_file_path).resolve() if data_file_path else DEFAULT_SAMPLE_FILE
    )
    if not file_path.is_file():
        raise FileNotFoundError(f"Upload file not found: {file_path}")

    logger.info(
        "Starting FMCSA Clearinghouse automation | company=%s | file=%s | headless=%s",
        target_uuid,
        file_path,
        browser_settings.headless,
    )

    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=browser_settings.headless,
            slow_mo=browser_settings.slow_mo_ms,
        )
        try:
            context_kwargs: dict[str, Any] = {}
            if browser_settings.record_video:
                os.makedirs(browser_settings.video_dir, exist_ok=True)
                context_kwargs["record_video_dir"] = browser_settings.video_dir
                context_kwargs["record_video_size"] = VIDEO_SIZE
            context = await browser.new_context(**context_kwargs)

            try:
                page: Page = await context.new_page()
                automation = ClearinghouseBulkUpload(
                    page=page,
                    data_file_path=file_path,
                    company_uuid=target_uuid,
                    portal=portal,
                    element_timeout_ms=browser_settings.element_timeout_ms,
                )
                try:
                    result: UploadResult = await automation.run()
                except Exception as exc:
                    logger.error("An error occurred during automation: %s", exc)
                    await _capture_error_screenshot(page, browser_settings.screenshot_path)
                    raise
            finally:
                # Closing the context is what writes the video file to disk.
                logger.info("Closing context to save video...")
                await context.close()
        finally:
            await browser.close()

    logger.info(
        "Bulk upload finished | company=%s | steps=%d/%d | url=%s",
        result.company_uuid,
        result.steps_completed,
        result.steps_total,
        result.final_url,
    )
    return result
