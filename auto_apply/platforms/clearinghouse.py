"""FMCSA Drug & Alcohol Clearinghouse bulk query upload module.

Drives the portal through login.gov sign-in, the authenticator-app second
factor, the "Continue" consent page, and the bulk query upload form
(``/Query/Add/Bulk``), where it selects the employer and attaches the TSV.

Selectors are best guesses against the portal's current markup. Everything
before the employer select is tolerant: a missing field is logged and the
run moves on. The employer select (``#EmployerId``) and the file input
(``#BulkFile``) are required.
"""

from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import Page

from auto_apply.platforms.base_platform import (
    BasePortalAutomation,
    UploadResult,
)
from config.settings import PortalConfig
from tools.otp_tools import generate_totp

logger = logging.getLogger(__name__)

__all__ = ["ClearinghouseBulkUpload"]


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

EMAIL_SELECTOR: str = 'input[type="email"], input[name="email"], input[id*="email"]'
PASSWORD_SELECTOR: str = 'input[type="password"]'
SUBMIT_SELECTOR: str = 'button[type="submit"], input[type="submit"]'
OTP_SELECTOR: str = '.one-time-code-input__input, input[autocomplete="one-time-code"]'
CONTINUE_SELECTOR: str = 'button.usa-button--big.usa-button--wide, button:has-text("Continue")'
CONTINUE_TEXT_SELECTOR: str = 'button:has-text("Continue")'
EMPLOYER_SELECTOR: str = "#EmployerId"
NEXT_SELECTOR: str = 'button:has-text("Next"), input[type="submit"], button[type="submit"]'
FILE_INPUT_SELECTOR: str = "#BulkFile"

CONSENT_URL_FRAGMENT: str = "user_authorization_confirmation"

CONSENT_WAIT_MS: int = 5000
POST_OTP_SETTLE_MS: int = 2000
FINAL_SETTLE_MS: int = 3000


# ---------------------------------------------------------------------------
# Clearinghouse Module
# ---------------------------------------------------------------------------


class ClearinghouseBulkUpload(BasePortalAutomation):
    """Clearinghouse 6-step bulk query upload.

    Steps:
        1. Open login.gov and submit email + password.
        2. Enter the TOTP second factor.
        3. Accept the authorization consent page if shown.
        4. Open the bulk upload form (re-handling consent if it intercepts).
        5. Select the employer and advance.
        6. Attach the TSV (and submit when ``submit_upload`` is on).
    """

    PLATFORM_NAME: str = "fmcsa_clearinghouse"
    STEPS_TOTAL: int = 6

    def __init__(
        self,
        page: Page,
        data_file_path: Path,
        company_uuid: str,
        portal: PortalConfig,
        element_timeout_ms: int = 10000,
    ) -> None:
        super().__init__(page, portal, element_timeout_ms)
        self.data_file_path = data_file_path
        self.company_uuid = company_uuid

    async def run(self) -> UploadResult:
        await self._step_login()
        await self._step_second_factor()
        await self._step_confirm_authorization()
        await self._step_open_bulk_upload()
        await self._step_select_employer()
        await self._step_upload_file()

        self.logger.info("Automation steps completed successfully!")
        # Hold the final state long enough for the video to capture it.
        await self.page.wait_for_timeout(FINAL_SETTLE_MS)
        return self._build_result(self.company_uuid, str(self.data_file_path))

    # ------------------------------------------------------------------
    # Step 1: Login
    # ------------------------------------------------------------------

    async def _step_login(self) -> None:
        self.logger.info("Navigating to login page...")
        await self.page.goto(self.portal.login_url)

        if not self.portal.email or not self.portal.password:
            self.logger.warning(
                "FMCSA_EMAIL or FMCSA_PASSWORD not set; login will likely fail"
            )

        await self._fill_if_visible(EMAIL_SELECTOR, self.portal.email, "email")
        await self._fill_if_visible(
            PASSWORD_SELECTOR, self.portal.password, "password"
        )
        await self._click_if_present(
            SUBMIT_SELECTOR, "login", require_visible=False
        )
        self.steps_completed = 1

    # ------------------------------------------------------------------
    # Step 2: Second Factor
    # ------------------------------------------------------------------

    async def _step_second_factor(self) -> None:
        self.logger.info("Checking for 2FA...")

        otp_input = await self._wait_visible(OTP_SELECTOR, self.element_timeout_ms)
        if otp_input is None:
            self.logger.info("No one-time code input found, skipping 2FA")
        elif not self.portal.totp_secret:
            self.logger.warning(
                "2FA input detected but TOTP_SECRET is not set; skipping"
            )
        else:
            self.logger.info("2FA input detected. Generating token...")
            await otp_input.fill(generate_totp(self.portal.totp_secret))
            self.logger.info("Filled 2FA code.")
            await self._click_if_present(
                SUBMIT_SELECTOR, "2FA submit", require_visible=False
            )

        await self.page.wait_for_load_state("networkidle")
        # login.gov sets its session cookies after the redirect settles.
        await self.page.wait_for_timeout(POST_OTP_SETTLE_MS)
        self.logger.info("Current URL after 2FA: %s", self.page.url)
        self.steps_completed = 2

    # ------------------------------------------------------------------
    # Step 3: Consent
    # ------------------------------------------------------------------

    async def _step_confirm_authorization(self) -> None:
        if CONSENT_URL_FRAGMENT in self.page.url:
            self.logger.info('Detected "Continue" page. Waiting for button...')
            await self._wait_and_click(
                CONTINUE_SELECTOR, "Continue", timeout=CONSENT_WAIT_MS
            )
        elif await self._first_visible(CONTINUE_TEXT_SELECTOR) is not None:
            self.logger.info('Found "Continue" button (fallback). Clicking...')
            await self._click_if_present(CONTINUE_TEXT_SELECTOR, "Continue")
            await self.page.wait_for_load_state("networkidle")
        self.steps_completed = 3

    # ------------------------------------------------------------------
    # Step 4: Bulk Upload Page
    # ------------------------------------------------------------------

    async def _step_open_bulk_upload(self) -> None:
        bulk_url: str = self.portal.bulk_upload_url
        self.logger.info("Checking if navigation is needed. Current URL: %s", self.page.url)
        if self.page.url != bulk_url:
            self.logger.info("Navigating to Bulk Query Upload page...")
            await self._navigate(bulk_url)
        self.logger.info("URL after navigation: %s", self.page.url)

        # The consent page can intercept the first navigation.
        intercepted: bool = (
            CONSENT_URL_FRAGMENT in self.page.url
            or await self._first_visible(CONTINUE_TEXT_SELECTOR) is not None
        )
        if intercepted:
            self.logger.info('Detected "Continue" page after navigation.')
            if await self._click_if_present(CONTINUE_SELECTOR, "Continue (post-nav)"):
                await self.page.wait_for_load_state("networkidle")
                if self.page.url != bulk_url:
                    self.logger.info("Re-navigating to Bulk Query Upload page...")
                    await self._navigate(bulk_url)
        self.steps_completed = 4

    # ------------------------------------------------------------------
    # Step 5: Employer
    # ------------------------------------------------------------------

    async def _step_select_employer(self) -> None:
        self.logger.info(
            "Selecting Employer... Current URL: %s", self.page.url
        )
        employer_select = await self._require_visible(
            EMPLOYER_SELECTOR, "select_employer"
        )
        await employer_select.select_option(self.company_uuid)
        self.logger.info("Employer selected.")

        self.logger.info('Looking for "Next" button...')
        if not await self._click_if_present(
            NEXT_SELECTOR, "Next", require_visible=False
        ):
            self.logger.info("Checking if file upload is already visible...")
        self.steps_completed = 5

    # ------------------------------------------------------------------
    # Step 6: Upload
    # ------------------------------------------------------------------

    async def _step_upload_file(self) -> None:
        self.logger.info("Uploading file...")
        file_input = await self._require_visible(FILE_INPUT_SELECTOR, "upload_file")
        await file_input.set_input_files(str(self.data_file_path))
        self.logger.info("File uploaded: %s", self.data_file_path)

        if self.portal.submit_upload:
            if await self._click_if_present(SUBMIT_SELECTOR, "upload submit"):
                await self.page.wait_for_load_state("networkidle")
        else:
            self.logger.info("SUBMIT_UPLOAD is off; file attached, form not submitted")
        self.steps_completed = 6
