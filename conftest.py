# conftest.py
# Shared fakes for driving the portal automation without a real browser.

from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from config.settings import BrowserConfig, PortalConfig


class FakeElement:
    """A DOM element registered on a FakePage under one selector string."""

    def __init__(self, visible: bool = True, on_click: Optional[Callable] = None):
        self.visible = visible
        self.on_click = on_click
        self.filled: Optional[str] = None
        self.clicks: int = 0
        self.selected: Optional[str] = None
        self.files: Optional[str] = None


class FakeLocator:
    """Mimics the subset of ``playwright.async_api.Locator`` the code uses."""

    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector
        self.element: Optional[FakeElement] = page.elements.get(selector)

    @property
    def first(self) -> "FakeLocator":
        return self

    def _require(self) -> FakeElement:
        if self.element is None or not self.element.visible:
            raise PlaywrightTimeoutError(f"Timeout waiting for {self.selector}")
        return self.element

    async def count(self) -> int:
        return 1 if self.element is not None else 0

    async def is_visible(self) -> bool:
        return self.element is not None and self.element.visible

    async def wait_for(self, state: str = "visible", timeout: Optional[int] = None) -> None:
        self._require()

    async def fill(self, value: str) -> None:
        self._require().filled = value

    async def click(self) -> None:
        element = self._require()
        element.clicks += 1
        if element.on_click:
            element.on_click(self.page)

    async def select_option(self, value: str) -> None:
        self._require().selected = value

    async def set_input_files(self, files: str) -> None:
        self._require().files = files


class FakePage:
    """Mimics the subset of ``playwright.async_api.Page`` the code uses."""

    def __init__(self):
        self.url: str = "about:blank"
        self.elements: dict[str, FakeElement] = {}
        self.redirects: dict[str, str] = {}
        self.visited: list[str] = []
        self.load_states: list[str] = []
        self.waits: list[int] = []
        self.screenshots: list[dict] = []
        self.screenshot_error: Optional[Exception] = None

    def add(self, selector: str, visible: bool = True, on_click: Optional[Callable] = None) -> FakeElement:
        element = FakeElement(visible=visible, on_click=on_click)
        self.elements[selector] = element
        return element

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def goto(self, url: str, **kwargs) -> None:
        self.visited.append(url)
        # Redirects fire once, like an interstitial page.
        self.url = self.redirects.pop(url, url)

    async def wait_for_load_state(self, state: str = "load", **kwargs) -> None:
        self.load_states.append(state)

    async def wait_for_timeout(self, timeout: int) -> None:
        self.waits.append(timeout)

    async def screenshot(self, **kwargs) -> bytes:
        if self.screenshot_error is not None:
            raise self.screenshot_error
        self.screenshots.append(kwargs)
        return b""


class FakePlaywrightSession:
    """Stands in for ``async_playwright()`` and the browser/context it opens."""

    def __init__(self, page: FakePage):
        self.page = page
        self.context = MagicMock()
        self.context.new_page = AsyncMock(return_value=page)
        self.context.close = AsyncMock()
        self.browser = MagicMock()
        self.browser.new_context = AsyncMock(return_value=self.context)
        self.browser.close = AsyncMock()
        self.chromium = MagicMock()
        self.chromium.launch = AsyncMock(return_value=self.browser)

    def __call__(self) -> "FakePlaywrightSession":
        return self

    async def __aenter__(self) -> "FakePlaywrightSession":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def portal_page(fake_page) -> FakePage:
    """A page on which every login and upload element is present."""
    from auto_apply.platforms import clearinghouse as ch

    fake_page.add(ch.EMAIL_SELECTOR)
    fake_page.add(ch.PASSWORD_SELECTOR)
    fake_page.add(ch.SUBMIT_SELECTOR)
    fake_page.add(ch.OTP_SELECTOR)
    fake_page.add(ch.EMPLOYER_SELECTOR)
    fake_page.add(ch.NEXT_SELECTOR)
    fake_page.add(ch.FILE_INPUT_SELECTOR)
    return fake_page


@pytest.fixture
def fake_session(fake_page) -> FakePlaywrightSession:
    return FakePlaywrightSession(fake_page)


@pytest.fixture
def portal() -> PortalConfig:
    return PortalConfig(
        email="safety@example.com",
        password="hunter2",
        totp_secret="JBSWY3DPEHPK3PXP",
        company_uuid="default-company-uuid",
        login_url="https://secure.login.gov/",
        bulk_upload_url="https://clearinghouse.fmcsa.dot.gov/Query/Add/Bulk",
        submit_upload=False,
    )


@pytest.fixture
def browser_settings(tmp_path) -> BrowserConfig:
    return BrowserConfig(
        headless=True,
        record_video=False,
        video_dir=str(tmp_path / "videos"),
        slow_mo_ms=0,
        element_timeout_ms=50,
    )


@pytest.fixture
def upload_file(tmp_path):
    path = tmp_path / "drivers.tsv"
    path.write_text("LastName\tFirstName\tDOB\tCDL\tCountry\tState\tQueryType", encoding="utf-8")
    return path
