"""Centralised configuration settings for the Clearinghouse upload agent.

All environment variable reads are consolidated here into typed, frozen
dataclass instances. Every other module should import the module-level
singletons (``portal_config``, ``browser_config``, ``server_config``) from
this module instead of calling ``os.getenv()`` directly.

Secrets (portal credentials and the TOTP seed) are loaded exclusively from
environment variables, typically a local ``.env`` file read by the entry
points via ``python-dotenv``. No values are hard-coded.
"""

import logging
import os
from dataclasses import dataclass, field

__all__ = [
    "portal_config",
    "browser_config",
    "server_config",
    "get_settings",
    "PortalConfig",
    "BrowserConfig",
    "ServerConfig",
    "DEFAULT_LOGIN_URL",
    "DEFAULT_BULK_UPLOAD_URL",
]

DEFAULT_LOGIN_URL: str = "https://secure.login.gov/"
DEFAULT_BULK_UPLOAD_URL: str = "https://clearinghouse.fmcsa.dot.gov/Query/Add/Bulk"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class PortalConfig:
    """Clearinghouse portal account and navigation configuration.

    Attributes:
        email: login.gov account email.
        password: login.gov account password.
        totp_secret: Base32 seed of the authenticator app registered on the
            login.gov account. Empty disables automatic second-factor entry.
        company_uuid: Default employer identifier used when a run does not
            name one explicitly.
        login_url: Entry point of the sign-in flow.
        bulk_upload_url: Address of the bulk query upload form.
        submit_upload: When ``True``, the upload form is submitted after the
            file is attached. Off by default: the file is only attached.
    """

    email: str = field(
        default_factory=lambda: os.getenv("FMCSA_EMAIL", "")
    )
    password: str = field(
        default_factory=lambda: os.getenv("FMCSA_PASSWORD", "")
    )
    totp_secret: str = field(
        default_factory=lambda: os.getenv("TOTP_SECRET", "")
    )
    company_uuid: str = field(
        default_factory=lambda: os.getenv("COMPANY_UUID", "")
    )
    login_url: str = field(
        default_factory=lambda: os.getenv("LOGIN_URL", DEFAULT_LOGIN_URL)
    )
    bulk_upload_url: str = field(
        default_factory=lambda: os.getenv(
            "BULK_UPLOAD_URL", DEFAULT_BULK_UPLOAD_URL
        )
    )
    submit_upload: bool = field(
        default_factory=lambda: _env_flag("SUBMIT_UPLOAD")
    )


@dataclass(frozen=True)
class BrowserConfig:
    """Playwright browser session configuration.

    Attributes:
        headless: Run Chromium without a window. Off for local runs, on in
            the Docker image.
        record_video: Record a video of every session into ``video_dir``.
        video_dir: Directory for session videos and the failure screenshot.
        slow_mo_ms: Delay Playwright inserts between browser operations.
        element_timeout_ms: Wait applied to the required employer select and
            file input before the run is failed.
    """

    headless: bool = field(
        default_factory=lambda: _env_flag("HEADLESS")
    )
    record_video: bool = field(
        default_factory=lambda: _env_flag("RECORD_VIDEO")
    )
    video_dir: str = field(
        default_factory=lambda: os.getenv("VIDEO_DIR", "videos")
    )
    slow_mo_ms: int = field(
        default_factory=lambda: int(os.getenv("SLOW_MO_MS", "100"))
    )
    element_timeout_ms: int = field(
        default_factory=lambda: int(os.getenv("ELEMENT_TIMEOUT_MS", "10000"))
    )

    @property
    def screenshot_path(self) -> str:
        """Return the path the failure screenshot is written to."""
        return os.path.join(self.video_dir, "error.png")


@dataclass(frozen=True)
class ServerConfig:
    """HTTP intake server configuration.

    Attributes:
        host: Interface uvicorn binds to.
        port: Port uvicorn listens on.
        data_dir: Directory generated upload files are written to.
        log_level: Python ``logging`` level string (e.g. ``"INFO"``).
    """

    host: str = field(
        default_factory=lambda: os.getenv("API_HOST", "0.0.0.0")
    )
    port: int = field(
        default_factory=lambda: int(os.getenv("API_PORT", "3100"))
    )
    data_dir: str = field(
        default_factory=lambda: os.getenv("DATA_DIR", "data")
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO")
    )


def get_settings() -> tuple[PortalConfig, BrowserConfig, ServerConfig]:
    """Initialise logging and build all configuration singletons.

    This function is called once at module import time; the results are
    stored as module-level singletons.

    Returns:
        A three-element tuple ``(portal_config, browser_config,
        server_config)``, each a frozen dataclass populated exclusively from
        environment variables.
    """
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    return PortalConfig(), BrowserConfig(), ServerConfig()


portal_config, browser_config, server_config = get_settings()
