"""Portal-specific Playwright automation modules."""

from auto_apply.platforms.base_platform import (
    BasePortalAutomation,
    UploadResult,
    PortalAutomationError,
)
from auto_apply.platforms.clearinghouse import ClearinghouseBulkUpload

__all__ = [
    "BasePortalAutomation",
    "UploadResult",
    "PortalAutomationError",
    "ClearinghouseBulkUpload",
]
