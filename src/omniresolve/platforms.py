"""Target platform identifiers.

Platform names follow the engine's target platform spelling (``Win64``,
``Linux``, ``Mac``...) because capability tables and staging directories use
them verbatim (e.g. ``Binaries/Win64``).
"""

import sys
from enum import Enum

from .errors import UnknownPlatformError


class PlatformId(Enum):
    """Build target platform."""

    WIN64 = "Win64"
    LINUX = "Linux"
    LINUX_ARM64 = "LinuxArm64"
    MAC = "Mac"
    ANDROID = "Android"
    IOS = "IOS"

    def __str__(self) -> str:
        """Return the engine spelling for directory names and display."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> "PlatformId":
        """Parse a platform identifier, case-insensitively.

        Args:
            value: Platform name (e.g. "Win64", "win64", "Linux")

        Returns:
            Matching PlatformId

        Raises:
            UnknownPlatformError: If the value names no known platform
        """
        if not isinstance(value, str) or not value.strip():
            raise UnknownPlatformError(f"Invalid platform identifier: {value!r}")

        wanted = value.strip().lower()
        for platform in cls:
            if platform.value.lower() == wanted:
                return platform

        known = ", ".join(p.value for p in cls)
        raise UnknownPlatformError(f"Unknown platform identifier: {value!r} (expected one of: {known})")

    @classmethod
    def host(cls) -> "PlatformId":
        """Best guess of the platform the resolver is running on."""
        if sys.platform == "win32":
            return cls.WIN64
        if sys.platform == "darwin":
            return cls.MAC
        return cls.LINUX
