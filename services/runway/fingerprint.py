"""
Browser fingerprint providers.

The Runway web API expects requests that look like they come from the
Runway web app running in desktop Chrome. Providers supply the User-Agent
and the Sec-Ch-Ua client hint; tests use StaticFingerprint.
"""

import random
from typing import Optional

BRANDS = ["Chromium", "Google Chrome", "Not-A.Brand"]

# User-Agent pool
DESKTOP_USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
]


class FingerprintProvider:
    """Interface for browser fingerprint values."""

    def user_agent(self) -> str:
        raise NotImplementedError

    def sec_ch_ua(self) -> str:
        raise NotImplementedError


class RandomFingerprint(FingerprintProvider):
    """Randomized Chrome fingerprint; Sec-Ch-Ua is regenerated on every call."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def user_agent(self) -> str:
        return self._rng.choice(DESKTOP_USER_AGENTS)

    def _version(self) -> int:
        return self._rng.randint(1, 100)

    def sec_ch_ua(self) -> str:
        first = self._rng.choice(BRANDS)
        second = self._rng.choice(BRANDS)
        return (
            f'"{first}";v="{self._version()}", '
            f'"{second}";v="{self._version()}", '
            f'"Not-A.Brand";v="{self._version()}"'
        )


class StaticFingerprint(FingerprintProvider):
    """Fixed fingerprint values."""

    def __init__(
        self,
        user_agent: str = DESKTOP_USER_AGENTS[0],
        sec_ch_ua: str = '"Chromium";v="131", "Google Chrome";v="131", "Not-A.Brand";v="24"',
    ):
        self._user_agent = user_agent
        self._sec_ch_ua = sec_ch_ua

    def user_agent(self) -> str:
        return self._user_agent

    def sec_ch_ua(self) -> str:
        return self._sec_ch_ua
