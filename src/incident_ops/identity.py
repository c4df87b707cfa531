from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityAsset:
    image: bytes | None = None

    @classmethod
    def wordmark(cls) -> "IdentityAsset":
        return cls(image=None)

    @property
    def has_image(self) -> bool:
        return bool(self.image)


def fetch_identity_asset(url: str, timeout: float = 10.0) -> IdentityAsset:
    if not url:
        return IdentityAsset.wordmark()
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        logger.debug("Logo fetch failed for %s: %s", url, exc)
        return IdentityAsset.wordmark()
    if not 200 <= response.status_code < 300 or not response.content:
        logger.debug("Logo fetch for %s returned status %s", url, response.status_code)
        return IdentityAsset.wordmark()
    return IdentityAsset(image=response.content)
