"""Weighted selection of Runway credentials."""

import logging
import random
from typing import Iterable, Optional

from .models import ServiceCredential, ServiceModel

logger = logging.getLogger(__name__)


def parse_credentials(entries: Iterable[str]) -> list[ServiceCredential]:
    """
    Parse ``key`` or ``key:weight`` strings into credentials.

    Args:
        entries: Raw entries, e.g. from the RUNWAY_API_KEYS variable

    Returns:
        List of credentials bound to the Gen-2 model
    """
    credentials = []
    for entry in entries:
        key, _, weight = entry.partition(":")
        if not key:
            continue
        credentials.append(
            ServiceCredential(api_key=key, weight=int(weight) if weight else 1)
        )
    return credentials


def resolve_credential(
    pool: Iterable[ServiceCredential],
    api_key: Optional[str] = None,
    service_model: ServiceModel = ServiceModel.RUNWAY_GEN2,
) -> ServiceCredential:
    """
    Pick one credential from the pool.

    Each credential is repeated ``weight`` times before sampling, so heavier
    keys are picked proportionally more often. Passing ``api_key`` pins the
    choice to that key.
    """
    candidates = [c for c in pool if c.service_model == service_model]
    expanded = [c for c in candidates for _ in range(max(c.weight, 0))]

    if api_key:
        for credential in candidates:
            if credential.api_key == api_key:
                return credential
        raise ValueError(f"API key {api_key[:6]}... is not in the {service_model.value} pool")

    if not expanded:
        raise ValueError(f"No credentials available for {service_model.value}")

    credential = random.choice(expanded)
    logger.debug(f"Selected credential {credential.api_key[:6]}... of {len(candidates)}")
    return credential
