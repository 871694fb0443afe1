"""License state detection.

Classifies an appliance as licensed or unlicensed. Detection is the only
read-only call in the sequence, so it is the only one that may be retried;
the default of a single attempt keeps every failure immediate.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ..errors import TransportError
from ..shared.logging import get_logger
from .connection import ConnectionTarget, Credential
from .state import LicenseState

if TYPE_CHECKING:
    from ..client import LicenseInfo, LoadMasterClient

logger = get_logger(__name__)


class LicenseDetector:
    """Query license state, with bounded retries for transient faults."""

    def __init__(
        self,
        client: LoadMasterClient,
        max_attempts: int = 1,
        interval_seconds: float = 2.0,
    ):
        """Initialize detector.

        Args:
            client: API client
            max_attempts: Attempts for retryable transport errors (1 = no retry)
            interval_seconds: Seconds between attempts
        """
        self.client = client
        self.max_attempts = max(1, max_attempts)
        self.interval_seconds = interval_seconds
        self.last_info: LicenseInfo | None = None

    async def detect(
        self, target: ConnectionTarget, credential: Credential | None = None
    ) -> LicenseState:
        """Classify the appliance at target.

        Raises:
            TransportError: If the query fails; an error never means unlicensed.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                info = await self.client.query_license(target, credential)
                break
            except TransportError as e:
                if not e.retryable or attempt == self.max_attempts:
                    raise
                logger.warning(
                    "license query failed, retrying",
                    target=str(target),
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error=e.message,
                )
                await asyncio.sleep(self.interval_seconds)

        self.last_info = info
        state = LicenseState.LICENSED if info.licensed else LicenseState.UNLICENSED
        logger.info(
            "license state detected", target=str(target), state=state.value, status=info.status
        )
        return state
