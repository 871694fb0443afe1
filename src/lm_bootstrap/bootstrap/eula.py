"""Two-phase EULA acceptance.

The appliance hands out a magic string with each EULA page, and the next
step must echo it back:

    readeula                  -> EULA 1 + magic 1
    accepteula  (magic 1)     -> EULA 2 + magic 2
    accepteula2 (magic 2)     -> accepted

A handshake instance enforces that order for one appliance. Calling a
step early, twice, or with a token it did not hand out raises
SequenceError without touching the appliance.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..errors import SequenceError
from ..shared.logging import get_logger
from .connection import ConnectionTarget

if TYPE_CHECKING:
    from ..client import EulaPage, LoadMasterClient

logger = get_logger(__name__)


class EulaStage(Enum):
    """Progress through the handshake."""

    NOT_STARTED = "not_started"
    FIRST_READ = "first_read"
    FIRST_CONFIRMED = "first_confirmed"
    ACCEPTED = "accepted"


@dataclass(frozen=True)
class EulaToken:
    """Opaque magic string issued at a given handshake stage."""

    value: str
    stage: EulaStage


class EulaHandshake:
    """Sequence the EULA challenge/response for one appliance."""

    def __init__(self, client: LoadMasterClient, target: ConnectionTarget):
        self.client = client
        self.target = target
        self.stage = EulaStage.NOT_STARTED
        self._issued: EulaToken | None = None

    def _require(self, stage: EulaStage, token: EulaToken | None, step: str) -> None:
        if self.stage != stage:
            raise SequenceError(
                message=f"{step} called at stage '{self.stage.value}', expected '{stage.value}'",
                data={"address": self.target.address, "step": step},
            )
        if token is not None and (token != self._issued or not token.value):
            raise SequenceError(
                message=f"{step} called with a token this handshake did not issue",
                data={"address": self.target.address, "step": step},
            )

    def _issue(self, page: EulaPage, stage: EulaStage, step: str) -> EulaToken:
        if not page.magic:
            raise SequenceError(
                message=f"{step} returned no magic string",
                data={"address": self.target.address, "step": step},
            )
        logger.debug(
            "eula page received",
            target=str(self.target),
            step=step,
            magic=page.magic,
            text=page.text,
        )
        self.stage = stage
        self._issued = EulaToken(value=page.magic, stage=stage)
        return self._issued

    async def read_first(self) -> EulaToken:
        """Step 1: read EULA 1."""
        self._require(EulaStage.NOT_STARTED, None, "readeula")
        page = await self.client.read_eula(self.target)
        return self._issue(page, EulaStage.FIRST_READ, "readeula")

    async def confirm_first(self, token: EulaToken) -> EulaToken:
        """Step 2: acknowledge EULA 1, receive EULA 2."""
        self._require(EulaStage.FIRST_READ, token, "accepteula")
        page = await self.client.accept_eula(self.target, token.value)
        return self._issue(page, EulaStage.FIRST_CONFIRMED, "accepteula")

    async def confirm_second(self, token: EulaToken, accept: bool = True) -> None:
        """Step 3: accept EULA 2."""
        self._require(EulaStage.FIRST_CONFIRMED, token, "accepteula2")
        await self.client.accept_eula2(self.target, token.value, accept=accept)
        self.stage = EulaStage.ACCEPTED
        self._issued = None
        logger.info("eula accepted", target=str(self.target))

    async def run(self) -> None:
        """Run all three steps in order."""
        first = await self.read_first()
        second = await self.confirm_first(first)
        await self.confirm_second(second)
