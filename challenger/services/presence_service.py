"""In-process presence service.

Records avatar deliveries instead of driving a real avatar. Hosts can read
`deliveries` to mirror the avatar state (current emotion and expression)
to their clients.
"""

from dataclasses import dataclass
from typing import List, Optional

import structlog

from challenger.core.exceptions import PresenceError
from challenger.domain.models.challenge import PresenceAck

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Delivery:
    audio_bytes: int
    emotion: str
    expression: str


class RecordingPresenceService:
    """Presence service that keeps a log of deliveries."""

    def __init__(self, avatar: str = "challenger"):
        self.avatar = avatar
        self.deliveries: List[Delivery] = []

    @property
    def last_delivery(self) -> Optional[Delivery]:
        return self.deliveries[-1] if self.deliveries else None

    async def deliver(self, audio: bytes, emotion: str, expression: str) -> PresenceAck:
        """
        Record an avatar delivery.

        Raises:
            PresenceError: If there is no audio to deliver
        """
        if not audio:
            raise PresenceError("No audio to deliver")

        delivery = Delivery(audio_bytes=len(audio), emotion=emotion, expression=expression)
        self.deliveries.append(delivery)

        log.debug(
            "presence_delivered",
            avatar=self.avatar,
            emotion=emotion,
            expression=expression,
            audio_bytes=delivery.audio_bytes,
        )
        return PresenceAck(delivered=True, detail=f"{emotion}/{expression}")
