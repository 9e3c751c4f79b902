"""Automatic joining of rooms the bot is invited to.

Homeservers sometimes deliver an invite before the invited user is able to
join, so a failed join is retried with exponentially growing delays until
it succeeds or the delay grows past a ceiling.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import trio

from core.models import InviteEvent

logger = logging.getLogger(__name__)

INITIAL_DELAY = 2
DELAY_CEILING = 3600

JoinAction = Callable[[str], Awaitable[Any]]


class AutojoinState(enum.Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    JOINED = "joined"
    GIVING_UP = "giving_up"


@dataclass
class BackoffState:
    """Delay before the next join attempt, in seconds.

    Attributes:
        delay: How long to wait after the current failure
        ceiling: Retrying stops once ``delay`` grows past this
    """
    delay: float = INITIAL_DELAY
    ceiling: float = DELAY_CEILING

    @property
    def exceeded(self) -> bool:
        return self.delay > self.ceiling

    def advance(self) -> None:
        self.delay *= 2


class Autojoiner:
    """Accepts invitations addressed to the bot.

    Each invitation is handled by its own ``handle_invite`` call, normally
    started in a nursery so retries never hold up the sync loop.

    Attributes:
        own_user_id: The bot's own Matrix user id
        rooms: Rooms with a join attempt in progress; an entry is removed
            once its ``handle_invite`` call returns or is cancelled
    """

    def __init__(
        self,
        own_user_id: str,
        join: JoinAction,
        initial_delay: float = INITIAL_DELAY,
        ceiling: float = DELAY_CEILING,
    ) -> None:
        """
        Args:
            own_user_id: The bot's own Matrix user id
            join: Coroutine function joining a room id, raising on failure
            initial_delay: Delay after the first failure
            ceiling: Largest delay still followed by another attempt
        """
        self.own_user_id = own_user_id
        self.rooms: Dict[str, AutojoinState] = {}
        self._join = join
        self._initial_delay = initial_delay
        self._ceiling = ceiling

    def state(self, room_id: str) -> AutojoinState:
        """ATTEMPTING while a join for ``room_id`` is in progress, else IDLE."""
        return self.rooms.get(room_id, AutojoinState.IDLE)

    async def handle_invite(self, event: InviteEvent) -> AutojoinState:
        """Join the room of an invitation if it is addressed to the bot.

        After each failed attempt this sleeps for the current delay and
        doubles it; once the doubled delay is past the ceiling it logs the
        room and the last error and stops. With the defaults that is after
        11 failed attempts.

        Returns:
            IDLE if the invite was not for us, JOINED or GIVING_UP otherwise
        """
        if event.state_key != self.own_user_id:
            logger.debug("Got invite for %s that isn't for us", event.state_key)
            return AutojoinState.IDLE

        logger.info("Autojoining room %s", event.room_id)
        self.rooms[event.room_id] = AutojoinState.ATTEMPTING
        try:
            return await self._join_with_backoff(event.room_id)
        finally:
            self.rooms.pop(event.room_id, None)

    async def _join_with_backoff(self, room_id: str) -> AutojoinState:
        backoff = BackoffState(delay=self._initial_delay, ceiling=self._ceiling)
        attempts = 0
        last_error: Optional[Exception] = None

        while True:
            attempts += 1
            try:
                await self._join(room_id)
            except Exception as e:  # pylint: disable=broad-exception-caught
                last_error = e
            else:
                logger.info(
                    "Successfully joined room %s after %s attempt(s)", room_id, attempts
                )
                return AutojoinState.JOINED

            logger.error(
                "Failed to join room %s (%s), retrying in %ss",
                room_id,
                last_error,
                backoff.delay,
            )
            await trio.sleep(backoff.delay)
            backoff.advance()

            if backoff.exceeded:
                logger.error(
                    "Can't join room %s after %s attempts (%s)",
                    room_id,
                    attempts,
                    last_error,
                )
                return AutojoinState.GIVING_UP
