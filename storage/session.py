"""Persisted login session, used to skip password login on restart."""
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Optional

from storage.file_store import JSONFileStore, StoreError

logger = logging.getLogger(__name__)

SESSION_FILENAME = "session.json"


@dataclass(frozen=True)
class Session:
    """Credentials of a logged in device.

    Attributes:
        homeserver: Homeserver URL the session belongs to
        access_token: Access token issued at login
        user_id: User the access token was issued for
        device_id: Device id issued at login
    """
    homeserver: str
    access_token: str
    user_id: str
    device_id: str

    def save(self, session_path: str) -> None:
        """Write the session to ``<session_path>/session.json``.

        Replaces any earlier session atomically.

        Raises:
            OSError: The directory or file could not be written
            StoreError: The session could not be encoded
        """
        logger.info("Saving session to %s", session_path)
        os.makedirs(session_path, exist_ok=True)
        JSONFileStore(os.path.join(session_path, SESSION_FILENAME)).write(asdict(self))

    @classmethod
    def load(cls, session_path: str) -> Optional["Session"]:
        """Read the session saved under ``session_path``.

        Returns:
            The session, or None if there is no readable, complete session
        """
        store = JSONFileStore(os.path.join(session_path, SESSION_FILENAME))
        try:
            data = store.read()
        except (OSError, StoreError) as e:
            logger.debug("No usable session in %s: %s", session_path, e)
            return None

        values = {}
        for f in fields(cls):
            value = data.get(f.name)
            if not isinstance(value, str):
                logger.debug("Session in %s lacks %s", session_path, f.name)
                return None
            values[f.name] = value
        return cls(**values)
