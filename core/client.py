"""Trio-friendly client for the Matrix client-server API.

Rate Limiting Strategy:
----------------------
1. Long-polling: events() calls /sync with a 30s server-side timeout, so the
   homeserver holds the connection open until there is something to report.

2. Rate limit detection: every request checks for M_LIMIT_EXCEEDED (HTTP 429)
   and retries after the retry_after_ms the server asks for.

3. Backoff: the sync loop sleeps after errors to avoid hammering the server.
"""
import json
import logging
import uuid
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import quote

import httpx
import trio

from core.errors import MatrixError
from core.models import SyncEvent, parse_sync_response
from storage.session import Session

logger = logging.getLogger(__name__)

API_PREFIX = "/_matrix/client/v3"
SYNC_TIMEOUT_MS = 30_000
MAX_RETRIES = 3
# Used when a rate-limited response does not say how long to wait
DEFAULT_RETRY_AFTER = 5.0


class MatrixTrioClient:
    """
    Minimal Matrix client running on trio through httpx.
    Only covers what the bot needs: login, sync, joining and sending.
    """

    def __init__(self, homeserver_url: str, http: Optional[httpx.AsyncClient] = None) -> None:
        self.homeserver_url = homeserver_url.rstrip("/")
        self._http = http or httpx.AsyncClient(
            base_url=self.homeserver_url,
            timeout=httpx.Timeout(30.0, read=SYNC_TIMEOUT_MS / 1000 + 30.0),
        )
        self.access_token: Optional[str] = None
        self.user_id: Optional[str] = None
        self.device_id: Optional[str] = None
        self.next_batch: Optional[str] = None

    @property
    def logged_in(self) -> bool:
        return self.access_token is not None

    async def close(self) -> None:
        await self._http.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send one API request, waiting out rate limits.

        Raises:
            MatrixError: The homeserver answered with an error, or kept
                rate limiting after MAX_RETRIES attempts
            httpx.HTTPError: The request could not be sent
        """
        for attempt in range(MAX_RETRIES):
            res = await self._http.request(
                method,
                API_PREFIX + path,
                json=json_body,
                params=params,
                headers=self._headers(),
            )
            data = self._decode(res)

            if res.status_code == 429 or data.get("errcode") == "M_LIMIT_EXCEEDED":
                if attempt < MAX_RETRIES - 1:
                    retry_after = self._get_retry_after(data)
                    logger.warning(
                        "Rate limit hit on %s %s. Waiting %s seconds (attempt %s/%s)",
                        method, path, retry_after, attempt + 1, MAX_RETRIES,
                    )
                    await trio.sleep(retry_after)
                    continue
                logger.error("Rate limit exceeded after %s attempts", MAX_RETRIES)

            if res.is_success:
                return data
            raise MatrixError(
                data.get("errcode", "M_UNKNOWN"),
                data.get("error", res.reason_phrase),
                status=res.status_code,
            )

        raise MatrixError("M_LIMIT_EXCEEDED", "Rate limit exceeded", status=429)

    @staticmethod
    def _decode(res: httpx.Response) -> Dict[str, Any]:
        try:
            data = res.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _get_retry_after(data: Dict[str, Any]) -> float:
        """Seconds to wait according to a rate limit response."""
        retry_after_ms = data.get("retry_after_ms")
        if retry_after_ms is not None:
            try:
                return float(retry_after_ms) / 1000
            except (ValueError, TypeError):
                pass
        logger.warning("Could not determine rate limit reset time, using default %ss", DEFAULT_RETRY_AFTER)
        return DEFAULT_RETRY_AFTER

    async def login(self, user: str, password: str, device_name: Optional[str] = None) -> Session:
        """Log in with a password and return the new session."""
        body: Dict[str, Any] = {
            "type": "m.login.password",
            "identifier": {"type": "m.id.user", "user": user},
            "password": password,
        }
        if device_name:
            body["initial_device_display_name"] = device_name
        res = await self._request("POST", "/login", json_body=body)

        session = Session(
            homeserver=self.homeserver_url,
            access_token=res["access_token"],
            user_id=res["user_id"],
            device_id=res["device_id"],
        )
        self.restore_login(session)
        return session

    def restore_login(self, session: Session) -> None:
        """Use the credentials of a saved session."""
        self.access_token = session.access_token
        self.user_id = session.user_id
        self.device_id = session.device_id

    async def whoami(self) -> str:
        """Return the user id the access token belongs to."""
        res = await self._request("GET", "/account/whoami")
        return res["user_id"]

    async def sync(self, since: Optional[str] = None, timeout_ms: int = SYNC_TIMEOUT_MS) -> Dict[str, Any]:
        params: Dict[str, Any] = {"timeout": timeout_ms}
        if since:
            params["since"] = since
        return await self._request("GET", "/sync", params=params)

    async def events(self, since: Optional[str] = None) -> AsyncIterator[SyncEvent]:
        """
        Async generator yielding invites and room messages.

        Without ``since`` the first sync only catches up: its invites are
        yielded but its timeline is skipped, so old commands are not replayed.
        ``next_batch`` holds the token to resume from.
        """
        self.next_batch = since
        include_timeline = since is not None

        while True:
            try:
                logger.debug("Syncing (long-poll, timeout=%sms)...", SYNC_TIMEOUT_MS)
                res = await self.sync(
                    since=self.next_batch,
                    timeout_ms=SYNC_TIMEOUT_MS if include_timeline else 0,
                )
            except (MatrixError, httpx.HTTPError) as e:
                logger.warning("Error from sync: %s", e)
                # Back off on errors to avoid hammering the server
                await trio.sleep(5)
                continue
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Unexpected error in sync loop: %s", e, exc_info=True)
                await trio.sleep(10)
                continue

            for event in parse_sync_response(res, include_timeline=include_timeline):
                yield event

            self.next_batch = res.get("next_batch", self.next_batch)
            include_timeline = True

    async def join_room(self, room_id: str) -> str:
        """Join a room the bot was invited to.

        Raises:
            MatrixError: The homeserver refused the join
        """
        res = await self._request("POST", f"/rooms/{quote(room_id, safe='')}/join", json_body={})
        return res.get("room_id", room_id)

    async def send_message(self, room_id: str, content: Dict[str, Any]) -> Optional[str]:
        """Send m.room.message content to a room and return the event id."""
        txn_id = uuid.uuid4().hex
        res = await self._request(
            "PUT",
            f"/rooms/{quote(room_id, safe='')}/send/m.room.message/{txn_id}",
            json_body=content,
        )
        return res.get("event_id")
