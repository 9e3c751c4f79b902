"""Main entry point for the Matrix command bot.

This module logs the bot in and runs it with support for:
- Commands (``!hello_world``, ``!echo``, ``!help``)
- Automatic joining of rooms the bot is invited to
"""
import logging
import os

import trio

from commands.registry import COMMANDS
from config import BotConfig, ConfigManager
from core.autojoin import Autojoiner
from core.client import MatrixTrioClient
from core.dispatcher import Dispatcher
from core.models import InviteEvent, RoomMessageEvent
from storage.file_store import JSONFileStore, StoreError
from storage.session import Session

logger = logging.getLogger(__name__)

DEVICE_NAME = "matrix_bot-cmd"
SYNC_STATE_FILENAME = "sync.json"


async def login_or_restore(client: MatrixTrioClient, config: BotConfig) -> None:
    """Reuse the saved session, or log in with the password and save a new one.

    Raises:
        MatrixError: Password login failed
        OSError: The new session could not be saved
    """
    session = Session.load(config.session_path)
    if session is not None:
        logger.info("Starting relogin")
        client.restore_login(session)
        logger.info("Finished relogin")
        return

    logger.info("Starting login")
    session = await client.login(config.mxid, config.password, device_name=DEVICE_NAME)
    session.save(config.session_path)
    logger.info("Finished login")


def load_sync_token(store: JSONFileStore) -> str:
    if not store.exists():
        return ""
    try:
        return str(store.read().get("next_batch") or "")
    except StoreError:
        logger.warning("Sync state %s is unreadable, starting fresh", store.path)
        return ""


async def main() -> None:
    """Initialize and run the Matrix bot."""
    # Basic logging setup
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting matrix_bot-cmd")

    # Load config
    config_path = os.environ.get("MATRIX_BOT_CONFIG", "config.yml")
    config = ConfigManager(config_path).load()
    os.makedirs(config.store_path, exist_ok=True)
    sync_store = JSONFileStore(os.path.join(config.store_path, SYNC_STATE_FILENAME))

    client = MatrixTrioClient(config.homeserver_url)
    try:
        await login_or_restore(client, config)

        # Log bot identity
        own_user_id = await client.whoami()
        logger.info("Bot authenticated as: %s (device_id: %s)", own_user_id, client.device_id)

        dispatcher = Dispatcher(
            table=COMMANDS,
            send_sink=client.send_message,
            own_user_id=own_user_id,
            context=[config],
        )
        autojoiner = Autojoiner(own_user_id=own_user_id, join=client.join_room)

        async with trio.open_nursery() as nursery:
            since = load_sync_token(sync_store) or None
            logger.info("Bot is now listening for messages...")

            async for event in client.events(since=since):
                if isinstance(event, InviteEvent):
                    nursery.start_soon(autojoiner.handle_invite, event)
                elif isinstance(event, RoomMessageEvent):
                    nursery.start_soon(dispatcher.dispatch_event, event)

                if client.next_batch and client.next_batch != since:
                    since = client.next_batch
                    sync_store.write({"next_batch": since})
    finally:
        await client.close()


if __name__ == "__main__":
    trio.run(main)
