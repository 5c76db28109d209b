"""Application entry point for the tgreserve watcher."""

from __future__ import annotations

import argparse
import logging
from typing import Any, Optional

from art import tprint
from telethon import events

import settings
from adapters.telegram_mapper import TelegramIdentityResolver
from adapters.telegram_messenger import TelegramMessenger
from client import build_client, build_oracle
from core.composer import OutreachComposer
from core.coordinator import DispatchCoordinator
from core.dispatch import DispatchRecord
from core.extractor import StructuredExtractor
from get_session import LOGIN_METHODS, authorize
from logging_config import configure_logging

NAME = "TGRESERVE"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _run() -> None:
    _print_banner()
    configure_logging(settings.LOGGING, settings.PROJECT_ROOT)
    logger = logging.getLogger(__name__)

    logger.info("Starting tgreserve")

    if not settings.WATCH.conversation_ids:
        raise RuntimeError("No chats to watch: set watch.chat_ids in config.json or CHAT_IDS")

    oracle = build_oracle(settings.ORACLE)
    client = build_client()
    client.loop.run_until_complete(client.connect())
    client.loop.run_until_complete(authorize(client))

    coordinator = DispatchCoordinator(
        resolver=TelegramIdentityResolver(),
        extractor=StructuredExtractor(oracle, settings.ORACLE),
        criteria=settings.CRITERIA,
        composer=OutreachComposer(oracle, settings.ORACLE),
        messenger=TelegramMessenger(client),
        watch=settings.WATCH,
        record=DispatchRecord(),
    )
    logger.info(
        "Listening for messages in chats: %s",
        ", ".join(str(chat_id) for chat_id in sorted(settings.WATCH.conversation_ids)),
    )
    if not settings.WATCH.outreach_enabled:
        logger.info("Outreach disabled, matching items are only logged")

    # Single handler keeps Telethon integration minimal and defers all filtering
    # to the coordinator for consistency and testability.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            result = await coordinator.handle(event)
            logger.debug("Event finished: %s (%s)", result.outcome.value, result.reason)
        except Exception:
            logger.exception("Error while processing message")

    # Explicit lifecycle management makes start/shutdown behavior obvious.
    client.start()
    logger.info("Client connected. Listening for incoming messages...")
    try:
        client.run_until_disconnected()
    finally:
        client.loop.run_until_complete(oracle.close())


def _watch_line(dialog: Any) -> str:
    """One discover line: kind, watched marker, unified id, and name."""

    kind = "user" if dialog.is_user else "group" if dialog.is_group else "channel"
    # Dialog ids already use the -100<channel> / -<chat> / <user> marks.
    marker = "*" if dialog.id in settings.WATCH.conversation_ids else " "
    return f"{marker} {kind:<7} {dialog.id:>15}  {dialog.name or '(no name)'}"


async def _list_dialogs(client, include_users: bool = False) -> None:
    found = False
    async for dialog in client.iter_dialogs():
        # Sellers post in groups and channels; private chats are noise here.
        if dialog.is_user and not include_users:
            continue
        found = True
        print(_watch_line(dialog))

    if not found:
        print("No dialogs match the current filter.")
    else:
        print("\n* = already in the watch list")


def _discover(include_users: bool) -> None:
    _print_banner()
    client = build_client()

    async def _run_discover() -> None:
        await client.connect()
        if not await client.is_user_authorized():
            print("Authorization required. Starting login...")
            await authorize(client)
        await _list_dialogs(client, include_users=include_users)
        await client.disconnect()

    client.loop.run_until_complete(_run_discover())


def _login(method: Optional[str]) -> None:
    _print_banner()
    client = build_client()

    async def _run_login() -> None:
        await client.connect()
        await authorize(client, method)
        me = await client.get_me()
        print(f"Logged in as: {me.first_name} (id {me.id})")
        await client.disconnect()

    client.loop.run_until_complete(_run_login())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="tgreserve")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the watcher")
    login_parser = subparsers.add_parser("login", help="Authorize the Telegram account and exit")
    login_parser.add_argument("--method", choices=LOGIN_METHODS, help="Defaults to LOGIN_METHOD or qr.")
    discover_parser = subparsers.add_parser(
        "discover",
        help="List chats with the ids to put into watch.chat_ids.",
    )
    discover_parser.add_argument(
        "--include-users",
        action="store_true",
        help="Also list private chats with users.",
    )

    args = parser.parse_args(argv)
    if args.command == "login":
        _login(args.method)
        return
    if args.command == "discover":
        _discover(args.include_users)
        return
    _run()


if __name__ == "__main__":
    main()
