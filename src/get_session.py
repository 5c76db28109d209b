"""Telegram login for tgreserve.

``authorize`` logs the account in by QR code (default) or phone code, picked
by argument or the LOGIN_METHOD variable. Run directly
(``python src/get_session.py``) to log in once and print the session string
for the SESSION variable in .env.
"""

import asyncio
import logging
import os
from getpass import getpass
from typing import Optional

import qrcode
from dotenv import load_dotenv
from telethon import TelegramClient, errors
from telethon.sessions import StringSession

from client import build_client

load_dotenv()

LOGGER = logging.getLogger(__name__)

LOGIN_METHODS = ("qr", "phone")
QR_TIMEOUT_SECONDS = 120


def _env_or_prompt(name: str, prompt: str, secret: bool = False) -> str:
    value = os.getenv(name)
    if value:
        return value
    return (getpass if secret else input)(prompt).strip()


async def _login_with_qr(client: TelegramClient) -> None:
    login = await client.qr_login()
    qr = qrcode.QRCode(border=1)
    qr.add_data(login.url)
    print("Scan this code in Telegram > Settings > Devices > Link Desktop Device:")
    qr.print_ascii(invert=True)
    await login.wait(timeout=QR_TIMEOUT_SECONDS)


async def _login_with_phone(client: TelegramClient) -> None:
    phone = _env_or_prompt("PHONE", "Please enter your number: ")
    await client.send_code_request(phone)
    await client.sign_in(phone=phone, code=input("Please enter the code you received: ").strip())


_LOGIN_FLOWS = {"qr": _login_with_qr, "phone": _login_with_phone}


def _print_session_string(client: TelegramClient) -> None:
    # File sessions persist on their own; string sessions must be copied to .env.
    if not isinstance(client.session, StringSession) or os.getenv("SESSION"):
        return
    print("Save this session string to your .env file to avoid logging in again:")
    print(f"SESSION={client.session.save()}")


async def authorize(client: TelegramClient, method: Optional[str] = None) -> None:
    if await client.is_user_authorized():
        return

    method = (method or os.getenv("LOGIN_METHOD") or "qr").strip().lower()
    if method not in _LOGIN_FLOWS:
        raise RuntimeError(f"LOGIN_METHOD must be one of {', '.join(LOGIN_METHODS)}, got {method!r}")

    LOGGER.info("Authorizing Telegram account via %s", method)
    try:
        await _LOGIN_FLOWS[method](client)
    except errors.SessionPasswordNeededError:
        # Both flows end here when the account has two-step verification.
        await client.sign_in(password=_env_or_prompt("2FA", "2FA password: ", secret=True))

    _print_session_string(client)


async def main() -> None:
    client = build_client()
    await client.connect()

    await authorize(client)

    me = await client.get_me()
    print(f"Logged in as: {me.first_name} (id {me.id})")

    await client.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
