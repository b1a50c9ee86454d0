"""Application entry point for the botfly runtime."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

import uvicorn
from art import tprint
from dotenv import load_dotenv

import settings
from adapters.bot_api_sender import TelegramBotApiSender
from adapters.http_api import create_app
from adapters.telethon_connector import TelethonConnector
from client import build_client_factory
from core.config import default_token_env
from core.errors import BotflyError, DeliveryError
from core.runtime import BotRuntime

NAME = "BOTFLY"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _RedactingFormatter(logging.Formatter):
    """Masks secret values, naming the variable they came from."""

    def __init__(self, secrets: dict[str, str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
        # Longest first so a token containing another secret is masked whole.
        self._secrets = sorted(
            ((value, f"<{name}>") for value, name in secrets.items() if value),
            key=lambda item: len(item[0]),
            reverse=True,
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for value, label in self._secrets:
            message = message.replace(value, label)
        return message


def _secret_values(redact_cfg: dict) -> dict[str, str]:
    """Map secret value -> env var name for every variable to mask."""

    if not redact_cfg.get("enabled", False):
        return {}
    # Bot tokens end up in Telethon/urllib error messages; always mask them.
    names = [*redact_cfg.get("patterns", []), *(bot.token_env for bot in settings.BOTS)]
    return {os.environ[name]: name for name in names if os.getenv(name)}


def _rotating_file_handler(file_cfg: dict) -> logging.Handler:
    path = file_cfg.get("path", "logs/botfly.log")
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def _configure_logging(config: Optional[dict] = None) -> None:
    config = settings.LOGGING if config is None else config
    if not config or not config.get("enabled", False):
        return

    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_rotating_file_handler(file_cfg))
    if not handlers:
        return

    formatter = _RedactingFormatter(_secret_values(config.get("redact", {})))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    # uvicorn runs with log_config=None and inherits these root handlers.
    logging.basicConfig(level=level, handlers=handlers, force=True)


def _resolve_token(bot_id: str) -> Optional[str]:
    """Look up a bot token in the environment.

    Configured bots name their variable explicitly; unknown bots fall back to
    BOT_TOKEN_<BOT_ID>.
    """

    for bot in settings.BOTS:
        if bot.bot_id == bot_id:
            return os.getenv(bot.token_env)
    return os.getenv(default_token_env(bot_id))


async def _autostart(runtime: BotRuntime) -> None:
    logger = logging.getLogger(__name__)
    for bot in settings.BOTS:
        runtime.preload(bot)
        if not bot.autostart:
            continue
        try:
            status = await runtime.start(bot.bot_id, os.getenv(bot.token_env))
        except BotflyError as exc:
            # One broken bot must not keep the others (or the API) down.
            logger.error("Autostart failed for %s: %s", bot.bot_id, exc)
            continue
        logger.info("Autostart %s: %s", bot.bot_id, status.value)


async def _serve(runtime: BotRuntime) -> None:
    app = create_app(runtime, token_resolver=_resolve_token)
    config = uvicorn.Config(app, host=settings.API_HOST, port=settings.API_PORT, log_config=None)
    server = uvicorn.Server(config)
    try:
        await _autostart(runtime)
        await server.serve()
    finally:
        await runtime.shutdown()


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting botfly")

    connector = TelethonConnector(build_client_factory())
    runtime = BotRuntime(connector, log_capacity=settings.LOG_CAPACITY)
    logger.info("%s bots configured, criteria: %s", len(settings.BOTS), ", ".join(runtime.criteria()))
    logger.info("Control API listening on %s:%s", settings.API_HOST, settings.API_PORT)

    asyncio.run(_serve(runtime))


def _send(args: argparse.Namespace) -> int:
    _configure_logging()
    token = args.token or (args.bot and _resolve_token(args.bot))
    if not token:
        print("A bot token is required: pass --token or --bot with its token in the environment.")
        return 1

    text = " ".join(args.text)
    try:
        TelegramBotApiSender(token).send_message(args.chat_id, text)
    except DeliveryError as exc:
        print(f"Failed to send message: {exc}")
        return 2
    print("Message sent successfully!")
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="botfly")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the control API and configured bots")
    send_parser = subparsers.add_parser("send", help="Send one message through the Bot API")
    source = send_parser.add_mutually_exclusive_group()
    source.add_argument("--token", help="Bot token")
    source.add_argument("--bot", help="Configured bot id whose token is in the environment")
    send_parser.add_argument("chat_id", help="Target user or chat id")
    send_parser.add_argument("text", nargs="+", help="Message text")

    args = parser.parse_args(argv)
    if args.command == "send":
        sys.exit(_send(args))
    _run()


if __name__ == "__main__":
    main()
