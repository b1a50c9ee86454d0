"""HTTP control API for the bot runtime.

The dashboard talks to the runtime through these routes. The app is built
around an existing ``BotRuntime`` so tests (and the CLI) decide its lifetime.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import APIRouter, FastAPI, HTTPException
from pydantic import BaseModel

from core.errors import (
    BotConnectionError,
    BotNotRunningError,
    ConfigurationError,
    DeliveryError,
    RuleValidationError,
)
from core.models import LogEntry, Rule
from core.runtime import BotRuntime

LOGGER = logging.getLogger(__name__)

TokenResolver = Callable[[str], Optional[str]]


class StartRequest(BaseModel):
    token: Optional[str] = None


class RuleRequest(BaseModel):
    group_id: str
    criterion: str
    value: str = ""


class LoggingRequest(BaseModel):
    logging_enabled: bool


class SendMessageRequest(BaseModel):
    chat_id: str
    text: str


class RuleModel(BaseModel):
    group_id: str
    criterion: str
    value: str


class RulesResponse(BaseModel):
    rules: list[RuleModel]


class LogEntryModel(BaseModel):
    date: str
    user: str
    user_id: Optional[int] = None
    chat_id: str
    chat_title: Optional[str] = None
    text: str


class LogsResponse(BaseModel):
    logs: list[LogEntryModel]
    logging_enabled: bool


class StatusResponse(BaseModel):
    status: str


class LoggingResponse(BaseModel):
    status: str
    logging_enabled: bool


class BotResponse(BaseModel):
    bot_id: str
    running: bool


def _rules_response(rules: list[Rule]) -> RulesResponse:
    return RulesResponse(
        rules=[RuleModel(group_id=r.group_id, criterion=r.criterion, value=r.value) for r in rules]
    )


def _log_entry(entry: LogEntry) -> LogEntryModel:
    return LogEntryModel(
        date=entry.date.isoformat(),
        user=entry.user,
        user_id=entry.user_id,
        chat_id=entry.chat_id,
        chat_title=entry.chat_title,
        text=entry.text,
    )


def build_router(runtime: BotRuntime, token_resolver: Optional[TokenResolver] = None) -> APIRouter:
    router = APIRouter(tags=["Bots"])

    @router.get("/bots")
    async def list_bots():
        return {"running": runtime.running_bots()}

    @router.get("/bots/{bot_id}", response_model=BotResponse)
    async def get_bot(bot_id: str):
        return BotResponse(bot_id=bot_id, running=runtime.is_running(bot_id))

    @router.post("/bots/{bot_id}/start", response_model=StatusResponse)
    async def start_bot(bot_id: str, req: Optional[StartRequest] = None):
        token = req.token if req else None
        if not token and token_resolver is not None:
            token = token_resolver(bot_id)
        try:
            status = await runtime.start(bot_id, token)
        except ConfigurationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except BotConnectionError as exc:
            LOGGER.warning("%s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return StatusResponse(status=status.value)

    @router.post("/bots/{bot_id}/stop", response_model=StatusResponse)
    async def stop_bot(bot_id: str):
        status = await runtime.stop(bot_id)
        return StatusResponse(status=status.value)

    @router.get("/bots/{bot_id}/rules", response_model=RulesResponse)
    async def list_rules(bot_id: str):
        return _rules_response(runtime.list_rules(bot_id))

    @router.post("/bots/{bot_id}/rules", response_model=RulesResponse)
    async def add_rule(bot_id: str, req: RuleRequest):
        try:
            rules = runtime.add_rule(bot_id, req.group_id, req.criterion, req.value)
        except RuleValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _rules_response(rules)

    @router.delete("/bots/{bot_id}/rules", response_model=RulesResponse)
    async def remove_rule(bot_id: str, group_id: str, criterion: str, value: str = ""):
        try:
            rules = runtime.remove_rule(bot_id, group_id, criterion, value)
        except RuleValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _rules_response(rules)

    @router.get("/bots/{bot_id}/logs", response_model=LogsResponse)
    async def get_logs(bot_id: str):
        entries, enabled = runtime.get_logs(bot_id)
        return LogsResponse(logs=[_log_entry(entry) for entry in entries], logging_enabled=enabled)

    @router.patch("/bots/{bot_id}/logging", response_model=LoggingResponse)
    async def set_logging(bot_id: str, req: LoggingRequest):
        enabled = runtime.set_logging_enabled(bot_id, req.logging_enabled)
        return LoggingResponse(status="logging toggled", logging_enabled=enabled)

    @router.post("/bots/{bot_id}/messages", response_model=StatusResponse)
    async def send_message(bot_id: str, req: SendMessageRequest):
        try:
            await runtime.send_message(bot_id, req.chat_id, req.text)
        except ConfigurationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except BotNotRunningError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except (DeliveryError, ConnectionError, OSError) as exc:
            LOGGER.exception("Failed to send message through bot %s", bot_id)
            raise HTTPException(status_code=502, detail="Failed to send message") from exc
        return StatusResponse(status="sent")

    @router.get("/criteria")
    async def list_criteria():
        return {"criteria": runtime.criteria()}

    return router


def create_app(runtime: BotRuntime, token_resolver: Optional[TokenResolver] = None) -> FastAPI:
    """Build the control API around ``runtime``."""

    app = FastAPI(title="Botfly bot runtime")
    app.include_router(build_router(runtime, token_resolver))
    return app
