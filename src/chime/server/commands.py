"""Client command dispatch for the WebSocket endpoint.

Frames sent by clients look like::

    {"id": "1", "command": "scheduleEvent",
     "data": {"eventName": "Standup", "time": "2026-01-12 09:30",
              "timeZone": "Europe/Berlin"}}

Every frame gets exactly one response frame on the ``response`` channel.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from enum import StrEnum
from functools import lru_cache
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from chime.errors import ChimeError, CommandError
from chime.events import Event, EventStore
from chime.scheduling import Clock

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M"
# strptime accepts unpadded fields; clients must send exactly this shape.
TIME_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}", re.ASCII)
RESPONSE_CHANNEL = "response"


class Command(StrEnum):
    SCHEDULE_EVENT = "scheduleEvent"
    GET_ALL_TIME_ZONES = "getAllTimeZones"


class SocketMessage(BaseModel):
    """Inbound client frame."""

    id: str | int | None = None
    command: str = Field(min_length=1)
    data: Any = None


class CommandResponse(BaseModel):
    """Outbound reply frame."""

    channel: Literal["response"] = RESPONSE_CHANNEL
    id: str | int | None = None
    status: Literal["success", "failure"]
    response: Any = None
    error: str | None = None


class ScheduleEventRequest(BaseModel):
    """Payload of the scheduleEvent command."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    event_name: str = Field(alias="eventName", min_length=1)
    time: str = Field(min_length=1)
    time_zone: str = Field(alias="timeZone", min_length=1)

    @field_validator("time_zone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"timeZone='{value}' is invalid") from e
        return value

    @field_validator("time")
    @classmethod
    def _strict_format(cls, value: str) -> str:
        try:
            if not TIME_PATTERN.fullmatch(value):
                raise ValueError(value)
            datetime.strptime(value, TIME_FORMAT)
        except ValueError as e:
            raise ValueError(
                f"time='{value}' is invalid. 'time' should be in format "
                "'YYYY-MM-DD HH:mm' and valid"
            ) from e
        return value

    def instant(self) -> datetime:
        """The requested wall time in its zone, as an aware datetime."""
        naive = datetime.strptime(self.time, TIME_FORMAT)
        return naive.replace(tzinfo=ZoneInfo(self.time_zone))


@lru_cache(maxsize=1)
def get_time_zones() -> list[str]:
    """All IANA zone names, sorted."""
    return sorted(available_timezones())


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "invalid value"))
    message = message.removeprefix("Value error, ")
    if error.get("type") == "missing":
        return f"'{location}' is required"
    return message if location in message else f"{location}: {message}"


def _reply_id(raw: Any) -> str | int | None:
    """The frame's id if it can be echoed back, else None."""
    if not isinstance(raw, dict):
        return None
    value = raw.get("id")
    if isinstance(value, bool) or not isinstance(value, str | int):
        return None
    return value


def parse_schedule_request(data: Any) -> ScheduleEventRequest:
    if not isinstance(data, dict):
        raise CommandError("'data' must be an object with eventName, time, timeZone")
    try:
        return ScheduleEventRequest.model_validate(data)
    except ValidationError as e:
        raise CommandError(_first_error(e)) from e


class CommandHandler:
    """Executes client commands against the event store."""

    def __init__(self, store: EventStore, clock: Clock):
        self._store = store
        self._clock = clock

    async def schedule_event(self, data: Any) -> Event:
        request = parse_schedule_request(data)
        when = request.instant()
        if when <= self._clock.now():
            raise CommandError(f"time='{request.time}' should be in future")
        return await self._store.save(request.event_name, when)

    async def handle(self, raw: Any) -> CommandResponse:
        """Handle one inbound frame. Never raises."""
        message_id = _reply_id(raw)
        try:
            message = SocketMessage.model_validate(raw)
        except ValidationError:
            return CommandResponse(
                id=message_id,
                status="failure",
                error=(
                    "Invalid message passed. Socket message must be a JSON with "
                    "valid 'command' property"
                ),
            )

        try:
            match message.command:
                case Command.SCHEDULE_EVENT:
                    event = await self.schedule_event(message.data)
                    return CommandResponse(
                        id=message_id, status="success", response=event.to_payload()
                    )
                case Command.GET_ALL_TIME_ZONES:
                    return CommandResponse(
                        id=message_id, status="success", response=get_time_zones()
                    )
                case _:
                    return CommandResponse(
                        id=message_id, status="failure", error="un-recognized command"
                    )
        except ChimeError as e:
            logger.info(
                "command_failed",
                extra={"command.name": message.command, "error.message": str(e)},
            )
            return CommandResponse(id=message_id, status="failure", error=str(e))
