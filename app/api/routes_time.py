from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from app.core.time import (
    TimeZoneInfo,
    convert_local_date_to_default_utc,
    convert_local_date_to_utc_microseconds,
    convert_to_timezone,
    format_date_to_iso,
    get_local_current_timezone,
    get_timezone_info,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/time", tags=["time"])


class ConvertRequest(BaseModel):
    timezone: str = Field(min_length=1)
    datetime: str | None = None
    format: str = Field(default="YYYY-MM-DD HH:mm:ss", min_length=1)
    format_in_utc: bool = True
    full_month: bool = False


class ToUtcRequest(BaseModel):
    datetime: str = Field(min_length=1)
    timezone: str = Field(min_length=1)
    precision: str = Field(default="milliseconds", pattern="^(milliseconds|microseconds)$")


class IsoRequest(BaseModel):
    date: str = Field(min_length=1)


def _unprocessable(exc: ValueError) -> HTTPException:
    logger.debug("Rejected time request: %s", exc)
    return HTTPException(status_code=422, detail=str(exc))


@router.get("/local-timezone")
def local_timezone(request: Request) -> dict[str, str]:
    return {"timezone": get_local_current_timezone(settings=request.app.state.settings)}


@router.post("/convert")
def convert(request: Request, payload: ConvertRequest) -> dict[str, Any]:
    try:
        formatted = convert_to_timezone(
            payload.timezone,
            payload.datetime,
            payload.format,
            format_in_utc=payload.format_in_utc,
            full_month=payload.full_month,
            settings=request.app.state.settings,
        )
    except ValueError as exc:
        raise _unprocessable(exc) from exc
    return {"formatted": formatted}


@router.post("/to-utc")
def to_utc(payload: ToUtcRequest) -> dict[str, str]:
    convert_fn = (
        convert_local_date_to_utc_microseconds
        if payload.precision == "microseconds"
        else convert_local_date_to_default_utc
    )
    try:
        return {"utc": convert_fn(payload.datetime, payload.timezone)}
    except ValueError as exc:
        raise _unprocessable(exc) from exc


@router.post("/iso")
def iso(payload: IsoRequest) -> dict[str, str]:
    try:
        return {"iso": format_date_to_iso(payload.date)}
    except ValueError as exc:
        raise _unprocessable(exc) from exc


@router.get("/zones/{zone:path}", response_model=TimeZoneInfo)
def zone_info(zone: str) -> TimeZoneInfo:
    try:
        return get_timezone_info(zone)
    except ValueError as exc:
        raise _unprocessable(exc) from exc
