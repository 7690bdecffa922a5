"""Request parsing and response helpers shared by the blueprints."""

from datetime import datetime
from enum import Enum
from typing import Optional, Type, TypeVar

import pydantic
from flask import jsonify, request

from ..errors import ValidationError
from .schemas import to_naive_utc

M = TypeVar("M", bound=pydantic.BaseModel)
E = TypeVar("E", bound=Enum)


def success(data=None, status: int = 200, message: Optional[str] = None):
    """Standard success envelope."""
    body = {"status": "success", "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status


def parse_body(model: Type[M]) -> M:
    """Validate the JSON body against a pydantic model."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(details)


def page_args(default_limit: int = 20) -> tuple[int, int]:
    try:
        page = int(request.args.get("page", 1))
        limit = int(request.args.get("limit", default_limit))
    except ValueError:
        raise ValidationError("page and limit must be integers")
    return page, limit


def enum_arg(enum_cls: Type[E], name: str, default: Optional[E] = None) -> Optional[E]:
    """Parse an enum from a query parameter. "all" means no filter."""
    value = request.args.get(name)
    if value is None:
        return default
    if value == "all" or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"Invalid {name}: {value}. Expected one of: {allowed}")


def float_arg(name: str) -> Optional[float]:
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def bool_arg(name: str) -> Optional[bool]:
    value = request.args.get(name)
    if value in (None, ""):
        return None
    return value.lower() in ("1", "true", "yes")


def date_arg(name: str) -> Optional[datetime]:
    value = request.args.get(name)
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date")
    return to_naive_utc(parsed)


def list_arg(name: str) -> list[str]:
    """Comma-separated list parameter."""
    value = request.args.get(name, "")
    return [v.strip() for v in value.split(",") if v.strip()]
