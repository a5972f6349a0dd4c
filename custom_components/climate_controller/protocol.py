"""Wire format spoken by the climate controller and its rooms.

Every message is a single JSON object written in one go. There is no
length prefix and no delimiter; a payload delivered by one read is
expected to hold exactly one document.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import MalformedMessage


class MessageType(str, Enum):
    GET_STATUS = "GetStatus"
    SET_CONTROL = "SetControl"
    NOTIFY_STATUS = "NotifyStatus"
    CONFIGURATION = "Configuration"


@dataclass(frozen=True)
class DeviceStatus:
    current_temperature: float
    target_temperature: float
    current_state: str
    target_state: str
    current_humidity: float

    @classmethod
    def from_dict(cls, data: Any) -> DeviceStatus:
        if not isinstance(data, dict):
            raise MalformedMessage(repr(data).encode(), TypeError("status is not an object"))
        try:
            return cls(
                current_temperature=_number(data, "current_temperature"),
                target_temperature=_number(data, "target_temperature"),
                current_state=_string(data, "current_state"),
                target_state=_string(data, "target_state"),
                current_humidity=_number(data, "current_humidity"),
            )
        except (KeyError, TypeError) as err:
            raise MalformedMessage(json.dumps(data).encode(), err) from err


def _number(data: Dict[str, Any], key: str) -> float:
    value = data[key]
    # bool is an int subclass but never a reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key} is not a number: {value!r}")
    return value


def _string(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} is not a string: {value!r}")
    return value


@dataclass(frozen=True)
class ControlTarget:
    """Fields left as None are not changed on the device."""

    temperature: Optional[float] = None
    state: Optional[str] = None


@dataclass(frozen=True)
class RoomConfig:
    name: str
    serial: str
    port: int
    features: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RoomConfig:
        return cls(
            name=str(data["name"]),
            serial=str(data.get("serial", "")),
            port=int(data["port"]),
            features=str(data.get("features") or ""),
        )


@dataclass(frozen=True)
class ControllerConfiguration:
    rooms: List[RoomConfig] = field(default_factory=list)
    version: str = ""

    @classmethod
    def from_message(cls, message: Message) -> ControllerConfiguration:
        body = message.body
        try:
            rooms = [RoomConfig.from_dict(room) for room in body.get("rooms") or []]
        except (KeyError, TypeError, ValueError, AttributeError) as err:
            raise MalformedMessage(json.dumps(body).encode(), err) from err
        return cls(rooms=rooms, version=str(body.get("version", "")))


@dataclass(frozen=True)
class Message:
    type: Optional[str]
    body: Dict[str, Any]

    @property
    def status(self) -> Any:
        return self.body.get("status")


def encode_request(request_type: str, target: Optional[ControlTarget] = None) -> bytes:
    request: Dict[str, Any] = {"type": MessageType(request_type).value}
    if target is not None:
        if target.temperature is not None:
            request["target_temperature"] = target.temperature
        if target.state is not None:
            request["target_state"] = target.state
    return json.dumps(request, separators=(",", ":")).encode()


def decode_message(data: bytes) -> Message:
    try:
        body = json.loads(data.decode())
    except (UnicodeDecodeError, ValueError) as err:
        raise MalformedMessage(data, err) from err
    if not isinstance(body, dict):
        raise MalformedMessage(data, TypeError("message is not an object"))
    msg_type = body.get("type")
    return Message(type=msg_type if isinstance(msg_type, str) else None, body=body)
