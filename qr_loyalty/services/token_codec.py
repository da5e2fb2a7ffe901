import base64
import io
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import qrcode

from qr_loyalty.errors import MalformedPayload


@dataclass(frozen=True)
class QrPayload:
    customer_id: str
    token: str
    issued_at: datetime
    display_name: str | None = None


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# used_qr_codes.qr_token is String(200)
MAX_TOKEN_LENGTH = 200


def _to_epoch_millis(issued_at: datetime) -> int:
    if issued_at.tzinfo is None:
        issued_at = issued_at.replace(tzinfo=timezone.utc)
    return (issued_at - EPOCH) // timedelta(milliseconds=1)


def encode_payload(customer_id, token: str, issued_at: datetime, display_name: str) -> str:
    return json.dumps(
        {
            "customer_id": str(customer_id),
            "token": token,
            "timestamp": _to_epoch_millis(issued_at),
            "name": display_name,
        },
        ensure_ascii=False,
    )


def _parse_timestamp(value: Any) -> datetime:
    # epoch milliseconds (what the issuer writes) or an ISO-8601 string
    if isinstance(value, bool):
        raise MalformedPayload("QR timestamp has the wrong type")

    if isinstance(value, (int, float)):
        try:
            return EPOCH + timedelta(milliseconds=value)
        except (OverflowError, ValueError) as e:
            raise MalformedPayload("QR timestamp is out of range") from e

    if isinstance(value, str):
        if not value:
            return EPOCH
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise MalformedPayload("QR timestamp is not a valid date") from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    raise MalformedPayload("QR timestamp has the wrong type")


def decode_payload(data: str | Mapping[str, Any]) -> QrPayload:
    """
    Parse a scanned (or pasted) QR payload.

    Accepts the JSON text or an already-parsed mapping. Unknown fields are
    ignored. Empty values are let through; callers decide whether they are
    usable.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedPayload() from e

    if not isinstance(data, Mapping):
        raise MalformedPayload()

    for field in ("customer_id", "token", "timestamp"):
        if data.get(field) is None:
            raise MalformedPayload(f"QR code is missing '{field}'")

    customer_id = data["customer_id"]
    token = data["token"]
    if not isinstance(customer_id, str) or not isinstance(token, str):
        raise MalformedPayload("QR code fields have the wrong type")
    if len(token) > MAX_TOKEN_LENGTH:
        raise MalformedPayload("QR token is too long")

    name = data.get("name")
    if name is not None and not isinstance(name, str):
        name = str(name)

    return QrPayload(
        customer_id=customer_id,
        token=token,
        issued_at=_parse_timestamp(data["timestamp"]),
        display_name=name,
    )


def render_qr_png(payload: str, *, box_size: int = 10, border: int = 4) -> bytes:
    qr = qrcode.QRCode(version=None, box_size=box_size, border=border)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_uri(payload: str) -> str:
    return "data:image/png;base64," + base64.b64encode(render_qr_png(payload)).decode()
