"""
Tests for the QR payload codec.
"""

import json
from datetime import datetime, timezone

import pytest

from qr_loyalty.errors import MalformedPayload
from qr_loyalty.services.token_codec import (
    MAX_TOKEN_LENGTH,
    decode_payload,
    encode_payload,
    render_qr_data_uri,
    render_qr_png,
)


ISSUED_AT = datetime(2026, 3, 14, 9, 30, 15, 250000, tzinfo=timezone.utc)
CUSTOMER_ID = "0b7c2f4e-6a51-4a8e-9d3b-2f1e8c7a5d10"


class TestEncode:

    def test_uses_named_fields_and_epoch_millis(self):
        data = json.loads(encode_payload(CUSTOMER_ID, "tok-1", ISSUED_AT, "Ana Pop"))

        assert data == {
            "customer_id": CUSTOMER_ID,
            "token": "tok-1",
            "timestamp": 1773480615250,
            "name": "Ana Pop",
        }

    def test_decodes_what_it_encodes(self):
        payload = decode_payload(encode_payload(CUSTOMER_ID, "tok-1", ISSUED_AT, "Ana Pop"))

        assert payload.customer_id == CUSTOMER_ID
        assert payload.token == "tok-1"
        assert payload.issued_at == ISSUED_AT
        assert payload.display_name == "Ana Pop"


class TestDecode:

    def test_accepts_parsed_mapping(self):
        payload = decode_payload({"customer_id": CUSTOMER_ID, "token": "t", "timestamp": 1773480615250})

        assert payload.issued_at == ISSUED_AT
        assert payload.display_name is None

    def test_accepts_iso_timestamp(self):
        payload = decode_payload(
            {"customer_id": CUSTOMER_ID, "token": "t", "timestamp": "2026-03-14T09:30:15.250Z"}
        )
        assert payload.issued_at == ISSUED_AT

    def test_ignores_unknown_fields(self):
        payload = decode_payload(
            json.dumps({
                "customer_id": CUSTOMER_ID,
                "token": "t",
                "timestamp": 1773480615250,
                "name": "Ana",
                "version": 2,
                "store": "Centru",
            })
        )
        assert payload.token == "t"

    @pytest.mark.parametrize("raw", ["not json", "{", "[1, 2]", "42", '"text"', ""])
    def test_rejects_unparseable_input(self, raw):
        with pytest.raises(MalformedPayload):
            decode_payload(raw)

    @pytest.mark.parametrize("missing", ["customer_id", "token", "timestamp"])
    def test_rejects_missing_field(self, missing):
        data = {"customer_id": CUSTOMER_ID, "token": "t", "timestamp": 1773480615250}
        del data[missing]

        with pytest.raises(MalformedPayload):
            decode_payload(data)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"customer_id": 12},
            {"token": ["a"]},
            {"timestamp": True},
            {"timestamp": {"at": 1}},
            {"timestamp": "yesterday"},
            {"token": None},
        ],
    )
    def test_rejects_wrong_types(self, overrides):
        data = {"customer_id": CUSTOMER_ID, "token": "t", "timestamp": 1773480615250, **overrides}

        with pytest.raises(MalformedPayload):
            decode_payload(data)

    def test_lets_empty_values_through(self):
        payload = decode_payload({"customer_id": "", "token": "", "timestamp": 0})

        assert payload.customer_id == ""
        assert payload.token == ""

    def test_rejects_overlong_token(self):
        data = {"customer_id": CUSTOMER_ID, "token": "t" * (MAX_TOKEN_LENGTH + 1), "timestamp": 1773480615250}

        with pytest.raises(MalformedPayload):
            decode_payload(data)

    def test_accepts_token_at_length_limit(self):
        data = {"customer_id": CUSTOMER_ID, "token": "t" * MAX_TOKEN_LENGTH, "timestamp": 1773480615250}

        assert len(decode_payload(data).token) == MAX_TOKEN_LENGTH


class TestRender:

    def test_png(self):
        png = render_qr_png(encode_payload(CUSTOMER_ID, "tok-1", ISSUED_AT, "Ana Pop"))
        assert png.startswith(b"\x89PNG\r\n\x1a\n")

    def test_data_uri(self):
        uri = render_qr_data_uri("hello")
        assert uri.startswith("data:image/png;base64,iVBORw0KGgo")
