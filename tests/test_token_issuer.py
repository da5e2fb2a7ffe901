import json
from datetime import timedelta
from decimal import Decimal

import pytest

from qr_loyalty.errors import InvalidAmount
from qr_loyalty.services.token_codec import decode_payload
from qr_loyalty.services.token_issuer import (
    MAX_AMOUNT,
    QR_VALIDITY,
    QrTokenIssuer,
    compute_points,
    issue_token,
)

from conftest import T0


CUSTOMER_ID = "0b7c2f4e-6a51-4a8e-9d3b-2f1e8c7a5d10"


class TestIssueToken:

    def test_expires_after_validity_window(self):
        issued = issue_token(CUSTOMER_ID, "Ana Pop", now=T0)

        assert issued.issued_at == T0
        assert issued.expires_at == T0 + timedelta(minutes=5)
        assert QR_VALIDITY == timedelta(minutes=5)

    def test_tokens_are_unique_for_same_customer_and_instant(self):
        tokens = {issue_token(CUSTOMER_ID, "Ana Pop", now=T0).token for _ in range(200)}
        assert len(tokens) == 200

    def test_payload_carries_token_fields(self):
        issued = issue_token(CUSTOMER_ID, "Ana Pop", now=T0)

        payload = decode_payload(issued.payload)
        assert payload.customer_id == CUSTOMER_ID
        assert payload.token == issued.token
        assert payload.issued_at == T0
        assert payload.display_name == "Ana Pop"
        assert set(json.loads(issued.payload)) == {"customer_id", "token", "timestamp", "name"}

    def test_countdown(self):
        issued = issue_token(CUSTOMER_ID, "Ana Pop", now=T0)

        assert issued.seconds_remaining(T0 + timedelta(seconds=10)) == 290
        assert not issued.is_expired(T0 + timedelta(minutes=5))
        assert issued.is_expired(T0 + timedelta(minutes=5, seconds=1))
        assert issued.seconds_remaining(T0 + timedelta(minutes=6)) == 0

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_display_name_required(self, name):
        with pytest.raises(ValueError):
            issue_token(CUSTOMER_ID, name, now=T0)


class TestQrTokenIssuer:

    def test_keeps_token_within_interval(self):
        issuer = QrTokenIssuer(CUSTOMER_ID, "Ana Pop")

        first = issuer.current(T0)
        assert issuer.current(T0 + timedelta(minutes=4, seconds=59)) is first

    def test_reissues_when_interval_elapses(self):
        issuer = QrTokenIssuer(CUSTOMER_ID, "Ana Pop")

        first = issuer.current(T0)
        second = issuer.current(T0 + timedelta(minutes=5))

        assert second.token != first.token
        assert second.issued_at == T0 + timedelta(minutes=5)

    def test_manual_refresh(self):
        issuer = QrTokenIssuer(CUSTOMER_ID, "Ana Pop")

        first = issuer.current(T0)
        refreshed = issuer.refresh(T0 + timedelta(seconds=30))

        assert refreshed.token != first.token
        assert issuer.current(T0 + timedelta(seconds=31)) is refreshed

    def test_naive_times_are_read_as_utc(self):
        issuer = QrTokenIssuer(CUSTOMER_ID, "Ana Pop")
        naive_t0 = T0.replace(tzinfo=None)

        first = issuer.current(T0)
        assert issuer.current(naive_t0 + timedelta(minutes=1)) is first

        second = issuer.current(naive_t0 + timedelta(minutes=5))
        assert second.token != first.token
        assert second.issued_at == T0 + timedelta(minutes=5)
        assert not second.is_expired(naive_t0 + timedelta(minutes=10))
        assert second.is_expired(naive_t0 + timedelta(minutes=10, seconds=1))
        assert second.seconds_remaining(naive_t0 + timedelta(minutes=9)) == 60


class TestComputePoints:

    @pytest.mark.parametrize(
        "amount, points",
        [
            (12.50, 125),
            (1, 10),
            (0.99, 9),
            (4.35, 43),
            (0.57, 5),
            (Decimal("7.29"), 72),
            (0.01, 0),
        ],
    )
    def test_floor_of_ten_per_unit(self, amount, points):
        assert compute_points(amount) == points

    @pytest.mark.parametrize(
        "amount", [0, -5, float("nan"), float("inf"), True, "12", None, 1e30, 100000000, Decimal("99999999.991")]
    )
    def test_rejects_invalid_amounts(self, amount):
        with pytest.raises(InvalidAmount):
            compute_points(amount)

    def test_largest_storable_amount(self):
        assert MAX_AMOUNT == Decimal("99999999.99")
        assert compute_points(MAX_AMOUNT) == 999999999
