import csv
import http.client
import io
import json
import urllib.error
from datetime import datetime

import pytest

from bitbasis.export import (
    EXPORT_COLUMNS,
    TEMPLATES,
    export_transactions_csv,
    format_transaction_for_csv,
    template_csv,
    to_payload_record,
    to_submission_payload,
)
from bitbasis.ingest import read_csv_text
from bitbasis.mapping import auto_map_columns, can_proceed_from_mapping
from bitbasis.normalizers import transform_csv_data
from bitbasis.submission import SubmissionError, resolve_endpoint, submit_transactions
from bitbasis.transactions import CanonicalTransaction, TransactionType
from bitbasis.validation import validate_transactions

BUY = CanonicalTransaction(
    id="csv-0",
    date=datetime(2024, 1, 15, 10, 30),
    type=TransactionType.BUY,
    received_amount=0.01,
    received_currency="BTC",
    sent_amount=500.0,
    sent_currency="USD",
    fee_amount=1.5,
    fee_currency="USD",
    price=50000.0,
)


def test_payload_record_only_carries_set_optional_fields():
    record = to_payload_record(BUY)
    assert record == {
        "date": "2024-01-15T10:30:00",
        "type": "buy",
        "asset": "BTC",
        "price": 50000.0,
        "sent_amount": 500.0,
        "sent_currency": "USD",
        "received_amount": 0.01,
        "received_currency": "BTC",
        "fee_amount": 1.5,
        "fee_currency": "USD",
    }


def test_payload_defaults_missing_date_and_price():
    now = datetime(2025, 1, 1, 9, 0)
    (record,) = to_submission_payload([CanonicalTransaction(id="x", comment="")], now=now)
    assert record == {"date": "2025-01-01T09:00:00", "type": "unknown", "asset": "BTC", "price": 0}


def test_export_row_formatting():
    row = format_transaction_for_csv(BUY)
    assert list(row) == list(EXPORT_COLUMNS)
    assert row["Date"] == "1/15/2024, 10:30 AM"
    assert row["Amount (BTC)"] == "0.01000000"
    assert row["Price at Tx (USD)"] == "$50,000.00"
    assert row["Value (USD)"] == "$500.00"
    assert row["Fees (USD)"] == "$1.50"
    assert row["Fees (BTC)"] == "-"
    assert row["Exchange"] == "-"
    assert row["Transaction ID"] == "-"


def test_export_withdrawal_with_btc_fee():
    tx = CanonicalTransaction(
        id="csv-1",
        date=datetime(2024, 2, 20, 16, 45),
        type=TransactionType.WITHDRAWAL,
        sent_amount=0.01,
        fee_amount=0.0001,
        fee_currency="btc",
        from_address_name="Coinbase",
        transaction_hash="abc",
        price=52000.0,
    )
    row = format_transaction_for_csv(tx)
    assert row["Date"] == "2/20/2024, 04:45 PM"
    assert row["Amount (BTC)"] == "0.01000000"
    assert row["Value (USD)"] == "$0.01"
    assert row["Fees (BTC)"] == "0.00010000"
    assert row["Fees (USD)"] == "-"
    assert row["Exchange"] == "Coinbase"
    assert row["Transaction ID"] == "abc"


def test_export_transactions_csv_has_header_and_rows():
    text = export_transactions_csv([BUY, BUY])
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == list(EXPORT_COLUMNS)
    assert len(rows) == 3


@pytest.mark.parametrize("name", sorted(TEMPLATES))
def test_templates_import_cleanly(name):
    data = read_csv_text(template_csv(name))
    assert tuple(data.headers) == TEMPLATES[name].headers
    mappings = auto_map_columns(data.headers, data.rows)
    assert can_proceed_from_mapping(mappings)
    assert all(m.is_mapped for m in mappings)
    transactions = transform_csv_data(data.rows, mappings)
    assert len(transactions) == len(TEMPLATES[name].rows)
    assert validate_transactions(transactions, now=datetime(2025, 1, 1)) == []


def test_unknown_template_raises_key_error():
    with pytest.raises(KeyError):
        template_csv("fancy")


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class _FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        return None


def _install_urlopen(monkeypatch, handler):
    calls = []

    def fake_urlopen(req, timeout=None):
        calls.append(req)
        return handler(req)

    monkeypatch.setattr("bitbasis.submission.urllib.request.urlopen", fake_urlopen)
    return calls


def test_submit_posts_payload_and_returns_count(monkeypatch):
    calls = _install_urlopen(monkeypatch, lambda req: _FakeResponse(b'{"count": 7}'))
    imported = submit_transactions([BUY], endpoint="https://api.example/import", api_token="tok")
    assert imported == 7

    (req,) = calls
    assert req.get_method() == "POST"
    assert req.full_url == "https://api.example/import"
    assert req.get_header("Authorization") == "Bearer tok"
    body = json.loads(req.data.decode("utf-8"))
    assert body["transactions"][0]["type"] == "buy"


def test_submit_falls_back_to_payload_length(monkeypatch):
    monkeypatch.setenv("BITBASIS_API_URL", "https://api.example/import")
    calls = _install_urlopen(monkeypatch, lambda req: _FakeResponse(b"{}"))
    assert submit_transactions([BUY, BUY]) == 2
    assert calls[0].get_header("Authorization") is None


def test_submit_http_error_carries_backend_details(monkeypatch):
    body = json.dumps({"error": "Invalid", "details": [{"field": "price", "message": "required"}]})

    def reject(req):
        raise urllib.error.HTTPError(
            req.full_url, 400, "Bad Request", hdrs=None, fp=io.BytesIO(body.encode("utf-8"))
        )

    _install_urlopen(monkeypatch, reject)
    with pytest.raises(SubmissionError) as excinfo:
        submit_transactions([BUY], endpoint="https://api.example/import")
    assert str(excinfo.value) == "Invalid\nDetails: price: required"
    assert excinfo.value.status == 400


def test_submit_unreachable_endpoint(monkeypatch):
    def down(req):
        raise urllib.error.URLError("connection refused")

    _install_urlopen(monkeypatch, down)
    with pytest.raises(SubmissionError, match="Failed to reach import endpoint"):
        submit_transactions([BUY], endpoint="https://api.example/import")


def test_submit_timeout_while_reading_response(monkeypatch):
    class _SlowResponse(_FakeResponse):
        def read(self) -> bytes:
            raise TimeoutError("timed out")

    _install_urlopen(monkeypatch, lambda req: _SlowResponse(b""))
    with pytest.raises(SubmissionError, match="Failed to reach import endpoint: timed out"):
        submit_transactions([BUY], endpoint="https://api.example/import")


def test_submit_dropped_connection(monkeypatch):
    def drop(req):
        raise http.client.RemoteDisconnected("Remote end closed connection without response")

    _install_urlopen(monkeypatch, drop)
    with pytest.raises(SubmissionError, match="Remote end closed connection"):
        submit_transactions([BUY], endpoint="https://api.example/import")


def test_missing_endpoint_is_an_error():
    with pytest.raises(SubmissionError, match="BITBASIS_API_URL"):
        resolve_endpoint()
