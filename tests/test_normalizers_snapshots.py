# ruff: noqa: E501
import textwrap
from datetime import datetime

import pytest

from bitbasis import CanonicalTransaction, TransactionType, auto_map_columns, read_csv_text
from bitbasis.mapping import ColumnMapping, TransactionField
from bitbasis.normalizers import (
    normalize_transaction_type,
    parse_date,
    parse_number,
    transform_csv_data,
    transform_row,
)


def _dedent(s: str) -> str:
    # Keep internal newlines, but normalize indentation for readability.
    return textwrap.dedent(s).lstrip("\n").rstrip()


def test_signed_amount_export_snapshot():
    csv_text = _dedent(
        """
        Date,Type,Amount,Currency,Price,Notes
        2024-01-15 10:30:00,Withdrawal,-0.5,btc,"$42,000.00",cold storage
        2024-02-01,Deposit,0.25,BTC,"$43,500.50",
        01/03/2024,Purchase,0.1,BTC,(100),
        """
    )
    data = read_csv_text(csv_text)
    mappings = auto_map_columns(data.headers, data.rows)
    rows = transform_csv_data(data.rows, mappings)

    assert rows == [
        CanonicalTransaction(
            id="csv-0",
            date=datetime(2024, 1, 15, 10, 30),
            type=TransactionType.WITHDRAWAL,
            sent_amount=0.5,
            received_amount=None,
            received_currency="BTC",
            price=42000.0,
            comment="cold storage",
        ),
        CanonicalTransaction(
            id="csv-1",
            date=datetime(2024, 2, 1),
            type=TransactionType.DEPOSIT,
            received_amount=0.25,
            received_currency="BTC",
            price=43500.5,
        ),
        CanonicalTransaction(
            id="csv-2",
            date=datetime(2024, 1, 3),
            type=TransactionType.BUY,
            received_amount=0.1,
            received_currency="BTC",
            price=-100.0,
        ),
    ]
    # The raw row rides along, read-only
    assert rows[0].original_row["Notes"] == "cold storage"
    with pytest.raises(TypeError):
        rows[0].original_row["Notes"] = "edited"  # type: ignore[index]


def test_exchange_style_snapshot_with_fees_and_wallets():
    csv_text = _dedent(
        """
        Timestamp,Transaction Type,Sent Amount,Sent Currency,Received Amount,Received Currency,Fee Amount,Fee Currency,Price,From,To,TxID
        2023-11-02T08:00:00,SELL,0.2,btc,"8,400.00",usd,-4.20,usd,42000,Kraken,,
        2023-11-05T12:00:00,Send,-0.05,BTC,,,0.0001,BTC,43000,Kraken,Ledger,abc123
        """
    )
    data = read_csv_text(csv_text)
    mappings = auto_map_columns(data.headers, data.rows)
    sell, send = transform_csv_data(data.rows, mappings)

    assert sell.type is TransactionType.SELL
    assert sell.sent_amount == 0.2
    assert sell.sent_currency == "BTC"
    assert sell.received_amount == 8400.0
    assert sell.received_currency == "USD"
    assert sell.fee_amount == pytest.approx(4.2)
    assert sell.fee_currency == "USD"
    assert sell.from_address_name == "Kraken"
    assert sell.to_address_name is None

    assert send.type is TransactionType.WITHDRAWAL
    assert send.sent_amount == 0.05
    assert send.received_amount is None
    assert send.to_address_name == "Ledger"
    assert send.transaction_hash == "abc123"


def test_transform_row_skips_ignored_and_empty_cells():
    mappings = [
        ColumnMapping("d", TransactionField.DATE),
        ColumnMapping("t", TransactionField.TYPE),
        ColumnMapping("x", TransactionField.IGNORE),
        ColumnMapping("y", None),
        ColumnMapping("c", TransactionField.COMMENT),
    ]
    tx = transform_row(7, {"d": "2024-05-01", "t": "", "x": "junk", "y": "junk", "c": "  "}, mappings)
    assert tx.id == "csv-7"
    assert tx.type is TransactionType.UNKNOWN
    assert tx.comment is None
    assert tx.asset == "BTC"


def test_deposit_sign_moves_negative_sent_into_received():
    mappings = [
        ColumnMapping("t", TransactionField.TYPE),
        ColumnMapping("s", TransactionField.SENT_AMOUNT),
    ]
    tx = transform_row(0, {"t": "transfer in", "s": "-1.25"}, mappings)
    assert tx.type is TransactionType.DEPOSIT
    assert tx.received_amount == 1.25
    assert tx.sent_amount is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("$1,234.56", 1234.56),
        ("(1,000)", -1000.0),
        ("(5", -5.0),
        ("(-5)", None),
        ("€ 12", 12.0),
        ("₿0.00100000", 0.001),
        ("-0.5", -0.5),
        ("0.5 BTC", 0.5),
        ("1e-3", 0.001),
        ("abc", None),
        ("", None),
    ],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-03-04", datetime(2024, 3, 4)),
        ("2024-03-04 05:06:07", datetime(2024, 3, 4, 5, 6, 7)),
        ("03/04/2024", datetime(2024, 3, 4)),
        ("25/12/2024", datetime(2024, 12, 25)),
        ("12-31-2023 23:59:59", datetime(2023, 12, 31, 23, 59, 59)),
        ("31-12-2023", datetime(2023, 12, 31)),
        ("not a date", None),
        ("", None),
    ],
)
def test_parse_date_cascade(raw, expected):
    assert parse_date(raw) == expected


def test_parse_date_converts_aware_timestamps_to_naive():
    parsed = parse_date("2024-03-04T05:06:07Z")
    assert parsed is not None
    assert parsed.tzinfo is None


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Buy", TransactionType.BUY),
        ("Market Purchase", TransactionType.BUY),
        ("SELL", TransactionType.SELL),
        ("Receive", TransactionType.DEPOSIT),
        ("Transfer Out", TransactionType.WITHDRAWAL),
        ("Staking Reward", TransactionType.INTEREST),
        ("Rebate", TransactionType.UNKNOWN),
        (None, TransactionType.UNKNOWN),
    ],
)
def test_normalize_transaction_type(label, expected):
    assert normalize_transaction_type(label) is expected


def test_normalize_transaction_type_is_idempotent_on_labels():
    for t in TransactionType:
        assert normalize_transaction_type(t.value) is t
