"""Column auto-detection for CSV imports.

Exchanges and wallets export transactions under wildly different headers. This
module guesses which canonical transaction field each CSV column feeds, using
an ordered list of keyword rules evaluated top-down (first match wins). The
order is the contract: specific phrases ("fee amount") sit above the generic
words they contain ("amount") so they are never shadowed.

Every guess is advisory. Users can remap any column (``remap_column``) before
the rows are normalized, and the mapping gate (``can_proceed_from_mapping``)
only requires that ``date`` and ``type`` are mapped and that no field is
claimed by two columns.

Confidence values are fixed heuristic weights, not probabilities. A detection
at or above ``CONFIDENT_THRESHOLD`` is flagged as auto-detected.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from enum import StrEnum

from .logging_setup import get_logger

_logger = get_logger("bitbasis.mapping")


class TransactionField(StrEnum):
    DATE = "date"
    TYPE = "type"
    SENT_AMOUNT = "sent_amount"
    SENT_CURRENCY = "sent_currency"
    RECEIVED_AMOUNT = "received_amount"
    RECEIVED_CURRENCY = "received_currency"
    FEE_AMOUNT = "fee_amount"
    FEE_CURRENCY = "fee_currency"
    FROM_ADDRESS_NAME = "from_address_name"
    TO_ADDRESS_NAME = "to_address_name"
    FROM_ADDRESS = "from_address"
    TO_ADDRESS = "to_address"
    TRANSACTION_HASH = "transaction_hash"
    PRICE = "price"
    COMMENT = "comment"
    IGNORE = "ignore"


@dataclass(frozen=True, slots=True)
class FieldSpec:
    field: TransactionField
    label: str
    description: str
    required: bool = False


FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec(TransactionField.DATE, "Date", "Transaction date", required=True),
    FieldSpec(
        TransactionField.TYPE,
        "Type",
        "Transaction type (buy/sell/deposit/withdrawal)",
        required=True,
    ),
    FieldSpec(TransactionField.SENT_AMOUNT, "Sent Amount", "Amount sent/paid"),
    FieldSpec(TransactionField.SENT_CURRENCY, "Sent Currency", "Currency of sent amount"),
    FieldSpec(TransactionField.RECEIVED_AMOUNT, "Received Amount", "Amount received"),
    FieldSpec(
        TransactionField.RECEIVED_CURRENCY, "Received Currency", "Currency of received amount"
    ),
    FieldSpec(TransactionField.FEE_AMOUNT, "Fee Amount", "Transaction fee"),
    FieldSpec(TransactionField.FEE_CURRENCY, "Fee Currency", "Currency of fee"),
    FieldSpec(
        TransactionField.FROM_ADDRESS_NAME, "From (Name)", "Source name (exchange, wallet)"
    ),
    FieldSpec(TransactionField.TO_ADDRESS_NAME, "To (Name)", "Destination name"),
    FieldSpec(TransactionField.FROM_ADDRESS, "From Address", "Source wallet address"),
    FieldSpec(TransactionField.TO_ADDRESS, "To Address", "Destination wallet address"),
    FieldSpec(TransactionField.TRANSACTION_HASH, "Transaction Hash", "Blockchain transaction ID"),
    FieldSpec(TransactionField.PRICE, "Price", "BTC price at transaction time"),
    FieldSpec(TransactionField.COMMENT, "Comment/Note", "Additional notes"),
    FieldSpec(TransactionField.IGNORE, "Ignore Column", "Skip this column"),
)

_SPEC_BY_FIELD: dict[TransactionField, FieldSpec] = {s.field: s for s in FIELD_SPECS}

REQUIRED_FIELDS: tuple[TransactionField, ...] = tuple(s.field for s in FIELD_SPECS if s.required)

# Heuristic weights. Kept as named constants so tuning is a one-line change.
CONFIDENT_THRESHOLD = 0.7
SAMPLE_SIZE = 5

EXACT = 0.95
STRONG = 0.9
HIGH = 0.85
MEDIUM = 0.8
DIRECTIONAL = 0.7
FALLBACK_AMOUNT = 0.6
WEAK = 0.5
FIAT_AMOUNT = 0.1


def field_spec(field: TransactionField) -> FieldSpec:
    return _SPEC_BY_FIELD[field]


def is_required_field(field: TransactionField | None) -> bool:
    return field is not None and _SPEC_BY_FIELD[field].required


# ---------------------------------------------------------------------------
# Detection rules
# ---------------------------------------------------------------------------


Predicate = Callable[[str, Sequence[str]], bool]


@dataclass(frozen=True, slots=True)
class DetectionRule:
    """``predicate(name, samples)`` → ``field`` with ``confidence`` on match."""

    predicate: Predicate
    field: TransactionField | None
    confidence: float
    name: str = ""


@dataclass(frozen=True, slots=True)
class Detection:
    field: TransactionField | None
    confidence: float

    @property
    def is_confident(self) -> bool:
        return self.confidence >= CONFIDENT_THRESHOLD


def _any(*words: str) -> Callable[[str], bool]:
    return lambda name: any(w in name for w in words)


def _exact(*names: str) -> Callable[[str], bool]:
    allowed = frozenset(names)
    return lambda name: name in allowed


_FEE_PHRASES = _any(
    "fee amount",
    "fee_amount",
    "transaction fee",
    "trading fee",
    "network fee",
    "exchange fee",
    "service fee",
    "gas fee",
)
_FEE_WORDS = _any("fee", "cost", "commission", "charge", "expense")
_CURRENCY_HINT = _any("currency", "asset", "symbol")
_AMOUNT_WORDS = _any("amount", "quantity", "size", "value", "volume", "total")
_FIAT_WORDS = _any("fiat", "usd", "eur", "market", "dollar")
_AMOUNT_SENT = _any("sent", "sold", "debit", "pay", "spend", "out", "from", "withdraw")
# "in"/"to" are deliberately loose substrings; they sit after the sent words.
_AMOUNT_RECEIVED = _any(
    "received", "bought", "credit", "get", "earn", "in", "to", "deposit"
)
_CURRENCY_WORDS = _any("currency", "asset", "symbol", "coin", "token")
_CURRENCY_SENT = _any("sent", "sold", "from", "debit", "pay", "spend")
_CURRENCY_RECEIVED = _any("received", "bought", "to", "credit", "get", "earn")
_ADDRESS_WORDS = _any("address", "wallet")
_FROM_CONTEXT = _any("from", "source", "sender")
_TO_CONTEXT = _any("to", "destination", "recipient", "receiver")
_PLATFORM_WORDS = _any(
    "exchange",
    "platform",
    "provider",
    "service",
    "wallet name",
    "account",
    "institution",
)
_NAME_OR_PLATFORM = _any(
    "name",
    "exchange",
    "platform",
    "provider",
    "service",
    "wallet name",
    "account",
    "institution",
)
_TO_TARGET = _any("to", "destination", "target")


def _has_mixed_signs(samples: Sequence[str]) -> bool:
    """True when samples hold both negative and positive numbers."""

    if not samples:
        return False
    from .normalizers import leading_float

    has_negative = any("-" in s for s in samples)
    has_positive = False
    for s in samples:
        if "-" in s:
            continue
        n = leading_float(s)
        if n is not None and n > 0:
            has_positive = True
            break
    return has_negative and has_positive


def _amount(extra: Predicate) -> Predicate:
    return lambda name, samples: _AMOUNT_WORDS(name) and extra(name, samples)


def _currency(extra: Callable[[str], bool]) -> Predicate:
    return lambda name, _s: _CURRENCY_WORDS(name) and extra(name)


def _on_name(pred: Callable[[str], bool]) -> Predicate:
    return lambda name, _s: pred(name)


F = TransactionField

DETECTION_RULES: tuple[DetectionRule, ...] = (
    DetectionRule(_on_name(_any("date", "time", "timestamp")), F.DATE, STRONG, "date"),
    DetectionRule(_on_name(_any("type", "action", "side")), F.TYPE, MEDIUM, "type"),
    # Fee amount before any generic amount rule.
    DetectionRule(
        _on_name(_exact("fee amount", "fee_amount", "feeamount")), F.FEE_AMOUNT, EXACT, "fee exact"
    ),
    DetectionRule(_on_name(_FEE_PHRASES), F.FEE_AMOUNT, STRONG, "fee phrase"),
    DetectionRule(
        _on_name(lambda n: _FEE_WORDS(n) and _CURRENCY_HINT(n)),
        F.FEE_CURRENCY,
        MEDIUM,
        "fee word + currency",
    ),
    DetectionRule(_on_name(_FEE_WORDS), F.FEE_AMOUNT, MEDIUM, "fee word"),
    # Amount family. Fiat amounts are recomputed from BTC amount × price later.
    DetectionRule(_amount(lambda n, _s: _FIAT_WORDS(n)), None, FIAT_AMOUNT, "fiat amount"),
    DetectionRule(
        _amount(lambda n, _s: _AMOUNT_SENT(n)), F.SENT_AMOUNT, MEDIUM, "amount sent"
    ),
    DetectionRule(
        _amount(lambda n, _s: _AMOUNT_RECEIVED(n)), F.RECEIVED_AMOUNT, MEDIUM, "amount received"
    ),
    # Mixed-sign column: combined deposit/withdrawal; signs are fixed during normalization.
    DetectionRule(
        _amount(lambda _n, s: _has_mixed_signs(s)), F.RECEIVED_AMOUNT, HIGH, "amount mixed sign"
    ),
    DetectionRule(
        _amount(lambda n, _s: _any("base", "quote")(n)), F.SENT_AMOUNT, DIRECTIONAL, "base/quote"
    ),
    DetectionRule(
        _amount(lambda n, _s: _any("crypto", "btc", "bitcoin")(n)),
        F.RECEIVED_AMOUNT,
        DIRECTIONAL,
        "crypto amount",
    ),
    DetectionRule(_amount(lambda _n, _s: True), F.RECEIVED_AMOUNT, FALLBACK_AMOUNT, "amount"),
    DetectionRule(
        _on_name(_exact("fee currency", "fee_currency", "feecurrency")),
        F.FEE_CURRENCY,
        EXACT,
        "fee currency exact",
    ),
    DetectionRule(
        _on_name(
            lambda n: ("fee" in n and _CURRENCY_HINT(n))
            or _any("fee currency", "fee asset", "fee symbol")(n)
        ),
        F.FEE_CURRENCY,
        HIGH,
        "fee currency phrase",
    ),
    DetectionRule(_currency(_CURRENCY_SENT), F.SENT_CURRENCY, DIRECTIONAL, "currency sent"),
    DetectionRule(
        _currency(_CURRENCY_RECEIVED), F.RECEIVED_CURRENCY, DIRECTIONAL, "currency received"
    ),
    DetectionRule(_currency(lambda _n: True), F.RECEIVED_CURRENCY, WEAK, "currency"),
    DetectionRule(_on_name(_any("price", "rate", "usd")), F.PRICE, DIRECTIONAL, "price"),
    DetectionRule(
        _on_name(
            _exact(
                "from",
                "source",
                "from_address_name",
                "source_name",
                "from address name",
                "source address name",
            )
        ),
        F.FROM_ADDRESS_NAME,
        EXACT,
        "from name exact",
    ),
    DetectionRule(
        _on_name(
            _exact(
                "to",
                "destination",
                "to_address_name",
                "destination_name",
                "to address name",
                "destination address name",
            )
        ),
        F.TO_ADDRESS_NAME,
        EXACT,
        "to name exact",
    ),
    DetectionRule(
        _on_name(
            _exact(
                "from address",
                "from_address",
                "source address",
                "source_address",
                "fromaddress",
                "sourceaddress",
            )
        ),
        F.FROM_ADDRESS,
        EXACT,
        "from address exact",
    ),
    DetectionRule(
        _on_name(
            _exact(
                "to address",
                "to_address",
                "destination address",
                "destination_address",
                "toaddress",
                "destinationaddress",
            )
        ),
        F.TO_ADDRESS,
        EXACT,
        "to address exact",
    ),
    DetectionRule(
        _on_name(lambda n: _ADDRESS_WORDS(n) and _FROM_CONTEXT(n)),
        F.FROM_ADDRESS,
        HIGH,
        "address from",
    ),
    DetectionRule(
        _on_name(lambda n: _ADDRESS_WORDS(n) and _TO_CONTEXT(n)),
        F.TO_ADDRESS,
        HIGH,
        "address to",
    ),
    DetectionRule(_on_name(_ADDRESS_WORDS), F.FROM_ADDRESS, WEAK, "address"),
    DetectionRule(
        _on_name(lambda n: _any("from", "source")(n) and _NAME_OR_PLATFORM(n)),
        F.FROM_ADDRESS_NAME,
        HIGH,
        "from platform",
    ),
    DetectionRule(
        _on_name(lambda n: _TO_TARGET(n) and _NAME_OR_PLATFORM(n)),
        F.TO_ADDRESS_NAME,
        HIGH,
        "to platform",
    ),
    DetectionRule(
        _on_name(lambda n: (_PLATFORM_WORDS(n) or "source" in n) and _TO_TARGET(n)),
        F.TO_ADDRESS_NAME,
        DIRECTIONAL,
        "platform to",
    ),
    DetectionRule(
        _on_name(lambda n: _PLATFORM_WORDS(n) or "source" in n),
        F.FROM_ADDRESS_NAME,
        DIRECTIONAL,
        "platform",
    ),
    DetectionRule(
        _on_name(lambda n: "hash" in n or "txid" in n or ("transaction" in n and "id" in n)),
        F.TRANSACTION_HASH,
        STRONG,
        "hash",
    ),
    DetectionRule(
        _on_name(_any("note", "comment", "memo", "description")), F.COMMENT, MEDIUM, "comment"
    ),
)


def detect_field_type(
    column_name: str,
    sample_values: Sequence[str] = (),
    *,
    rules: Sequence[DetectionRule] = DETECTION_RULES,
) -> Detection:
    """Best-guess field for a CSV header; ``Detection(None, 0.0)`` when nothing matches."""

    name = column_name.strip().lower()
    samples = [str(v) for v in sample_values]
    for rule in rules:
        if rule.predicate(name, samples):
            return Detection(rule.field, rule.confidence)
    return Detection(None, 0.0)


# ---------------------------------------------------------------------------
# Column mappings
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    csv_column: str
    transaction_field: TransactionField | None
    is_required: bool = False
    is_confident: bool = False

    @property
    def is_mapped(self) -> bool:
        return self.transaction_field not in (None, TransactionField.IGNORE)


@dataclass(frozen=True, slots=True)
class DuplicateMapping:
    field: TransactionField
    csv_columns: tuple[str, ...]


def sample_column_values(
    rows: Sequence[Mapping[str, str]], header: str, *, limit: int = SAMPLE_SIZE
) -> list[str]:
    """Return up to ``limit`` non-empty values for ``header`` in row order."""

    out: list[str] = []
    for row in rows:
        value = row.get(header)
        if value is None or not str(value).strip():
            continue
        out.append(str(value))
        if len(out) >= limit:
            break
    return out


def _noteworthy(header: str) -> bool:
    h = header.lower()
    return any(
        w in h for w in ("fee", "amount", "from", "to", "source", "destination", "address")
    )


def auto_map_columns(
    headers: Sequence[str], rows: Sequence[Mapping[str, str]]
) -> list[ColumnMapping]:
    """Detect a mapping for every header, preserving header order."""

    mappings: list[ColumnMapping] = []
    for header in headers:
        samples = sample_column_values(rows, header)
        detection = detect_field_type(header, samples)
        if _noteworthy(header):
            _logger.debug(
                "column_detect header=%r field=%s confidence=%d%% confident=%s samples=%r",
                header,
                detection.field,
                round(detection.confidence * 100),
                detection.is_confident,
                samples[:3],
            )
        mappings.append(
            ColumnMapping(
                csv_column=header,
                transaction_field=detection.field,
                is_required=is_required_field(detection.field),
                is_confident=detection.is_confident,
            )
        )
    return mappings


def remap_column(
    mappings: Sequence[ColumnMapping],
    csv_column: str,
    new_field: TransactionField | None,
) -> list[ColumnMapping]:
    """Apply a user override to one column. Overrides are never "confident"."""

    if not any(m.csv_column == csv_column for m in mappings):
        raise KeyError(f"unknown CSV column: {csv_column!r}")
    return [
        replace(
            m,
            transaction_field=new_field,
            is_required=is_required_field(new_field),
            is_confident=False,
        )
        if m.csv_column == csv_column
        else m
        for m in mappings
    ]


def find_duplicate_mappings(mappings: Sequence[ColumnMapping]) -> list[DuplicateMapping]:
    """Fields claimed by more than one CSV column (``ignore`` excluded)."""

    by_field: dict[TransactionField, list[str]] = {}
    for m in mappings:
        if (field := m.transaction_field) is None or field is TransactionField.IGNORE:
            continue
        by_field.setdefault(field, []).append(m.csv_column)
    return [
        DuplicateMapping(field=f, csv_columns=tuple(cols))
        for f, cols in by_field.items()
        if len(cols) > 1
    ]


def missing_required_fields(mappings: Sequence[ColumnMapping]) -> list[TransactionField]:
    mapped = {m.transaction_field for m in mappings if m.is_mapped}
    return [f for f in REQUIRED_FIELDS if f not in mapped]


def can_proceed_from_mapping(mappings: Sequence[ColumnMapping]) -> bool:
    return not missing_required_fields(mappings) and not find_duplicate_mappings(mappings)


__all__ = [
    "CONFIDENT_THRESHOLD",
    "DETECTION_RULES",
    "FIELD_SPECS",
    "REQUIRED_FIELDS",
    "ColumnMapping",
    "Detection",
    "DetectionRule",
    "DuplicateMapping",
    "FieldSpec",
    "TransactionField",
    "auto_map_columns",
    "can_proceed_from_mapping",
    "detect_field_type",
    "field_spec",
    "find_duplicate_mappings",
    "is_required_field",
    "missing_required_fields",
    "remap_column",
    "sample_column_values",
]
