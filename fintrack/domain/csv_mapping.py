"""CSV ingestion - header normalization and fuzzy column-to-field mapping"""

import csv
import io
import math
import re
from collections.abc import Mapping
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from fintrack.domain.exceptions import InvalidTransactionDataError
from fintrack.domain.models import TransactionDraft
from fintrack.utils.date_utils import parse_timestamp, to_iso_utc, utc_now

AMOUNT_TOKENS = (
    "amount", "amt", "value", "price", "debit", "credit",
    "transaction_amount", "amount_eur", "amount_euro",
)
MERCHANT_TOKENS = (
    "merchant", "shop", "payee", "vendor", "store", "description",
    "narrative", "merchant_name",
)
COUNTRY_TOKENS = ("country", "location", "country_code", "countryname", "country_name")
TIMESTAMP_TOKENS = (
    "timestamp", "date", "datetime", "transaction_date", "posted_date",
    "created_at", "time",
)

DEFAULT_MERCHANT = "unknown"
DEFAULT_COUNTRY = "Ireland"

_BOM = "\ufeff"
_STRIP_CHARS = re.compile(r'[()\[\]"]')
_NON_WORD = re.compile(r"[^\w\s\-]")
_WHITESPACE = re.compile(r"\s+")
_NON_NUMERIC = re.compile(r"[^\d.\-]")

Row = Union[Mapping, Sequence[Tuple[str, str]]]


def normalize_header(header: Optional[str]) -> str:
    """
    Normalize a raw CSV header so token matching tolerates decoration.

    Example:
        '\\ufeff"AMOUNT (EUR)"' -> 'amount eur'
    """
    if not header:
        return ""
    text = str(header)
    if text.startswith(_BOM):
        text = text[1:]
    text = _STRIP_CHARS.sub("", text)
    text = _NON_WORD.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip().lower()


def parse_amount(raw: object) -> float:
    """Strip currency symbols and separators; 0.0 when nothing numeric remains"""
    if raw is None:
        return 0.0
    cleaned = _NON_NUMERIC.sub("", str(raw))
    try:
        amount = float(cleaned)
    except ValueError:
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def normalize_timestamp(raw: str) -> str:
    """Canonical ISO instant when parseable, otherwise the raw trimmed string"""
    raw = raw.strip()
    parsed = parse_timestamp(raw)
    if parsed is None:
        return raw
    try:
        return to_iso_utc(parsed)
    except (OverflowError, ValueError):
        return raw


def pick_by_tokens(tokens: Iterable[str], pairs: Sequence[Tuple[str, str]]) -> Optional[str]:
    """
    First column (in row order) whose header contains any token and whose value is non-blank.

    Column order decides ties, not token order.
    """
    tokens = tuple(tokens)
    for header, value in pairs:
        if not header:
            continue
        if value is None or not str(value).strip():
            continue
        for token in tokens:
            if token in header:
                return str(value).strip()
    return None


def _ensure_decodable(pairs: Sequence[Tuple[str, str]]) -> None:
    # Undecodable input bytes survive decoding as lone surrogates
    for header, value in pairs:
        try:
            (value or "").encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidTransactionDataError(
                f"Column '{header}' contains bytes that are not valid UTF-8"
            ) from e


class CsvRowMapper:
    """Map one CSV row with arbitrary headers to a TransactionDraft"""

    def __init__(
        self,
        default_country: str = DEFAULT_COUNTRY,
        default_merchant: str = DEFAULT_MERCHANT,
    ):
        self.default_country = default_country
        self.default_merchant = default_merchant

    def normalize_row(self, row: Row) -> List[Tuple[str, str]]:
        items = row.items() if isinstance(row, Mapping) else row
        return [(normalize_header(header), value) for header, value in items]

    def map_row(self, row: Row) -> TransactionDraft:
        """
        Resolve canonical fields from a header -> value row.

        Raises:
            InvalidTransactionDataError: if a value holds undecodable bytes
        """
        pairs = self.normalize_row(row)
        _ensure_decodable(pairs)

        raw_amount = pick_by_tokens(AMOUNT_TOKENS, pairs)
        merchant = pick_by_tokens(MERCHANT_TOKENS, pairs) or self.default_merchant
        country = pick_by_tokens(COUNTRY_TOKENS, pairs) or self.default_country

        raw_timestamp = pick_by_tokens(TIMESTAMP_TOKENS, pairs)
        timestamp = (
            normalize_timestamp(raw_timestamp)
            if raw_timestamp is not None
            else to_iso_utc(utc_now())
        )

        return TransactionDraft(
            amount=parse_amount(raw_amount),
            country=country,
            merchant=merchant,
            timestamp=timestamp,
        )


def decode_csv(content: bytes) -> str:
    """Decode upload bytes as UTF-8, keeping invalid bytes so only their rows fail"""
    return content.decode("utf-8-sig", errors="surrogateescape")


def read_csv_rows(
    text: str,
    on_error: Optional[Callable[[int, Exception], None]] = None,
) -> Iterator[List[Tuple[str, str]]]:
    """
    Yield each data row as ordered (normalized header, trimmed value) pairs.

    Blank lines are skipped; short rows pair only the cells present and
    cells beyond the header row are ignored.

    A data row the csv reader rejects (oversized field, NUL byte) is reported
    to on_error with its line number and reading resumes at the next line.

    Raises:
        InvalidTransactionDataError: the header row cannot be read, or a data
            row cannot be read and no on_error was given
    """
    reader = csv.reader(io.StringIO(text, newline=""))
    headers: Optional[List[str]] = None
    while True:
        try:
            cells = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            if headers is None or on_error is None:
                raise InvalidTransactionDataError(f"Unreadable CSV at line {reader.line_num}: {e}") from e
            on_error(reader.line_num, e)
            continue
        values = [cell.strip() for cell in cells]
        if not any(values):
            continue
        if headers is None:
            headers = [normalize_header(h) for h in values]
            continue
        yield list(zip(headers, values))
