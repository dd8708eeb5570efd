"""
Record normalisation for the reports feature.

Marketplace documents arrive as loosely typed field bags: timestamps may be
Firestore Timestamp objects, exported `{"_seconds": ...}` maps or ISO strings,
and any field can be missing. This module turns them into typed records with
every defaulting rule applied once, so the aggregation engine never has to
second-guess its input.
"""

import datetime
import logging
import math
import re
from collections.abc import Mapping
from typing import Annotated, Any, Iterable, List, Optional

from dateutil.parser import isoparse
from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
UNKNOWN_ID = "unknown"
UNKNOWN_VENDOR = "Unknown Vendor"
UNKNOWN_CUSTOMER = "Unknown Customer"
NOT_SPECIFIED = "Not Specified"

_PINCODE_PATTERN = re.compile(r"\b\d{6}\b", re.ASCII)


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    # Naive values are taken to be UTC already
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def parse_timestamp(raw: Any) -> Optional[datetime.datetime]:
    """
    Parses the timestamp encodings found in marketplace documents.

    Accepts a datetime or date, an object exposing `toDate()` or
    `to_datetime()` (Firestore client timestamps), an object or mapping with a
    numeric `_seconds` field (plus optional `_nanoseconds`), or an ISO-8601
    string. `_seconds` of 0 counts as unset.

    Returns:
        A timezone-aware UTC datetime, or None when the value is absent or
        cannot be parsed. Never raises.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime.datetime):
        return _as_utc(raw)
    if isinstance(raw, datetime.date):
        return datetime.datetime.combine(raw, datetime.time.min, tzinfo=datetime.timezone.utc)

    converter = getattr(raw, "toDate", None) or getattr(raw, "to_datetime", None)
    if callable(converter):
        try:
            converted = converter()
        except (TypeError, ValueError):
            return None
        return _as_utc(converted) if isinstance(converted, datetime.datetime) else None

    if isinstance(raw, Mapping):
        seconds, nanos = raw.get("_seconds"), raw.get("_nanoseconds", 0)
    else:
        seconds, nanos = getattr(raw, "_seconds", None), getattr(raw, "_nanoseconds", 0)
    # A zero epoch marks an unset Firestore timestamp
    if _is_number(seconds) and seconds != 0:
        nanos = nanos if _is_number(nanos) else 0
        try:
            return datetime.datetime.fromtimestamp(seconds + nanos / 1e9, tz=datetime.timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(raw, str):
        try:
            return _as_utc(isoparse(raw.strip()))
        except (ValueError, OverflowError):
            return None
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def extract_area(address: str) -> str:
    """
    Best-effort locality from a free-text address.

    Addresses are usually written "<house>, <street>, <locality>, <pincode>",
    so the second-to-last comma separated segment is taken as the area. This
    is a heuristic, not a geocode: short or unusual addresses fall back to the
    first segment and then to "Unknown".
    """
    if not address:
        return UNKNOWN
    parts = [part.strip() for part in address.split(",")]
    if len(parts) >= 2:
        return parts[-2] or parts[0] or UNKNOWN
    return parts[0] or UNKNOWN


def extract_pincode(address: str) -> str:
    """First standalone 6-digit run in the address, or "Unknown"."""
    if not address:
        return UNKNOWN
    match = _PINCODE_PATTERN.search(address)
    return match.group(0) if match else UNKNOWN


def _text_or(default: Optional[str]):
    def coerce(value: Any) -> Optional[str]:
        if value is None or value == "" or value is False:
            return default
        return str(value)
    return coerce


def _coerce_amount(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


Text = Annotated[str, BeforeValidator(_text_or(""))]
OptionalText = Annotated[Optional[str], BeforeValidator(_text_or(None))]
RecordId = Annotated[str, BeforeValidator(_text_or(UNKNOWN_ID))]
Reason = Annotated[str, BeforeValidator(_text_or(NOT_SPECIFIED))]
Amount = Annotated[float, BeforeValidator(_coerce_amount)]
Timestamp = Annotated[Optional[datetime.datetime], BeforeValidator(parse_timestamp)]


class IngestModel(BaseModel):
    # Documents use camelCase keys (vendorId, createdAt, ...)
    model_config = ConfigDict(alias_generator=to_camel, extra="ignore")


class OrderRecord(IngestModel):
    id: Text = ""
    vendor_id: RecordId = UNKNOWN_ID
    vendor_name: OptionalText = None
    customer_id: RecordId = UNKNOWN_ID
    status: Text = ""
    total: Amount = 0.0
    delivery_address: Text = ""
    created_at: Timestamp = None
    delivered_at: Timestamp = None
    cancellation_reason: Reason = NOT_SPECIFIED

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_reason(cls, data: Any) -> Any:
        # Older app builds wrote the reason as "cancelReason"
        if isinstance(data, Mapping) and not data.get("cancellationReason") and data.get("cancelReason"):
            data = {**data, "cancellationReason": data["cancelReason"]}
        return data

    @property
    def is_completed(self) -> bool:
        return self.status in ("Delivered", "Completed")

    @property
    def is_cancelled(self) -> bool:
        return self.status == "Cancelled"


class VendorRecord(IngestModel):
    id: Text = ""
    shop_name: OptionalText = None
    full_name: OptionalText = None

    @property
    def display_name(self) -> str:
        return self.shop_name or self.full_name or UNKNOWN_VENDOR


class CustomerRecord(IngestModel):
    id: Text = ""
    full_name: OptionalText = None
    name: OptionalText = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.name or UNKNOWN_CUSTOMER


def _ingest(model: type[IngestModel], bags: Iterable[Any]) -> List[Any]:
    records = []
    for bag in bags:
        try:
            records.append(model.model_validate(bag))
        except ValidationError as e:
            # Only non-mapping documents end up here; field level problems are defaulted
            logger.warning(f"Skipping unreadable {model.__name__} document: {e.error_count()} error(s)")
    return records


def ingest_orders(bags: Iterable[Any]) -> List[OrderRecord]:
    return _ingest(OrderRecord, bags)


def ingest_vendors(bags: Iterable[Any]) -> List[VendorRecord]:
    return _ingest(VendorRecord, bags)


def ingest_customers(bags: Iterable[Any]) -> List[CustomerRecord]:
    return _ingest(CustomerRecord, bags)
