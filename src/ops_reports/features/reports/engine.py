"""
Aggregation engine for the advanced reports.

A single pass over the order records fills a set of buckets (vendor, area,
hour of day, weekday, customer, calendar day, delivery-time samples and
cancellation counters). The buckets belong to one `AggregationBuckets`
instance created per call, so concurrent report requests never share state.
Entries are created on first sight of their key and only ever grow.
"""

import datetime
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

from .normalizer import UNKNOWN_VENDOR, OrderRecord, extract_area, extract_pincode

logger = logging.getLogger(__name__)

# Durations at or beyond this are data-entry noise (orders closed hours later)
MAX_DELIVERY_MINUTES = 300

K = TypeVar("K")
V = TypeVar("V")

AreaKey = Tuple[str, str]


def round_half_up(value: float) -> int:
    """Rounds halves up (2.5 -> 3), unlike the built-in banker's round()."""
    return math.floor(value + 0.5)


@dataclass
class VendorBucket:
    vendor_id: str
    vendor_name: str
    total_revenue: float = 0.0
    total_orders: int = 0
    completed_orders: int = 0
    cancelled_orders: int = 0


@dataclass
class AreaBucket:
    area: str
    pincode: str
    total_revenue: float = 0.0
    total_orders: int = 0


@dataclass
class VolumeBucket:
    order_count: int = 0
    revenue: float = 0.0


@dataclass
class CustomerBucket:
    order_count: int = 0
    total_spent: float = 0.0
    last_order_at: Optional[datetime.datetime] = None


@dataclass
class DayBucket:
    total_orders: int = 0
    cancelled: int = 0


@dataclass
class AggregationBuckets:
    vendors: Dict[str, VendorBucket] = field(default_factory=dict)
    areas: Dict[AreaKey, AreaBucket] = field(default_factory=dict)
    hours: Dict[int, VolumeBucket] = field(default_factory=dict)
    weekdays: Dict[int, VolumeBucket] = field(default_factory=dict)  # 0=Sunday
    customers: Dict[str, CustomerBucket] = field(default_factory=dict)
    days: Dict[str, DayBucket] = field(default_factory=dict)  # ISO date, UTC
    delivery_times: List[int] = field(default_factory=list)
    vendor_delivery_times: Dict[str, List[int]] = field(default_factory=dict)
    area_delivery_times: Dict[AreaKey, List[int]] = field(default_factory=dict)
    cancellation_reasons: Dict[str, int] = field(default_factory=dict)
    hourly_cancellations: Dict[int, int] = field(default_factory=dict)
    total_orders: int = 0
    total_cancellations: int = 0
    skipped_orders: int = 0


def get_or_create(bucket: Dict[K, V], key: K, factory: Callable[[], V]) -> V:
    entry = bucket.get(key)
    if entry is None:
        entry = bucket[key] = factory()
    return entry


def delivery_minutes(order: OrderRecord) -> Optional[int]:
    """Whole minutes from placement to delivery, or None if either end is missing."""
    if order.created_at is None or order.delivered_at is None:
        return None
    return round_half_up((order.delivered_at - order.created_at).total_seconds() / 60)


def aggregate_orders(
    orders: Iterable[OrderRecord],
    vendor_names: Mapping[str, str],
    tz: datetime.tzinfo = datetime.timezone.utc,
) -> AggregationBuckets:
    """
    Runs the single aggregation pass over the order records.

    Orders without a parseable creation time are skipped entirely. Every other
    order counts toward its vendor, area and day totals; Delivered/Completed
    orders additionally feed the revenue, demand, customer and delivery-time
    buckets, and Cancelled orders the cancellation counters.

    Args:
        orders: Normalised order records, in any order.
        vendor_names: Vendor id to display name lookup.
        tz: Zone used for the hour-of-day and weekday dimensions.

    Returns:
        AggregationBuckets: The raw buckets, ready for the report assembler.
    """
    buckets = AggregationBuckets()
    for order in orders:
        if order.created_at is None:
            buckets.skipped_orders += 1
            continue
        _record_order(buckets, order, vendor_names, tz)

    if buckets.skipped_orders:
        logger.debug(f"Skipped {buckets.skipped_orders} order(s) without a creation time")
    logger.debug(
        f"Aggregated {buckets.total_orders} order(s) into {len(buckets.vendors)} vendor, "
        f"{len(buckets.areas)} area and {len(buckets.customers)} customer bucket(s)"
    )
    return buckets


def _record_order(
    buckets: AggregationBuckets,
    order: OrderRecord,
    vendor_names: Mapping[str, str],
    tz: datetime.tzinfo,
) -> None:
    vendor_id = order.vendor_id
    area = extract_area(order.delivery_address)
    pincode = extract_pincode(order.delivery_address)
    area_key = (area, pincode)
    local_created = order.created_at.astimezone(tz)
    day_key = order.created_at.date().isoformat()

    buckets.total_orders += 1
    vendor = get_or_create(
        buckets.vendors,
        vendor_id,
        lambda: VendorBucket(
            vendor_id=vendor_id,
            vendor_name=vendor_names.get(vendor_id) or order.vendor_name or UNKNOWN_VENDOR,
        ),
    )
    vendor.total_orders += 1
    area_bucket = get_or_create(buckets.areas, area_key, lambda: AreaBucket(area=area, pincode=pincode))
    area_bucket.total_orders += 1
    day = get_or_create(buckets.days, day_key, DayBucket)
    day.total_orders += 1

    if order.is_completed:
        vendor.total_revenue += order.total
        vendor.completed_orders += 1
        area_bucket.total_revenue += order.total

        hour = get_or_create(buckets.hours, local_created.hour, VolumeBucket)
        hour.order_count += 1
        hour.revenue += order.total

        weekday = get_or_create(buckets.weekdays, local_created.isoweekday() % 7, VolumeBucket)
        weekday.order_count += 1
        weekday.revenue += order.total

        customer = get_or_create(buckets.customers, order.customer_id, CustomerBucket)
        customer.order_count += 1
        customer.total_spent += order.total
        if customer.last_order_at is None or order.created_at > customer.last_order_at:
            customer.last_order_at = order.created_at

        minutes = delivery_minutes(order)
        if minutes is not None and 0 < minutes < MAX_DELIVERY_MINUTES:
            buckets.delivery_times.append(minutes)
            get_or_create(buckets.vendor_delivery_times, vendor_id, list).append(minutes)
            get_or_create(buckets.area_delivery_times, area_key, list).append(minutes)

    elif order.is_cancelled:
        buckets.total_cancellations += 1
        vendor.cancelled_orders += 1
        day.cancelled += 1
        reason = order.cancellation_reason
        buckets.cancellation_reasons[reason] = buckets.cancellation_reasons.get(reason, 0) + 1
        buckets.hourly_cancellations[local_created.hour] = (
            buckets.hourly_cancellations.get(local_created.hour, 0) + 1
        )
