"""
Report assembly.

Turns the raw buckets produced by the aggregation engine into the advanced
report: derives averages and rates, ranks and truncates leaderboards and fills
the fixed hour/weekday axes. All rankings use Python's stable sort, so ties
keep the order in which their keys were first seen during aggregation.
"""

import datetime
import math
from typing import List, Mapping, Sequence

from .engine import AggregationBuckets, VolumeBucket, round_half_up
from .schemas import (
    AdvancedReport, AreaDeliveryTime, AreaRevenue, CancellationAnalysis,
    CancellationReason, CancellationTrendPoint, CustomerRetention,
    CustomersByOrderCount, DateRange, DayOfWeekOrders, DeliveryTimeAnalysis,
    DeliveryTimeRange, HourlyCancellations, HourlyOrders, TopCustomer,
    VendorCancellations, VendorDeliveryTime, VendorRevenue
)

TOP_VENDORS = 20
TOP_AREAS = 15
TOP_CUSTOMERS = 10
TOP_DELIVERY_ROWS = 10
TOP_CANCELLING_VENDORS = 10
TREND_DAYS = 30

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

# (label, inclusive lower bound, exclusive upper bound) in minutes
DELIVERY_TIME_RANGES = (
    ("0-15 min", 0, 15),
    ("15-30 min", 15, 30),
    ("30-45 min", 30, 45),
    ("45-60 min", 45, 60),
    ("60+ min", 60, math.inf),
)

UNKNOWN_NAME = "Unknown"
NO_ORDERS = "N/A"


def rate(part: float, whole: float) -> float:
    """Percentage of `whole` with one decimal place, 0 when `whole` is 0."""
    if not whole:
        return 0.0
    return round_half_up(part / whole * 100 * 10) / 10


def average(total: float, count: int) -> int:
    return round_half_up(total / count) if count else 0


def hour_label(hour: int) -> str:
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


def assemble_report(
    buckets: AggregationBuckets,
    vendor_names: Mapping[str, str],
    customer_names: Mapping[str, str],
    total_customers: int,
    today: datetime.date,
    window_days: int = 30,
) -> AdvancedReport:
    """
    Builds the advanced report from one aggregation pass.

    Args:
        buckets: Output of `aggregate_orders`.
        vendor_names: Vendor id to display name lookup.
        customer_names: Customer id to display name lookup.
        total_customers: Size of the raw customer collection.
        today: End of the echoed date range.
        window_days: Length of the echoed date range.

    Returns:
        AdvancedReport: The complete report. The date range is informational
        only; the buckets are never filtered by it.
    """
    return AdvancedReport(
        revenue_by_vendor=_revenue_by_vendor(buckets),
        revenue_by_area=_revenue_by_area(buckets),
        peak_hours=_peak_hours(buckets.hours),
        orders_by_day_of_week=_orders_by_day_of_week(buckets.weekdays),
        customer_retention=_customer_retention(buckets, customer_names, total_customers),
        delivery_time_analysis=_delivery_time_analysis(buckets, vendor_names),
        cancellation_analysis=_cancellation_analysis(buckets, vendor_names),
        date_range=DateRange(start=today - datetime.timedelta(days=window_days), end=today),
    )


def _revenue_by_vendor(buckets: AggregationBuckets) -> List[VendorRevenue]:
    rows = [
        VendorRevenue(
            vendor_id=v.vendor_id, vendor_name=v.vendor_name, total_revenue=v.total_revenue,
            total_orders=v.total_orders, average_order_value=average(v.total_revenue, v.completed_orders),
            completed_orders=v.completed_orders, cancelled_orders=v.cancelled_orders,
            cancellation_rate=rate(v.cancelled_orders, v.total_orders),
        )
        for v in buckets.vendors.values()
    ]
    rows.sort(key=lambda row: row.total_revenue, reverse=True)
    return rows[:TOP_VENDORS]


def _revenue_by_area(buckets: AggregationBuckets) -> List[AreaRevenue]:
    rows = [
        AreaRevenue(
            area=a.area, pincode=a.pincode, total_revenue=a.total_revenue, total_orders=a.total_orders,
            average_order_value=average(a.total_revenue, a.total_orders),
        )
        for a in buckets.areas.values()
    ]
    rows.sort(key=lambda row: row.total_revenue, reverse=True)
    return rows[:TOP_AREAS]


def _peak_hours(hours: Mapping[int, VolumeBucket]) -> List[HourlyOrders]:
    peak_hours = []
    for hour in range(24):
        volume = hours.get(hour, VolumeBucket())
        peak_hours.append(HourlyOrders(
            hour=hour, hour_label=hour_label(hour),
            order_count=volume.order_count, revenue=round_half_up(volume.revenue),
        ))
    return peak_hours


def _orders_by_day_of_week(weekdays: Mapping[int, VolumeBucket]) -> List[DayOfWeekOrders]:
    days = []
    for index, name in enumerate(DAY_NAMES):
        volume = weekdays.get(index, VolumeBucket())
        days.append(DayOfWeekOrders(
            day=name, day_index=index, order_count=volume.order_count, revenue=round_half_up(volume.revenue)
        ))
    return days


def _customer_retention(
    buckets: AggregationBuckets, customer_names: Mapping[str, str], total_customers: int
) -> CustomerRetention:
    one_order = two_to_five = six_to_ten = more_than_ten = 0
    for customer in buckets.customers.values():
        if customer.order_count == 1:
            one_order += 1
        elif customer.order_count <= 5:
            two_to_five += 1
        elif customer.order_count <= 10:
            six_to_ten += 1
        else:
            more_than_ten += 1
    returning = two_to_five + six_to_ten + more_than_ten
    with_orders = len(buckets.customers)
    order_total = sum(c.order_count for c in buckets.customers.values())

    ranked = sorted(buckets.customers.items(), key=lambda item: item[1].order_count, reverse=True)
    top_customers = [
        TopCustomer(
            customer_id=customer_id,
            customer_name=customer_names.get(customer_id, UNKNOWN_NAME),
            total_orders=c.order_count,
            total_spent=round_half_up(c.total_spent),
            last_order_date=c.last_order_at.date().isoformat() if c.last_order_at else NO_ORDERS,
        )
        for customer_id, c in ranked[:TOP_CUSTOMERS]
    ]

    return CustomerRetention(
        total_customers=total_customers,
        new_customers=with_orders - returning,
        returning_customers=returning,
        retention_rate=rate(returning, with_orders),
        average_orders_per_customer=round_half_up(order_total / with_orders * 10) / 10 if with_orders else 0.0,
        customers_by_order_count=CustomersByOrderCount(
            one_order=one_order, two_to_five=two_to_five, six_to_ten=six_to_ten, more_than_ten=more_than_ten
        ),
        top_customers=top_customers,
    )


def _delivery_time_analysis(buckets: AggregationBuckets, vendor_names: Mapping[str, str]) -> DeliveryTimeAnalysis:
    samples: Sequence[int] = buckets.delivery_times

    by_vendor = [
        VendorDeliveryTime(
            vendor_id=vendor_id, vendor_name=vendor_names.get(vendor_id, UNKNOWN_NAME),
            average_time=average(sum(times), len(times)), total_deliveries=len(times),
        )
        for vendor_id, times in buckets.vendor_delivery_times.items()
    ]
    by_vendor.sort(key=lambda row: row.average_time)  # fastest first

    by_area = [
        AreaDeliveryTime(
            area=area, pincode=pincode,
            average_time=average(sum(times), len(times)), total_deliveries=len(times),
        )
        for (area, pincode), times in buckets.area_delivery_times.items()
    ]
    by_area.sort(key=lambda row: row.total_deliveries, reverse=True)  # busiest first

    distribution = []
    for label, lower, upper in DELIVERY_TIME_RANGES:
        count = sum(1 for minutes in samples if lower <= minutes < upper)
        distribution.append(DeliveryTimeRange(range=label, count=count, percentage=rate(count, len(samples))))

    return DeliveryTimeAnalysis(
        average_delivery_time=average(sum(samples), len(samples)),
        fastest_delivery=min(samples, default=0),
        slowest_delivery=max(samples, default=0),
        delivery_time_by_vendor=by_vendor[:TOP_DELIVERY_ROWS],
        delivery_time_by_area=by_area[:TOP_DELIVERY_ROWS],
        delivery_time_distribution=distribution,
    )


def _cancellation_analysis(buckets: AggregationBuckets, vendor_names: Mapping[str, str]) -> CancellationAnalysis:
    total = buckets.total_cancellations

    by_reason = [
        CancellationReason(reason=reason, count=count, percentage=rate(count, total))
        for reason, count in buckets.cancellation_reasons.items()
    ]
    by_reason.sort(key=lambda row: row.count, reverse=True)

    by_vendor = [
        VendorCancellations(
            vendor_id=v.vendor_id, vendor_name=vendor_names.get(v.vendor_id, UNKNOWN_NAME),
            cancellations=v.cancelled_orders, total_orders=v.total_orders,
            cancellation_rate=rate(v.cancelled_orders, v.total_orders),
        )
        for v in buckets.vendors.values()
        if v.cancelled_orders > 0
    ]
    by_vendor.sort(key=lambda row: row.cancellations, reverse=True)

    by_hour = [
        HourlyCancellations(hour=hour, hour_label=hour_label(hour), count=buckets.hourly_cancellations.get(hour, 0))
        for hour in range(24)
    ]

    trend = [
        CancellationTrendPoint(
            date=day_key, cancellations=day.cancelled, total_orders=day.total_orders,
            rate=rate(day.cancelled, day.total_orders),
        )
        for day_key, day in sorted(buckets.days.items())
    ]

    return CancellationAnalysis(
        total_cancellations=total,
        cancellation_rate=rate(total, buckets.total_orders),
        cancellations_by_reason=by_reason,
        cancellations_by_vendor=by_vendor[:TOP_CANCELLING_VENDORS],
        cancellations_by_hour=by_hour,
        cancellation_trend=trend[-TREND_DAYS:],
    )
