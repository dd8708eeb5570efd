"""
Reports Service Module

This module wires the advanced report together: it reads the orders, vendors
and customers collections from the document store, normalises the records,
builds the name lookups, runs the aggregation pass and assembles the report.
The computation after the fetch is a pure function of its inputs.
"""

import asyncio
import datetime
import logging
from typing import Any, List, Optional, Sequence

from dateutil import tz as dateutil_tz
from tortoise.exceptions import BaseORMException

from ...core.config import REPORT_TIMEZONE, REPORT_WINDOW_DAYS
from ..documents.service import CUSTOMERS, ORDERS, VENDORS, fetch_collection
from .assembler import assemble_report
from .engine import aggregate_orders
from .lookups import build_customer_lookup, build_vendor_lookup
from .normalizer import ingest_customers, ingest_orders, ingest_vendors
from .schemas import AdvancedReport

logger = logging.getLogger(__name__)


class ReportSourceUnavailable(Exception):
    """The collections backing the report could not be read."""


def resolve_timezone(name: str) -> datetime.tzinfo:
    # gettz("") would hand back the host zone
    if not name or not name.strip():
        return datetime.timezone.utc
    zone = dateutil_tz.gettz(name.strip())
    if zone is None:
        logger.warning(f"Unknown report timezone '{name}', falling back to UTC")
        return datetime.timezone.utc
    return zone


def build_advanced_report(
    order_docs: Sequence[Any],
    vendor_docs: Sequence[Any],
    customer_docs: Sequence[Any],
    today: datetime.date,
    timezone_name: str = REPORT_TIMEZONE,
    window_days: int = REPORT_WINDOW_DAYS,
) -> AdvancedReport:
    """
    Computes the advanced report from raw document field bags.

    Args:
        order_docs: Order documents, each a mapping of document fields.
        vendor_docs: Vendor documents.
        customer_docs: Customer documents. The raw count is reported as
            totalCustomers, whether or not a customer has ordered.
        today: End date of the informational date range.
        timezone_name: IANA zone for the hour-of-day and weekday dimensions.
        window_days: Length of the informational date range.

    Returns:
        AdvancedReport: The assembled report. Orders are not filtered by the
        date range; every order in the collection is aggregated.
    """
    vendor_names = build_vendor_lookup(ingest_vendors(vendor_docs))
    customer_names = build_customer_lookup(ingest_customers(customer_docs))
    buckets = aggregate_orders(ingest_orders(order_docs), vendor_names, tz=resolve_timezone(timezone_name))
    return assemble_report(
        buckets, vendor_names, customer_names,
        total_customers=len(customer_docs), today=today, window_days=window_days,
    )


async def load_report_documents() -> tuple[List[Any], List[Any], List[Any]]:
    """Reads the three report collections, or raises ReportSourceUnavailable."""
    try:
        orders, vendors, customers = await asyncio.gather(
            fetch_collection(ORDERS), fetch_collection(VENDORS), fetch_collection(CUSTOMERS)
        )
    except BaseORMException as e:
        raise ReportSourceUnavailable(f"Could not read report collections: {e}") from e
    return orders, vendors, customers


async def generate_advanced_report(today: Optional[datetime.date] = None) -> AdvancedReport:
    """
    Generates the advanced operations report from the document store.

    Raises:
        ReportSourceUnavailable: If any of the collections cannot be read. No
            partial report is produced in that case.
    """
    orders, vendors, customers = await load_report_documents()
    logger.info(
        f"Building advanced report from {len(orders)} order(s), "
        f"{len(vendors)} vendor(s) and {len(customers)} customer(s)"
    )
    return build_advanced_report(
        orders, vendors, customers, today=today or datetime.datetime.now(datetime.timezone.utc).date()
    )
