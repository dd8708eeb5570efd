from typing import Dict, Iterable

from .normalizer import CustomerRecord, VendorRecord


def build_vendor_lookup(vendors: Iterable[VendorRecord]) -> Dict[str, str]:
    """Maps vendor id to shop name, falling back to the owner's name."""
    return {vendor.id: vendor.display_name for vendor in vendors}


def build_customer_lookup(customers: Iterable[CustomerRecord]) -> Dict[str, str]:
    return {customer.id: customer.display_name for customer in customers}
