"""Course-to-row transform for the HubDB catalog table.

Maps one ``SourceRecord`` to the ``RowPayload`` written to HubDB.  The
mapping is deterministic apart from ``last_updated``, which stamps the
transform time on every payload.  That stamp is audit metadata: the
engine never compares payloads to decide whether an update is needed.

Derivation rules:

1. **Credits** -- raw ``lcv_total_credits`` divided by 50, three decimal
   places, trailing zeros (and a dangling point) stripped.
2. **List attributes** -- joined with ``", "``; missing become ``""``.
3. **Keywords** -- name, vendor, field of study, level and delivery
   method, empty ones dropped, joined with ``", "``.  A list-valued part
   is joined with a bare ``","`` inside its keyword.
"""

from __future__ import annotations

import re
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from hubdb_sync.sync.models import RowPayload, SourceRecord

CREDITS_FACTOR = 50

FIELDS_OF_STUDY = "lcv_fields_of_study_value"
PROGRAM_QUALIFICATIONS = "lcv_program_qualifications_value"
TOTAL_CREDITS = "lcv_total_credits"
LEVEL = "lcv_level"
DELIVERY_METHOD = "lcv_delivery_method"
LENGTH = "lcv_length"
SUBSCRIPTION = "subs_enabled"

_TRAILING_ZEROS = re.compile(r"\.?0+$")
_THREE_PLACES = Decimal("0.001")


def calculate_credits(raw_credits: Any) -> str:
    """Convert a raw credits value into its display string.

    ``100 -> "2"``, ``125 -> "2.5"``, ``133 -> "2.66"``; falsy values give ``"0"``.

    Raises:
        ValueError: If *raw_credits* is not numeric.
    """
    if not raw_credits:
        return "0"
    credits = float(raw_credits) / CREDITS_FACTOR
    # Ties on the exact binary value round up (0.0625 -> 0.063).
    rounded = Decimal(credits).quantize(_THREE_PLACES, rounding=ROUND_HALF_UP)
    return _TRAILING_ZEROS.sub("", f"{rounded:f}", count=1)


def flatten_value(value: Any) -> Any:
    """Join list values with ``", "``; map None to ``""``; pass scalars through."""
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return value


def _keyword(value: Any) -> Any:
    if isinstance(value, list):
        return ",".join("" if v is None else str(v) for v in value)
    return value


def generate_keywords(record: SourceRecord) -> str:
    """Build the SEO keyword string for a course."""
    vendor_name = record.vendor.name if record.vendor else None
    keywords = [
        record.name,
        vendor_name,
        _keyword(record.attribute(FIELDS_OF_STUDY)),
        _keyword(record.attribute(LEVEL)),
        _keyword(record.attribute(DELIVERY_METHOD)),
    ]
    return ", ".join(str(k) for k in keywords if k)


def transform_course(
    record: SourceRecord, now: int | None = None
) -> RowPayload:
    """Map a catalog course to a HubDB row payload.

    Args:
        record: The catalog course.
        now: ``last_updated`` value in epoch milliseconds.  Defaults to
            the current wall-clock time.

    Returns:
        The row payload (name, path, values).
    """
    if now is None:
        now = int(time.time() * 1000)

    vendor = record.vendor
    raw_credits = record.attribute(TOTAL_CREDITS)
    prices = record.prices_unformatted
    if not isinstance(prices, dict):
        prices = {}

    values = {
        "title": record.name,
        "short_description": record.short_description,
        "instructor": vendor.name if vendor else None,
        "price": prices.get("price") or 0,
        "fields_of_study": flatten_value(record.attribute(FIELDS_OF_STUDY)),
        "level": flatten_value(record.attribute(LEVEL)),
        "delivery_method": flatten_value(record.attribute(DELIVERY_METHOD)),
        "length": flatten_value(record.attribute(LENGTH)),
        "credits": calculate_credits(raw_credits),
        "image_url": record.image_url,
        "url_key": record.url_key,
        "vendor_id": vendor.id if vendor else None,
        "vendor_name": vendor.name if vendor else None,
        "vendor_logo": vendor.logo_src if vendor else None,
        "vendor_link": vendor.link if vendor else None,
        "program_qualifications": flatten_value(
            record.attribute(PROGRAM_QUALIFICATIONS)
        ),
        "raw_credits": raw_credits,
        "sku": record.sku,
        "product_type": record.product_type,
        "last_updated": now,
        "status": "Active",
        "seo_title": record.name,
        "seo_description": record.short_description,
        "seo_keywords": generate_keywords(record),
        "subscription": record.attribute(SUBSCRIPTION) or 0,
    }

    return RowPayload(name=record.name, path=record.url_key, values=values)
