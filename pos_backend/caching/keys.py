# caching/keys.py

"""
CACHE KEY CONVENTION

Keys look like:

    {family}:{operation}:{parameter_hash}

- family: entity family whose writes invalidate the key ("sales", "inventory", ...)
- operation: what was computed ("sale", "list", "lookup", "stats", ...)
- parameter_hash: md5 of the sorted call parameters

Default TTLs bound staleness only for keys nobody invalidated.
Writes invalidate whole families synchronously (see caching.service).
"""

from __future__ import annotations

import hashlib

from django.conf import settings
from django.utils.encoding import force_bytes

FAMILY_SALES = "sales"
FAMILY_INVENTORY = "inventory"
FAMILY_CUSTOMERS = "customers"
FAMILY_DEBTS = "debts"
FAMILY_DELEGATES = "delegates"

FAMILIES = (
    FAMILY_SALES,
    FAMILY_INVENTORY,
    FAMILY_CUSTOMERS,
    FAMILY_DEBTS,
    FAMILY_DELEGATES,
)

# A write in one family leaves stale data in the related ones.
RELATED_FAMILIES = {
    FAMILY_SALES: (FAMILY_DEBTS, FAMILY_CUSTOMERS, FAMILY_INVENTORY, FAMILY_DELEGATES),
    FAMILY_INVENTORY: (FAMILY_SALES,),
    FAMILY_CUSTOMERS: (FAMILY_SALES, FAMILY_DEBTS),
    FAMILY_DEBTS: (FAMILY_SALES, FAMILY_CUSTOMERS),
    FAMILY_DELEGATES: (FAMILY_SALES,),
}

KIND_LOOKUP = "lookup"
KIND_LIST = "list"
KIND_AGGREGATE = "aggregate"

DEFAULT_TTLS = {
    KIND_LOOKUP: 600,
    KIND_LIST: 180,
    KIND_AGGREGATE: 900,
}

LIST_OPERATIONS = {"list", "page", "search"}
AGGREGATE_OPERATIONS = {"stats", "summary", "outstanding", "balance", "totals"}


def with_related(family: str) -> tuple[str, ...]:
    """The family itself followed by every family that depends on it."""
    try:
        return (family,) + RELATED_FAMILIES[family]
    except KeyError:
        raise ValueError(f"Unknown cache family: {family}")


def _check_segment(name: str, value: str) -> str:
    value = str(value or "").strip()
    if not value or ":" in value or "*" in value:
        raise ValueError(f"Invalid cache key {name}: {value!r}")
    return value


def make_key(family: str, operation: str, *args, **kwargs) -> str:
    """
    Generate a cache key from family, operation and call parameters.
    Keyword arguments are sorted so their order does not matter.
    """
    family = _check_segment("family", family)
    operation = _check_segment("operation", operation)

    parts = [str(a) for a in args]
    for key, value in sorted(kwargs.items()):
        parts.append(f"{key}={value}")

    digest = hashlib.md5(force_bytes("|".join(parts))).hexdigest()
    return f"{family}:{operation}:{digest}"


def family_of(key: str) -> str:
    return str(key).split(":", 1)[0]


def operation_kind(operation: str) -> str:
    if operation in LIST_OPERATIONS:
        return KIND_LIST
    if operation in AGGREGATE_OPERATIONS:
        return KIND_AGGREGATE
    return KIND_LOOKUP


def default_ttl(key: str) -> int:
    """
    TTL for a key built with make_key(), driven by its operation segment.
    Overridable through settings.CACHE_TTLS.
    """
    ttls = dict(DEFAULT_TTLS)
    ttls.update(getattr(settings, "CACHE_TTLS", {}) or {})

    segments = str(key).split(":")
    operation = segments[1] if len(segments) > 2 else ""
    return int(ttls[operation_kind(operation)])
