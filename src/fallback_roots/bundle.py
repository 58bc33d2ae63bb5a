"""
Bundle selection — pure functions that decide which roots are embedded and in what order.

  parsed records
    → filter_unconstrained   (drop roots carrying trust constraints)
    → sort_records           (subject string, then raw DER)
    → apply_duplicate_policy (keep or collapse identical DER)

No I/O and no Result wrapping here; the pipeline lifts these with .map().
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from fallback_roots.domain.models import DuplicatePolicy, TrustRecord

log = structlog.get_logger()


def filter_unconstrained(records: Iterable[TrustRecord]) -> list[TrustRecord]:
    """
    Keep exactly the records with no trust constraints, in input order.

    The generated loader has no way to express a constrained root, so such
    roots are left out rather than trusted more broadly than the store intends.
    """
    records = list(records)
    kept = [record for record in records if not record.is_constrained]
    log.debug("bundle.filtered", received=len(records), kept=len(kept))
    return kept


def sort_key(record: TrustRecord) -> tuple[str, bytes]:
    """Subject string first; raw DER breaks ties between equal subjects."""
    return record.subject, record.raw


def sort_records(records: Iterable[TrustRecord]) -> list[TrustRecord]:
    """Order records so repeated runs over the same input produce identical output."""
    return sorted(records, key=sort_key)


def apply_duplicate_policy(
    records: Iterable[TrustRecord],
    policy: DuplicatePolicy = DuplicatePolicy.KEEP,
) -> list[TrustRecord]:
    """
    Resolve records whose DER bytes are identical.

    KEEP returns the records unchanged. COLLAPSE keeps the first occurrence
    of each certificate, so on sorted input the survivor is deterministic.
    """
    records = list(records)
    if policy is DuplicatePolicy.KEEP:
        return records

    seen: set[bytes] = set()
    unique: list[TrustRecord] = []
    for record in records:
        raw = record.raw
        if raw in seen:
            log.info("bundle.duplicate_collapsed", subject=record.subject, label=record.label)
            continue
        seen.add(raw)
        unique.append(record)
    return unique


def select_bundle(
    records: Iterable[TrustRecord],
    policy: DuplicatePolicy = DuplicatePolicy.KEEP,
) -> list[TrustRecord]:
    """Filter, sort and de-duplicate in one step."""
    return apply_duplicate_policy(sort_records(filter_unconstrained(records)), policy)
