"""
Categorization engine: quality grouping by occurrence ids, then message-based
classification of the remaining notas into standard / return / unidentified.
"""
from __future__ import annotations

import re
from typing import Sequence

from efiscal.config import (
    BOILERPLATE_PATTERNS,
    ICMS_EXEMPT_CLAUSE,
    ICMS_SUBJECT_CLAUSE,
    QUALITY_ID_PATTERN,
    QUALITY_ID_SEPARATOR,
    RETURN_PART_SEPARATOR,
    STANDARD_MESSAGE_TEMPLATE,
)
from efiscal.data.schemas import (
    CanonicalRecord,
    CategorizationSummary,
    CategorizedRecord,
    Category,
)

# ASCII so \d and \b only consider 0-9 / [A-Za-z0-9_]
_ID_RE = re.compile(QUALITY_ID_PATTERN, re.ASCII)
_BOILERPLATE_RES = [re.compile(p) for p in BOILERPLATE_PATTERNS]


# ---------------------------------------------------------------------------
# Message helpers
# ---------------------------------------------------------------------------

def extract_ids(text: str | None) -> list[str]:
    """Unique 5-digit tokens in text, sorted as strings."""
    return sorted(set(_ID_RE.findall(text or "")))


def standard_messages(supply_reference: str) -> tuple[str, str]:
    """The two message texts an untouched remessa carries (taxed / exempt)."""
    taxed = STANDARD_MESSAGE_TEMPLATE.format(reference=supply_reference)
    exempt = taxed.replace(ICMS_SUBJECT_CLAUSE, ICMS_EXEMPT_CLAUSE)
    return taxed, exempt


def is_standard_message(message: str, supply_reference: str) -> bool:
    return message.strip() in standard_messages(supply_reference)


def informative_parts(message: str) -> list[str]:
    """Non-empty ";"-separated parts of message that aren't boilerplate."""
    parts = [p.strip() for p in message.split(";")]
    return [
        p for p in parts
        if p and not any(rx.fullmatch(p) for rx in _BOILERPLATE_RES)
    ]


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def categorize_individual(record: CanonicalRecord) -> CategorizedRecord:
    """Classify a nota on its own message."""
    message = record.message or ""
    reference = record.supply_reference or ""

    if is_standard_message(message, reference):
        return CategorizedRecord(record, Category.UNIDENTIFIED, message)

    parts = informative_parts(message)
    if parts:
        return CategorizedRecord(record, Category.RETURN, RETURN_PART_SEPARATOR.join(parts))

    return CategorizedRecord(record, Category.STANDARD, message)


def categorize_group(group: Sequence[CanonicalRecord]) -> tuple[list[CategorizedRecord], int]:
    """Classify notas sharing (invoice, origin). Returns results and the reorganized count.

    The first record's message decides: as many ids as records → one id per
    record in group order; any other id count → every record gets all ids;
    no ids → each record is classified individually.
    """
    if not group:
        return [], 0

    ids = extract_ids(group[0].message)

    if ids and len(ids) == len(group):
        results = [
            CategorizedRecord(record, Category.QUALITY, ids[i])
            for i, record in enumerate(group)
        ]
        # A group already holding one id per record was not reorganized
        if all(r.new_message != r.record.message for r in results):
            return results, len(group)
        return results, 0

    if ids:
        joined = QUALITY_ID_SEPARATOR.join(ids)
        return [CategorizedRecord(record, Category.QUALITY, joined) for record in group], 0

    return [categorize_individual(record) for record in group], 0


def categorize(records: Sequence[CanonicalRecord]) -> tuple[list[CategorizedRecord], CategorizationSummary]:
    """Categorize a batch of untreated notas.

    Returns one CategorizedRecord per input record, in input order, plus
    the aggregate counts. Input records are never modified.
    """
    summary = CategorizationSummary()
    by_position: dict[int, CategorizedRecord] = {}

    id_bearing: list[int] = []
    for pos, record in enumerate(records):
        if extract_ids(record.message):
            id_bearing.append(pos)
        else:
            by_position[pos] = categorize_individual(record)

    # Group by (invoice, origin) on positions so results go back in input order
    position_groups: dict[tuple[str, str], list[int]] = {}
    for pos in id_bearing:
        r = records[pos]
        position_groups.setdefault((r.invoice_number, r.origin), []).append(pos)

    for positions in position_groups.values():
        results, reorganized = categorize_group([records[p] for p in positions])
        summary.reorganized += reorganized
        by_position.update(zip(positions, results))

    categorized = [by_position[pos] for pos in range(len(records))]
    for item in categorized:
        summary.count(item.new_category)
    return categorized, summary
