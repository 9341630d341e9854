"""Normalize device rows into per-syscode work.

Pure transformations with no I/O:

    DeviceRow ──normalize()──> WorkItem* ──group_by_syscode()──> SyscodeBucket*

A row with blank name or FQDN is dropped. A row's SysCode cell is split on
commas; every non-empty trimmed token yields one WorkItem, and a row with no
tokens yields a single WorkItem under NO_SYSCODE.
"""

import logging
from typing import Iterable

from ..domain.entities import NO_SYSCODE, DeviceRow, SyscodeBucket, WorkItem

logger = logging.getLogger(__name__)


def split_syscodes(raw: str) -> list[str]:
    """Split a SysCode cell into trimmed, non-empty tokens.

    Duplicated tokens are kept once, in first-seen order, so a row is
    never listed twice in the same bucket.

    Examples:
        "A, B,,C" -> ["A", "B", "C"]
        "  "      -> []
    """
    tokens: list[str] = []
    for token in (raw or "").split(","):
        token = token.strip()
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def is_valid_row(row: DeviceRow) -> bool:
    """A row is usable only if both name and FQDN are non-blank."""
    return bool((row.name or "").strip()) and bool((row.fqdn or "").strip())


def normalize(rows: Iterable[DeviceRow]) -> list[WorkItem]:
    """Explode device rows into work items.

    Output preserves row order and, within a row, token order.
    """
    items: list[WorkItem] = []
    for row in rows:
        if not is_valid_row(row):
            logger.warning(
                f"Dropping row {row.row_number}: blank "
                f"{'name' if not (row.name or '').strip() else 'FQDN'} "
                f"(name={row.name!r}, fqdn={row.fqdn!r})"
            )
            continue

        name = row.name.strip()
        fqdn = row.fqdn.strip()
        for syscode in split_syscodes(row.raw_syscode) or [NO_SYSCODE]:
            items.append(WorkItem(name=name, fqdn=fqdn, syscode=syscode, row_number=row.row_number))

    return items


def group_by_syscode(items: Iterable[WorkItem]) -> list[SyscodeBucket]:
    """Partition work items by exact (case-sensitive) syscode.

    Buckets come out in order of first appearance; items keep input order.
    """
    grouped: dict[str, list[WorkItem]] = {}
    for item in items:
        grouped.setdefault(item.syscode, []).append(item)
    return [SyscodeBucket(syscode=key, items=tuple(members)) for key, members in grouped.items()]
