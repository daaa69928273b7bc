"""
HierarchyResolver -- time-valid manager lookup.

A hierarchy row says an agent reports to a manager at a level for the
window ``[reports_from, reports_to_end]``. A row is usable for a run when
that window overlaps the run window ``[scheme_start, run_as_of]``::

    reports_from <= run_as_of  and  reports_to_end >= scheme_start

Rows with either date missing or malformed are never usable. When several
rows qualify, the first in input order wins.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping, Sequence

from incentive_kernel.domain.types import HierarchyRecord
from incentive_kernel.domain.values import to_text
from incentive_kernel.logging_config import get_logger

logger = get_logger("engines.hierarchy")


def load_hierarchy(rows: Iterable[Any]) -> tuple[HierarchyRecord, ...]:
    """Parse uploaded hierarchy rows; rows that are not mappings are dropped."""
    records = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            logger.warning("hierarchy_row_not_a_mapping", extra={"row_index": index})
            continue
        records.append(HierarchyRecord.from_row(row))
    return tuple(records)


def is_active(record: HierarchyRecord, scheme_start: date, run_as_of: date) -> bool:
    if record.reports_from is None or record.reports_to_end is None:
        return False
    return record.reports_from <= run_as_of and record.reports_to_end >= scheme_start


def find_manager(
    agent_id: str,
    role: str,
    hierarchy: Sequence[HierarchyRecord],
    scheme_start: date,
    run_as_of: date,
) -> str | None:
    """
    Manager of ``agent_id`` at level ``role`` during the run window.

    Agent ids match exactly after trimming; levels match case-insensitively.
    Rows with an empty manager id never match.
    """
    if not agent_id or not role or not hierarchy:
        return None

    target_agent = to_text(agent_id)
    target_level = role.strip().upper()
    for record in hierarchy:
        if record.agent_id != target_agent or record.level.upper() != target_level:
            continue
        if is_active(record, scheme_start, run_as_of) and record.manager_id:
            return record.manager_id
    return None
