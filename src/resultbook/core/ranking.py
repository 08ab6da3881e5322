from typing import Dict, List, Sequence

from resultbook.core.models import ResultRecord


def assign_ranks(cohort: Sequence[ResultRecord]) -> List[ResultRecord]:
    """
    Fill in 1-based positions by total, highest first.

    Equal totals are not merged: they take adjacent positions in the order the
    cohort was given (``sorted`` is stable). Returns the cohort in rank order.
    """
    ranked = sorted(cohort, key=lambda record: record.total, reverse=True)
    for index, record in enumerate(ranked):
        record.position = index + 1
    return ranked


def group_by_subject(records: Sequence[ResultRecord]) -> Dict[str, List[ResultRecord]]:
    cohorts: Dict[str, List[ResultRecord]] = {}
    for record in records:
        cohorts.setdefault(record.subject_id, []).append(record)
    return cohorts


def rank_by_subject(records: Sequence[ResultRecord]) -> List[ResultRecord]:
    """Rank every subject cohort independently; the input order is kept."""
    for cohort in group_by_subject(records).values():
        assign_ranks(cohort)
    return list(records)
