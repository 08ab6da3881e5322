from typing import Dict, Iterable, Sequence

from resultbook.core.grades import is_pass, round_half_up
from resultbook.core.models import BatchReport, ResultRecord


def summarize(results: Sequence[ResultRecord], errors: Iterable[str] = ()) -> BatchReport:
    """
    Cohort statistics over finalized results.

    averageScore and passRate are whole numbers rounded half up; every figure
    is 0 for an empty batch.
    """
    report = BatchReport(errors=list(errors))
    if not results:
        return report

    totals = [record.total for record in results]
    distribution: Dict[str, int] = {}
    passed = 0
    for record in results:
        distribution[record.grade] = distribution.get(record.grade, 0) + 1
        if is_pass(record.grade):
            passed += 1

    report.total_records = len(results)
    report.average_score = round_half_up(sum(totals) / len(totals))
    report.highest_score = max(totals)
    report.lowest_score = min(totals)
    report.grade_distribution = distribution
    report.pass_rate = round_half_up(100 * passed / len(results))
    return report
