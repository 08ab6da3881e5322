from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from resultbook.config.settings import Settings, settings
from resultbook.core.aggregation import evaluate_submission
from resultbook.core.models import BatchReport, ResultRecord
from resultbook.core.ranking import rank_by_subject
from resultbook.core.submissions import GradingError, SubmissionError, submission_from_bulk_row
from resultbook.core.summary import summarize
from resultbook.services.directory import NameDirectory, resolve_names
from resultbook.services.store import StoreError
from resultbook.services.submission_service import ReplaceUpsertCoordinator
from resultbook.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BatchOutcome:
    results: List[ResultRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    summary: BatchReport = field(default_factory=BatchReport)
    message: str = ""


def outcome_message(processed: int, errors: int) -> str:
    message = f"Successfully processed {processed} results"
    if errors > 0:
        message += f" with {errors} errors"
    return message


def _bulk_record_id() -> str:
    return f"bulk_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class BatchIngestor:
    """
    Grades, ranks and summarises one class/term/session upload.

    A bad row never stops the batch: it is reported in ``errors`` and the rest
    carry on. When a coordinator is given, each accepted row is also written
    to the store.
    """

    def __init__(
        self,
        directory: Optional[NameDirectory] = None,
        coordinator: Optional[ReplaceUpsertCoordinator] = None,
        deadline_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.directory = directory
        self.coordinator = coordinator
        self.deadline_seconds = deadline_seconds
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        directory: Optional[NameDirectory] = None,
        coordinator: Optional[ReplaceUpsertCoordinator] = None,
        config: Settings = settings,
    ) -> "BatchIngestor":
        return cls(directory=directory, coordinator=coordinator, deadline_seconds=config.batch_deadline_seconds)

    def ingest(self, class_id: str, term: str, session: str, raw_records: Sequence[Dict[str, Any]]) -> BatchOutcome:
        results: List[ResultRecord] = []
        errors: List[str] = []
        attempted_writes = 0
        failed_writes = 0
        started = self.clock()

        for index, row in enumerate(raw_records):
            if self.deadline_seconds is not None and self.clock() - started > self.deadline_seconds:
                skipped = len(raw_records) - index
                errors.append(f"Deadline exceeded; {skipped} records were not processed")
                logger.warning(
                    "Batch for %s %s %s stopped after %d of %d records", class_id, term, session, index, len(raw_records)
                )
                break

            if not isinstance(row, dict):
                errors.append("Missing studentId or subjectId for result")
                continue

            try:
                submission = submission_from_bulk_row(row, class_id, term, session)
            except SubmissionError as exc:
                logger.warning("Rejected bulk row %d: %s", index, exc)
                errors.append(str(exc))
                continue
            except GradingError as exc:
                logger.warning("Rejected bulk row %d: %s", index, exc)
                errors.append(f"Error processing result for student {row.get('studentId')}: {exc}")
                continue

            record = evaluate_submission(submission)
            record.record_id = _bulk_record_id()
            record.created_at = datetime.now(timezone.utc).isoformat()
            record.student_name, record.subject_name = resolve_names(
                self.directory, record.student_id, record.subject_id
            )

            if self.coordinator is not None:
                attempted_writes += 1
                try:
                    self.coordinator.persist_bulk(submission)
                except StoreError as exc:
                    failed_writes += 1
                    logger.error("Failed to persist result for student %s: %s", record.student_id, exc)
                    errors.append(f"Failed to persist result for student {record.student_id}: {exc}")

            results.append(record)

        if attempted_writes and failed_writes == attempted_writes:
            raise StoreError(f"All {attempted_writes} result writes failed")

        rank_by_subject(results)
        report = summarize(results, errors)
        message = outcome_message(len(results), len(errors))
        logger.info(
            "Batch %s %s %s: %d results, %d errors, average %d, pass rate %d%%",
            class_id,
            term,
            session,
            report.total_records,
            len(errors),
            report.average_score,
            report.pass_rate,
        )
        return BatchOutcome(results=results, errors=errors, summary=report, message=message)
