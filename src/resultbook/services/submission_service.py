from datetime import datetime, timezone
from typing import List, Optional

from resultbook.config.settings import Settings, settings
from resultbook.core.aggregation import evaluate_submission
from resultbook.core.models import AssessmentComponent, ResultKey, ResultRecord, ScoreSubmission
from resultbook.core.submissions import components_for_bulk, components_for_single
from resultbook.services.locks import KeyedLock
from resultbook.services.store import ResultStore, StoreError
from resultbook.utils.logger import get_logger

logger = get_logger(__name__)


class ReplaceUpsertCoordinator:
    """
    Replace-on-write for one result key: every component stored under the key
    is deleted, then the new components are inserted.

    The store gives no transactions, so a failure after the delete leaves the
    key empty until the next submission. Writers in this process are
    serialised per key; other processes are not.
    """

    def __init__(
        self,
        store: ResultStore,
        locks: Optional[KeyedLock] = None,
        ca_max_score: float = settings.ca_max_score,
        exam_max_score: float = settings.exam_max_score,
    ) -> None:
        self.store = store
        self.locks = locks or KeyedLock()
        self.ca_max_score = ca_max_score
        self.exam_max_score = exam_max_score

    @classmethod
    def from_settings(cls, store: ResultStore, config: Settings = settings) -> "ReplaceUpsertCoordinator":
        return cls(store, ca_max_score=config.ca_max_score, exam_max_score=config.exam_max_score)

    def replace_components(self, key: ResultKey, components: List[AssessmentComponent]) -> int:
        """Returns how many old components were removed. Store failures propagate."""
        with self.locks.hold(key.lock_name()):
            try:
                deleted = self.store.delete_many(key.as_filter())
            except StoreError:
                logger.error("Delete failed for %s; nothing inserted", key.lock_name())
                raise
            if components:
                try:
                    self.store.insert_many([component.to_document() for component in components])
                except StoreError:
                    logger.error("Insert failed for %s after deleting %d component(s)", key.lock_name(), deleted)
                    raise
        logger.debug("Replaced %d component(s) with %d for %s", deleted, len(components), key.lock_name())
        return deleted

    def submit(self, submission: ScoreSubmission) -> ResultRecord:
        components = components_for_single(submission, self.ca_max_score, self.exam_max_score)
        self.replace_components(submission.key, components)
        record = evaluate_submission(submission)
        record.created_at = datetime.now(timezone.utc).isoformat()
        return record

    def persist_bulk(self, submission: ScoreSubmission) -> None:
        components = components_for_bulk(submission, self.ca_max_score, self.exam_max_score)
        self.replace_components(submission.key, components)
