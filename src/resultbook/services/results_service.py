from typing import Any, Dict, List, Optional

from resultbook.config.settings import Settings, settings
from resultbook.core.aggregation import aggregate, build_result
from resultbook.core.models import AssessmentComponent, ResultKey, ResultRecord
from resultbook.core.submissions import normalize_term
from resultbook.services.directory import NameDirectory, resolve_names
from resultbook.services.store import ResultStore
from resultbook.utils.logger import get_logger

logger = get_logger(__name__)


def _parse_components(documents: List[Dict[str, Any]]) -> List[AssessmentComponent]:
    components = []
    for doc in documents:
        try:
            components.append(AssessmentComponent.from_document(doc))
        except ValueError:
            logger.warning("Skipping stored component with unknown type %r", doc.get("assessmentType"))
    return components


class ResultsService:
    """Read path: rebuilds term results from the stored components."""

    def __init__(
        self,
        store: ResultStore,
        directory: Optional[NameDirectory] = None,
        default_session: str = settings.default_session,
    ) -> None:
        self.store = store
        self.directory = directory
        self.default_session = default_session

    @classmethod
    def from_settings(
        cls, store: ResultStore, directory: Optional[NameDirectory] = None, config: Settings = settings
    ) -> "ResultsService":
        return cls(store, directory, config.default_session)

    def list_results(
        self,
        student_id: Optional[str] = None,
        subject_id: Optional[str] = None,
        class_id: Optional[str] = None,
        term: Optional[str] = None,
        session: Optional[str] = None,
    ) -> List[ResultRecord]:
        filters: Dict[str, Any] = {}
        if student_id:
            filters["studentId"] = student_id
        if subject_id:
            filters["subjectId"] = subject_id
        if class_id:
            filters["classId"] = class_id
        if term:
            filters["term"] = normalize_term(term)
        filters["academicYear"] = session or self.default_session

        # One entry per key, first-seen order; class comes from the first match.
        keys: Dict[ResultKey, str] = {}
        for component in _parse_components(self.store.find(filters)):
            keys.setdefault(component.key, component.class_id)

        records: List[ResultRecord] = []
        for key, key_class_id in keys.items():
            # Totals cover every component under the key, not only those matching the filters.
            continuous_assessment, examination = aggregate(_parse_components(self.store.find(key.as_filter())))
            student_name, subject_name = resolve_names(self.directory, key.student_id, key.subject_id)
            records.append(
                build_result(
                    student_id=key.student_id,
                    subject_id=key.subject_id,
                    class_id=key_class_id,
                    term=key.term,
                    academic_year=key.academic_year,
                    continuous_assessment=continuous_assessment,
                    examination=examination,
                    student_name=student_name,
                    subject_name=subject_name,
                )
            )

        records.sort(key=lambda record: (record.student_id, record.subject_id))
        logger.debug("Listed %d results for filters %s", len(records), filters)
        return records
