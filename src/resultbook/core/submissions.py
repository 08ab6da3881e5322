"""
Normalisation of the two submission payload shapes into ScoreSubmission.

Bulk rows carry ``assessment1``/``assessment2``/``exam``; the single-record
payload carries an already combined ``continuousAssessment`` and
``examination``. Both end up as one internal shape so that aggregation and
grading run the same code.
"""

import math
from typing import Any, Dict, List, Optional

from resultbook.core.grades import grade_of
from resultbook.core.models import AssessmentComponent, ComponentType, ScoreSubmission, Term

TERM_LABELS: Dict[str, str] = {
    "First Term": Term.FIRST.value,
    "Second Term": Term.SECOND.value,
    "Third Term": Term.THIRD.value,
}

CA_REMARK = "Continuous Assessment"
EXAM_REMARK = "Examination"


class SubmissionError(ValueError):
    pass


class GradingError(ValueError):
    pass


def normalize_term(term: Optional[str]) -> str:
    """Map display labels such as "First Term" onto Term values; anything else passes through."""
    if term is None:
        return ""
    label = str(term).strip()
    return TERM_LABELS.get(label, label)


def _finite(number: float, raw: Any, field_name: str) -> float:
    try:
        finite = math.isfinite(number)
    except OverflowError:
        finite = False
    if not finite:
        raise GradingError(f"Invalid {field_name}: {raw!r}")
    return number


def score_or_zero(value: Any, field_name: str = "score") -> float:
    """
    Missing scores count as 0.

    Numbers are kept as given, numeric strings are coerced. Anything else
    raises GradingError, as do NaN, infinities and booleans.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise GradingError(f"Invalid {field_name}: {value!r}")
    if isinstance(value, (int, float)):
        return _finite(value, value, field_name)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError as exc:
            raise GradingError(f"Invalid {field_name}: {value!r}") from exc
        number = _finite(number, value, field_name)
        return int(number) if number.is_integer() else number
    raise GradingError(f"Invalid {field_name}: {value!r}")


def _required_text(payload: Dict[str, Any], name: str) -> str:
    value = payload.get(name)
    if value is None:
        return ""
    return str(value).strip()


def submission_from_bulk_row(row: Dict[str, Any], class_id: str, term: str, session: str) -> ScoreSubmission:
    """
    Build a submission from one bulk row.

    Raises SubmissionError when the row has no studentId or subjectId and
    GradingError when a score is not a finite number.
    """
    student_id = _required_text(row, "studentId")
    subject_id = _required_text(row, "subjectId")
    if not student_id or not subject_id:
        raise SubmissionError("Missing studentId or subjectId for result")

    return ScoreSubmission(
        student_id=student_id,
        subject_id=subject_id,
        class_id=class_id,
        term=normalize_term(term),
        academic_year=session,
        continuous_assessment_parts=[
            (ComponentType.CA1, score_or_zero(row.get("assessment1"), "assessment1")),
            (ComponentType.CA2, score_or_zero(row.get("assessment2"), "assessment2")),
        ],
        examination=score_or_zero(row.get("exam"), "exam"),
    )


def submission_from_single_payload(payload: Dict[str, Any], default_session: str) -> ScoreSubmission:
    student_id = _required_text(payload, "studentId")
    subject_id = _required_text(payload, "subjectId")
    term = _required_text(payload, "term")
    if not student_id or not subject_id or not term:
        raise SubmissionError("Missing required fields: studentId, subjectId and term are required")

    continuous_assessment = score_or_zero(payload.get("continuousAssessment"), "continuousAssessment")
    examination = score_or_zero(payload.get("examination"), "examination")
    if continuous_assessment < 0 or examination < 0:
        raise SubmissionError("Scores must not be negative")

    return ScoreSubmission(
        student_id=student_id,
        subject_id=subject_id,
        class_id=_required_text(payload, "class") or _required_text(payload, "classId"),
        term=normalize_term(term),
        academic_year=_required_text(payload, "session") or default_session,
        continuous_assessment_parts=[(ComponentType.CA1, continuous_assessment)],
        examination=examination,
    )


def _component(
    submission: ScoreSubmission,
    component_type: ComponentType,
    score: float,
    max_score: float,
    remarks: str,
) -> AssessmentComponent:
    grade, _ = grade_of(score)
    return AssessmentComponent(
        student_id=submission.student_id,
        subject_id=submission.subject_id,
        class_id=submission.class_id,
        term=submission.term,
        academic_year=submission.academic_year,
        component_type=component_type,
        score=score,
        max_score=max_score,
        grade=grade,
        remarks=remarks,
    )


def components_for_single(
    submission: ScoreSubmission, ca_max_score: float, exam_max_score: float
) -> List[AssessmentComponent]:
    """
    Components written for a single-record submission: one CA1 entry holding
    the combined continuous assessment and one Exam entry, each only when
    non-zero. The per-component grade is the grade of that score alone.
    """
    continuous_assessment = sum(score for _, score in submission.continuous_assessment_parts)
    components: List[AssessmentComponent] = []
    if continuous_assessment > 0:
        components.append(
            _component(submission, ComponentType.CA1, continuous_assessment, ca_max_score, CA_REMARK)
        )
    if submission.examination > 0:
        components.append(
            _component(submission, ComponentType.EXAM, submission.examination, exam_max_score, EXAM_REMARK)
        )
    return components


def components_for_bulk(
    submission: ScoreSubmission, ca_max_score: float, exam_max_score: float
) -> List[AssessmentComponent]:
    """CA1 from assessment1, CA2 from assessment2 and Exam from exam, each only when non-zero."""
    components: List[AssessmentComponent] = []
    for component_type, score in submission.continuous_assessment_parts:
        if score > 0:
            components.append(_component(submission, component_type, score, ca_max_score, CA_REMARK))
    if submission.examination > 0:
        components.append(
            _component(submission, ComponentType.EXAM, submission.examination, exam_max_score, EXAM_REMARK)
        )
    return components
