from typing import Iterable, Optional, Tuple

from resultbook.core.grades import grade_of
from resultbook.core.models import AssessmentComponent, ComponentType, ResultRecord, ScoreSubmission


def aggregate(components: Iterable[AssessmentComponent]) -> Tuple[float, float]:
    """
    Collapse the components stored under one result key into
    (continuous_assessment, examination).

    CA1, CA2 and Assignment scores are summed. If more than one Exam entry is
    present the last one seen wins; nothing guards against that beyond
    replace-on-write.
    """
    continuous_assessment: float = 0
    examination: float = 0

    for component in components:
        if component.component_type.is_continuous_assessment:
            continuous_assessment += component.score
        elif component.component_type is ComponentType.EXAM:
            examination = component.score

    return continuous_assessment, examination


def aggregate_submission(submission: ScoreSubmission) -> Tuple[float, float]:
    continuous_assessment = sum(score for _, score in submission.continuous_assessment_parts)
    return continuous_assessment, submission.examination


def build_result(
    *,
    student_id: str,
    subject_id: str,
    class_id: str,
    term: str,
    academic_year: str,
    continuous_assessment: float,
    examination: float,
    student_name: Optional[str] = None,
    subject_name: Optional[str] = None,
) -> ResultRecord:
    total = continuous_assessment + examination
    grade, remark = grade_of(total)
    return ResultRecord(
        student_id=student_id,
        subject_id=subject_id,
        class_id=class_id,
        term=term,
        academic_year=academic_year,
        continuous_assessment=continuous_assessment,
        examination=examination,
        total=total,
        grade=grade,
        remark=remark,
        student_name=student_name,
        subject_name=subject_name,
    )


def evaluate_submission(submission: ScoreSubmission) -> ResultRecord:
    continuous_assessment, examination = aggregate_submission(submission)
    return build_result(
        student_id=submission.student_id,
        subject_id=submission.subject_id,
        class_id=submission.class_id,
        term=submission.term,
        academic_year=submission.academic_year,
        continuous_assessment=continuous_assessment,
        examination=examination,
    )
