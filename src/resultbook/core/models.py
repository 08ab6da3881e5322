from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Term(str, Enum):
    FIRST = "First"
    SECOND = "Second"
    THIRD = "Third"


class ComponentType(str, Enum):
    CA1 = "CA1"
    CA2 = "CA2"
    ASSIGNMENT = "Assignment"
    EXAM = "Exam"

    @property
    def is_continuous_assessment(self) -> bool:
        return self is not ComponentType.EXAM


@dataclass(frozen=True)
class ResultKey:
    student_id: str
    subject_id: str
    term: str
    academic_year: str

    def as_filter(self) -> Dict[str, str]:
        return {
            "studentId": self.student_id,
            "subjectId": self.subject_id,
            "term": self.term,
            "academicYear": self.academic_year,
        }

    def lock_name(self) -> str:
        return "|".join((self.student_id, self.subject_id, self.term, self.academic_year))


@dataclass
class AssessmentComponent:
    student_id: str
    subject_id: str
    class_id: str
    term: str
    academic_year: str
    component_type: ComponentType
    score: float
    max_score: float
    grade: str = ""
    remarks: str = ""

    @property
    def key(self) -> ResultKey:
        return ResultKey(self.student_id, self.subject_id, self.term, self.academic_year)

    def to_document(self) -> Dict[str, Any]:
        return {
            "studentId": self.student_id,
            "subjectId": self.subject_id,
            "classId": self.class_id,
            "term": self.term,
            "academicYear": self.academic_year,
            "assessmentType": self.component_type.value,
            "score": self.score,
            "totalMarks": self.max_score,
            "grade": self.grade,
            "remarks": self.remarks,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AssessmentComponent":
        return cls(
            student_id=str(doc.get("studentId", "")),
            subject_id=str(doc.get("subjectId", "")),
            class_id=str(doc.get("classId", "") or ""),
            term=str(doc.get("term", "")),
            academic_year=str(doc.get("academicYear", "")),
            component_type=ComponentType(doc.get("assessmentType")),
            score=doc.get("score", 0) or 0,
            max_score=doc.get("totalMarks", 0) or 0,
            grade=str(doc.get("grade", "") or ""),
            remarks=str(doc.get("remarks", "") or ""),
        )


@dataclass
class ScoreSubmission:
    """One normalized submission, whichever payload shape it arrived in."""

    student_id: str
    subject_id: str
    class_id: str
    term: str
    academic_year: str
    continuous_assessment_parts: List[Tuple[ComponentType, float]] = field(default_factory=list)
    examination: float = 0

    @property
    def key(self) -> ResultKey:
        return ResultKey(self.student_id, self.subject_id, self.term, self.academic_year)


@dataclass
class ResultRecord:
    student_id: str
    subject_id: str
    class_id: str
    term: str
    academic_year: str
    continuous_assessment: float
    examination: float
    total: float
    grade: str
    remark: str
    position: int = 0
    student_name: Optional[str] = None
    subject_name: Optional[str] = None
    record_id: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def key(self) -> ResultKey:
        return ResultKey(self.student_id, self.subject_id, self.term, self.academic_year)

    def to_dict(self, include_position: bool = True) -> Dict[str, Any]:
        row: Dict[str, Any] = {}
        if self.record_id:
            row["id"] = self.record_id
        row.update(
            {
                "studentId": self.student_id,
                "subjectId": self.subject_id,
                "classId": self.class_id,
                "term": self.term,
                "academicYear": self.academic_year,
                "continuousAssessment": self.continuous_assessment,
                "examination": self.examination,
                "total": self.total,
                "grade": self.grade,
                "remark": self.remark,
            }
        )
        if self.student_name is not None:
            row["studentName"] = self.student_name
        if self.subject_name is not None:
            row["subjectName"] = self.subject_name
        if include_position:
            row["position"] = self.position
        if self.created_at:
            row["dateCreated"] = self.created_at
        return row


@dataclass
class BatchReport:
    total_records: int = 0
    average_score: int = 0
    highest_score: float = 0
    lowest_score: float = 0
    grade_distribution: Dict[str, int] = field(default_factory=dict)
    pass_rate: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRecords": self.total_records,
            "averageScore": self.average_score,
            "highestScore": self.highest_score,
            "lowestScore": self.lowest_score,
            "gradeDistribution": dict(self.grade_distribution),
            "passRate": self.pass_rate,
        }
