from typing import Any, Dict, Optional, Protocol, Tuple

from resultbook.utils.logger import get_logger

logger = get_logger(__name__)

UNKNOWN_STUDENT = "Unknown Student"
UNKNOWN_SUBJECT = "Unknown Subject"


class NameDirectory(Protocol):
    def student_name(self, student_id: str) -> Optional[str]:
        ...

    def subject_name(self, subject_id: str) -> Optional[str]:
        ...


def student_display_name(doc: Dict[str, Any]) -> Optional[str]:
    first = str(doc.get("firstName", "") or "").strip()
    last = str(doc.get("lastName", "") or "").strip()
    full = f"{first} {last}".strip()
    if full:
        return full
    name = str(doc.get("name", "") or "").strip()
    return name or None


class StaticDirectory:
    """Names from plain dicts; handy when the caller already has them loaded."""

    def __init__(self, students: Optional[Dict[str, str]] = None, subjects: Optional[Dict[str, str]] = None) -> None:
        self.students = dict(students or {})
        self.subjects = dict(subjects or {})

    def student_name(self, student_id: str) -> Optional[str]:
        return self.students.get(student_id)

    def subject_name(self, subject_id: str) -> Optional[str]:
        return self.subjects.get(subject_id)


def resolve_names(directory: Optional[NameDirectory], student_id: str, subject_id: str) -> Tuple[str, str]:
    """
    Display names for one result. Lookup failures are logged and replaced by
    placeholders; they never fail the calling request.
    """
    student_name = UNKNOWN_STUDENT
    subject_name = UNKNOWN_SUBJECT
    if directory is None:
        return student_name, subject_name

    try:
        student_name = directory.student_name(student_id) or UNKNOWN_STUDENT
        subject_name = directory.subject_name(subject_id) or UNKNOWN_SUBJECT
    except Exception as exc:
        logger.warning("Name lookup failed for student %s / subject %s: %s", student_id, subject_id, exc)
    return student_name, subject_name
