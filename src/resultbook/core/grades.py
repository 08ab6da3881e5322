import math
from typing import Dict, FrozenSet, List, Tuple


# Inclusive lower bounds, highest band first.
GRADE_BANDS: List[Tuple[float, str, str]] = [
    (90, "A1", "Excellent"),
    (80, "B2", "Very Good"),
    (70, "B3", "Good"),
    (60, "C4", "Credit"),
    (50, "C5", "Credit"),
    (45, "C6", "Credit"),
    (40, "D7", "Pass"),
    (30, "E8", "Pass"),
]

FAIL_GRADE = ("F9", "Fail")

# Best to worst.
GRADE_ORDER: Tuple[str, ...] = tuple(letter for _, letter, _ in GRADE_BANDS) + (FAIL_GRADE[0],)

REMARKS: Dict[str, str] = {letter: remark for _, letter, remark in GRADE_BANDS}
REMARKS[FAIL_GRADE[0]] = FAIL_GRADE[1]

# E8 reads "Pass" in the remark table but does not count towards the pass rate.
NON_PASSING_GRADES: FrozenSet[str] = frozenset({"E8", "F9"})


def grade_of(total: float) -> Tuple[str, str]:
    for lower_bound, letter, remark in GRADE_BANDS:
        if total >= lower_bound:
            return letter, remark
    return FAIL_GRADE


def remark_for(grade: str) -> str:
    return REMARKS.get(grade, "N/A")


def is_pass(grade: str) -> bool:
    return grade not in NON_PASSING_GRADES


def grade_rank(grade: str) -> int:
    """0 for the best grade; raises ValueError for labels outside the scale."""
    try:
        return GRADE_ORDER.index(grade)
    except ValueError as exc:
        raise ValueError(f"Unsupported letter grade: {grade}") from exc


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
