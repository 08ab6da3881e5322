import unittest

from resultbook.core.aggregation import build_result
from resultbook.core.summary import summarize


def _record(total):
    return build_result(
        student_id=f"s{total}",
        subject_id="math",
        class_id="JSS1A",
        term="First",
        academic_year="2024/2025",
        continuous_assessment=0,
        examination=total,
    )


class SummaryTests(unittest.TestCase):
    def test_summary_figures(self):
        report = summarize([_record(92), _record(81), _record(35), _record(10)])

        self.assertEqual(report.total_records, 4)
        self.assertEqual(report.average_score, 55)
        self.assertEqual(report.highest_score, 92)
        self.assertEqual(report.lowest_score, 10)
        self.assertEqual(report.grade_distribution, {"A1": 1, "B2": 1, "E8": 1, "F9": 1})
        self.assertEqual(report.pass_rate, 50)

    def test_empty_batch_is_all_zero(self):
        report = summarize([], errors=["Missing studentId or subjectId for result"])

        self.assertEqual(
            report.to_dict(),
            {
                "totalRecords": 0,
                "averageScore": 0,
                "highestScore": 0,
                "lowestScore": 0,
                "gradeDistribution": {},
                "passRate": 0,
            },
        )
        self.assertEqual(len(report.errors), 1)

    def test_pass_rate_rounds_half_up(self):
        report = summarize([_record(60), _record(20), _record(20), _record(20), _record(20), _record(20), _record(60), _record(60)])
        # 3 of 8 pass: 37.5
        self.assertEqual(report.pass_rate, 38)


if __name__ == "__main__":
    unittest.main()
