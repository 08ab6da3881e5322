import unittest
from unittest.mock import MagicMock

from resultbook.services.directory import StaticDirectory
from resultbook.services.ingest_service import BatchIngestor, outcome_message
from resultbook.services.store import InMemoryResultStore, StoreError
from resultbook.services.submission_service import ReplaceUpsertCoordinator


class FailingStore(InMemoryResultStore):
    def __init__(self, fail_for=None):
        super().__init__()
        self.fail_for = fail_for

    def delete_many(self, filters):
        if self.fail_for is None or filters.get("studentId") == self.fail_for:
            raise StoreError("store unavailable")
        return super().delete_many(filters)


class BatchIngestorTests(unittest.TestCase):
    def test_bad_rows_do_not_stop_the_batch(self):
        rows = [
            {"studentId": "s1", "subjectId": "math", "assessment1": 8, "assessment2": 9, "exam": 75},
            {"subjectId": "math", "assessment1": 10},
            {"studentId": "s2", "subjectId": "math", "assessment1": 10, "assessment2": 10, "exam": 69},
        ]
        outcome = BatchIngestor().ingest("JSS1A", "First Term", "2024/2025", rows)

        self.assertEqual(len(outcome.results), 2)
        self.assertEqual(outcome.errors, ["Missing studentId or subjectId for result"])
        self.assertEqual(outcome.summary.total_records, 2)
        self.assertEqual(outcome.message, "Successfully processed 2 results with 1 errors")
        self.assertEqual([r.position for r in outcome.results], [1, 2])
        self.assertEqual(outcome.results[0].term, "First")

    def test_missing_scores_count_as_zero(self):
        outcome = BatchIngestor().ingest("JSS1A", "First", "2024/2025", [{"studentId": "s1", "subjectId": "math"}])

        record = outcome.results[0]
        self.assertEqual(record.total, 0)
        self.assertEqual(record.grade, "F9")
        self.assertEqual(record.remark, "Fail")
        self.assertEqual(outcome.message, "Successfully processed 1 results")

    def test_non_numeric_score_is_reported_per_student(self):
        rows = [
            {"studentId": "s1", "subjectId": "math", "assessment1": "abc"},
            {"studentId": "s2", "subjectId": "math", "exam": 50},
        ]
        outcome = BatchIngestor().ingest("JSS1A", "First", "2024/2025", rows)

        self.assertEqual(len(outcome.results), 1)
        self.assertEqual(len(outcome.errors), 1)
        self.assertTrue(outcome.errors[0].startswith("Error processing result for student s1: "))

    def test_non_finite_score_is_reported_per_student(self):
        for bad in ("NaN", float("nan"), float("inf"), 1e400):
            with self.subTest(score=bad):
                rows = [
                    {"studentId": "s1", "subjectId": "math", "exam": bad},
                    {"studentId": "s2", "subjectId": "math", "exam": 50},
                ]
                outcome = BatchIngestor().ingest("JSS1A", "First", "2024/2025", rows)

                self.assertEqual(len(outcome.results), 1)
                self.assertEqual(outcome.results[0].student_id, "s2")
                self.assertEqual(len(outcome.errors), 1)
                self.assertTrue(outcome.errors[0].startswith("Error processing result for student s1: "))
                self.assertEqual(outcome.summary.average_score, 50)

    def test_scores_above_max_are_accepted(self):
        outcome = BatchIngestor().ingest(
            "JSS1A", "First", "2024/2025", [{"studentId": "s1", "subjectId": "math", "assessment1": 55, "exam": 80}]
        )
        self.assertEqual(outcome.results[0].total, 135)
        self.assertEqual(outcome.results[0].grade, "A1")

    def test_records_carry_ids_and_names(self):
        directory = StaticDirectory({"s1": "Ada Obi"}, {})
        outcome = BatchIngestor(directory=directory).ingest(
            "JSS1A", "First", "2024/2025", [{"studentId": "s1", "subjectId": "math", "exam": 50}]
        )
        record = outcome.results[0]

        self.assertTrue(record.record_id.startswith("bulk_"))
        self.assertIsNotNone(record.created_at)
        self.assertEqual(record.student_name, "Ada Obi")
        self.assertEqual(record.subject_name, "Unknown Subject")

    def test_directory_failure_uses_placeholders(self):
        directory = MagicMock()
        directory.student_name.side_effect = RuntimeError("lookup down")
        outcome = BatchIngestor(directory=directory).ingest(
            "JSS1A", "First", "2024/2025", [{"studentId": "s1", "subjectId": "math", "exam": 50}]
        )
        self.assertEqual(outcome.results[0].student_name, "Unknown Student")
        self.assertEqual(len(outcome.errors), 0)

    def test_persists_components_when_coordinator_given(self):
        store = InMemoryResultStore()
        ingestor = BatchIngestor(coordinator=ReplaceUpsertCoordinator(store))
        ingestor.ingest(
            "JSS1A", "First", "2024/2025", [{"studentId": "s1", "subjectId": "math", "assessment1": 8, "exam": 75}]
        )

        docs = store.find({"studentId": "s1"})
        self.assertEqual(sorted(d["assessmentType"] for d in docs), ["CA1", "Exam"])

    def test_single_persistence_failure_becomes_error(self):
        store = FailingStore(fail_for="s1")
        outcome = BatchIngestor(coordinator=ReplaceUpsertCoordinator(store)).ingest(
            "JSS1A",
            "First",
            "2024/2025",
            [{"studentId": "s1", "subjectId": "math", "exam": 50}, {"studentId": "s2", "subjectId": "math", "exam": 60}],
        )
        self.assertEqual(len(outcome.results), 2)
        self.assertEqual(outcome.errors, ["Failed to persist result for student s1: store unavailable"])
        self.assertEqual(len(store.find({"studentId": "s2"})), 1)

    def test_all_writes_failing_fails_the_batch(self):
        ingestor = BatchIngestor(coordinator=ReplaceUpsertCoordinator(FailingStore()))
        with self.assertRaises(StoreError):
            ingestor.ingest("JSS1A", "First", "2024/2025", [{"studentId": "s1", "subjectId": "math", "exam": 50}])

    def test_deadline_keeps_processed_records(self):
        ticks = iter([0, 0, 5, 5, 5])
        ingestor = BatchIngestor(deadline_seconds=1, clock=lambda: next(ticks))
        rows = [{"studentId": f"s{i}", "subjectId": "math", "exam": 50 + i} for i in range(3)]
        outcome = ingestor.ingest("JSS1A", "First", "2024/2025", rows)

        self.assertEqual(len(outcome.results), 1)
        self.assertEqual(outcome.errors, ["Deadline exceeded; 2 records were not processed"])
        self.assertEqual(outcome.results[0].position, 1)

    def test_outcome_message(self):
        self.assertEqual(outcome_message(0, 0), "Successfully processed 0 results")
        self.assertEqual(outcome_message(3, 2), "Successfully processed 3 results with 2 errors")


if __name__ == "__main__":
    unittest.main()
