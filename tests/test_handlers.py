import json
import unittest

from resultbook.api.handlers import RequestError, ResultHandlers, parse_body
from resultbook.config.settings import Settings
from resultbook.services.directory import StaticDirectory
from resultbook.services.store import InMemoryResultStore, StoreError


class BrokenStore(InMemoryResultStore):
    def find(self, filters):
        raise StoreError("connection reset")

    def delete_many(self, filters):
        raise StoreError("connection reset")


CONFIG = Settings(store_backend="memory", default_session="2024/2025", batch_deadline_seconds=None)


class ParseBodyTests(unittest.TestCase):
    def test_accepts_dicts_json_and_query_strings(self):
        self.assertEqual(parse_body({"a": 1}), {"a": 1})
        self.assertEqual(parse_body(b'{"a": 1}'), {"a": 1})
        self.assertEqual(parse_body("studentId=s1&term=First"), {"studentId": "s1", "term": "First"})
        self.assertEqual(parse_body(None), {})

    def test_rejects_non_objects(self):
        with self.assertRaises(RequestError):
            parse_body("[1, 2]")


class BulkHandlerTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryResultStore()
        self.handlers = ResultHandlers(self.store, StaticDirectory({"s1": "Ada Obi"}, {"math": "Mathematics"}), CONFIG)

    def test_bulk_submission(self):
        status, body = self.handlers.handle_bulk_submission(
            json.dumps(
                {
                    "class": "JSS1A",
                    "term": "First Term",
                    "session": "2024/2025",
                    "results": [
                        {"studentId": "s1", "subjectId": "math", "assessment1": 8, "assessment2": 9, "exam": 75},
                        {"studentId": "s2", "subjectId": "math", "assessment1": 10, "assessment2": 10, "exam": 69},
                    ],
                }
            )
        )

        self.assertEqual(status, 200)
        self.assertTrue(body["success"])
        self.assertNotIn("errors", body)
        self.assertEqual(body["message"], "Successfully processed 2 results")
        self.assertEqual([row["position"] for row in body["data"]], [1, 2])
        self.assertEqual(body["data"][0]["studentName"], "Ada Obi")
        self.assertEqual(body["summary"]["passRate"], 100)
        self.assertEqual(len(self.store.find({"studentId": "s1"})), 3)

    def test_bulk_errors_are_listed(self):
        status, body = self.handlers.handle_bulk_submission(
            {"classId": "JSS1A", "term": "First", "session": "2024/2025", "results": [{"subjectId": "math"}]}
        )
        self.assertEqual(status, 200)
        self.assertEqual(body["errors"], ["Missing studentId or subjectId for result"])
        self.assertEqual(body["summary"]["totalRecords"], 0)

    def test_bulk_non_finite_score_does_not_fail_the_batch(self):
        raw = (
            '{"class": "JSS1A", "term": "First", "session": "2024/2025", "results": ['
            '{"studentId": "s1", "subjectId": "math", "exam": 1e400},'
            '{"studentId": "s2", "subjectId": "math", "exam": 50}]}'
        )
        status, body = self.handlers.handle_bulk_submission(raw)

        self.assertEqual(status, 200)
        self.assertEqual(len(body["data"]), 1)
        self.assertEqual(len(body["errors"]), 1)
        self.assertTrue(body["errors"][0].startswith("Error processing result for student s1: "))
        self.assertEqual(self.store.find({"studentId": "s1"}), [])

    def test_bulk_validation(self):
        status, body = self.handlers.handle_bulk_submission({"class": "JSS1A", "term": "First", "session": "2024/2025"})
        self.assertEqual(status, 400)
        self.assertEqual(body, {"success": False, "error": "Missing required fields or invalid data format"})

    def test_bulk_store_failure(self):
        handlers = ResultHandlers(BrokenStore(), config=CONFIG)
        status, body = handlers.handle_bulk_submission(
            {"class": "JSS1A", "term": "First", "session": "2024/2025", "results": [{"studentId": "s1", "subjectId": "m"}]}
        )
        self.assertEqual(status, 500)
        self.assertEqual(body["error"], "Failed to save results")


class SingleHandlerTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryResultStore()
        self.handlers = ResultHandlers(self.store, config=CONFIG)

    def test_single_submission(self):
        status, body = self.handlers.handle_single_submission(
            {
                "studentId": "s1",
                "subjectId": "math",
                "class": "JSS1A",
                "term": "First Term",
                "continuousAssessment": 30,
                "examination": 55,
            }
        )

        self.assertEqual(status, 200)
        self.assertEqual(body["message"], "Result saved successfully")
        data = body["data"]
        self.assertNotIn("position", data)
        self.assertEqual((data["total"], data["grade"], data["remark"]), (85, "B2", "Very Good"))
        self.assertEqual(data["academicYear"], "2024/2025")
        self.assertEqual(data["term"], "First")

    def test_nan_score_keeps_stored_components(self):
        valid = {"studentId": "s1", "subjectId": "math", "term": "First", "continuousAssessment": 30, "examination": 55}
        self.assertEqual(self.handlers.handle_single_submission(valid)[0], 200)

        status, body = self.handlers.handle_single_submission(dict(valid, continuousAssessment="nan"))

        self.assertEqual(status, 400)
        self.assertFalse(body["success"])
        self.assertEqual(len(self.store.find({"studentId": "s1"})), 2)

    def test_single_validation(self):
        status, body = self.handlers.handle_single_submission({"studentId": "s1", "term": "First"})
        self.assertEqual(status, 400)
        self.assertFalse(body["success"])

    def test_single_non_numeric_score(self):
        status, _ = self.handlers.handle_single_submission(
            {"studentId": "s1", "subjectId": "math", "term": "First", "examination": "high"}
        )
        self.assertEqual(status, 400)

    def test_single_store_failure(self):
        handlers = ResultHandlers(BrokenStore(), config=CONFIG)
        status, body = handlers.handle_single_submission({"studentId": "s1", "subjectId": "math", "term": "First"})
        self.assertEqual(status, 500)
        self.assertEqual(body["error"], "Failed to save result")


class ListHandlerTests(unittest.TestCase):
    def test_list_after_submission(self):
        handlers = ResultHandlers(InMemoryResultStore(), config=CONFIG)
        handlers.handle_single_submission(
            {"studentId": "s1", "subjectId": "math", "term": "First", "continuousAssessment": 20, "examination": 50}
        )
        status, body = handlers.handle_list_results("studentId=s1&term=First%20Term")

        self.assertEqual(status, 200)
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["results"][0]["total"], 70)
        self.assertEqual(body["results"][0]["studentName"], "Unknown Student")
        self.assertEqual(body["message"], "Results fetched successfully")

    def test_list_store_failure(self):
        status, body = ResultHandlers(BrokenStore(), config=CONFIG).handle_list_results({})
        self.assertEqual(status, 500)
        self.assertEqual(body, {"success": False, "error": "Failed to fetch results"})


if __name__ == "__main__":
    unittest.main()
