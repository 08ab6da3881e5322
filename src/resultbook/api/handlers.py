"""
JSON request/response boundary for the results endpoints.

Handlers take an already-routed payload (dict, JSON text or bytes) and return
``(status_code, body)``; wiring them to a web framework or serverless runtime
is left to the caller.
"""

import json
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs

from resultbook.config.settings import Settings, settings
from resultbook.core.submissions import GradingError, SubmissionError, submission_from_single_payload
from resultbook.services.directory import NameDirectory
from resultbook.services.ingest_service import BatchIngestor
from resultbook.services.results_service import ResultsService
from resultbook.services.store import ResultStore, StoreError, create_directory, create_store
from resultbook.services.submission_service import ReplaceUpsertCoordinator
from resultbook.utils.logger import get_logger

logger = get_logger(__name__)

Response = Tuple[int, Dict[str, Any]]

BULK_INVALID = "Missing required fields or invalid data format"
BULK_FAILED = "Failed to save results"
SINGLE_FAILED = "Failed to save result"
LIST_FAILED = "Failed to fetch results"


class RequestError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def parse_body(raw: Any) -> Dict[str, Any]:
    """Accepts a dict, JSON text, bytes or a urlencoded query string."""
    if raw is None:
        return {}
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="ignore")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return {}
        try:
            raw = json.loads(text)
        except json.JSONDecodeError:
            parsed_qs = parse_qs(text, keep_blank_values=True)
            if parsed_qs:
                return {k: (v[-1] if isinstance(v, list) and v else "") for k, v in parsed_qs.items()}
            raise RequestError(400, "Request body must be a JSON object")
    if not isinstance(raw, dict):
        raise RequestError(400, "Request body must be a JSON object")
    return raw


def _failure(status_code: int, detail: str) -> Response:
    return status_code, {"success": False, "error": detail}


def _text(payload: Dict[str, Any], *names: str) -> str:
    for name in names:
        value = payload.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


class ResultHandlers:
    def __init__(
        self,
        store: ResultStore,
        directory: Optional[NameDirectory] = None,
        config: Settings = settings,
        persist_bulk: bool = True,
    ) -> None:
        self.config = config
        self.coordinator = ReplaceUpsertCoordinator.from_settings(store, config)
        self.ingestor = BatchIngestor.from_settings(
            directory=directory,
            coordinator=self.coordinator if persist_bulk else None,
            config=config,
        )
        self.results = ResultsService.from_settings(store, directory, config)

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "ResultHandlers":
        return cls(create_store(config), create_directory(config), config)

    def handle_bulk_submission(self, raw: Any) -> Response:
        try:
            payload = parse_body(raw)
            class_id = _text(payload, "classId", "class")
            term = _text(payload, "term")
            session = _text(payload, "session")
            rows = payload.get("results")
            if not class_id or not term or not session or not isinstance(rows, list):
                raise RequestError(400, BULK_INVALID)

            outcome = self.ingestor.ingest(class_id, term, session, rows)
        except RequestError as exc:
            return _failure(exc.status_code, exc.detail)
        except StoreError as exc:
            logger.error("Error saving bulk results: %s", exc)
            return _failure(500, BULK_FAILED)
        except Exception:
            logger.exception("Unhandled error saving bulk results")
            return _failure(500, BULK_FAILED)

        body: Dict[str, Any] = {
            "success": True,
            "data": [record.to_dict() for record in outcome.results],
            "summary": outcome.summary.to_dict(),
            "message": outcome.message,
        }
        if outcome.errors:
            body["errors"] = list(outcome.errors)
        return 200, body

    def handle_single_submission(self, raw: Any) -> Response:
        try:
            payload = parse_body(raw)
            try:
                submission = submission_from_single_payload(payload, self.config.default_session)
            except (SubmissionError, GradingError) as exc:
                raise RequestError(400, str(exc)) from exc
            record = self.coordinator.submit(submission)
        except RequestError as exc:
            return _failure(exc.status_code, exc.detail)
        except StoreError as exc:
            logger.error("Error saving result: %s", exc)
            return _failure(500, SINGLE_FAILED)
        except Exception:
            logger.exception("Unhandled error saving result")
            return _failure(500, SINGLE_FAILED)

        logger.info("Saved result for student %s, subject %s", record.student_id, record.subject_id)
        return 200, {
            "success": True,
            "data": record.to_dict(include_position=False),
            "message": "Result saved successfully",
        }

    def handle_list_results(self, raw: Any = None) -> Response:
        try:
            query = parse_body(raw)
            records = self.results.list_results(
                student_id=_text(query, "studentId") or None,
                subject_id=_text(query, "subject", "subjectId") or None,
                class_id=_text(query, "class", "classId") or None,
                term=_text(query, "term") or None,
                session=_text(query, "session") or None,
            )
        except RequestError as exc:
            return _failure(exc.status_code, exc.detail)
        except StoreError as exc:
            logger.error("Error fetching results: %s", exc)
            return _failure(500, LIST_FAILED)
        except Exception:
            logger.exception("Unhandled error fetching results")
            return _failure(500, LIST_FAILED)

        return 200, {
            "success": True,
            "results": [record.to_dict(include_position=False) for record in records],
            "count": len(records),
            "message": "Results fetched successfully",
        }
