from typing import Any, Dict, List, Optional

try:
    from google.api_core.exceptions import GoogleAPIError
    from google.cloud import firestore
    from google.cloud.firestore_v1.base_query import FieldFilter
except ModuleNotFoundError as exc:
    raise ModuleNotFoundError(
        "Missing dependency 'google-cloud-firestore'. Install it with `pip install google-cloud-firestore`."
    ) from exc

from resultbook.config.settings import Settings, settings
from resultbook.services.directory import student_display_name
from resultbook.services.store import StoreError

# Firestore rejects write batches above 500 operations.
BATCH_LIMIT = 500


class FirestoreServiceError(StoreError):
    pass


def build_client(project_id: str) -> "firestore.Client":
    if not project_id:
        raise FirestoreServiceError("Missing FIREBASE_PROJECT_ID in environment")
    return firestore.Client(project=project_id)


class FirestoreResultStore:
    def __init__(self, db: "firestore.Client", collection: str = "grades") -> None:
        self.db = db
        self.collection = collection

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "FirestoreResultStore":
        return cls(build_client(config.firebase_project_id))

    def _query(self, filters: Dict[str, Any]):
        query = self.db.collection(self.collection)
        for name, value in filters.items():
            query = query.where(filter=FieldFilter(name, "==", value))
        return query

    def find(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            snaps = list(self._query(filters).stream())
        except GoogleAPIError as exc:
            raise FirestoreServiceError(str(exc)) from exc
        results = []
        for snap in snaps:
            data = snap.to_dict() or {}
            data["$id"] = snap.id
            results.append(data)
        return results

    def delete_many(self, filters: Dict[str, Any]) -> int:
        try:
            refs = [snap.reference for snap in self._query(filters).stream()]
            for start in range(0, len(refs), BATCH_LIMIT):
                batch = self.db.batch()
                for ref in refs[start : start + BATCH_LIMIT]:
                    batch.delete(ref)
                batch.commit()
        except GoogleAPIError as exc:
            raise FirestoreServiceError(str(exc)) from exc
        return len(refs)

    def insert_many(self, documents: List[Dict[str, Any]]) -> None:
        collection = self.db.collection(self.collection)
        try:
            for start in range(0, len(documents), BATCH_LIMIT):
                batch = self.db.batch()
                for data in documents[start : start + BATCH_LIMIT]:
                    batch.set(collection.document(), dict(data))
                batch.commit()
        except GoogleAPIError as exc:
            raise FirestoreServiceError(str(exc)) from exc


class FirestoreDirectory:
    def __init__(self, db: "firestore.Client", students: str = "students", subjects: str = "subjects") -> None:
        self.db = db
        self.students = students
        self.subjects = subjects

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "FirestoreDirectory":
        return cls(build_client(config.firebase_project_id))

    def _get(self, collection: str, document_id: str) -> Dict:
        try:
            snap = self.db.collection(collection).document(document_id).get()
        except GoogleAPIError as exc:
            raise FirestoreServiceError(str(exc)) from exc
        if not snap.exists:
            return {}
        return snap.to_dict() or {}

    def student_name(self, student_id: str) -> Optional[str]:
        doc = self._get(self.students, student_id)
        return student_display_name(doc) if doc else None

    def subject_name(self, subject_id: str) -> Optional[str]:
        name = str(self._get(self.subjects, subject_id).get("name", "") or "").strip()
        return name or None
