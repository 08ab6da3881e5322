from typing import Any, Dict, List, Optional

from appwrite.client import Client
from appwrite.exception import AppwriteException
from appwrite.id import ID
from appwrite.query import Query
from appwrite.services.databases import Databases

from resultbook.config.settings import Settings, settings
from resultbook.services.directory import student_display_name
from resultbook.services.store import StoreError

PAGE_SIZE = 100


class AppwriteServiceError(StoreError):
    pass


def build_databases(endpoint: str, project_id: str, api_key: str, database_id: str) -> Databases:
    if not endpoint:
        raise AppwriteServiceError("Missing APPWRITE_ENDPOINT in environment")
    if not project_id:
        raise AppwriteServiceError("Missing APPWRITE_PROJECT_ID in environment")
    if not api_key:
        raise AppwriteServiceError("Missing APPWRITE_API_KEY in environment")
    if not database_id:
        raise AppwriteServiceError("Missing APPWRITE_DATABASE_ID in environment")

    client = Client()
    client.set_endpoint(endpoint.rstrip("/"))
    client.set_project(project_id)
    client.set_key(api_key)
    return Databases(client)


class AppwriteResultStore:
    def __init__(self, db: Databases, database_id: str, grades_collection_id: str) -> None:
        self.db = db
        self.database_id = database_id
        self.grades_collection_id = grades_collection_id

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "AppwriteResultStore":
        db = build_databases(
            config.appwrite_endpoint,
            config.appwrite_project_id,
            config.appwrite_api_key,
            config.appwrite_database_id,
        )
        return cls(db, config.appwrite_database_id, config.appwrite_grades_collection_id)

    @staticmethod
    def _queries(filters: Dict[str, Any]) -> List[str]:
        return [Query.equal(name, [value]) for name, value in filters.items()]

    def _list_documents(self, queries: List[str]) -> List[Dict]:
        documents: List[Dict] = []
        offset = 0
        while True:
            try:
                result = self.db.list_documents(
                    self.database_id,
                    self.grades_collection_id,
                    queries=[*queries, Query.limit(PAGE_SIZE), Query.offset(offset)],
                )
            except AppwriteException as exc:
                raise AppwriteServiceError(str(exc)) from exc
            page = list(result.get("documents", []))
            documents.extend(page)
            if len(page) < PAGE_SIZE:
                return documents
            offset += PAGE_SIZE

    def find(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._list_documents(self._queries(filters))

    def delete_many(self, filters: Dict[str, Any]) -> int:
        documents = self._list_documents(self._queries(filters))
        for doc in documents:
            try:
                self.db.delete_document(self.database_id, self.grades_collection_id, doc["$id"])
            except AppwriteException as exc:
                raise AppwriteServiceError(str(exc)) from exc
        return len(documents)

    def insert_many(self, documents: List[Dict[str, Any]]) -> None:
        for data in documents:
            try:
                self.db.create_document(self.database_id, self.grades_collection_id, ID.unique(), data)
            except AppwriteException as exc:
                raise AppwriteServiceError(str(exc)) from exc


class AppwriteDirectory:
    def __init__(
        self,
        db: Databases,
        database_id: str,
        students_collection_id: str,
        subjects_collection_id: str,
    ) -> None:
        self.db = db
        self.database_id = database_id
        self.students_collection_id = students_collection_id
        self.subjects_collection_id = subjects_collection_id

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "AppwriteDirectory":
        db = build_databases(
            config.appwrite_endpoint,
            config.appwrite_project_id,
            config.appwrite_api_key,
            config.appwrite_database_id,
        )
        return cls(
            db,
            config.appwrite_database_id,
            config.appwrite_students_collection_id,
            config.appwrite_subjects_collection_id,
        )

    def _get_document(self, collection_id: str, document_id: str) -> Dict:
        try:
            return self.db.get_document(self.database_id, collection_id, document_id)
        except AppwriteException as exc:
            if getattr(exc, "code", None) == 404:
                return {}
            raise AppwriteServiceError(str(exc)) from exc

    def student_name(self, student_id: str) -> Optional[str]:
        doc = self._get_document(self.students_collection_id, student_id)
        return student_display_name(doc) if doc else None

    def subject_name(self, subject_id: str) -> Optional[str]:
        doc = self._get_document(self.subjects_collection_id, subject_id)
        name = str(doc.get("name", "") or "").strip()
        return name or None
