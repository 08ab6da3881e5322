from dataclasses import dataclass
import os
from dotenv import load_dotenv


load_dotenv()


def _float_env(name: str, default: str) -> float:
    return float(os.getenv(name, default) or default)


def _optional_float_env(name: str) -> float | None:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


@dataclass(frozen=True)
class Settings:
    store_backend: str = os.getenv("RESULTBOOK_STORE_BACKEND", "memory").strip().lower()

    appwrite_endpoint: str = os.getenv("APPWRITE_ENDPOINT", "")
    appwrite_project_id: str = os.getenv("APPWRITE_PROJECT_ID", "")
    appwrite_api_key: str = os.getenv("APPWRITE_API_KEY") or os.getenv("APPWRITE_FUNCTION_API_KEY", "")
    appwrite_database_id: str = os.getenv("APPWRITE_DATABASE_ID", "")

    appwrite_grades_collection_id: str = os.getenv("APPWRITE_GRADES_COLLECTION_ID", "grades")
    appwrite_students_collection_id: str = os.getenv("APPWRITE_STUDENTS_COLLECTION_ID", "students")
    appwrite_subjects_collection_id: str = os.getenv("APPWRITE_SUBJECTS_COLLECTION_ID", "subjects")

    firebase_project_id: str = os.getenv("FIREBASE_PROJECT_ID", "")

    default_session: str = os.getenv("RESULTBOOK_DEFAULT_SESSION", "2024/2025")
    ca_max_score: float = _float_env("RESULTBOOK_CA_MAX_SCORE", "40")
    exam_max_score: float = _float_env("RESULTBOOK_EXAM_MAX_SCORE", "60")
    batch_deadline_seconds: float | None = _optional_float_env("RESULTBOOK_BATCH_DEADLINE_SECONDS")

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_file: str = os.getenv("LOG_FILE", "")


settings = Settings()
