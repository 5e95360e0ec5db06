"""Record shapes and table definitions.

Records are plain JSON objects. The engine only cares about ``id``;
the TypedDicts below document the fields the UI layer writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TypedDict

# =============================================================================
# STORAGE KEYS
# =============================================================================

USERS_KEY = "senja_users"
STUDENTS_KEY = "senja_students"
MATERIALS_KEY = "senja_materials"
SUBMISSIONS_KEY = "senja_submissions"
SETTINGS_KEY = "senja_settings"
SESSION_KEY = "senja_session_current"
API_URL_KEY = "senja_spreadsheet_api_url"

SETTINGS_ID = "global_settings"

SyncAction = Literal["create", "update", "delete"]


# =============================================================================
# RECORDS
# =============================================================================


class Record(TypedDict, total=False):
    """Any stored record. ``id`` is the primary key when present."""

    id: str


class User(Record, total=False):
    """Staff account (teacher or admin)."""

    username: str
    password: str
    name: str
    role: str


class Student(Record, total=False):
    name: str
    nis: str
    grade: str
    password: str


class Material(Record, total=False):
    """Reading material with its questions for one grade."""

    title: str
    grade: str
    content: str
    questions: list[dict[str, Any]]
    attachments: list[dict[str, Any]]


class Submission(Record, total=False):
    """A student's answers to one material."""

    studentId: str
    studentName: str
    materialId: str
    materialTitle: str
    answers: list[dict[str, Any]]
    status: str  # pending | approved | rejected
    grade: str
    submittedAt: str


class AppSettings(Record, total=False):
    certBackground: str


# =============================================================================
# TABLES
# =============================================================================


@dataclass(frozen=True)
class TableSpec:
    """Static description of one record table."""

    name: str
    key: str
    id_prefix: str


USERS = TableSpec(name="users", key=USERS_KEY, id_prefix="usr")
STUDENTS = TableSpec(name="students", key=STUDENTS_KEY, id_prefix="std")
MATERIALS = TableSpec(name="materials", key=MATERIALS_KEY, id_prefix="mat")
SUBMISSIONS = TableSpec(name="submissions", key=SUBMISSIONS_KEY, id_prefix="sub")
SETTINGS = TableSpec(name="settings", key=SETTINGS_KEY, id_prefix="set")

ALL_TABLES: tuple[TableSpec, ...] = (USERS, STUDENTS, MATERIALS, SUBMISSIONS, SETTINGS)
