"""
auth/store.py -- SQLAlchemy Core persistence layer for student accounts.

Pattern: Repository + Data Mapper.
StudentStore is the repository; _row_to_student is the mapper. Service and
route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Integrity:
  UNIQUE(email) and UNIQUE(student_id) are enforced by the database, so two
  concurrent registrations cannot both succeed -- the loser gets an
  IntegrityError from create_student(). year and gpa ranges are CHECK
  constraints so a bad write fails even if it bypasses the service.

  The refresh_token column is updated with a single UPDATE per call;
  conflicting writes to one row are serialized by the database.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    select,
)
from sqlalchemy.engine import Engine

from auth.models import Address, EmergencyContact, Student

_DEFAULT_DB_URL = "sqlite:///./students.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_students = Table(
    "students",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True, index=True),
    Column("password_hash", Text, nullable=False),
    Column("student_id", String(64), nullable=False, unique=True, index=True),
    Column("course", String(255), nullable=False),
    Column("year", Integer, nullable=False),
    Column("enrollment_date", String(32), nullable=False),
    Column("gpa", Float),
    Column("phone", String(32)),
    Column("address_door_no", String(64)),
    Column("address_street", String(255)),
    Column("address_city", String(128)),
    Column("address_state", String(128)),
    Column("address_zip", String(32)),
    Column("emergency_contact_name", String(255)),
    Column("emergency_contact_phone", String(32)),
    Column("emergency_contact_relation", String(64)),
    Column("role", String(16), nullable=False, server_default="student"),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("refresh_token", String(1024), index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    CheckConstraint("year BETWEEN 1 AND 5", name="ck_students_year"),
    CheckConstraint("gpa IS NULL OR (gpa >= 0 AND gpa <= 10)", name="ck_students_gpa"),
    CheckConstraint("role IN ('student', 'admin')", name="ck_students_role"),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a writer."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class StudentStore:
    """Repository for Student records.

    Usage:
        store = StudentStore("sqlite:///./students.db")
        new_id = store.create_student(Student(...))
        student = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_student(self, student: Student) -> str:
        """Insert a new student and return its generated id.

        Raises sqlalchemy.exc.IntegrityError if email or student_id is
        already taken, or a CHECK constraint fails.
        """
        new_id = uuid.uuid4().hex
        now = _now_iso()
        address = student.address or Address()
        contact = student.emergency_contact or EmergencyContact()
        with self.engine.connect() as conn:
            conn.execute(
                _students.insert().values(
                    id=new_id,
                    name=student.name,
                    email=student.email.strip().lower(),
                    password_hash=student.password_hash,
                    student_id=student.student_id,
                    course=student.course,
                    year=student.year,
                    enrollment_date=student.enrollment_date or now,
                    gpa=student.gpa,
                    phone=student.phone,
                    address_door_no=address.door_no,
                    address_street=address.street,
                    address_city=address.city,
                    address_state=address.state,
                    address_zip=address.zip,
                    emergency_contact_name=contact.name,
                    emergency_contact_phone=contact.phone,
                    emergency_contact_relation=contact.relation,
                    role=student.role,
                    is_active=1 if student.is_active else 0,
                    refresh_token=student.refresh_token,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return new_id

    def set_refresh_token(self, student_pk: str, token: str | None) -> bool:
        """Replace (or clear, with None) the stored refresh token.

        Returns True if a row was updated, False if student_pk was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _students.update()
                .where(_students.c.id == student_pk)
                .values(refresh_token=token, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def clear_refresh_token(self, token: str) -> bool:
        """Null out refresh_token on whichever account currently holds token.

        Single conditional UPDATE so a concurrent login that already replaced
        the token is not clobbered. Returns False if no account held it.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _students.update()
                .where(_students.c.refresh_token == token)
                .values(refresh_token=None, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, student_pk: str) -> Student | None:
        return self._fetch_one(_students.c.id == student_pk)

    def get_by_email(self, email: str) -> Student | None:
        """Look up by email. Input is normalized the same way writes are."""
        return self._fetch_one(_students.c.email == email.strip().lower())

    def get_by_refresh_token(self, token: str) -> Student | None:
        return self._fetch_one(_students.c.refresh_token == token)

    def email_exists(self, email: str) -> bool:
        return self._exists(_students.c.email == email.strip().lower())

    def student_id_exists(self, student_id: str) -> bool:
        return self._exists(_students.c.student_id == student_id)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(select(1)).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch_one(self, clause) -> Student | None:
        with self.engine.connect() as conn:
            row = conn.execute(_students.select().where(clause)).fetchone()
        return _row_to_student(row) if row is not None else None

    def _exists(self, clause) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(_students.c.id).where(clause).limit(1)).fetchone()
        return row is not None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_student(row) -> Student:
    address = Address(
        door_no=row.address_door_no,
        street=row.address_street,
        city=row.address_city,
        state=row.address_state,
        zip=row.address_zip,
    )
    contact = EmergencyContact(
        name=row.emergency_contact_name,
        phone=row.emergency_contact_phone,
        relation=row.emergency_contact_relation,
    )
    return Student(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        student_id=row.student_id,
        course=row.course,
        year=row.year,
        enrollment_date=row.enrollment_date,
        gpa=row.gpa,
        phone=row.phone,
        # An all-empty sub-record reads back as None, not as an object of Nones.
        address=address if any(vars(address).values()) else None,
        emergency_contact=contact if any(vars(contact).values()) else None,
        role=row.role,
        is_active=bool(row.is_active),
        refresh_token=row.refresh_token,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
