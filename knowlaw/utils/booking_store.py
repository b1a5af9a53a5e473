from __future__ import annotations

import sqlite3
from datetime import UTC, date, datetime
from typing import Any, Callable, Dict, List

from knowlaw.schemas.models import Booking, BookingRequest, Lawyer, OwnerRef
from knowlaw.utils.errors import ValidationError
from knowlaw.utils.logging import get_logger
from knowlaw.utils.storage import Database, parse_datetime

log = get_logger(__name__)

LAWYERS: Dict[int, Lawyer] = {
    lawyer.id: lawyer
    for lawyer in (
        Lawyer(id=1, name="Sarah Johnson", specialty="Criminal Law"),
        Lawyer(id=2, name="Michael Chen", specialty="Family Law"),
        Lawyer(id=3, name="Emily Rodriguez", specialty="Corporate Law"),
        Lawyer(id=4, name="David Thompson", specialty="Personal Injury"),
        Lawyer(id=5, name="Jennifer Williams", specialty="Real Estate Law"),
        Lawyer(id=6, name="Robert Martinez", specialty="Immigration Law"),
        Lawyer(id=7, name="Lisa Anderson", specialty="Employment Law"),
        Lawyer(id=8, name="James Wilson", specialty="Intellectual Property"),
        Lawyer(id=9, name="Amanda Taylor", specialty="Estate Planning"),
        Lawyer(id=10, name="Christopher Brown", specialty="Tax Law"),
        Lawyer(id=11, name="Maria Garcia", specialty="Bankruptcy Law"),
        Lawyer(id=12, name="Daniel Lee", specialty="Environmental Law"),
    )
}


def _local_today() -> date:
    return date.today()


def resolve_lawyer(raw: Any) -> Lawyer:
    try:
        lawyer_id = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError("Invalid lawyer selected")
    lawyer = LAWYERS.get(lawyer_id)
    if lawyer is None:
        raise ValidationError("Invalid lawyer selected")
    return lawyer


def parse_appointment_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        raise ValidationError("Appointment date must be a valid date (YYYY-MM-DD)")


def _row_to_booking(row: sqlite3.Row) -> Booking:
    return Booking(
        id=int(row["id"]),
        lawyer_id=int(row["lawyer_id"]),
        lawyer_name=row["lawyer_name"],
        lawyer_specialty=row["lawyer_specialty"],
        client_name=row["client_name"],
        client_email=row["client_email"],
        client_phone=row["client_phone"],
        appointment_date=row["appointment_date"],
        appointment_time=row["appointment_time"],
        case_description=row["case_description"],
        status=row["status"],
        created_at=parse_datetime(row["created_at"]),
    )


class BookingStore:
    """Appointment requests against the fixed lawyer directory.

    Bookings are snapshots: the lawyer's name and specialty are copied in at
    creation time. No availability check is made, so the same slot can be
    booked more than once.
    """

    def __init__(
        self,
        db: Database,
        *,
        today: Callable[[], date] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.db = db
        self._today = today or _local_today
        self._clock = clock or (lambda: datetime.now(UTC))

    def create(self, owner: OwnerRef, request: BookingRequest) -> Booking:
        fields = (
            request.client_name,
            request.client_email,
            request.client_phone,
            request.appointment_date,
            request.appointment_time,
            request.case_description,
        )
        if request.lawyer_id in (None, "") or any(not (value or "").strip() for value in fields):
            raise ValidationError("All fields are required")
        appointment = parse_appointment_date(request.appointment_date)
        if appointment < self._today():
            raise ValidationError("Appointment date must be in the future")
        lawyer = resolve_lawyer(request.lawyer_id)

        with self.db.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO bookings (
                    owner_id, lawyer_id, lawyer_name, lawyer_specialty,
                    client_name, client_email, client_phone,
                    appointment_date, appointment_time, case_description, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    owner.storage_key(),
                    lawyer.id,
                    lawyer.name,
                    lawyer.specialty,
                    request.client_name.strip(),
                    request.client_email.strip(),
                    request.client_phone.strip(),
                    appointment.isoformat(),
                    request.appointment_time.strip(),
                    request.case_description.strip(),
                    self._clock().isoformat(timespec="microseconds"),
                ),
            )
            row = conn.execute("SELECT * FROM bookings WHERE id = ?", (cursor.lastrowid,)).fetchone()
        booking = _row_to_booking(row)
        log.info("booking_created", booking_id=booking.id, lawyer_id=lawyer.id, owner_id=owner.storage_key())
        return booking

    def list(self, owner: OwnerRef) -> List[Booking]:
        with self.db.connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM bookings WHERE owner_id = ?
                ORDER BY appointment_date DESC, appointment_time DESC, id DESC
                """,
                (owner.storage_key(),),
            ).fetchall()
        return [_row_to_booking(row) for row in rows]

    def count(self) -> int:
        return self.db.count("bookings")
