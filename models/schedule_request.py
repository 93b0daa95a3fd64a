from datetime import datetime

from . import db


class RequestKind:
    TIME_OFF = "time_off"
    SHIFT_SWAP = "shift_swap"


class RequestStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ScheduleRequest(db.Model):
    """Solicitudes de empleados: tiempo libre o intercambio de turno.

    Las aprueba / rechaza quien tenga can_approve_requests en la misma empresa.
    """

    __tablename__ = "schedule_requests"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    requester_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    kind = db.Column(db.String(20), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=RequestStatus.PENDING, index=True)

    # Tiempo libre
    leave_type = db.Column(db.String(40), nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)

    # Intercambio de turno
    target_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    shift_date = db.Column(db.Date, nullable=True)

    reason = db.Column(db.Text, nullable=True)

    reviewed_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    requester = db.relationship("User", foreign_keys=[requester_id])
    target_user = db.relationship("User", foreign_keys=[target_user_id])
    reviewed_by = db.relationship("User", foreign_keys=[reviewed_by_id])

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def days(self) -> int:
        if self.kind != RequestKind.TIME_OFF or not self.start_date or not self.end_date:
            return 0
        return (self.end_date - self.start_date).days + 1

    def __repr__(self) -> str:
        return f"<ScheduleRequest {self.id} {self.kind} {self.status} user={self.requester_id}>"
