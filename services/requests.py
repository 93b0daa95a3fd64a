import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from models.company import Company
from models.schedule_request import RequestKind, RequestStatus, ScheduleRequest
from models.user import User
from services.errors import RequestNotPending, SchedulerError, ShiftSwappingDisabled, ValidationError

log = logging.getLogger(__name__)

LEAVE_TYPES = [
    "Sick Leave",
    "Vacation",
    "Personal Leave",
    "Unpaid Leave",
    "Emergency Leave",
    "Family Leave",
]


def _clean_str(value: Optional[str]) -> str:
    return (value or "").strip()


def _get_company(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if not company:
        raise SchedulerError("Company not found.")
    return company


def _get_active_user(db: Session, company_id: int, user_id) -> Optional[User]:
    if user_id is None:
        return None
    return (
        db.query(User)
        .filter(User.id == user_id, User.company_id == company_id, User.is_active.is_(True))
        .first()
    )


def _apply_policy(company: Company, req: ScheduleRequest) -> None:
    # Sin aprobación obligatoria la solicitud nace aprobada
    if company.require_manager_approval:
        req.status = RequestStatus.PENDING
    else:
        req.status = RequestStatus.APPROVED
        req.reviewed_at = datetime.utcnow()


def get_request(db: Session, *, company_id: int, request_id: int) -> ScheduleRequest:
    req = (
        db.query(ScheduleRequest)
        .filter(ScheduleRequest.id == request_id, ScheduleRequest.company_id == company_id)
        .first()
    )
    if not req:
        raise SchedulerError("Request not found.")
    return req


def list_my_requests(db: Session, *, company_id: int, user_id: int) -> list[ScheduleRequest]:
    """Las que hice yo y los intercambios donde me nombran."""
    return (
        db.query(ScheduleRequest)
        .filter(
            ScheduleRequest.company_id == company_id,
            or_(ScheduleRequest.requester_id == user_id, ScheduleRequest.target_user_id == user_id),
        )
        .order_by(ScheduleRequest.created_at.desc(), ScheduleRequest.id.desc())
        .all()
    )


def list_pending(db: Session, *, company_id: int, exclude_user_id: Optional[int] = None) -> list[ScheduleRequest]:
    q = db.query(ScheduleRequest).filter(
        ScheduleRequest.company_id == company_id,
        ScheduleRequest.status == RequestStatus.PENDING,
    )
    if exclude_user_id is not None:
        q = q.filter(ScheduleRequest.requester_id != exclude_user_id)
    return q.order_by(ScheduleRequest.created_at.asc(), ScheduleRequest.id.asc()).all()


def request_counts(db: Session, *, company_id: int, department_id: Optional[int] = None) -> dict:
    """{status: n}. Con department_id solo cuenta solicitudes de ese departamento."""
    q = (
        db.query(ScheduleRequest.status, func.count(ScheduleRequest.id))
        .join(User, User.id == ScheduleRequest.requester_id)
        .filter(ScheduleRequest.company_id == company_id)
    )
    if department_id is not None:
        q = q.filter(User.department_id == department_id)
    rows = q.group_by(ScheduleRequest.status).all()
    return {status: int(n) for status, n in rows}


def submit_time_off(
    db: Session,
    *,
    company_id: int,
    requester_id: int,
    leave_type: str,
    start_date: Optional[date],
    end_date: Optional[date],
    reason: Optional[str] = None,
) -> ScheduleRequest:
    leave_type = _clean_str(leave_type)
    if not leave_type or start_date is None or end_date is None:
        raise ValidationError()
    if leave_type not in LEAVE_TYPES:
        raise ValidationError("Unknown leave type.")
    if end_date < start_date:
        raise ValidationError("End date cannot be before start date.")

    company = _get_company(db, company_id)
    req = ScheduleRequest(
        company_id=company_id,
        requester_id=requester_id,
        kind=RequestKind.TIME_OFF,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        reason=_clean_str(reason) or None,
    )
    _apply_policy(company, req)
    db.add(req)
    db.commit()
    log.info(
        "Time-off request %s by user=%s (%s, %s..%s) status=%s",
        req.id, requester_id, leave_type, start_date, end_date, req.status,
    )
    return req


def submit_shift_swap(
    db: Session,
    *,
    company_id: int,
    requester_id: int,
    target_user_id: Optional[int],
    shift_date: Optional[date],
    reason: Optional[str],
) -> ScheduleRequest:
    company = _get_company(db, company_id)
    if not company.allow_shift_swapping:
        raise ShiftSwappingDisabled()

    reason = _clean_str(reason)
    if target_user_id is None or shift_date is None or not reason:
        raise ValidationError()
    if target_user_id == requester_id:
        raise ValidationError("Pick a coworker to swap with.")

    target = _get_active_user(db, company_id, target_user_id)
    if not target:
        raise ValidationError("Coworker not found.")

    req = ScheduleRequest(
        company_id=company_id,
        requester_id=requester_id,
        kind=RequestKind.SHIFT_SWAP,
        target_user_id=target.id,
        shift_date=shift_date,
        reason=reason,
    )
    _apply_policy(company, req)
    db.add(req)
    db.commit()
    log.info(
        "Shift-swap request %s by user=%s with user=%s on %s status=%s",
        req.id, requester_id, target.id, shift_date, req.status,
    )
    return req


def review_request(
    db: Session,
    *,
    company_id: int,
    request_id: int,
    reviewer_id: int,
    approve: bool,
) -> ScheduleRequest:
    req = get_request(db, company_id=company_id, request_id=request_id)
    if not req.is_pending:
        raise RequestNotPending()
    if req.requester_id == reviewer_id:
        raise SchedulerError("You cannot review your own request.")

    req.status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
    req.reviewed_by_id = reviewer_id
    req.reviewed_at = datetime.utcnow()
    db.commit()
    log.info("Request %s %s by user=%s", req.id, req.status, reviewer_id)
    return req


def cancel_request(db: Session, *, company_id: int, request_id: int, requester_id: int) -> ScheduleRequest:
    req = get_request(db, company_id=company_id, request_id=request_id)
    # Solo el dueño, y solo mientras esté pendiente
    if req.requester_id != requester_id:
        raise SchedulerError("Request not found.")
    if not req.is_pending:
        raise RequestNotPending()

    req.status = RequestStatus.CANCELLED
    db.commit()
    log.info("Request %s cancelled by user=%s", req.id, requester_id)
    return req
