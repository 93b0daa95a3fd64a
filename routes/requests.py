from datetime import date, datetime

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user

from models import db
from models.company import Company
from routes import get_registry
from routes.guards import require_login, require_permission
from services import requests as request_service
from services.accounts import list_employees
from services.authorization import has_permission
from services.errors import SchedulerError
from services.permissions import Permission

requests_bp = Blueprint("requests", __name__, url_prefix="/requests")


def _company_id() -> int:
    return current_user.company_id


def _as_date(v: str | None) -> date | None:
    try:
        if v:
            return datetime.strptime(v.strip(), "%Y-%m-%d").date()
    except ValueError:
        pass
    return None


def _to_int(val: str | None):
    try:
        return int((val or "").strip())
    except ValueError:
        return None


def _back():
    return redirect(url_for("requests.requests_list"))


@requests_bp.get("")
@require_login()
def requests_list():
    company_id = _company_id()
    registry = get_registry()
    company = db.session.get(Company, company_id)

    can_approve = has_permission(current_user, Permission.APPROVE_REQUESTS, registry)
    can_swap = has_permission(current_user, Permission.SWAP_SHIFTS, registry) and company.allow_shift_swapping

    coworkers = [
        u for u in list_employees(db.session, company_id=company_id, include_inactive=False)
        if u.id != current_user.id
    ]
    return render_template(
        "requests.html",
        my_requests=request_service.list_my_requests(db.session, company_id=company_id, user_id=current_user.id),
        pending=(
            request_service.list_pending(db.session, company_id=company_id, exclude_user_id=current_user.id)
            if can_approve else []
        ),
        can_approve=can_approve,
        can_request_time_off=has_permission(current_user, Permission.REQUEST_TIME_OFF, registry),
        can_swap=can_swap,
        leave_types=request_service.LEAVE_TYPES,
        coworkers=coworkers,
        company=company,
    )


@requests_bp.post("/time-off")
@require_permission(Permission.REQUEST_TIME_OFF)
def requests_time_off_post():
    try:
        req = request_service.submit_time_off(
            db.session,
            company_id=_company_id(),
            requester_id=current_user.id,
            leave_type=request.form.get("leave_type"),
            start_date=_as_date(request.form.get("start_date")),
            end_date=_as_date(request.form.get("end_date")),
            reason=request.form.get("reason"),
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return _back()

    if req.is_pending:
        flash("Your leave request has been submitted for approval.", "message")
    else:
        flash("Your leave request has been approved.", "message")
    return _back()


@requests_bp.post("/swap")
@require_permission(Permission.SWAP_SHIFTS)
def requests_swap_post():
    try:
        req = request_service.submit_shift_swap(
            db.session,
            company_id=_company_id(),
            requester_id=current_user.id,
            target_user_id=_to_int(request.form.get("target_user_id")),
            shift_date=_as_date(request.form.get("shift_date")),
            reason=request.form.get("reason"),
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return _back()

    if req.is_pending:
        flash("Your shift swap request has been submitted for approval.", "message")
    else:
        flash("Your shift swap has been approved.", "message")
    return _back()


def _review(request_id: int, approve: bool):
    try:
        req = request_service.review_request(
            db.session,
            company_id=_company_id(),
            request_id=request_id,
            reviewer_id=current_user.id,
            approve=approve,
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return _back()

    flash(f"Request from {req.requester.full_name} {req.status}.", "message")
    return _back()


@requests_bp.post("/<int:request_id>/approve")
@require_permission(Permission.APPROVE_REQUESTS)
def requests_approve(request_id: int):
    return _review(request_id, approve=True)


@requests_bp.post("/<int:request_id>/reject")
@require_permission(Permission.APPROVE_REQUESTS)
def requests_reject(request_id: int):
    return _review(request_id, approve=False)


@requests_bp.post("/<int:request_id>/cancel")
@require_login()
def requests_cancel(request_id: int):
    try:
        request_service.cancel_request(
            db.session,
            company_id=_company_id(),
            request_id=request_id,
            requester_id=current_user.id,
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return _back()

    flash("Request cancelled.", "message")
    return _back()
