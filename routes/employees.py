from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user

from models import db
from routes import get_registry
from routes.guards import require_permission
from services import accounts
from services.authorization import has_permission
from services.departments import list_departments
from services.errors import SchedulerError
from services.permissions import Permission
from services.roles import list_roles

employees_bp = Blueprint("employees", __name__, url_prefix="/employees")


def _company_id() -> int:
    return current_user.company_id


def _to_int(val: str | None):
    try:
        return int((val or "").strip())
    except ValueError:
        return None


@employees_bp.get("")
@require_permission(Permission.VIEW_ALL_EMPLOYEES)
def employees_list():
    company_id = _company_id()
    principal = current_user
    registry = get_registry()
    return render_template(
        "employees.html",
        employees=accounts.list_employees(db.session, company_id=company_id),
        roles=list_roles(db.session, company_id=company_id),
        can_create=has_permission(principal, Permission.CREATE_ACCOUNTS, registry),
        can_delete=has_permission(principal, Permission.DELETE_ACCOUNTS, registry),
        can_reassign=has_permission(principal, Permission.MANAGE_ROLES, registry),
    )


@employees_bp.get("/new")
@require_permission(Permission.CREATE_ACCOUNTS)
def employees_new_get():
    company_id = _company_id()
    return render_template(
        "employee_new.html",
        roles=list_roles(db.session, company_id=company_id),
        departments=list_departments(db.session, company_id=company_id),
        managers=accounts.list_employees(db.session, company_id=company_id, include_inactive=False),
    )


@employees_bp.post("/new")
@require_permission(Permission.CREATE_ACCOUNTS)
def employees_new_post():
    try:
        user = accounts.create_account(
            db.session,
            company_id=_company_id(),
            full_name=request.form.get("full_name"),
            email=request.form.get("email"),
            role_id=request.form.get("role_id"),
            department_id=_to_int(request.form.get("department_id")),
            password=request.form.get("password") or None,
            job_title=request.form.get("job_title"),
            phone_number=request.form.get("phone_number"),
            manager_id=_to_int(request.form.get("manager_id")),
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return redirect(url_for("employees.employees_new_get"))

    flash(f"{user.full_name} has been added as {user.role.display_name}.", "message")
    return redirect(url_for("employees.employees_list"))


@employees_bp.post("/<int:user_id>/role")
@require_permission(Permission.MANAGE_ROLES)
def employees_reassign_role(user_id: int):
    try:
        user = accounts.reassign_role(
            db.session,
            company_id=_company_id(),
            user_id=user_id,
            role_id=request.form.get("role_id"),
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return redirect(url_for("employees.employees_list"))

    flash(f"{user.full_name} is now {user.role.display_name}.", "message")
    return redirect(url_for("employees.employees_list"))


@employees_bp.post("/<int:user_id>/deactivate")
@require_permission(Permission.DELETE_ACCOUNTS)
def employees_deactivate(user_id: int):
    try:
        user = accounts.deactivate_account(
            db.session,
            company_id=_company_id(),
            user_id=user_id,
            actor_id=current_user.id,
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return redirect(url_for("employees.employees_list"))

    flash(f"{user.full_name} has been deactivated. Schedule history is kept.", "message")
    return redirect(url_for("employees.employees_list"))


@employees_bp.post("/<int:user_id>/reactivate")
@require_permission(Permission.DELETE_ACCOUNTS)
def employees_reactivate(user_id: int):
    try:
        user = accounts.reactivate_account(db.session, company_id=_company_id(), user_id=user_id)
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return redirect(url_for("employees.employees_list"))

    flash(f"{user.full_name} has been reactivated.", "message")
    return redirect(url_for("employees.employees_list"))
