from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user

from models import db
from routes.guards import require_permission
from services import departments as dept_service
from services.accounts import list_employees
from services.errors import SchedulerError
from services.permissions import Permission

departments_bp = Blueprint("departments", __name__, url_prefix="/departments")


def _company_id() -> int:
    return current_user.company_id


def _manager_id():
    try:
        return int((request.form.get("manager_id") or "").strip())
    except ValueError:
        return None


@departments_bp.get("")
@require_permission(Permission.MANAGE_DEPARTMENTS)
def departments_list():
    company_id = _company_id()
    return render_template(
        "departments.html",
        departments=dept_service.list_departments(db.session, company_id=company_id),
        counts=dept_service.employee_counts(db.session, company_id=company_id),
        managers=list_employees(db.session, company_id=company_id, include_inactive=False),
    )


@departments_bp.post("/new")
@require_permission(Permission.MANAGE_DEPARTMENTS)
def departments_new_post():
    try:
        dept = dept_service.save_department(
            db.session,
            company_id=_company_id(),
            name=request.form.get("name"),
            description=request.form.get("description"),
            manager_id=_manager_id(),
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return redirect(url_for("departments.departments_list"))

    flash(f"{dept.name} department has been created successfully.", "message")
    return redirect(url_for("departments.departments_list"))


@departments_bp.get("/<int:department_id>/edit")
@require_permission(Permission.MANAGE_DEPARTMENTS)
def departments_edit_get(department_id: int):
    company_id = _company_id()
    try:
        dept = dept_service.get_department(db.session, company_id=company_id, department_id=department_id)
    except SchedulerError as e:
        flash(str(e), "error")
        return redirect(url_for("departments.departments_list"))

    return render_template(
        "department_edit.html",
        department=dept,
        managers=list_employees(db.session, company_id=company_id, include_inactive=False),
    )


@departments_bp.post("/<int:department_id>/edit")
@require_permission(Permission.MANAGE_DEPARTMENTS)
def departments_edit_post(department_id: int):
    try:
        dept = dept_service.save_department(
            db.session,
            company_id=_company_id(),
            department_id=department_id,
            name=request.form.get("name"),
            description=request.form.get("description"),
            manager_id=_manager_id(),
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return redirect(url_for("departments.departments_edit_get", department_id=department_id))

    flash(f"{dept.name} department has been updated successfully.", "message")
    return redirect(url_for("departments.departments_list"))


@departments_bp.post("/<int:department_id>/delete")
@require_permission(Permission.MANAGE_DEPARTMENTS)
def departments_delete(department_id: int):
    try:
        dept_service.delete_department(db.session, company_id=_company_id(), department_id=department_id)
    except SchedulerError as e:
        db.session.rollback()
        flash(f"Cannot delete: {e}", "error")
        return redirect(url_for("departments.departments_list"))

    flash("Department deleted.", "message")
    return redirect(url_for("departments.departments_list"))
