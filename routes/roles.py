from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user

from models import db
from routes.guards import require_permission
from services import roles as role_service
from services.errors import SchedulerError
from services.permissions import Permission, RoleClass

roles_bp = Blueprint("roles", __name__, url_prefix="/roles")


def _company_id() -> int:
    return current_user.company_id


def _form_fields() -> dict:
    return {
        "name": request.form.get("name"),
        "display_name": request.form.get("display_name"),
        "permissions": request.form.getlist("permissions"),
        "role_class": request.form.get("role_class") or RoleClass.EMPLOYEE.value,
    }


@roles_bp.get("")
@require_permission(Permission.MANAGE_ROLES)
def roles_list():
    company_id = _company_id()
    roles = role_service.list_roles(db.session, company_id=company_id)
    counts = role_service.role_user_counts(db.session, company_id=company_id)
    return render_template("roles.html", roles=roles, counts=counts, permissions=list(Permission))


@roles_bp.get("/matrix")
@require_permission(Permission.MANAGE_ROLES)
def permissions_matrix():
    roles = role_service.list_roles(db.session, company_id=_company_id())
    granted = {r.id: set(r.permissions or []) for r in roles}
    return render_template(
        "permissions_matrix.html",
        roles=roles,
        granted=granted,
        permissions=list(Permission),
    )


@roles_bp.get("/new")
@require_permission(Permission.MANAGE_ROLES)
def roles_new_get():
    return render_template(
        "role_form.html",
        role=None,
        selected=set(),
        permissions=list(Permission),
        classes=list(RoleClass),
    )


@roles_bp.post("/new")
@require_permission(Permission.MANAGE_ROLES)
def roles_new_post():
    try:
        role = role_service.create_role(db.session, company_id=_company_id(), **_form_fields())
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return redirect(url_for("roles.roles_new_get"))

    flash(f"{role.display_name} role has been created successfully.", "message")
    return redirect(url_for("roles.roles_list"))


@roles_bp.get("/<role_id>/edit")
@require_permission(Permission.MANAGE_ROLES)
def roles_edit_get(role_id: str):
    try:
        role = role_service.get_role(db.session, company_id=_company_id(), role_id=role_id)
    except SchedulerError as e:
        flash(str(e), "error")
        return redirect(url_for("roles.roles_list"))

    if role.is_system_defined:
        flash("System-defined roles cannot be edited. You can clone them instead.", "error")
        return redirect(url_for("roles.roles_list"))

    return render_template(
        "role_form.html",
        role=role,
        selected=set(role.permissions or []),
        permissions=list(Permission),
        classes=list(RoleClass),
    )


@roles_bp.post("/<role_id>/edit")
@require_permission(Permission.MANAGE_ROLES)
def roles_edit_post(role_id: str):
    try:
        role = role_service.update_role(
            db.session, company_id=_company_id(), role_id=role_id, **_form_fields()
        )
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return redirect(url_for("roles.roles_list"))

    flash(f"{role.display_name} role has been updated successfully.", "message")
    return redirect(url_for("roles.roles_list"))


@roles_bp.post("/<role_id>/clone")
@require_permission(Permission.MANAGE_ROLES)
def roles_clone(role_id: str):
    try:
        clone = role_service.clone_role(db.session, company_id=_company_id(), role_id=role_id)
    except SchedulerError as e:
        db.session.rollback()
        flash(str(e), "error")
        return redirect(url_for("roles.roles_list"))

    flash(f"{clone.display_name} has been created.", "message")
    return redirect(url_for("roles.roles_list"))


@roles_bp.post("/<role_id>/delete")
@require_permission(Permission.MANAGE_ROLES)
def roles_delete(role_id: str):
    try:
        role_service.delete_role(db.session, company_id=_company_id(), role_id=role_id)
    except SchedulerError as e:
        db.session.rollback()
        flash(f"Cannot delete: {e}", "error")
        return redirect(url_for("roles.roles_list"))

    flash("Role deleted.", "message")
    return redirect(url_for("roles.roles_list"))
