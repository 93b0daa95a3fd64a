from flask import redirect, render_template, url_for
from flask_login import current_user

from models import db
from models.company import Company
from models.department import Department
from models.role import Role
from models.user import User
from routes import get_registry, main_bp
from routes.guards import require_login
from services.authorization import permissions_of, role_class_of
from services.permissions import RoleClass


def _dashboard_payload(principal, role_class: RoleClass) -> dict:
    """Resumen por clase de rol (consultas simples, scoped a la empresa)."""
    company_id = principal.company_id
    payload = {"role_class": role_class.value}

    if role_class is RoleClass.ADMIN:
        payload.update(
            employees=db.session.query(User).filter(User.company_id == company_id, User.is_active.is_(True)).count(),
            inactive=db.session.query(User).filter(User.company_id == company_id, User.is_active.is_(False)).count(),
            roles=db.session.query(Role).filter(Role.company_id == company_id).count(),
            departments=db.session.query(Department).filter(Department.company_id == company_id).count(),
        )
    elif role_class is RoleClass.MANAGER:
        team = (
            db.session.query(User)
            .filter(User.company_id == company_id, User.manager_id == principal.id, User.is_active.is_(True))
            .order_by(User.full_name.asc())
            .all()
        )
        payload.update(team=team, team_size=len(team))
    else:
        manager = db.session.get(User, principal.manager_id) if principal.manager_id else None
        department = db.session.get(Department, principal.department_id) if principal.department_id else None
        payload.update(manager=manager, department=department)

    return payload


@main_bp.get("/")
def home():
    if not current_user.is_authenticated:
        return redirect(url_for("auth.login_get"))
    return redirect(url_for("main.dashboard"))


@main_bp.get("/dashboard")
@require_login()
def dashboard():
    principal = current_user
    registry = get_registry()
    role_class = role_class_of(principal, registry)

    company = db.session.get(Company, principal.company_id)
    return render_template(
        "dashboard.html",
        company=company,
        stats=_dashboard_payload(principal, role_class),
    )


@main_bp.get("/me")
@require_login()
def profile():
    principal = current_user
    registry = get_registry()
    return render_template(
        "profile.html",
        permissions=permissions_of(principal, registry),
    )
