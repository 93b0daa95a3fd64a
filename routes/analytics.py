from flask import Blueprint, render_template
from flask_login import current_user

from models import db
from routes import get_registry
from routes.guards import require_permission
from services import requests as request_service
from services.authorization import has_permission
from services.departments import employee_counts, list_departments
from services.permissions import Permission
from services.roles import list_roles, role_user_counts

analytics_bp = Blueprint("analytics", __name__, url_prefix="/analytics")


@analytics_bp.get("")
@require_permission(Permission.VIEW_ANALYTICS)
def analytics():
    company_id = current_user.company_id
    company_wide = has_permission(current_user, Permission.VIEW_COMPANY_ANALYTICS, get_registry())

    departments = list_departments(db.session, company_id=company_id)
    headcount = employee_counts(db.session, company_id=company_id)

    if company_wide:
        counts = request_service.request_counts(db.session, company_id=company_id)
    elif current_user.department_id is not None:
        # Solo su departamento
        departments = [d for d in departments if d.id == current_user.department_id]
        counts = request_service.request_counts(
            db.session, company_id=company_id, department_id=current_user.department_id
        )
    else:
        departments, counts = [], {}

    return render_template(
        "analytics.html",
        company_wide=company_wide,
        departments=departments,
        headcount=headcount,
        request_counts=counts,
        roles=list_roles(db.session, company_id=company_id) if company_wide else [],
        role_counts=role_user_counts(db.session, company_id=company_id) if company_wide else {},
    )
