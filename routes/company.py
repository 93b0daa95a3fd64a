import logging

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user

from models import db
from models.company import Company
from routes.guards import require_role_class
from services.permissions import RoleClass

log = logging.getLogger(__name__)

company_bp = Blueprint("company", __name__, url_prefix="/company")


def _clean_str(v: str | None) -> str:
    return (v or "").strip()


def _to_int(val: str | None, default: int) -> int:
    try:
        return int((val or "").strip())
    except ValueError:
        return default


@company_bp.get("")
@require_role_class(RoleClass.ADMIN)
def settings_get():
    company = db.session.get(Company, current_user.company_id)
    return render_template("company_settings.html", company=company)


@company_bp.post("")
@require_role_class(RoleClass.ADMIN)
def settings_post():
    company = db.session.get(Company, current_user.company_id)

    name = _clean_str(request.form.get("name"))
    time_zone = _clean_str(request.form.get("time_zone"))
    work_week_start = _to_int(request.form.get("work_week_start"), -1)
    shift_hours = _to_int(request.form.get("default_shift_duration"), 0)

    if not name or not time_zone:
        flash("Company name and time zone are required.", "error")
        return redirect(url_for("company.settings_get"))

    if work_week_start not in range(7):
        flash("Work week start must be a day between 0 (Sunday) and 6.", "error")
        return redirect(url_for("company.settings_get"))

    if not 1 <= shift_hours <= 24:
        flash("Default shift duration must be between 1 and 24 hours.", "error")
        return redirect(url_for("company.settings_get"))

    exists = (
        db.session.query(Company.id)
        .filter(Company.name == name, Company.id != company.id)
        .first()
    )
    if exists:
        flash("Another company already uses that name.", "error")
        return redirect(url_for("company.settings_get"))

    company.name = name
    company.time_zone = time_zone
    company.work_week_start = work_week_start
    company.default_shift_duration = shift_hours
    company.allow_shift_swapping = request.form.get("allow_shift_swapping") == "on"
    company.require_manager_approval = request.form.get("require_manager_approval") == "on"
    db.session.commit()

    log.info("Company settings updated company=%s", company.id)
    flash("Company settings saved.", "message")
    return redirect(url_for("company.settings_get"))
