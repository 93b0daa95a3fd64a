import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.department import Department
from models.user import User
from services.errors import DepartmentInUse, SchedulerError, ValidationError

log = logging.getLogger(__name__)


def get_department(db: Session, *, company_id: int, department_id: int) -> Department:
    dept = (
        db.query(Department)
        .filter(Department.id == department_id, Department.company_id == company_id)
        .first()
    )
    if not dept:
        raise SchedulerError("Department not found.")
    return dept


def list_departments(db: Session, *, company_id: int) -> list[Department]:
    return (
        db.query(Department)
        .filter(Department.company_id == company_id)
        .order_by(Department.name.asc())
        .all()
    )


def employee_counts(db: Session, *, company_id: int) -> dict:
    rows = (
        db.query(User.department_id, func.count(User.id))
        .filter(User.company_id == company_id, User.department_id.isnot(None))
        .group_by(User.department_id)
        .all()
    )
    return {dept_id: int(n) for dept_id, n in rows}


def _check_manager(db: Session, company_id: int, manager_id: Optional[int]) -> None:
    if manager_id is None:
        return
    ok = (
        db.query(User.id)
        .filter(User.id == manager_id, User.company_id == company_id, User.is_active.is_(True))
        .first()
    )
    if not ok:
        raise ValidationError("Manager not found.")


def _check_name_free(db: Session, company_id: int, name: str, exclude_id: Optional[int] = None):
    q = db.query(Department.id).filter(Department.company_id == company_id, Department.name == name)
    if exclude_id:
        q = q.filter(Department.id != exclude_id)
    if q.first() is not None:
        raise ValidationError(f"A department named '{name}' already exists.")


def save_department(
    db: Session,
    *,
    company_id: int,
    name: str,
    description: Optional[str] = None,
    manager_id: Optional[int] = None,
    department_id: Optional[int] = None,
) -> Department:
    """Crea o actualiza (si viene department_id)."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Please enter a department name.")
    _check_manager(db, company_id, manager_id)
    _check_name_free(db, company_id, name, exclude_id=department_id)

    if department_id is None:
        dept = Department(company_id=company_id)
        db.add(dept)
    else:
        dept = get_department(db, company_id=company_id, department_id=department_id)

    dept.name = name
    dept.description = (description or "").strip() or None
    dept.manager_id = manager_id
    db.commit()
    log.info("Department saved %s (%s) company=%s", dept.id, dept.name, company_id)
    return dept


def delete_department(db: Session, *, company_id: int, department_id: int) -> None:
    dept = get_department(db, company_id=company_id, department_id=department_id)
    count = db.query(func.count(User.id)).filter(User.department_id == dept.id).scalar() or 0
    if count:
        raise DepartmentInUse(int(count))
    db.delete(dept)
    db.commit()
    log.info("Department deleted %s company=%s", department_id, company_id)
