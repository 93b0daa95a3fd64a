import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.department import Department
from models.user import User
from services.errors import DuplicateEmail, SchedulerError, ValidationError
from services.roles import get_role

log = logging.getLogger(__name__)

DEFAULT_PASSWORD = "demo123"


def _clean_str(value: Optional[str]) -> str:
    return (value or "").strip()


def get_user(db: Session, *, company_id: int, user_id: int) -> User:
    user = (
        db.query(User)
        .filter(User.id == user_id, User.company_id == company_id)
        .first()
    )
    if not user:
        raise SchedulerError("Employee not found.")
    return user


def _get_department(db: Session, company_id: int, department_id) -> Department:
    dept = (
        db.query(Department)
        .filter(Department.id == department_id, Department.company_id == company_id)
        .first()
    )
    if not dept:
        raise ValidationError("Department not found.")
    return dept


def list_employees(db: Session, *, company_id: int, include_inactive: bool = True) -> list[User]:
    q = db.query(User).filter(User.company_id == company_id)
    if not include_inactive:
        q = q.filter(User.is_active.is_(True))
    return q.order_by(User.is_active.desc(), User.full_name.asc()).all()


def create_account(
    db: Session,
    *,
    company_id: int,
    full_name: str,
    email: str,
    role_id: str,
    department_id,
    password: Optional[str] = None,
    job_title: Optional[str] = None,
    phone_number: Optional[str] = None,
    manager_id: Optional[int] = None,
) -> User:
    full_name = _clean_str(full_name)
    email = _clean_str(email).lower()
    role_id = _clean_str(role_id)

    if not full_name or not email or not role_id or not department_id:
        raise ValidationError(
            "Please fill in all required fields (name, email, role, and department)."
        )
    if "@" not in email:
        raise ValidationError("Please enter a valid email address.")

    exists = db.query(User.id).filter(func.lower(User.email) == email).first()
    if exists:
        raise DuplicateEmail()

    role = get_role(db, company_id=company_id, role_id=role_id)
    dept = _get_department(db, company_id, department_id)

    if manager_id is not None:
        get_user(db, company_id=company_id, user_id=manager_id)

    user = User(
        email=email,
        full_name=full_name,
        role_id=role.id,
        company_id=company_id,
        department_id=dept.id,
        manager_id=manager_id,
        job_title=_clean_str(job_title) or None,
        phone_number=_clean_str(phone_number) or None,
        is_active=True,
    )
    user.set_password(password or DEFAULT_PASSWORD)
    db.add(user)
    db.commit()
    log.info("Account created %s role=%s company=%s", user.email, role.id, company_id)
    return user


def reassign_role(db: Session, *, company_id: int, user_id: int, role_id: str) -> User:
    user = get_user(db, company_id=company_id, user_id=user_id)
    role = get_role(db, company_id=company_id, role_id=_clean_str(role_id))
    previous = user.role_id
    user.role_id = role.id
    db.commit()
    log.info("Role reassigned for %s: %s -> %s", user.email, previous, role.id)
    return user


def deactivate_account(db: Session, *, company_id: int, user_id: int, actor_id: int) -> User:
    """Nunca se borra el usuario (conserva historial de turnos)."""
    if user_id == actor_id:
        raise SchedulerError("You cannot deactivate your own account.")
    user = get_user(db, company_id=company_id, user_id=user_id)
    user.is_active = False
    db.commit()
    log.info("Account deactivated %s company=%s", user.email, company_id)
    return user


def reactivate_account(db: Session, *, company_id: int, user_id: int) -> User:
    user = get_user(db, company_id=company_id, user_id=user_id)
    user.is_active = True
    db.commit()
    log.info("Account reactivated %s company=%s", user.email, company_id)
    return user
