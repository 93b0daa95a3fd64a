from datetime import date, timedelta

from models.company import Company
from models.department import Department
from models.schedule_request import RequestKind, RequestStatus, ScheduleRequest
from models.user import User
from services.accounts import DEFAULT_PASSWORD
from services.permissions import ADMIN_ROLE_KEY, EMPLOYEE_ROLE_KEY, MANAGER_ROLE_KEY
from services.roles import seed_company_roles

DEMO_COMPANY = "Acme Retail"

DEMO_DEPARTMENTS = [
    ("Sales", "Customer-facing sales team responsible for revenue generation"),
    ("Customer Support", "Technical and customer service support team"),
    ("Operations", "Day-to-day operations and logistics management"),
]

# (email, nombre, rol, cargo, departamento)
DEMO_USERS = [
    ("company@demo.com", "Sarah Johnson", ADMIN_ROLE_KEY, "Company Administrator", None),
    ("manager@demo.com", "Michael Chen", MANAGER_ROLE_KEY, "Sales Manager", "Sales"),
    ("employee@demo.com", "Emma Williams", EMPLOYEE_ROLE_KEY, "Sales Associate", "Sales"),
]


def seed_demo_data(db) -> Company:
    """Idempotente: se puede correr varias veces sin duplicar nada."""
    # 1) Empresa demo
    company = db.query(Company).filter_by(name=DEMO_COMPANY).first()
    if not company:
        company = Company(name=DEMO_COMPANY, is_active=True)
        db.add(company)
        db.flush()

    # 2) Roles por defecto (Company Admin es de sistema)
    roles = seed_company_roles(db, company)

    # 3) Departamentos
    departments = {}
    for name, description in DEMO_DEPARTMENTS:
        dept = db.query(Department).filter_by(company_id=company.id, name=name).first()
        if not dept:
            dept = Department(company_id=company.id, name=name, description=description)
            db.add(dept)
        departments[name] = dept
    db.flush()

    # 4) Usuarios demo (password demo123)
    users = {}
    for email, full_name, role_key, job_title, dept_name in DEMO_USERS:
        user = db.query(User).filter_by(email=email).first()
        if not user:
            user = User(email=email, full_name=full_name, company_id=company.id)
            user.set_password(DEFAULT_PASSWORD)
            db.add(user)
        user.role_id = roles[role_key].id
        user.job_title = job_title
        user.department_id = departments[dept_name].id if dept_name else None
        user.is_active = True
        users[role_key] = user
    db.flush()

    # El empleado reporta al manager; el manager dirige Sales
    users[EMPLOYEE_ROLE_KEY].manager_id = users[MANAGER_ROLE_KEY].id
    departments["Sales"].manager_id = users[MANAGER_ROLE_KEY].id

    # 5) Una solicitud de vacaciones pendiente para la bandeja del manager
    employee = users[EMPLOYEE_ROLE_KEY]
    has_request = db.query(ScheduleRequest.id).filter_by(requester_id=employee.id).first()
    if not has_request:
        start = date.today() + timedelta(days=14)
        db.add(ScheduleRequest(
            company_id=company.id,
            requester_id=employee.id,
            kind=RequestKind.TIME_OFF,
            status=RequestStatus.PENDING,
            leave_type="Vacation",
            start_date=start,
            end_date=start + timedelta(days=2),
            reason="Family trip",
        ))

    db.commit()
    return company


def run():
    from app import create_app
    from models import db

    app = create_app()
    with app.app_context():
        # No usamos db.create_all(): el esquema va por migraciones (flask db upgrade)
        seed_demo_data(db.session)

        print("Seed ready.")
        print("Logins (password demo123):")
        for email, full_name, role_key, _, _ in DEMO_USERS:
            print(f"  {email:<20} {full_name} ({role_key})")


if __name__ == "__main__":
    run()
