import pytest

from models.user import User
from services import accounts
from services import departments as dept_service
from services.errors import DepartmentInUse, DuplicateEmail, SchedulerError, UnknownRole, ValidationError


@pytest.fixture
def sales_id(db_session, company_id):
    from models.department import Department

    return db_session.query(Department).filter_by(company_id=company_id, name="Sales").one().id


def test_create_account(db_session, company_id, role_ids, sales_id):
    user = accounts.create_account(
        db_session,
        company_id=company_id,
        full_name="James Rodriguez",
        email="James@Demo.com",
        role_id=role_ids["employee"],
        department_id=sales_id,
    )
    assert user.email == "james@demo.com"
    assert user.check_password(accounts.DEFAULT_PASSWORD)
    assert user.is_active


@pytest.mark.parametrize("missing", ["full_name", "email", "role_id", "department_id"])
def test_create_account_requires_fields(db_session, company_id, role_ids, sales_id, missing):
    data = dict(
        full_name="New Person",
        email="new@demo.com",
        role_id=role_ids["employee"],
        department_id=sales_id,
    )
    data[missing] = None
    with pytest.raises(ValidationError):
        accounts.create_account(db_session, company_id=company_id, **data)


def test_create_account_duplicate_email(db_session, company_id, role_ids, sales_id):
    with pytest.raises(DuplicateEmail):
        accounts.create_account(
            db_session,
            company_id=company_id,
            full_name="Copy",
            email="EMPLOYEE@demo.com",
            role_id=role_ids["employee"],
            department_id=sales_id,
        )


def test_create_account_unknown_role(db_session, company_id, sales_id):
    with pytest.raises(UnknownRole):
        accounts.create_account(
            db_session,
            company_id=company_id,
            full_name="X",
            email="x@demo.com",
            role_id="role-ghost",
            department_id=sales_id,
        )


def test_reassign_role(db_session, company_id, role_ids):
    emp = db_session.query(User).filter_by(email="employee@demo.com").one()
    accounts.reassign_role(db_session, company_id=company_id, user_id=emp.id, role_id=role_ids["manager"])
    assert emp.role_id == role_ids["manager"]


def test_deactivate_keeps_record(db_session, company_id):
    admin = db_session.query(User).filter_by(email="company@demo.com").one()
    emp = db_session.query(User).filter_by(email="employee@demo.com").one()

    accounts.deactivate_account(db_session, company_id=company_id, user_id=emp.id, actor_id=admin.id)
    assert db_session.get(User, emp.id).is_active is False


def test_cannot_deactivate_self(db_session, company_id):
    admin = db_session.query(User).filter_by(email="company@demo.com").one()
    with pytest.raises(SchedulerError):
        accounts.deactivate_account(db_session, company_id=company_id, user_id=admin.id, actor_id=admin.id)


def test_delete_department_in_use(db_session, company_id, sales_id):
    with pytest.raises(DepartmentInUse) as exc:
        dept_service.delete_department(db_session, company_id=company_id, department_id=sales_id)
    assert exc.value.employee_count == 2


def test_department_crud(db_session, company_id):
    dept = dept_service.save_department(db_session, company_id=company_id, name="Warehouse")
    dept = dept_service.save_department(
        db_session, company_id=company_id, department_id=dept.id, name="Warehouse", description="Stock"
    )
    assert dept.description == "Stock"
    dept_service.delete_department(db_session, company_id=company_id, department_id=dept.id)
    assert dept_service.employee_counts(db_session, company_id=company_id).get(dept.id) is None


def test_department_requires_name(db_session, company_id):
    with pytest.raises(ValidationError):
        dept_service.save_department(db_session, company_id=company_id, name="   ")


# -------------------------
# Rutas
# -------------------------
def test_employee_cannot_create_accounts(employee_client):
    assert employee_client.get("/employees/new").status_code == 403


def test_manager_cannot_create_accounts(manager_client):
    # El manager ve empleados pero no tiene can_create_accounts
    assert manager_client.get("/employees/new").status_code == 403


def test_admin_creates_account_and_it_can_sign_in(admin_client, app, role_ids, login):
    from models import db
    from models.department import Department

    with app.app_context():
        ops_id = db.session.query(Department).filter_by(name="Operations").one().id

    resp = admin_client.post(
        "/employees/new",
        data={
            "full_name": "Lisa Park",
            "email": "lisa@demo.com",
            "role_id": role_ids["employee"],
            "department_id": str(ops_id),
            "password": "secret99",
        },
        follow_redirects=True,
    )
    assert "Lisa Park has been added as Employee" in resp.get_data(as_text=True)

    admin_client.get("/logout")
    login(admin_client, "lisa@demo.com", "secret99")
    assert admin_client.get("/dashboard").status_code == 200


def test_deactivated_user_cannot_sign_in(admin_client, app, login):
    from models import db

    with app.app_context():
        emp_id = db.session.query(User).filter_by(email="employee@demo.com").one().id

    admin_client.post(f"/employees/{emp_id}/deactivate")
    admin_client.get("/logout")

    resp = login(admin_client, "employee@demo.com")
    assert "/login" in resp.headers["Location"]


def test_departments_delete_in_use_flashes(admin_client, app):
    from models import db
    from models.department import Department

    with app.app_context():
        sales_id = db.session.query(Department).filter_by(name="Sales").one().id

    resp = admin_client.post(f"/departments/{sales_id}/delete", follow_redirects=True)
    assert "Please reassign them first" in resp.get_data(as_text=True)


def test_company_settings(admin_client, app):
    resp = admin_client.post(
        "/company",
        data={
            "name": "Acme Retail",
            "time_zone": "America/New_York",
            "work_week_start": "0",
            "default_shift_duration": "10",
            "allow_shift_swapping": "on",
        },
    )
    assert resp.status_code == 302

    from models import db
    from models.company import Company

    with app.app_context():
        company = db.session.query(Company).one()
        assert company.time_zone == "America/New_York"
        assert company.work_week_start == 0
        assert company.default_shift_duration == 10
        assert company.allow_shift_swapping is True
        assert company.require_manager_approval is False


def test_company_settings_validates_duration(admin_client):
    resp = admin_client.post(
        "/company",
        data={"name": "Acme Retail", "time_zone": "UTC", "work_week_start": "1", "default_shift_duration": "30"},
        follow_redirects=True,
    )
    assert "between 1 and 24 hours" in resp.get_data(as_text=True)


def test_department_form_ignores_non_ascii_digit_manager(admin_client, app):
    from models import db
    from models.department import Department

    resp = admin_client.post("/departments/new", data={"name": "Warehouse", "manager_id": "²"})
    assert resp.status_code == 302

    with app.app_context():
        dept = db.session.query(Department).filter_by(name="Warehouse").one()
        assert dept.manager_id is None
