from datetime import date

import pytest

from models.company import Company
from models.department import Department
from models.schedule_request import RequestKind, RequestStatus, ScheduleRequest
from models.user import User
from services import requests as request_service
from services.errors import RequestNotPending, SchedulerError, ShiftSwappingDisabled, ValidationError

START = date(2026, 11, 2)
END = date(2026, 11, 4)


@pytest.fixture
def users(db_session):
    # company / manager / employee
    return {u.email.split("@")[0]: u for u in db_session.query(User).all()}


@pytest.fixture
def seeded_request_id(app):
    from models import db

    with app.app_context():
        return db.session.query(ScheduleRequest).filter_by(status=RequestStatus.PENDING).one().id


def _set_policy(db_session, company_id, **values):
    company = db_session.get(Company, company_id)
    for k, v in values.items():
        setattr(company, k, v)
    db_session.commit()


# -------------------------
# Servicio
# -------------------------
def test_submit_time_off_is_pending(db_session, company_id, users):
    req = request_service.submit_time_off(
        db_session,
        company_id=company_id,
        requester_id=users["employee"].id,
        leave_type="Sick Leave",
        start_date=START,
        end_date=END,
        reason="  Flu  ",
    )
    assert req.kind == RequestKind.TIME_OFF
    assert req.status == RequestStatus.PENDING
    assert req.reason == "Flu"
    assert req.days == 3
    assert req.reviewed_at is None


def test_time_off_auto_approved_without_manager_approval(db_session, company_id, users):
    _set_policy(db_session, company_id, require_manager_approval=False)

    req = request_service.submit_time_off(
        db_session,
        company_id=company_id,
        requester_id=users["employee"].id,
        leave_type="Vacation",
        start_date=START,
        end_date=START,
    )
    assert req.status == RequestStatus.APPROVED
    assert req.reviewed_at is not None
    assert req.reviewed_by_id is None


@pytest.mark.parametrize(
    "leave_type,start,end",
    [
        ("", START, END),
        ("Sabbatical", START, END),
        ("Vacation", None, END),
        ("Vacation", END, START),
    ],
)
def test_time_off_validation(db_session, company_id, users, leave_type, start, end):
    with pytest.raises(ValidationError):
        request_service.submit_time_off(
            db_session,
            company_id=company_id,
            requester_id=users["employee"].id,
            leave_type=leave_type,
            start_date=start,
            end_date=end,
        )


def test_submit_shift_swap(db_session, company_id, users):
    req = request_service.submit_shift_swap(
        db_session,
        company_id=company_id,
        requester_id=users["employee"].id,
        target_user_id=users["manager"].id,
        shift_date=START,
        reason="Doctor appointment",
    )
    assert req.kind == RequestKind.SHIFT_SWAP
    assert req.status == RequestStatus.PENDING
    assert req.target_user_id == users["manager"].id

    mine = request_service.list_my_requests(db_session, company_id=company_id, user_id=users["manager"].id)
    assert req in mine


def test_shift_swap_disabled_by_company(db_session, company_id, users):
    _set_policy(db_session, company_id, allow_shift_swapping=False)

    with pytest.raises(ShiftSwappingDisabled):
        request_service.submit_shift_swap(
            db_session,
            company_id=company_id,
            requester_id=users["employee"].id,
            target_user_id=users["manager"].id,
            shift_date=START,
            reason="Doctor appointment",
        )


def test_shift_swap_needs_an_active_coworker(db_session, company_id, users):
    employee = users["employee"]
    with pytest.raises(ValidationError):
        request_service.submit_shift_swap(
            db_session,
            company_id=company_id,
            requester_id=employee.id,
            target_user_id=employee.id,
            shift_date=START,
            reason="x",
        )

    users["manager"].is_active = False
    db_session.commit()
    with pytest.raises(ValidationError):
        request_service.submit_shift_swap(
            db_session,
            company_id=company_id,
            requester_id=employee.id,
            target_user_id=users["manager"].id,
            shift_date=START,
            reason="x",
        )


def test_review_once(db_session, company_id, users, seeded_request_id):
    req = request_service.review_request(
        db_session,
        company_id=company_id,
        request_id=seeded_request_id,
        reviewer_id=users["manager"].id,
        approve=True,
    )
    assert req.status == RequestStatus.APPROVED
    assert req.reviewed_by_id == users["manager"].id

    with pytest.raises(RequestNotPending):
        request_service.review_request(
            db_session,
            company_id=company_id,
            request_id=seeded_request_id,
            reviewer_id=users["company"].id,
            approve=False,
        )


def test_cannot_review_own_request(db_session, company_id, users):
    req = request_service.submit_time_off(
        db_session,
        company_id=company_id,
        requester_id=users["manager"].id,
        leave_type="Vacation",
        start_date=START,
        end_date=END,
    )
    with pytest.raises(SchedulerError):
        request_service.review_request(
            db_session, company_id=company_id, request_id=req.id, reviewer_id=users["manager"].id, approve=True
        )
    assert db_session.get(ScheduleRequest, req.id).is_pending

    # Y tampoco aparece en su propia bandeja
    pending = request_service.list_pending(db_session, company_id=company_id, exclude_user_id=users["manager"].id)
    assert req not in pending


def test_review_is_scoped_to_company(db_session, users, seeded_request_id):
    other = Company(name="Other Co")
    db_session.add(other)
    db_session.commit()

    with pytest.raises(SchedulerError):
        request_service.review_request(
            db_session, company_id=other.id, request_id=seeded_request_id, reviewer_id=users["manager"].id, approve=True
        )


def test_cancel_only_by_owner_while_pending(db_session, company_id, users, seeded_request_id):
    with pytest.raises(SchedulerError):
        request_service.cancel_request(
            db_session, company_id=company_id, request_id=seeded_request_id, requester_id=users["manager"].id
        )

    req = request_service.cancel_request(
        db_session, company_id=company_id, request_id=seeded_request_id, requester_id=users["employee"].id
    )
    assert req.status == RequestStatus.CANCELLED

    with pytest.raises(RequestNotPending):
        request_service.cancel_request(
            db_session, company_id=company_id, request_id=seeded_request_id, requester_id=users["employee"].id
        )


def test_request_counts_by_department(db_session, company_id):
    sales = db_session.query(Department).filter_by(company_id=company_id, name="Sales").one()
    ops = db_session.query(Department).filter_by(company_id=company_id, name="Operations").one()

    assert request_service.request_counts(db_session, company_id=company_id) == {"pending": 1}
    assert request_service.request_counts(db_session, company_id=company_id, department_id=sales.id) == {"pending": 1}
    assert request_service.request_counts(db_session, company_id=company_id, department_id=ops.id) == {}


# -------------------------
# Rutas
# -------------------------
def test_employee_sees_request_forms_without_approval_queue(employee_client):
    resp = employee_client.get("/requests")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Request Time Off" in body
    assert "Request Shift Swap" in body
    assert "Pending Approval" not in body
    assert "Vacation" in body


def test_employee_submits_time_off(employee_client, app):
    from models import db

    resp = employee_client.post(
        "/requests/time-off",
        data={"leave_type": "Personal Leave", "start_date": "2026-12-01", "end_date": "2026-12-02"},
        follow_redirects=True,
    )
    assert "submitted for approval" in resp.get_data(as_text=True)

    with app.app_context():
        req = db.session.query(ScheduleRequest).filter_by(leave_type="Personal Leave").one()
        assert req.status == RequestStatus.PENDING
        assert req.start_date == date(2026, 12, 1)


def test_bad_dates_flash_instead_of_failing(employee_client):
    resp = employee_client.post(
        "/requests/time-off",
        data={"leave_type": "Vacation", "start_date": "not-a-date", "end_date": "2026-12-02"},
        follow_redirects=True,
    )
    assert resp.status_code == 200
    assert "Please fill in all required fields." in resp.get_data(as_text=True)


def test_employee_cannot_approve(employee_client, app, seeded_request_id):
    from models import db

    resp = employee_client.post(f"/requests/{seeded_request_id}/approve")
    assert resp.status_code == 403
    assert "Current Role: Employee" in resp.get_data(as_text=True)

    with app.app_context():
        assert db.session.get(ScheduleRequest, seeded_request_id).status == RequestStatus.PENDING


def test_manager_reviews_pending_request(manager_client, app, seeded_request_id):
    from models import db

    body = manager_client.get("/requests").get_data(as_text=True)
    assert "Pending Approval (1)" in body
    assert "Emma Williams" in body

    resp = manager_client.post(f"/requests/{seeded_request_id}/reject", follow_redirects=True)
    assert "Request from Emma Williams rejected." in resp.get_data(as_text=True)

    with app.app_context():
        req = db.session.get(ScheduleRequest, seeded_request_id)
        assert req.status == RequestStatus.REJECTED
        assert req.reviewed_by.email == "manager@demo.com"


def test_manager_cannot_file_time_off(manager_client):
    # El rol Manager no trae can_request_time_off
    resp = manager_client.post(
        "/requests/time-off",
        data={"leave_type": "Vacation", "start_date": "2026-12-01", "end_date": "2026-12-01"},
    )
    assert resp.status_code == 403


def test_swap_refused_when_company_disables_it(employee_client, app):
    from models import db

    with app.app_context():
        company = db.session.query(Company).one()
        company.allow_shift_swapping = False
        manager_id = db.session.query(User).filter_by(email="manager@demo.com").one().id
        db.session.commit()

    body = employee_client.get("/requests").get_data(as_text=True)
    assert "Request Shift Swap" not in body

    resp = employee_client.post(
        "/requests/swap",
        data={"target_user_id": str(manager_id), "shift_date": "2026-12-01", "reason": "Exam"},
        follow_redirects=True,
    )
    assert "Shift swapping is disabled for this company." in resp.get_data(as_text=True)


def test_analytics_by_permission(employee_client, login, app):
    assert employee_client.get("/analytics").status_code == 403

    manager = app.test_client()
    login(manager, "manager@demo.com")
    body = manager.get("/analytics").get_data(as_text=True)
    assert "My department" in body
    assert "Sales" in body
    assert "Users by Role" not in body

    admin = app.test_client()
    login(admin, "company@demo.com")
    body = admin.get("/analytics").get_data(as_text=True)
    assert "Company-wide" in body
    assert "Users by Role" in body
