import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from ecotrack.errors import Conflict, Forbidden, InvalidInput, NotFound, Unauthenticated
from ecotrack.models.approval import ManagerApproval
from ecotrack.services.approval_repository import ApprovalRepository
from ecotrack.services.approval_service import approval_service, priority_for_risk
from conftest import BUSINESS_ID, OTHER_BUSINESS_ID, decided_at, make_approval, make_caller


# --- list / count / history -------------------------------------------------

def test_logistics_manager_sees_only_own_pending_queue(db):
    mine = [
        make_approval(db, required_role="logistics_manager", approval_type="route_optimization", priority=p)
        for p in ("HIGH", "LOW")
    ]
    make_approval(db)  # inventory
    make_approval(db, required_role="finance_manager", approval_type="cost_approval")
    make_approval(db, required_role="logistics_manager", approval_type="route_optimization", status="approved")
    make_approval(db, required_role="logistics_manager", approval_type="route_optimization", business_id=OTHER_BUSINESS_ID)

    result = approval_service.list_approvals(make_caller("logistics_manager"), db, "pending")

    assert result.role == "logistics_manager"
    assert result.count == 2
    assert {a.id for a in result.approvals} == {a.id for a in mine}
    assert all(a.required_role == "logistics_manager" for a in result.approvals)
    assert all(a.status == "pending" for a in result.approvals)
    assert all(a.business_id == BUSINESS_ID for a in result.approvals)


def test_list_status_is_case_insensitive(db):
    approval = make_approval(db, status="approved")

    result = approval_service.list_approvals(make_caller("inventory_manager"), db, "APPROVED")

    assert [a.id for a in result.approvals] == [approval.id]


@pytest.mark.parametrize("status", ["declined", "done", "pending;"])
def test_list_rejects_unknown_status(db, status):
    with pytest.raises(InvalidInput):
        approval_service.list_approvals(make_caller("inventory_manager"), db, status)


def test_list_blank_status_means_pending(db):
    approval = make_approval(db)

    result = approval_service.list_approvals(make_caller("inventory_manager"), db, "")

    assert [a.id for a in result.approvals] == [approval.id]


def test_list_is_idempotent(db):
    make_approval(db, priority="LOW")
    make_approval(db, priority="HIGH")
    caller = make_caller("inventory_manager")

    first = approval_service.list_approvals(caller, db, "pending")
    second = approval_service.list_approvals(caller, db, "pending")

    assert first == second


def test_admin_lists_requested_queue(db):
    make_approval(db)
    sustainability = make_approval(db, required_role="sustainability_manager", approval_type="carbon_verification")
    admin = make_caller("admin")

    default = approval_service.list_approvals(admin, db)
    assert default.role == "inventory_manager"
    assert default.count == 1

    other = approval_service.list_approvals(admin, db, "pending", "sustainability_manager")
    assert other.role == "sustainability_manager"
    assert [a.id for a in other.approvals] == [sustainability.id]


def test_manager_cannot_list_another_queue(db):
    with pytest.raises(Forbidden):
        approval_service.list_approvals(make_caller("inventory_manager"), db, "pending", "finance_manager")


def test_list_requires_caller(db):
    with pytest.raises(Unauthenticated):
        approval_service.list_approvals(None, db)


def test_pending_count(db):
    make_approval(db)
    make_approval(db)
    make_approval(db, status="approved")

    assert approval_service.get_pending_count(make_caller("inventory_manager"), db).count == 2
    assert approval_service.get_pending_count(make_caller("admin"), db, "logistics_manager").count == 0


def test_history(db):
    older = make_approval(db, status="approved", reviewed_at=decided_at(9), reviewed_by="mgr", comments="ok")
    newer = make_approval(db, status="rejected", reviewed_at=decided_at(15), reviewed_by="mgr", comments="no")
    make_approval(db)

    result = approval_service.get_approval_history(make_caller("inventory_manager"), db, limit=50)

    assert result.role == "inventory_manager"
    assert result.count == 2
    assert [a.id for a in result.history] == [newer.id, older.id]
    assert result.history[0].comments == "no"


# --- decisions --------------------------------------------------------------

def test_approve_item(db):
    approval = make_approval(db)
    caller = make_caller("inventory_manager", user_id="mgr-7")

    approval_service.approve_item(caller, db, approval.id, "Move to discount shelf")

    db.refresh(approval)
    assert approval.status == "approved"
    assert approval.reviewed_by == "mgr-7"
    assert approval.comments == "Move to discount shelf"
    assert approval.reviewed_at is not None


def test_reject_item(db):
    approval = make_approval(db)

    approval_service.reject_item(make_caller("inventory_manager"), db, approval.id, None)

    db.refresh(approval)
    assert approval.status == "rejected"
    assert approval.comments == ""


def test_admin_cannot_decide(db):
    approval = make_approval(db)

    with pytest.raises(Forbidden):
        approval_service.approve_item(make_caller("admin"), db, approval.id)

    db.refresh(approval)
    assert approval.status == "pending"


def test_decision_on_other_role_or_business_is_not_found(db):
    other_role = make_approval(db, required_role="logistics_manager", approval_type="route_optimization")
    other_business = make_approval(db, business_id=OTHER_BUSINESS_ID)
    caller = make_caller("inventory_manager")

    with pytest.raises(NotFound):
        approval_service.approve_item(caller, db, other_role.id)
    with pytest.raises(NotFound):
        approval_service.reject_item(caller, db, other_business.id)
    with pytest.raises(NotFound):
        approval_service.approve_item(caller, db, 987654)


@pytest.mark.parametrize("final_status", ["approved", "rejected"])
def test_redeciding_is_conflict_and_changes_nothing(db, final_status):
    approval = make_approval(
        db, status=final_status, reviewed_by="first-mgr", comments="first", reviewed_at=decided_at(10)
    )
    caller = make_caller("inventory_manager", user_id="second-mgr")

    with pytest.raises(Conflict):
        approval_service.approve_item(caller, db, approval.id, "second")
    with pytest.raises(Conflict):
        approval_service.reject_item(caller, db, approval.id, "second")

    db.refresh(approval)
    assert approval.status == final_status
    assert approval.reviewed_by == "first-mgr"
    assert approval.comments == "first"
    assert approval.reviewed_at == decided_at(10)


def _stale_pending_reads(monkeypatch, approval_id):
    """Make every pre-read report the approval as pending, as a racing request would"""
    original = ApprovalRepository.find_by_id_and_role

    def stale_find(self, requested_id, role, business_id=None):
        row = original(self, requested_id, role, business_id)
        if row is None or requested_id != approval_id:
            return row
        return ManagerApproval(
            id=row.id, business_id=row.business_id, required_role=row.required_role, status="pending"
        )

    monkeypatch.setattr(ApprovalRepository, "find_by_id_and_role", stale_find)


def test_concurrent_approve_and_reject_have_one_winner(db, monkeypatch):
    approval = make_approval(db)
    _stale_pending_reads(monkeypatch, approval.id)

    approval_service.approve_item(make_caller("inventory_manager", user_id="tab-1"), db, approval.id, "yes")
    with pytest.raises(Conflict):
        approval_service.reject_item(make_caller("inventory_manager", user_id="tab-2"), db, approval.id, "no")

    stored = db.query(ManagerApproval).filter(ManagerApproval.id == approval.id).one()
    assert stored.status == "approved"
    assert stored.reviewed_by == "tab-1"
    assert stored.comments == "yes"


def test_concurrent_double_approve_has_one_winner(db, monkeypatch):
    approval = make_approval(db)
    _stale_pending_reads(monkeypatch, approval.id)
    outcomes = []

    for user in ("mgr-a", "mgr-b", "mgr-c"):
        try:
            approval_service.approve_item(make_caller("inventory_manager", user_id=user), db, approval.id)
            outcomes.append("ok")
        except Conflict:
            outcomes.append("conflict")

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 2
    stored = db.query(ManagerApproval).filter(ManagerApproval.id == approval.id).one()
    assert stored.reviewed_by == "mgr-a"


# --- create from alert ------------------------------------------------------

def test_create_from_alert_defaults(db):
    result = approval_service.create_from_alert(
        make_caller("admin", user_id="admin-1"), db, {"product_name": "Milk", "risk_level": "HIGH"}
    )
    approval = result.approval

    assert approval.priority == "HIGH"
    assert approval.quantity == "N/A"
    assert approval.location == "Warehouse"
    assert approval.days_left == 0
    assert approval.ai_suggestion == ""
    assert approval.required_role == "inventory_manager"
    assert approval.approval_type == "spoilage_action"
    assert approval.status == "pending"
    assert approval.submitted_by == "admin-1"
    assert approval.business_id == BUSINESS_ID


def test_create_from_alert_accepts_camel_case(db):
    result = approval_service.create_from_alert(make_caller("admin"), db, {
        "alertId": None,
        "productName": "Salmon",
        "quantity": 12,
        "location": "Freezer Unit B",
        "daysLeft": 4,
        "riskLevel": "low",
        "aiSuggestion": "Keep frozen",
    })
    approval = result.approval

    assert approval.product_name == "Salmon"
    assert approval.quantity == "12"
    assert approval.days_left == 4
    assert approval.priority == "LOW"
    assert approval.ai_suggestion == "Keep frozen"


def test_created_approval_lands_in_inventory_queue(db):
    approval_service.create_from_alert(make_caller("admin"), db, {"product_name": "Bananas", "risk_level": "MEDIUM"})

    queue = approval_service.list_approvals(make_caller("inventory_manager"), db)

    assert [a.product_name for a in queue.approvals] == ["Bananas"]


def test_create_from_alert_requires_product_name(db):
    with pytest.raises(InvalidInput):
        approval_service.create_from_alert(make_caller("admin"), db, {"risk_level": "HIGH"})


def test_create_from_alert_is_admin_only(db):
    with pytest.raises(Forbidden):
        approval_service.create_from_alert(make_caller("inventory_manager"), db, {"product_name": "Milk"})
    with pytest.raises(Unauthenticated):
        approval_service.create_from_alert(None, db, {"product_name": "Milk"})


@pytest.mark.parametrize("risk, expected", [
    ("HIGH", "HIGH"),
    ("MEDIUM", "MEDIUM"),
    ("LOW", "LOW"),
    ("high", "HIGH"),
    (None, "MEDIUM"),
    ("", "MEDIUM"),
    ("CRITICAL", "MEDIUM"),
])
def test_priority_for_risk(risk, expected):
    assert priority_for_risk(risk) == expected


def test_create_from_alert_keeps_submitted_risk(db):
    approval = approval_service.create_from_alert(
        make_caller("admin"), db, {"product_name": "Milk", "risk_level": "critical"}
    ).approval

    assert approval.risk_level == "CRITICAL"
    assert approval.priority == "MEDIUM"


def test_create_from_alert_without_risk_defaults_to_medium(db):
    approval = approval_service.create_from_alert(make_caller("admin"), db, {"product_name": "Milk"}).approval

    assert approval.risk_level == "MEDIUM"
    assert approval.priority == "MEDIUM"


def test_create_from_alert_rejects_malformed_fields(db):
    with pytest.raises(InvalidInput):
        approval_service.create_from_alert(
            make_caller("admin"), db, {"product_name": "Milk", "risk_level": "X" * 40}
        )
    with pytest.raises(InvalidInput):
        approval_service.create_from_alert(make_caller("admin"), db, {"product_name": "Milk", "days_left": "soon"})


# --- real concurrency -------------------------------------------------------

@pytest.mark.parametrize("attempts", [
    [("mgr-a", "approve_item"), ("mgr-b", "reject_item")],
    [("mgr-a", "approve_item"), ("mgr-b", "approve_item"), ("mgr-c", "reject_item")],
])
def test_parallel_decisions_from_separate_sessions(file_session_factory, attempts):
    setup = file_session_factory()
    approval_id = make_approval(setup).id
    setup.close()
    barrier = threading.Barrier(len(attempts))

    def decide(user, action):
        session = file_session_factory()
        try:
            barrier.wait(timeout=10)
            getattr(approval_service, action)(make_caller("inventory_manager", user_id=user), session, approval_id, user)
            return user, action, "ok"
        except Conflict:
            return user, action, "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(attempts)) as pool:
        results = list(pool.map(lambda attempt: decide(*attempt), attempts))

    winners = [r for r in results if r[2] == "ok"]
    assert len(winners) == 1
    assert sum(1 for r in results if r[2] == "conflict") == len(attempts) - 1

    user, action, _ = winners[0]
    check = file_session_factory()
    try:
        stored = check.query(ManagerApproval).filter(ManagerApproval.id == approval_id).one()
        assert stored.status == ("approved" if action == "approve_item" else "rejected")
        assert stored.reviewed_by == user
        assert stored.comments == user
    finally:
        check.close()
