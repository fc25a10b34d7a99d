from datetime import date

from extensions import db
from loans import lifecycle
from loans.models import Loan
from notifications.models import Notification
from tests.conftest import ORG


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/loans").status_code == 401


def test_operator_endpoints_reject_members(client, make_member, period, auth_headers):
    member = make_member()
    resp = client.post("/api/periods", json={"year": 2025, "quarter_number": 2}, headers=auth_headers(member))
    assert resp.status_code == 403


def test_loan_flow_over_http(client, make_member, period, auth_headers):
    borrower = make_member(category="A")
    treasurer = make_member(name="Treasurer")
    member_h, operator_h = auth_headers(borrower), auth_headers(treasurer, role="treasurer")

    resp = client.post("/api/loans", headers=member_h, json={
        "loan_type": "savings_loan", "amount": "5000", "repayment_months": 9, "applied_on": "2025-03-10",
    })
    assert resp.status_code == 201
    loan = resp.get_json()
    assert loan["total_amount"] == "5500.00"
    assert loan["expected_repayment_date"] == "2025-12-31"

    assert client.post(f"/api/loans/{loan['id']}/approve", headers=member_h).status_code == 403
    assert client.post(f"/api/loans/{loan['id']}/approve", headers=operator_h).status_code == 200
    assert client.post(f"/api/loans/{loan['id']}/disburse", headers=operator_h).status_code == 200

    resp = client.post(f"/api/loans/{loan['id']}/repayments", headers=operator_h,
                       json={"amount": "5500", "payment_date": "2025-06-01"})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["loan"]["status"] == "repaid"
    assert body["repayment"]["interest_portion"] == "500.00"

    resp = client.get("/api/interest/earnings/2025", headers=member_h)
    assert resp.get_json()["by_type"]["bearer_return"] == "250.00"

    kinds = {n.type for n in Notification.query.filter_by(member_id=borrower.id).all()}
    assert {"loan_approved", "loan_disbursed", "loan_repaid"} <= kinds


def test_domain_errors_render_as_json(client, make_member, period, auth_headers):
    member = make_member(category="B")
    headers = auth_headers(member)
    resp = client.post("/api/loans", headers=headers, json={
        "loan_type": "savings_loan", "amount": "99999", "repayment_months": 2, "applied_on": "2025-03-10",
    })
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "amount_out_of_range"

    resp = client.post("/api/loans", headers=headers, json={
        "loan_type": "savings_loan", "amount": "1000", "applied_on": "10-03-2025",
    })
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "malformed_date"


def test_member_cannot_read_someone_elses_loan(client, make_member, period, auth_headers):
    owner, other = make_member(), make_member()
    loan = lifecycle.apply(ORG, owner.id, "school_fees_loan", 200, applied_on=date(2025, 3, 1))
    assert client.get(f"/api/loans/{loan.id}", headers=auth_headers(other)).status_code == 403
    resp = client.get(f"/api/loans/{loan.id}", headers=auth_headers(owner))
    assert resp.status_code == 200
    assert resp.get_json()["suggested_installment"] == "200.00"


def test_period_activation_and_conflict(client, make_member, period, auth_headers):
    admin_h = auth_headers(make_member(), role="admin")
    resp = client.post("/api/periods", headers=admin_h, json={"year": 2025, "quarter_number": 2})
    assert resp.status_code == 201
    q2 = resp.get_json()

    dup = client.post("/api/periods", headers=admin_h, json={"year": 2025, "quarter_number": 2})
    assert dup.status_code == 409
    assert dup.get_json()["code"] == "period_exists"

    assert client.post(f"/api/periods/{q2['id']}/activate", headers=admin_h).status_code == 200
    current = client.get("/api/periods/current", headers=admin_h).get_json()
    assert current["id"] == q2["id"]


def test_savings_batch_and_shareout_over_http(client, make_member, period, auth_headers):
    saver = make_member(category="C")
    admin_h, saver_h = auth_headers(make_member(category="C"), role="admin"), auth_headers(saver)

    assert client.post("/api/savings/targets", headers=saver_h, json={"period_id": period.id}).status_code == 201
    assert client.post("/api/savings/targets", headers=admin_h,
                       json={"period_id": period.id, "monthly_target": "150"}).status_code == 201

    preview = client.get(f"/api/savings/periods/{period.id}/months/1/preview", headers=admin_h).get_json()
    assert preview["total"] == "250.00"

    assert client.post(f"/api/savings/periods/{period.id}/months/1/initiate", headers=admin_h).status_code == 201
    again = client.post(f"/api/savings/periods/{period.id}/months/1/initiate", headers=admin_h)
    assert again.status_code == 409

    assert client.post(f"/api/shareout/periods/{period.id}/activate", headers=admin_h).status_code == 200
    resp = client.post(f"/api/shareout/periods/{period.id}/decision", headers=saver_h,
                       json={"wants_shareout": True})
    assert resp.status_code == 201
    decision = resp.get_json()
    assert decision["payout_amount"] == "105.00"

    resp = client.post("/api/shareout/decisions/bulk-complete", headers=admin_h,
                       json={"decision_ids": [decision["id"]]})
    assert resp.status_code == 200
    balance = client.get("/api/savings/balance", headers=saver_h).get_json()
    assert balance["balance"] == "0.00"


def test_year_end_endpoint(client, make_member, period, auth_headers):
    admin = make_member()
    admin_h = auth_headers(admin, role="admin")
    assert client.post("/api/members/committee", headers=admin_h,
                       json={"member_id": admin.id, "role": "chair"}).status_code == 201

    resp = client.post("/api/interest/year-end/2025", headers=admin_h)
    assert resp.status_code == 201
    assert resp.get_json()["is_completed"] is True
    assert client.post("/api/interest/year-end/2025", headers=admin_h).status_code == 409


def test_audit_log_records_actions(client, make_member, period, auth_headers):
    admin_h = auth_headers(make_member(), role="admin")
    client.post("/api/periods", headers=admin_h, json={"year": 2025, "quarter_number": 3})
    logs = client.get("/api/audit/logs?table=operating_periods", headers=admin_h).get_json()
    assert {"period.create", "period.activate"} <= {log["action"] for log in logs}


def test_notifications_read_flow(client, make_member, period, auth_headers):
    member = make_member()
    lifecycle.apply(ORG, member.id, "school_fees_loan", 200, applied_on=date(2025, 3, 1))
    loan = Loan.query.filter_by(member_id=member.id).first()
    lifecycle.approve(ORG, loan.id, member.id)

    headers = auth_headers(member)
    notes = client.get("/api/notifications?unread=1", headers=headers).get_json()
    assert len(notes) == 1
    assert client.post(f"/api/notifications/{notes[0]['id']}/read", headers=headers).status_code == 200
    db.session.expire_all()
    assert client.get("/api/notifications?unread=1", headers=headers).get_json() == []


def test_member_listing_and_lookups(client, make_member, period, auth_headers):
    member = make_member(category="A")
    make_member(is_active=False)
    admin_h = auth_headers(make_member(name="Admin"), role="admin")

    listed = client.get("/api/members", headers=admin_h).get_json()
    assert len(listed) == 2

    options = client.get("/api/loans/options?as_of=2025-01-10", headers=auth_headers(member)).get_json()
    assert {o["loan_type"] for o in options} == {"social_fund_loan", "school_fees_loan"}

    split = client.get("/api/savings/breakdown?amount=500", headers=auth_headers(member)).get_json()
    assert split == {"main_savings": "375.00", "social_fund": "87.50", "welfare_fund": "37.50"}
