from datetime import date
from decimal import Decimal
import uuid

import pytest

from rent_service.app.crud.payments.payment_schedules_crud import create_schedule
from rent_service.app.schemas.payments.payment_schedules_schemas import PaymentScheduleCreate


def schedule_body(rental_id, start="2020-01-01", end="2020-04-01", amount="1000", day=1):
    return {
        "rental_id": str(rental_id),
        "start_date": start,
        "end_date": end,
        "monthly_amount": amount,
        "day_of_month": day,
    }


@pytest.fixture()
def owner_headers(seed, auth):
    return auth(seed.owner.id)


@pytest.fixture()
def created(client, seed, owner_headers):
    res = client.post("/api/payments/schedules",
                      json=schedule_body(seed.rental.id), headers=owner_headers)
    assert res.status_code == 200
    return res.json()["data"]


def test_requests_without_token_are_rejected(client, seed):
    res = client.get("/api/payments/schedules")
    assert res.status_code in (401, 403)
    assert res.json()["status"] == "Failure"


def test_invalid_token_is_rejected(client, seed):
    res = client.get("/api/payments/schedules",
                     headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["status"] == "Failure"


def test_create_schedule_returns_wrapped_schedule(created, seed):
    assert created["rental_id"] == str(seed.rental.id)
    assert Decimal(created["monthly_amount"]) == Decimal("1000")
    assert [p["due_date"] for p in created["payments"]] == [
        "2020-01-01", "2020-02-01", "2020-03-01", "2020-04-01",
    ]
    # all due dates are in the past
    assert {p["status"] for p in created["payments"]} == {"late"}
    assert created["rental"]["property"]["owner"]["id"] == str(seed.owner.id)


def test_create_schedule_validation_error(client, seed, owner_headers):
    res = client.post(
        "/api/payments/schedules",
        json=schedule_body(seed.rental.id, start="2024-05-01", end="2024-01-01"),
        headers=owner_headers,
    )

    assert res.status_code == 400
    body = res.json()
    assert body["status"] == "Failure"
    assert body["status_code"] == "201"


def test_tenants_cannot_create_schedules(client, seed, auth):
    res = client.post("/api/payments/schedules",
                      json=schedule_body(seed.rental.id), headers=auth(seed.tenant.id, "tenant"))

    assert res.status_code == 403


def test_owner_cannot_schedule_someone_elses_rental(client, seed, rental_factory, auth):
    other = rental_factory(label="B")
    res = client.post("/api/payments/schedules",
                      json=schedule_body(seed.rental.id), headers=auth(other.owner.id))

    assert res.status_code == 403


def test_schedule_listing_is_owner_scoped(client, seed, created, rental_factory, auth):
    other = rental_factory(label="B")

    mine = client.get("/api/payments/schedules", headers=auth(seed.owner.id)).json()["data"]
    theirs = client.get("/api/payments/schedules", headers=auth(other.owner.id)).json()["data"]

    assert [s["id"] for s in mine] == [created["id"]]
    assert theirs == []


def test_get_schedule_access_rules(client, seed, created, rental_factory, auth):
    other = rental_factory(label="B")
    url = f"/api/payments/schedules/{created['id']}"

    assert client.get(url, headers=auth(seed.owner.id)).status_code == 200
    assert client.get(url, headers=auth(seed.tenant.id, "tenant")).status_code == 200
    assert client.get(url, headers=auth(other.owner.id)).status_code == 403
    assert client.get(url, headers=auth(other.tenant.id, "tenant")).status_code == 403


def test_unknown_schedule_is_404(client, seed, owner_headers):
    res = client.get(f"/api/payments/schedules/{uuid.uuid4()}", headers=owner_headers)

    assert res.status_code == 404
    assert res.json()["status_code"] == "202"


def test_schedules_by_tenant(client, seed, created, rental_factory, auth):
    url = f"/api/payments/schedules/tenant/{seed.tenant.id}"
    other = rental_factory(label="B")

    assert len(client.get(url, headers=auth(seed.tenant.id, "tenant")).json()["data"]) == 1
    assert len(client.get(url, headers=auth(seed.owner.id)).json()["data"]) == 1
    assert client.get(url, headers=auth(other.tenant.id, "tenant")).status_code == 403


def test_schedules_by_property(client, seed, created, owner_headers):
    res = client.get(f"/api/payments/schedules/property/{seed.property.id}", headers=owner_headers)

    assert [s["id"] for s in res.json()["data"]] == [created["id"]]


def test_record_cancel_and_statistics_flow(client, seed, created, owner_headers):
    ids = [p["id"] for p in created["payments"]]

    paid = client.post(f"/api/payments/{ids[1]}/record",
                       json={"amount": "1000", "payment_method": "transfer", "transaction_id": "TX-9"},
                       headers=owner_headers)
    assert paid.status_code == 200
    assert paid.json()["data"]["status"] == "paid"
    assert Decimal(paid.json()["data"]["paid_amount"]) == Decimal("1000")

    partial = client.post(f"/api/payments/{ids[2]}/record",
                          json={"amount": "400", "payment_method": "cash"}, headers=owner_headers)
    assert partial.json()["data"]["status"] == "partially_paid"
    assert Decimal(partial.json()["data"]["paid_amount"]) == Decimal("400")

    again = client.post(f"/api/payments/{ids[1]}/record",
                        json={"amount": "1000", "payment_method": "cash"}, headers=owner_headers)
    assert again.status_code == 409
    assert again.json()["status_code"] == "203"

    cancel_paid = client.put(f"/api/payments/{ids[1]}/cancel", headers=owner_headers)
    assert cancel_paid.status_code == 409

    stats = client.get(f"/api/payments/statistics/{created['id']}", headers=owner_headers).json()["data"]
    assert (stats["total_payments"], stats["paid_payments"], stats["late_payments"]) == (4, 1, 2)
    # money is sent as exact decimal strings
    assert isinstance(stats["total_amount"], str)
    assert Decimal(stats["total_amount"]) == Decimal("4000")
    assert Decimal(stats["paid_amount"]) == Decimal("1000")
    assert Decimal(stats["remaining_amount"]) == Decimal("3000")

    cancelled = client.put(f"/api/payments/{ids[3]}/cancel", headers=owner_headers)
    assert cancelled.json()["data"]["status"] == "cancelled"


def test_late_list_and_sweep(client, db, seed, owner_headers):
    create_schedule(
        db,
        PaymentScheduleCreate(
            rental_id=seed.rental.id, start_date=date(2021, 1, 1), end_date=date(2021, 3, 1),
            monthly_amount=Decimal("900"), day_of_month=10,
        ),
        today=date(2020, 12, 1),
    )

    late = client.get("/api/payments/late", headers=owner_headers).json()["data"]
    assert [p["due_date"] for p in late] == ["2021-01-10", "2021-02-10", "2021-03-10"]
    assert late[0]["schedule"]["rental"]["tenant"]["id"] == str(seed.tenant.id)

    first = client.post("/api/payments/update-late-status", headers=owner_headers)
    second = client.post("/api/payments/update-late-status", headers=owner_headers)
    assert first.json()["data"] == {"updated": 3}
    assert second.json()["data"] == {"updated": 0}
    assert client.get("/api/payments/late", headers=owner_headers).json()["data"] == []


def test_archive_endpoints(client, seed, created, owner_headers):
    ids = [p["id"] for p in created["payments"]]
    unknown = str(uuid.uuid4())

    single = client.put(f"/api/payments/{ids[0]}/archive", headers=owner_headers)
    assert single.json()["data"]["is_archived"] is True

    bulk = client.post("/api/payments/archive-multiple",
                       json={"payment_ids": [ids[1], unknown]}, headers=owner_headers)
    assert bulk.json()["data"] == {"archived": 1, "missing": [unknown]}

    archived = client.get("/api/payments/archived", headers=owner_headers).json()["data"]
    assert {p["id"] for p in archived} == {ids[0], ids[1]}

    restored = client.put(f"/api/payments/{ids[0]}/unarchive", headers=owner_headers)
    assert restored.json()["data"]["is_archived"] is False


def test_amount_revision_endpoint(client, seed, owner_headers):
    res = client.post(
        "/api/payments/schedules",
        json=schedule_body(seed.rental.id, start="2090-01-01", end="2090-03-01"),
        headers=owner_headers,
    )
    schedule_id = res.json()["data"]["id"]

    bad = client.put(f"/api/payments/schedules/{schedule_id}/amount",
                     json={"new_amount": "0"}, headers=owner_headers)
    assert bad.status_code == 400

    ok = client.put(f"/api/payments/schedules/{schedule_id}/amount",
                    json={"new_amount": "1100"}, headers=owner_headers)
    assert ok.json()["data"]["updated"] == 3

    schedule = client.get(f"/api/payments/schedules/{schedule_id}", headers=owner_headers).json()["data"]
    assert Decimal(schedule["monthly_amount"]) == Decimal("1100")
    assert {Decimal(p["amount"]) for p in schedule["payments"]} == {Decimal("1100")}


def test_receipt_data(client, seed, created, owner_headers, auth):
    payment_id = created["payments"][0]["id"]

    unpaid = client.get(f"/api/payments/{payment_id}/receipt-data", headers=owner_headers)
    assert unpaid.status_code == 409

    client.post(f"/api/payments/{payment_id}/record",
                json={"amount": "1000", "payment_method": "transfer"}, headers=owner_headers)
    receipt = client.get(f"/api/payments/{payment_id}/receipt-data",
                         headers=auth(seed.tenant.id, "tenant"))
    assert receipt.status_code == 200
    data = receipt.json()["data"]
    assert data["paid_at"] is not None
    assert data["schedule"]["rental"]["property"]["owner"]["email"] == seed.owner.email


def test_manual_payment_update_and_delete(client, seed, created, owner_headers):
    res = client.post("/api/payments/",
                      json={"schedule_id": created["id"], "due_date": "2099-01-05", "amount": "75"},
                      headers=owner_headers)
    assert res.status_code == 200
    payment = res.json()["data"]
    assert payment["status"] == "pending"

    updated = client.put(f"/api/payments/{payment['id']}",
                         json={"notes": "water bill"}, headers=owner_headers)
    assert updated.json()["data"]["notes"] == "water bill"

    deleted = client.delete(f"/api/payments/{payment['id']}", headers=owner_headers)
    assert deleted.json()["data"]["success"] is True
    assert client.get(f"/api/payments/{payment['id']}", headers=owner_headers).status_code == 404


def test_deactivate_and_delete_schedule(client, seed, created, owner_headers):
    url = f"/api/payments/schedules/{created['id']}"

    deactivated = client.put(f"{url}/deactivate", headers=owner_headers)
    assert deactivated.json()["data"]["is_active"] is False

    assert client.delete(url, headers=owner_headers).status_code == 200
    assert client.get(url, headers=owner_headers).status_code == 404


def test_amounts_keep_their_cents(client, seed, owner_headers):
    res = client.post("/api/payments/schedules",
                      json=schedule_body(seed.rental.id, amount="1234.56"), headers=owner_headers)
    data = res.json()["data"]

    assert data["monthly_amount"] == "1234.56"
    assert {p["amount"] for p in data["payments"]} == {"1234.56"}


def test_account_ids_match_regardless_of_case(client, seed, created, auth):
    url = f"/api/payments/schedules/{created['id']}"

    owner = client.get(url, headers=auth(str(seed.owner.id).upper()))
    tenant = client.get(url, headers=auth(str(seed.tenant.id).upper(), "tenant"))
    garbled = client.get(url, headers=auth("not-a-uuid", "tenant"))

    assert owner.status_code == 200
    assert tenant.status_code == 200
    assert garbled.status_code == 403
