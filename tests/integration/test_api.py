"""Integration tests for API endpoints"""

import pytest
from datetime import date
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from cycle_projector.domain.exceptions import StorageError
from cycle_projector.infrastructure.database.repositories import CardRepository, TransactionRepository


@pytest.fixture
def seeded_transactions(db: Session) -> dict:
    """Rent (monthly), gym (weekly), salary (income) and a one-off purchase for user_1"""
    repo = TransactionRepository(db)
    rent = repo.create_transaction("user_1", "expense", 150000, "housing", date(2024, 1, 15), "Rent", "monthly")
    gym = repo.create_transaction("user_1", "expense", 2500, "fitness", date(2024, 6, 3), "Gym", "weekly")
    salary = repo.create_transaction("user_1", "income", 500000, "salary", date(2024, 1, 5), "Salary", "monthly")
    insurance = repo.create_transaction("user_1", "expense", 60000, "insurance", date(2023, 9, 1), "Car insurance", "annually")
    repo.create_transaction("user_1", "expense", 89900, "electronics", date(2024, 6, 18), "Television")
    db.commit()
    return {"rent": rent.id, "gym": gym.id, "salary": salary.id, "insurance": insurance.id}


@pytest.fixture
def seeded_card(db: Session) -> str:
    """Card closing on the 15th with purchases spread over several cycles"""
    repo = CardRepository(db)
    card = repo.create_card("user_1", "Gold", closing_date_day=15, due_date_day=25)
    repo.create_purchase("user_1", card.id, date(2024, 6, 20), 30000, 3, "Laptop", "electronics")
    repo.create_purchase("user_1", card.id, date(2024, 6, 10), 20000, 2, "Phone", "electronics")
    repo.create_purchase("user_1", card.id, date(2024, 3, 1), 4000, 1, "Books", "education")
    db.commit()
    return card.id


@pytest.mark.integration
def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.integration
def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "notifications_marked_read_total" in response.text


@pytest.mark.integration
def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.integration
def test_notifications_feed(client: TestClient, seeded_transactions: dict):
    """Test GET /v1/notifications projects recurring transactions around today"""
    response = client.get("/v1/notifications", params={"owner_id": "user_1"})

    assert response.status_code == 200
    data = response.json()
    ids = [n["id"] for n in data["notifications"]]
    rent_id = f"tx-{seeded_transactions['rent']}-2024-06-15"
    gym_ids = [f"tx-{seeded_transactions['gym']}-{d}" for d in ("2024-07-01", "2024-06-24", "2024-06-17")]

    assert ids == gym_ids + [rent_id]
    assert data["unread_count"] == 4
    rent = data["notifications"][-1]
    assert rent["is_past"] is True
    assert rent["amount_cents"] == 150000
    assert rent["related_id"] == seeded_transactions["rent"]


@pytest.mark.integration
def test_notifications_feed_unknown_owner(client: TestClient):
    response = client.get("/v1/notifications", params={"owner_id": "nobody"})
    assert response.status_code == 200
    assert response.json() == {"owner_id": "nobody", "unread_count": 0, "notifications": []}


@pytest.mark.integration
def test_mark_read_is_idempotent(client: TestClient, seeded_transactions: dict):
    """Test POST /v1/notifications/read twice decrements unread once"""
    rent_id = f"tx-{seeded_transactions['rent']}-2024-06-15"
    body = {"owner_id": "user_1", "notification_id": rent_id}

    first = client.post("/v1/notifications/read", json=body)
    second = client.post("/v1/notifications/read", json=body)

    assert first.json() == {"notification_id": rent_id, "newly_marked": True}
    assert second.json()["newly_marked"] is False

    feed = client.get("/v1/notifications", params={"owner_id": "user_1"}).json()
    assert feed["unread_count"] == 3
    assert [n["is_read"] for n in feed["notifications"] if n["id"] == rent_id] == [True]


@pytest.mark.integration
def test_mark_all_read(client: TestClient, seeded_transactions: dict):
    """Test POST /v1/notifications/read-all clears the unread count"""
    rent_id = f"tx-{seeded_transactions['rent']}-2024-06-15"
    client.post("/v1/notifications/read", json={"owner_id": "user_1", "notification_id": rent_id})

    response = client.post("/v1/notifications/read-all", json={"owner_id": "user_1"})

    assert response.status_code == 200
    assert response.json() == {"marked_count": 3, "unread_count": 0}
    assert client.get("/v1/notifications", params={"owner_id": "user_1"}).json()["unread_count"] == 0

    again = client.post("/v1/notifications/read-all", json={"owner_id": "user_1"})
    assert again.json() == {"marked_count": 0, "unread_count": 0}


@pytest.mark.integration
def test_feed_falls_back_to_unread_when_read_state_fails(client: TestClient, seeded_transactions: dict):
    """Test read-state load failure shows everything unread instead of failing"""
    rent_id = f"tx-{seeded_transactions['rent']}-2024-06-15"
    client.post("/v1/notifications/read", json={"owner_id": "user_1", "notification_id": rent_id})

    with patch(
        "cycle_projector.infrastructure.database.repositories.ReadStateRepository.load_read_ids",
        side_effect=StorageError("load_read_ids", "connection refused"),
    ):
        response = client.get("/v1/notifications", params={"owner_id": "user_1"})

    assert response.status_code == 200
    assert response.json()["unread_count"] == 4


@pytest.mark.integration
def test_feed_is_empty_when_listing_fails(client: TestClient, seeded_transactions: dict):
    """Test obligation listing failure yields an empty feed"""
    with patch(
        "cycle_projector.infrastructure.database.repositories.TransactionRepository.list_obligations_for_owner",
        side_effect=StorageError("list_obligations", "connection refused"),
    ):
        response = client.get("/v1/notifications", params={"owner_id": "user_1"})

    assert response.status_code == 200
    assert response.json()["notifications"] == []


@pytest.mark.integration
def test_mark_read_storage_failure(client: TestClient):
    """Test read-state save failure surfaces as 503"""
    with patch(
        "cycle_projector.infrastructure.database.repositories.ReadStateRepository.save_read_ids",
        side_effect=StorageError("save_read_ids", "disk full"),
    ):
        response = client.post("/v1/notifications/read", json={"owner_id": "user_1", "notification_id": "tx-1-2024-06-20"})

    assert response.status_code == 503


@pytest.mark.integration
def test_mark_read_validation(client: TestClient):
    response = client.post("/v1/notifications/read", json={"owner_id": "user_1", "notification_id": ""})
    assert response.status_code == 422


@pytest.mark.integration
def test_card_invoices(client: TestClient, seeded_card: str):
    """Test GET /v1/cards/{card_id}/invoices groups installments from last month on"""
    response = client.get(f"/v1/cards/{seeded_card}/invoices", params={"owner_id": "user_1"})

    assert response.status_code == 200
    invoices = response.json()["invoices"]
    assert [(i["cycle_year"], i["cycle_month"], i["total_cents"]) for i in invoices] == [
        (2024, 6, 10000),
        (2024, 7, 20000),
        (2024, 8, 10000),
        (2024, 9, 10000),
    ]
    july = invoices[1]
    assert sorted((i["installment_index"], i["installment_count"]) for i in july["installments"]) == [(1, 3), (2, 2)]


@pytest.mark.integration
def test_current_invoice(client: TestClient, seeded_card: str):
    """Test current and next invoice totals and the open purchase period"""
    response = client.get(f"/v1/cards/{seeded_card}/invoices/current", params={"owner_id": "user_1"})

    assert response.status_code == 200
    data = response.json()
    assert data["current_total_cents"] == 10000
    assert data["next_total_cents"] == 20000
    assert data["open_period_start"] == "2024-06-15"
    assert data["open_period_end"] == "2024-07-15"


@pytest.mark.integration
def test_card_invoices_not_found(client: TestClient, seeded_card: str):
    """Test unknown card and another owner's card are both 404"""
    assert client.get("/v1/cards/missing/invoices", params={"owner_id": "user_1"}).status_code == 404
    assert client.get(f"/v1/cards/{seeded_card}/invoices", params={"owner_id": "user_2"}).status_code == 404
    assert client.get(f"/v1/cards/{seeded_card}/invoices/current", params={"owner_id": "user_2"}).status_code == 404


@pytest.mark.integration
def test_subscriptions(client: TestClient, seeded_transactions: dict):
    """Test recurring expenses with this month's payment status"""
    response = client.get("/v1/subscriptions", params={"owner_id": "user_1"})

    assert response.status_code == 200
    subscriptions = response.json()["subscriptions"]
    assert [s["id"] for s in subscriptions] == [
        seeded_transactions["gym"],
        seeded_transactions["rent"],
        seeded_transactions["insurance"],
    ]
    by_id = {s["id"]: s for s in subscriptions}
    assert by_id[seeded_transactions["rent"]]["paid_this_month"] is True
    assert by_id[seeded_transactions["rent"]]["last_payment_date"] == "2024-06-15"
    assert by_id[seeded_transactions["rent"]]["expected_payment_date"] == "2024-06-15"
    assert by_id[seeded_transactions["gym"]]["last_payment_date"] == "2024-06-17"
    assert by_id[seeded_transactions["insurance"]]["paid_this_month"] is False
    assert by_id[seeded_transactions["insurance"]]["last_payment_date"] is None
    assert by_id[seeded_transactions["insurance"]]["expected_payment_date"] is None


@pytest.mark.integration
def test_subscription_due_later_this_month(client: TestClient, db: Session):
    """Test a payment still ahead this month reports its due date, unpaid"""
    repo = TransactionRepository(db)
    internet = repo.create_transaction("user_1", "expense", 9990, "utilities", date(2024, 1, 25), "Internet", "monthly")
    db.commit()

    subscriptions = client.get("/v1/subscriptions", params={"owner_id": "user_1"}).json()["subscriptions"]

    assert subscriptions == [
        {
            "id": internet.id,
            "description": "Internet",
            "category": "utilities",
            "amount_cents": 9990,
            "recurrence": "monthly",
            "last_payment_date": None,
            "expected_payment_date": "2024-06-25",
            "paid_this_month": False,
        }
    ]


@pytest.mark.integration
def test_owner_invoice_summary_adds_up_cards(client: TestClient, db: Session):
    """Test last month's and this month's invoices summed over every card of the owner"""
    repo = CardRepository(db)
    gold = repo.create_card("user_1", "Gold", closing_date_day=15, due_date_day=25)
    black = repo.create_card("user_1", "Black", closing_date_day=5, due_date_day=12)
    other = repo.create_card("user_2", "Other", closing_date_day=10, due_date_day=20)
    repo.create_purchase("user_1", gold.id, date(2024, 5, 20), 30000, 3, "Laptop", "electronics")  # Jun, Jul, Aug
    repo.create_purchase("user_1", gold.id, date(2024, 5, 10), 5000, 1, "Shoes", "clothing")  # May
    repo.create_purchase("user_1", black.id, date(2024, 5, 3), 8000, 2, "Dinner", "food")  # May, Jun
    repo.create_purchase("user_1", black.id, date(2024, 6, 1), 2000, 1, "Taxi", "transport")  # Jun
    repo.create_purchase("user_2", other.id, date(2024, 6, 1), 70000, 1, "Sofa", "home")
    db.commit()

    response = client.get("/v1/cards/invoices/summary", params={"owner_id": "user_1"})

    assert response.status_code == 200
    data = response.json()
    assert (data["previous_cycle"], data["current_cycle"]) == ("2024-05", "2024-06")
    assert data["previous_total_cents"] == 9000
    assert data["current_total_cents"] == 16000
    by_card = {c["card_id"]: (c["previous_total_cents"], c["current_total_cents"]) for c in data["cards"]}
    assert by_card == {gold.id: (5000, 10000), black.id: (4000, 6000)}


@pytest.mark.integration
def test_owner_invoice_summary_without_cards(client: TestClient):
    response = client.get("/v1/cards/invoices/summary", params={"owner_id": "nobody"})
    assert response.status_code == 200
    assert response.json()["cards"] == []
    assert response.json()["current_total_cents"] == 0
