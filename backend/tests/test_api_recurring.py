"""Tests for recurring API endpoints."""

from datetime import datetime
from decimal import Decimal

import pytest

from cadence.models.recurring import RecurringSuggestion, Frequency, Confidence
from cadence.services import analysis_cache

NOW = datetime(2024, 6, 20, 12, 0, 0)


@pytest.fixture
def pending_suggestion(db_session):
    suggestion = RecurringSuggestion(
        user_id="user-1",
        merchant_key="netflixcom",
        name="NETFLIX.COM",
        display_name="Netflix",
        frequency=Frequency.monthly,
        amount=Decimal("15.99"),
        average_amount=Decimal("15.99"),
        confidence=Confidence.high,
        occurrences=6,
    )
    db_session.add(suggestion)
    db_session.commit()
    return suggestion


class TestRecurringAPI:
    """Test the recurring list and manual management endpoints."""

    def test_requires_user(self, client):
        response = client.get("/api/v1/recurring")
        assert response.status_code == 401

    def test_empty_list(self, client, user_headers):
        response = client.get("/api/v1/recurring", headers=user_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["recurring_items"] == []
        assert data["count"] == 0
        assert data["pending_suggestion_count"] == 0

    def test_detected_list(self, client, user_headers, netflix_history):
        response = client.get("/api/v1/recurring", headers=user_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["yearly_spend_estimate"] == 191.88
        item = data["recurring_items"][0]
        assert item["next_date"] == "2024-07-16"
        assert item["frequency"] == "monthly"
        assert item["confidence"] == "high"

    def test_add_manual_pattern(self, client, user_headers):
        response = client.put("/api/v1/recurring", headers=user_headers, json={
            "name": "Netflix",
            "amount": 15.99,
            "frequency": "monthly",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["merchant_key"] == "netflix"
        assert data["source"] == "manual"
        assert data["next_expected_date"] == "2024-07-20"

    def test_add_rejects_unknown_frequency(self, client, user_headers):
        response = client.put("/api/v1/recurring", headers=user_headers, json={
            "name": "Netflix",
            "amount": 15.99,
            "frequency": "fortnightly",
        })
        assert response.status_code == 422

    def test_add_rejects_zero_amount(self, client, user_headers):
        response = client.put("/api/v1/recurring", headers=user_headers, json={
            "name": "Netflix",
            "amount": 0,
            "frequency": "monthly",
        })
        assert response.status_code == 400

    def test_update_pattern(self, client, user_headers):
        created = client.put("/api/v1/recurring", headers=user_headers, json={
            "name": "Gym", "amount": 30, "frequency": "monthly",
        }).json()
        response = client.patch(f"/api/v1/recurring/{created['id']}", headers=user_headers, json={
            "frequency": "weekly",
        })
        assert response.status_code == 200
        assert response.json()["frequency"] == "weekly"
        assert response.json()["next_expected_date"] == "2024-06-27"

    def test_update_without_changes(self, client, user_headers):
        created = client.put("/api/v1/recurring", headers=user_headers, json={
            "name": "Gym", "amount": 30, "frequency": "monthly",
        }).json()
        response = client.patch(f"/api/v1/recurring/{created['id']}", headers=user_headers, json={})
        assert response.status_code == 400

    def test_update_missing_pattern(self, client, user_headers):
        response = client.patch("/api/v1/recurring/missing", headers=user_headers, json={"amount": 10})
        assert response.status_code == 404
        assert "not found" in response.json()["detail"]

    def test_patterns_are_per_user(self, client, user_headers):
        created = client.put("/api/v1/recurring", headers=user_headers, json={
            "name": "Gym", "amount": 30, "frequency": "monthly",
        }).json()
        response = client.patch(
            f"/api/v1/recurring/{created['id']}", headers={"X-User-Id": "user-2"}, json={"amount": 10}
        )
        assert response.status_code == 404

    def test_dismiss(self, client, user_headers, netflix_history):
        response = client.request("DELETE", "/api/v1/recurring", headers=user_headers, json={
            "merchant_pattern": "NETFLIX.COM",
            "reason": "not recurring",
        })
        assert response.status_code == 200
        assert response.json() == {"success": True, "merchant_key": "netflixcom"}

        data = client.get("/api/v1/recurring", headers=user_headers).json()
        assert data["count"] == 0

    def test_dismiss_requires_pattern(self, client, user_headers):
        response = client.request("DELETE", "/api/v1/recurring", headers=user_headers, json={
            "merchant_pattern": "!!!",
        })
        assert response.status_code == 400


class TestSuggestionsAPI:
    """Test the AI suggestion review endpoints."""

    def test_list_pending(self, client, user_headers, pending_suggestion):
        response = client.get("/api/v1/recurring/suggestions", headers=user_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["merchant_key"] == "netflixcom"
        assert data["items"][0]["status"] == "pending"

    def test_confirm(self, client, user_headers, pending_suggestion):
        response = client.post("/api/v1/recurring/suggestions/review", headers=user_headers, json={
            "suggestion_ids": [pending_suggestion.id],
            "action": "confirm",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["confirmed"] == 1
        assert data["pending_count"] == 0

        confirmed = client.get("/api/v1/recurring/suggestions?status=confirmed", headers=user_headers).json()
        assert confirmed["total"] == 1

    def test_deny(self, client, user_headers, pending_suggestion):
        response = client.post("/api/v1/recurring/suggestions/review", headers=user_headers, json={
            "suggestion_ids": [pending_suggestion.id],
            "action": "deny",
            "denial_reason": "Cancelled last year",
        })
        assert response.status_code == 200
        assert response.json()["denied"] == 1

    def test_review_rejects_unknown_action(self, client, user_headers, pending_suggestion):
        response = client.post("/api/v1/recurring/suggestions/review", headers=user_headers, json={
            "suggestion_ids": [pending_suggestion.id],
            "action": "maybe",
        })
        assert response.status_code == 422

    def test_review_rejects_empty_ids(self, client, user_headers):
        response = client.post("/api/v1/recurring/suggestions/review", headers=user_headers, json={
            "suggestion_ids": [],
            "action": "confirm",
        })
        assert response.status_code == 422

    def test_clear(self, client, user_headers, pending_suggestion):
        response = client.delete("/api/v1/recurring/suggestions", headers=user_headers)
        assert response.status_code == 200
        assert response.json() == {"deleted": 1}


class TestAnalysisAPI:

    def test_analyze_without_history(self, client, user_headers):
        response = client.post("/api/v1/recurring/analyze", headers=user_headers, json={})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "not_enough_history"
        assert data["recurring_items"] == []

    def test_invalidate_cache(self, client, user_headers, db_session):
        response = client.post("/api/v1/recurring/cache/invalidate", headers=user_headers)
        assert response.json() == {"invalidated": False}

        analysis_cache.put(db_session, "user-1", {"count": 0}, NOW)
        response = client.post("/api/v1/recurring/cache/invalidate", headers=user_headers)
        assert response.json() == {"invalidated": True}

    def test_transaction_analysis(self, client, user_headers, netflix_history):
        txn_id = netflix_history[-1].id
        response = client.get(f"/api/v1/recurring/transactions/{txn_id}/analysis", headers=user_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["transaction_id"] == txn_id
        assert data["is_recurring"] is True
        assert data["frequency"] == "monthly"
        assert data["confidence"] == "high"

    def test_transaction_analysis_missing(self, client, user_headers):
        response = client.get("/api/v1/recurring/transactions/missing/analysis", headers=user_headers)
        assert response.status_code == 404
