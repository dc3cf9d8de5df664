from io import BytesIO

import pytest
from PIL import Image

from kopkkj.programs.calculators import (
    tamasa_simulation,
    gram_estimate,
    inflip_roi,
    funding_progress,
    pawn_simulation,
)
from tests.conftest import MEMBER_PIN


class TestCalculators:
    def test_tamasa_simulation(self):
        result = tamasa_simulation(500_000, 12, 2_000_000)
        assert result["total_deposit"] == 6_000_000
        assert result["total_gram"] == 3

    def test_tamasa_without_price(self):
        assert tamasa_simulation(500_000, 12, 0)["total_gram"] == 0

    def test_gram_estimate_rounds_to_four_places(self):
        assert gram_estimate(100_000, 2_947_000) == 0.0339
        assert gram_estimate(100_000, 0) == 0

    def test_inflip_roi(self):
        result = inflip_roi(400_000_000, 50_000_000, 520_000_000)
        assert result["total_cost"] == 450_000_000
        assert result["profit"] == 70_000_000
        assert result["roi_percent"] == 15.6

    def test_inflip_roi_without_cost(self):
        assert inflip_roi(0, 0, 100)["roi_percent"] == 0

    def test_funding_progress_is_capped(self):
        assert funding_progress({"target_amount": 100, "collected_amount": 40}) == 40
        assert funding_progress({"target_amount": 100, "collected_amount": 250}) == 100
        assert funding_progress({"target_amount": 0, "collected_amount": 10}) == 0

    def test_pawn_simulation(self):
        result = pawn_simulation(10, 1_000_000, 85, 3, 1.2)
        assert result["gold_value"] == 10_000_000
        assert result["max_loan"] == 8_500_000
        assert result["ujrah_total"] == pytest.approx(306_000)
        assert result["payoff"] == pytest.approx(8_806_000)

    def test_pawn_simulation_clamps_negatives(self):
        result = pawn_simulation(-5, 1_000_000, 85, 3, 1.2)
        assert result["payoff"] == 0


class TestTamasa:
    def test_buy_queues_pending_purchase(self, member_client, db, member):
        resp = member_client.post("/program/tamasa/api/buy", json={"amount": "500.000", "pin": MEMBER_PIN})
        assert resp.status_code == 201
        assert resp.get_json()["estimasi_gram"] == 0.5
        row = db.one("tamasa_transactions", user_id=member["id"])
        assert row["status"] == "pending"
        assert row["gold_price"] == 1_000_000

    def test_buy_minimum(self, member_client):
        resp = member_client.post("/program/tamasa/api/buy", json={"amount": "5000", "pin": MEMBER_PIN})
        assert resp.get_json()["message"] == "Minimal pembelian Rp 10.000"

    def test_buy_over_balance(self, member_client):
        resp = member_client.post("/program/tamasa/api/buy", json={"amount": "5000000", "pin": MEMBER_PIN})
        assert resp.get_json()["message"] == "Saldo Tapro tidak mencukupi!"

    def test_balance(self, member_client, db, member):
        db.add("tamasa_balances", user_id=member["id"], total_gram=1.5)
        data = member_client.get("/program/tamasa/api/balance").get_json()
        assert data["total_gram"] == 1.5
        assert data["estimated_value"] == 1_500_000

    def test_simulate_is_public(self, client):
        data = client.post("/program/tamasa/api/simulate", json={"monthly_amount": 1_000_000, "months": 2}).get_json()
        assert data["data"]["total_gram"] == 2


class TestInflip:
    @pytest.fixture
    def project(self, db):
        return db.add(
            "inflip_projects", title="Rumah Cibubur", status="open",
            target_amount=500_000_000, collected_amount=125_000_000, min_investment=100_000,
        )

    def test_projects_carry_progress(self, member_client, project):
        data = member_client.get("/program/inflip/api/projects").get_json()["data"]
        assert data[0]["progress"] == 25

    def test_invest(self, member_client, db, project, member):
        resp = member_client.post("/program/inflip/api/invest", json={
            "project_id": project["id"], "amount": "200000", "pin": MEMBER_PIN,
        })
        assert resp.status_code == 201
        row = db.one("inflip_investments", user_id=member["id"])
        assert row["status"] == "pending"
        assert row["project_id"] == project["id"]

    def test_invest_below_minimum(self, member_client, project):
        resp = member_client.post("/program/inflip/api/invest", json={
            "project_id": project["id"], "amount": "50000", "pin": MEMBER_PIN,
        })
        assert resp.get_json()["message"] == "Minimal investasi Rp 100.000"

    def test_closed_project(self, member_client, db, project):
        project["status"] = "closed"
        resp = member_client.post("/program/inflip/api/invest", json={
            "project_id": project["id"], "amount": "200000", "pin": MEMBER_PIN,
        })
        assert resp.status_code == 404


class TestPawn:
    def test_apply_with_photo(self, member_client, db, member):
        buffer = BytesIO()
        Image.new("RGB", (8, 8)).save(buffer, format="JPEG")
        buffer.seek(0)
        resp = member_client.post(
            "/program/pegadaian/api/apply",
            data={"item_name": "Cincin", "weight": "5.5", "photo": (buffer, "cincin.jpg", "image/jpeg")},
            content_type="multipart/form-data",
        )
        assert resp.status_code == 201
        row = db.one("pawn_transactions", user_id=member["id"])
        assert row["weight"] == 5.5
        assert row["image_url"].startswith("https://storage.test/pawn-items/")

    def test_apply_requires_item(self, member_client):
        resp = member_client.post("/program/pegadaian/api/apply", data={"weight": "5"})
        assert resp.get_json()["message"] == "Nama barang dan berat wajib diisi!"

    def test_cancel_only_pending(self, member_client, db, member):
        pending = db.add("pawn_transactions", user_id=member["id"], item_name="Gelang", status="pending")
        approved = db.add("pawn_transactions", user_id=member["id"], item_name="Kalung", status="approved")
        assert member_client.delete(f"/program/pegadaian/api/{approved['id']}").status_code == 400
        assert member_client.delete(f"/program/pegadaian/api/{pending['id']}").status_code == 200
        assert [p["item_name"] for p in db.rows("pawn_transactions")] == ["Kalung"]

    def test_simulate_defaults(self, client):
        data = client.post("/program/pegadaian/api/simulate", json={}).get_json()["data"]
        assert data["max_loan"] == 8_500_000
