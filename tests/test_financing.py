import pytest

from kopkkj.financing.simulation import simulate, monthly_rate, product_tenors, detail_badge


@pytest.fixture
def product(db):
    return db.add(
        "financing_catalog",
        name="Kulkas 2 Pintu",
        price=3_000_000,
        dp=500_000,
        tax=100_000,
        tenors=[6, 12],
    )


class TestSimulation:
    def test_business_capital(self):
        result = simulate("Modal Usaha", 12, {"business_capital": "Rp 5.000.000"})
        assert result["principal"] == 5_000_000
        assert result["margin"] == 500_000
        assert result["installment"] == 458_334

    def test_training_uses_monthly_margin(self):
        assert monthly_rate("Biaya Pelatihan") == 0.006
        result = simulate("Biaya Pelatihan", 10, {"training_cost": "1.000.000"})
        assert result["margin"] == 60_000
        assert result["installment"] == 106_000

    def test_goods_credit_uses_catalog_price(self):
        product = {"price": 3_000_000, "dp": 500_000, "tax": 100_000, "tenors": [6, 12]}
        result = simulate("Kredit Barang", 12, product=product)
        assert result["principal"] == 2_500_000
        assert result["tax"] == 100_000
        assert result["installment"] == 237_500

    def test_goods_credit_tenor_falls_back_to_catalog(self):
        product = {"price": 3_000_000, "dp": 500_000, "tax": 100_000, "tenors": [6, 12]}
        result = simulate("Kredit Barang", 9, product=product)
        assert result["tenor"] == 6
        assert result["installment"] == 454_167

    def test_empty_input_gives_zeroes(self):
        result = simulate("Biaya Pendidikan", 12, {})
        assert result["installment"] == 0

    def test_tenors_stored_as_text(self):
        assert product_tenors({"tenors": "[3, 6, 12]"}) == [3, 6, 12]
        assert product_tenors(None) == []

    def test_detail_badge(self):
        assert detail_badge({"type": "Modal Usaha", "details": {"business_name": "Warung Sari"}}) == "Warung Sari"
        assert detail_badge({"type": "Kredit Barang", "details": '{"item": "TV"}'}) == "TV"
        assert detail_badge({"type": "Lainnya", "details": {}}) is None


class TestApply:
    def test_business_capital_request(self, member_client, db, member):
        resp = member_client.post("/pembiayaan/api/apply", json={
            "type": "Modal Usaha", "tenor": 12, "business_capital": "5000000",
            "business_type": "Kuliner", "business_name": "Warung Sari", "purpose": "Tambah etalase",
        })
        assert resp.status_code == 201
        loan = db.one("loans", user_id=member["id"])
        assert loan["status"] == "pending"
        assert loan["amount"] == 5_000_000
        assert loan["duration"] == 12
        assert loan["monthly_payment"] == 458_334
        assert loan["details"]["business_name"] == "Warung Sari"

    def test_goods_credit_request(self, member_client, db, product):
        resp = member_client.post("/pembiayaan/api/apply", json={
            "type": "Kredit Barang", "tenor": 12, "product_id": product["id"],
        })
        assert resp.status_code == 201
        loan = db.rows("loans")[0]
        assert loan["amount"] == 2_600_000
        assert loan["details"]["item_name"] == "Kulkas 2 Pintu"

    def test_goods_credit_needs_product(self, member_client):
        resp = member_client.post("/pembiayaan/api/apply", json={"type": "Kredit Barang", "tenor": 12})
        assert resp.get_json()["message"] == "Pilih barang terlebih dahulu"

    def test_too_small(self, member_client, db):
        resp = member_client.post("/pembiayaan/api/apply", json={
            "type": "Biaya Pendidikan", "tenor": 6, "education_cost": "50000",
        })
        assert resp.status_code == 400
        assert db.rows("loans") == []

    def test_unknown_type(self, member_client):
        resp = member_client.post("/pembiayaan/api/apply", json={"type": "Kredit Motor", "tenor": 6})
        assert resp.status_code == 400

    def test_simulate_endpoint(self, member_client, product):
        data = member_client.post("/pembiayaan/api/simulate", json={
            "type": "Kredit Barang", "tenor": 9, "product_id": product["id"],
        }).get_json()["data"]
        assert data["tenor"] == 6


class TestLoans:
    def test_detail_lists_installments_in_due_order(self, member_client, db, member):
        loan = db.add("loans", user_id=member["id"], type="Modal Usaha", amount=1_200_000, duration=3, status="active")
        db.add("installments", loan_id=loan["id"], due_date="2025-03-01", status="unpaid")
        db.add("installments", loan_id=loan["id"], due_date="2025-02-01", status="unpaid")
        data = member_client.get(f"/pembiayaan/api/loans/{loan['id']}").get_json()
        assert [i["due_date"] for i in data["installments"]] == ["2025-02-01", "2025-03-01"]

    def test_other_members_loan_is_hidden(self, member_client, db):
        loan = db.add("loans", user_id="someone-else", type="Modal Usaha", amount=1_000_000, duration=3)
        resp = member_client.get(f"/pembiayaan/api/loans/{loan['id']}")
        assert resp.status_code == 404

    def test_pay_installment(self, member_client, db):
        resp = member_client.post("/pembiayaan/api/installments/inst-1/pay")
        assert resp.get_json()["message"] == "Pembayaran Berhasil!"
        assert db.rpc_calls == [("pay_installment", {"installment_id": "inst-1"})]

    def test_pay_installment_without_balance(self, member_client, db):
        db.rpc_errors["pay_installment"] = "Saldo Tapro tidak mencukupi"
        resp = member_client.post("/pembiayaan/api/installments/inst-1/pay")
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Gagal: Saldo Tapro tidak mencukupi"


class TestRestructure:
    @pytest.fixture
    def loan(self, db, member):
        return db.add(
            "loans", user_id=member["id"], type="Modal Usaha", amount=1_200_000,
            duration=6, monthly_payment=210_000, status="active",
        )

    def test_longer_tenor_required(self, member_client, loan):
        resp = member_client.post(f"/pembiayaan/api/loans/{loan['id']}/restructure", json={
            "new_duration": 6, "reason": "Usaha sepi",
        })
        assert resp.get_json()["message"] == "Tenor baru harus lebih besar dari tenor saat ini."

    def test_reason_required(self, member_client, loan):
        resp = member_client.post(f"/pembiayaan/api/loans/{loan['id']}/restructure", json={"new_duration": 12})
        assert resp.get_json()["message"] == "Alasan wajib diisi."

    def test_request_is_stored(self, member_client, db, loan):
        resp = member_client.post(f"/pembiayaan/api/loans/{loan['id']}/restructure", json={
            "new_duration": 12, "reason": "Usaha sepi",
        })
        assert resp.status_code == 200
        stored = db.one("loans", id=loan["id"])
        assert stored["restructure_status"] == "pending"
        assert stored["restructure_req_duration"] == 12
        assert stored["restructure_reason"] == "Usaha sepi"
