from decimal import Decimal

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError

from models.Expense import Expense
from tests.conftest import create_material


class TestMaterials:
    def test_create_material(self, client, auth_headers):
        data = create_material(client, auth_headers, name="Gula", unit="kg", price_per_unit=15000)
        assert data["name"] == "Gula"
        assert data["unit"] == "kg"
        assert Decimal(data["price_per_unit"]) == Decimal("15000")
        assert Decimal(data["stock"]) == 0

    def test_initial_stock_books_purchase_expense(self, client, auth_headers):
        material = create_material(client, auth_headers, name="Mentega", unit="kg", price_per_unit=40000, stock=2.5)

        expenses = client.get("/expenses", headers=auth_headers).json()
        assert expenses["total"] == 1
        expense = expenses["data"][0]
        assert expense["category"] == "bahan_baku"
        assert expense["description"] == "Pembelian bahan: Mentega (2.5 kg)"
        assert expense["material_id"] == material["id"]
        assert Decimal(expense["amount"]) == Decimal("100000")

    def test_initial_stock_without_expense(self, client, auth_headers):
        create_material(client, auth_headers, name="Telur", unit="pcs", price_per_unit=2000, stock=30, record_expense=False)
        assert client.get("/expenses", headers=auth_headers).json()["total"] == 0

    def test_duplicate_name_case_insensitive(self, client, auth_headers):
        create_material(client, auth_headers, name="Tepung")
        r = client.post(
            "/materials",
            json={"name": "tePUNG", "unit": "kg", "price_per_unit": 1},
            headers=auth_headers,
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Bahan dengan nama ini sudah ada"

    def test_same_name_allowed_for_different_owners(self, client, auth_headers, other_headers):
        create_material(client, auth_headers, name="Tepung")
        create_material(client, other_headers, name="Tepung")

    def test_validation_messages(self, client, auth_headers):
        r = client.post("/materials", json={"name": "  ", "unit": "kg", "price_per_unit": 1}, headers=auth_headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "Nama bahan wajib diisi"

        r = client.post("/materials", json={"name": "X", "unit": "kg", "price_per_unit": -1}, headers=auth_headers)
        assert r.json()["detail"] == "Harga tidak boleh negatif"

        r = client.post("/materials", json={"name": "X", "unit": "ton", "price_per_unit": 1}, headers=auth_headers)
        assert r.json()["detail"] == "Satuan tidak valid"

    def test_list_search_and_pagination(self, client, auth_headers):
        for name in ("Tepung Terigu", "Tepung Beras", "Gula Pasir"):
            create_material(client, auth_headers, name=name)

        r = client.get("/materials", params={"search_key": "tepung"}, headers=auth_headers)
        assert r.json()["total"] == 2

        r = client.get("/materials", params={"skip": 0, "limit": 1}, headers=auth_headers)
        page = r.json()
        assert page["total"] == 3
        assert len(page["data"]) == 1
        # newest first
        assert page["data"][0]["name"] == "Gula Pasir"

    def test_update_and_rename(self, client, auth_headers):
        create_material(client, auth_headers, name="Keju")
        material = create_material(client, auth_headers, name="Susu", unit="liter")

        r = client.put(f"/materials/{material['id']}", json={"price_per_unit": 18000}, headers=auth_headers)
        assert r.status_code == 200
        assert Decimal(r.json()["price_per_unit"]) == Decimal("18000")
        assert r.json()["unit"] == "liter"

        r = client.put(f"/materials/{material['id']}", json={"name": "KEJU"}, headers=auth_headers)
        assert r.status_code == 400

        r = client.put(f"/materials/{material['id']}", json={"name": "SUSU"}, headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["name"] == "SUSU"

    def test_delete(self, client, auth_headers):
        material = create_material(client, auth_headers)
        r = client.delete(f"/materials/{material['id']}", headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["message"] == "Bahan berhasil dihapus"
        assert client.get(f"/materials/{material['id']}", headers=auth_headers).status_code == 404


class TestMaterialIsolation:
    def test_other_user_cannot_touch_material(self, client, auth_headers, other_headers):
        material = create_material(client, auth_headers)
        url = f"/materials/{material['id']}"

        r = client.get(url, headers=other_headers)
        assert r.status_code == 404
        assert r.json()["detail"] == "Bahan tidak ditemukan"
        assert client.put(url, json={"price_per_unit": 1}, headers=other_headers).status_code == 404
        assert client.delete(url, headers=other_headers).status_code == 404
        assert client.get("/materials", headers=other_headers).json()["total"] == 0

        assert client.get(url, headers=auth_headers).status_code == 200


class TestMaterialCreateRollback:
    def test_failed_purchase_expense_rolls_back_material(self, client, auth_headers):
        def fail_insert(mapper, connection, target):
            raise SQLAlchemyError("expense insert failed")

        event.listen(Expense, "before_insert", fail_insert)
        try:
            r = client.post(
                "/materials",
                json={"name": "Mentega", "unit": "kg", "price_per_unit": 40000, "stock": 2},
                headers=auth_headers,
            )
        finally:
            event.remove(Expense, "before_insert", fail_insert)

        assert r.status_code == 500
        assert r.json()["detail"] == "Server error"
        assert client.get("/materials", headers=auth_headers).json()["total"] == 0
        assert client.get("/expenses", headers=auth_headers).json()["total"] == 0

    def test_search_treats_wildcards_literally(self, client, auth_headers):
        create_material(client, auth_headers, name="Gula 100%")
        create_material(client, auth_headers, name="Gula Aren")
        create_material(client, auth_headers, name="Gula_Merah")

        r = client.get("/materials", params={"search_key": "%"}, headers=auth_headers)
        assert [m["name"] for m in r.json()["data"]] == ["Gula 100%"]

        r = client.get("/materials", params={"search_key": "a_"}, headers=auth_headers)
        assert [m["name"] for m in r.json()["data"]] == ["Gula_Merah"]
