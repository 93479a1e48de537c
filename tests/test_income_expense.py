from decimal import Decimal

from tests.conftest import create_expense, create_income, create_material, create_product


class TestIncome:
    def test_total_is_computed_by_server(self, client, auth_headers):
        product = create_product(client, auth_headers, selling_price=25000)
        r = client.post(
            "/income",
            json={
                "product_id": product["id"],
                "quantity": 3,
                "unit_price": 20000,
                "total_amount": 1,
                "date": "2024-05-10T10:00:00",
            },
            headers=auth_headers,
        )
        assert r.status_code == 201
        assert Decimal(r.json()["total_amount"]) == Decimal("60000")

    def test_unit_price_defaults_to_selling_price(self, client, auth_headers):
        product = create_product(client, auth_headers, selling_price=25000)
        income = create_income(client, auth_headers, product["id"], quantity=2, customer_name="Bu Sari")
        assert Decimal(income["unit_price"]) == Decimal("25000")
        assert Decimal(income["total_amount"]) == Decimal("50000")
        assert income["product"]["name"] == "Roti"
        assert income["customer_name"] == "Bu Sari"

    def test_update_recomputes_total(self, client, auth_headers):
        product = create_product(client, auth_headers, selling_price=10000)
        income = create_income(client, auth_headers, product["id"], quantity=1)

        r = client.put(f"/income/{income['id']}", json={"quantity": 4}, headers=auth_headers)
        assert r.status_code == 200
        assert Decimal(r.json()["total_amount"]) == Decimal("40000")

    def test_quantity_must_be_positive(self, client, auth_headers):
        product = create_product(client, auth_headers)
        r = client.post(
            "/income",
            json={"product_id": product["id"], "quantity": 0, "date": "2024-05-10T10:00:00"},
            headers=auth_headers,
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Quantity minimal 1"

    def test_foreign_product_rejected(self, client, auth_headers, other_headers):
        theirs = create_product(client, other_headers)
        r = client.post(
            "/income",
            json={"product_id": theirs["id"], "quantity": 1, "date": "2024-05-10T10:00:00"},
            headers=auth_headers,
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Produk tidak ditemukan"

    def test_filters(self, client, auth_headers):
        bread = create_product(client, auth_headers, name="Roti")
        cake = create_product(client, auth_headers, name="Kue")
        create_income(client, auth_headers, bread["id"], date="2024-04-30T23:00:00")
        create_income(client, auth_headers, bread["id"], date="2024-05-01T08:00:00")
        create_income(client, auth_headers, cake["id"], date="2024-05-31T20:00:00")

        r = client.get("/income", params={"product_id": bread["id"]}, headers=auth_headers)
        assert r.json()["total"] == 2

        r = client.get("/income", params={"start_date": "2024-05-01", "end_date": "2024-05-31"}, headers=auth_headers)
        page = r.json()
        assert page["total"] == 2
        # newest first
        assert page["data"][0]["date"].startswith("2024-05-31")

    def test_other_user_isolation(self, client, auth_headers, other_headers):
        product = create_product(client, auth_headers)
        income = create_income(client, auth_headers, product["id"])
        url = f"/income/{income['id']}"

        assert client.get(url, headers=other_headers).status_code == 404
        assert client.put(url, json={"quantity": 9}, headers=other_headers).status_code == 404
        assert client.delete(url, headers=other_headers).status_code == 404

        r = client.delete(url, headers=auth_headers)
        assert r.json()["message"] == "Pemasukan berhasil dihapus"


class TestExpenses:
    def test_create_with_material_reference(self, client, auth_headers):
        material = create_material(client, auth_headers, name="Gas", unit="pcs", price_per_unit=22000)
        expense = create_expense(
            client, auth_headers,
            amount=44000, category="produksi", description="Isi ulang gas",
            material_id=material["id"], quantity=2,
        )
        assert expense["category"] == "produksi"
        assert expense["material"] == {"id": material["id"], "name": "Gas", "unit": "pcs"}
        assert Decimal(expense["amount"]) == Decimal("44000")

    def test_validation(self, client, auth_headers):
        base = {"amount": 1, "category": "operasional", "description": "Air", "date": "2024-05-10T10:00:00"}

        r = client.post("/expenses", json={**base, "description": ""}, headers=auth_headers)
        assert r.json()["detail"] == "Deskripsi wajib diisi"

        r = client.post("/expenses", json={**base, "amount": -1}, headers=auth_headers)
        assert r.json()["detail"] == "Jumlah tidak boleh negatif"

        r = client.post("/expenses", json={**base, "category": "hiburan"}, headers=auth_headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "Kategori tidak valid"

    def test_foreign_material_rejected(self, client, auth_headers, other_headers):
        theirs = create_material(client, other_headers, name="Gas")
        r = client.post(
            "/expenses",
            json={
                "amount": 1, "category": "produksi", "description": "x",
                "date": "2024-05-10T10:00:00", "material_id": theirs["id"],
            },
            headers=auth_headers,
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Bahan tidak ditemukan"

    def test_category_filter_update_and_delete(self, client, auth_headers, other_headers):
        create_expense(client, auth_headers, category="operasional")
        expense = create_expense(client, auth_headers, category="produksi", amount=7000)

        r = client.get("/expenses", params={"category": "produksi"}, headers=auth_headers)
        assert r.json()["total"] == 1

        r = client.put(f"/expenses/{expense['id']}", json={"amount": 8000}, headers=auth_headers)
        assert Decimal(r.json()["amount"]) == Decimal("8000")

        assert client.get(f"/expenses/{expense['id']}", headers=other_headers).status_code == 404

        r = client.delete(f"/expenses/{expense['id']}", headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["message"] == "Pengeluaran berhasil dihapus"
        r = client.get(f"/expenses/{expense['id']}", headers=auth_headers)
        assert r.json()["detail"] == "Pengeluaran tidak ditemukan"
