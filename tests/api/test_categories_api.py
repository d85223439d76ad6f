"""
Tests for category, reference and export API endpoints.
"""


class TestCategories:

    def test_create_and_get(self, client):
        response = client.post("/categories", json={"name": "Pets", "color": "#112233"})
        assert response.status_code == 201
        assert response.json()["id"] == "pets"

        assert client.get("/categories/pets").json()["color"] == "#112233"

    def test_duplicate_returns_409(self, client):
        client.post("/categories", json={"name": "Pets"})
        response = client.post("/categories", json={"name": "pets"})
        assert response.status_code == 409

    def test_bad_color_returns_422(self, client):
        response = client.post("/categories", json={"name": "Pets", "color": "red"})
        assert response.status_code == 422

    def test_delete_used_category_returns_409(self, client, reference_data):
        client.post("/transactions", json={
            "type_id": "expense",
            "category_id": "shopping",
            "currency_id": "usd",
            "amount": "9.99",
            "date": "2024-05-01",
            "note": "Socks",
        })

        response = client.delete("/categories/shopping")

        assert response.status_code == 409
        assert "used in transactions" in response.json()["detail"]

    def test_delete_unused_returns_204(self, client, reference_data):
        assert client.delete("/categories/other").status_code == 204

    def test_usage(self, client, reference_data):
        data = client.get("/categories/usage").json()
        assert len(data) == 10
        assert all(row["transaction_count"] == 0 for row in data)

    def test_patch(self, client, reference_data):
        response = client.patch("/categories/other", json={"icon": "star"})
        assert response.status_code == 200
        assert response.json()["icon"] == "star"


class TestReference:

    def test_types_and_currencies(self, client, reference_data):
        types = client.get("/reference/types").json()
        currencies = client.get("/reference/currencies").json()

        assert {row["id"] for row in types} == {
            "income", "expense", "compensation", "savings", "investment",
        }
        assert [row["code"] for row in currencies] == ["EUR", "GBP", "USD"]


class TestExport:

    def test_csv_export(self, client, reference_data):
        response = client.get("/export/csv")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text.startswith('"ID","Amount"')

    def test_json_export_and_import(self, client, reference_data):
        document = client.get("/export/json").json()

        response = client.post("/import/json", json=document)

        assert response.status_code == 200
        assert response.json()["imported"]["transactions"] == 0

    def test_invalid_import_returns_400(self, client, reference_data):
        response = client.post("/import/json", json={"data": {}})
        assert response.status_code == 400
