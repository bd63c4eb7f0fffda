import pytest
from bson import ObjectId


def test_create_product(client, category):
    body = {"name": "Novel", "price": 10, "stock": 5, "categoryRef": category["id"]}
    response = client.post("/api/products", json=body)
    assert response.status_code == 201
    product = response.json()
    assert product["name"] == "Novel"
    assert product["price"] == 10
    assert product["stock"] == 5
    assert product["categoryRef"] == category["id"]


def test_list_products_populates_category(client, category, product):
    response = client.get("/api/products")
    assert response.status_code == 200
    products = response.json()
    assert len(products) == 1
    assert products[0]["id"] == product["id"]
    assert products[0]["categoryRef"] == {"id": category["id"], "name": "Books"}


def test_unknown_category_is_accepted_and_populates_to_null(client):
    body = {"name": "Orphan", "price": 3, "stock": 0, "categoryRef": str(ObjectId())}
    assert client.post("/api/products", json=body).status_code == 201
    products = client.get("/api/products").json()
    assert products[0]["categoryRef"] is None


@pytest.mark.parametrize("price", [0, -1, -0.5])
def test_non_positive_price_rejected(client, category, price):
    body = {"name": "Novel", "price": price, "stock": 5, "categoryRef": category["id"]}
    response = client.post("/api/products", json=body)
    assert response.status_code == 400
    assert response.json() == {"message": "Price must be positive"}


@pytest.mark.parametrize("missing", ["name", "price", "stock", "categoryRef"])
def test_missing_field_rejected(client, category, missing):
    body = {"name": "Novel", "price": 10, "stock": 5, "categoryRef": category["id"]}
    body.pop(missing)
    response = client.post("/api/products", json=body)
    assert response.status_code == 400
    assert response.json() == {"message": "Missing fields"}


@pytest.mark.parametrize("field", ["name", "price", "stock", "categoryRef"])
def test_null_field_rejected(client, category, field):
    body = {"name": "Novel", "price": 10, "stock": 5, "categoryRef": category["id"]}
    body[field] = None
    response = client.post("/api/products", json=body)
    assert response.status_code == 400
    assert response.json() == {"message": "Missing fields"}


def test_fractional_stock_accepted(client, category):
    body = {"name": "Flour", "price": 2, "stock": 2.5, "categoryRef": category["id"]}
    response = client.post("/api/products", json=body)
    assert response.status_code == 201
    assert response.json()["stock"] == 2.5


def test_zero_stock_accepted(client, category):
    body = {"name": "Novel", "price": 10, "stock": 0, "categoryRef": category["id"]}
    assert client.post("/api/products", json=body).status_code == 201


def test_negative_stock_rejected_by_store(client, category, db):
    body = {"name": "Novel", "price": 10, "stock": -1, "categoryRef": category["id"]}
    response = client.post("/api/products", json=body)
    assert response.status_code == 400
    assert "stock" in response.json()["error"]
    assert db["product"].count_documents({}) == 0


def test_malformed_category_ref_rejected_by_store(client):
    body = {"name": "Novel", "price": 10, "stock": 1, "categoryRef": "not-an-id"}
    response = client.post("/api/products", json=body)
    assert response.status_code == 400
    assert "categoryRef" in response.json()["error"]


def test_wrong_type_is_a_validation_error(client, category):
    body = {"name": "Novel", "price": "cheap", "stock": 1, "categoryRef": category["id"]}
    response = client.post("/api/products", json=body)
    assert response.status_code == 400
    assert "message" in response.json()


def test_delete_unknown_product(client):
    response = client.delete(f"/api/products/{ObjectId()}")
    assert response.status_code == 404
    assert response.json() == {"message": "Product not found"}


def test_delete_malformed_id(client):
    response = client.delete("/api/products/123")
    assert response.status_code == 400
    assert "error" in response.json()


def test_delete_product_cascades_to_reviews(client, db, product, user):
    other = client.post("/api/products", json={
        "name": "Atlas", "price": 20, "stock": 1, "categoryRef": product["categoryRef"],
    }).json()
    for target in (product, product, other):
        client.post("/api/reviews", json={
            "comment": "ok", "rating": 4, "productRef": target["id"], "authorRef": user["id"],
        })

    response = client.delete(f"/api/products/{product['id']}")
    assert response.status_code == 200
    assert response.json() == {"message": "Product deleted along with its reviews"}
    assert client.get(f"/api/reviews/{product['id']}").json() == []
    assert len(client.get(f"/api/reviews/{other['id']}").json()) == 1
    assert [p["id"] for p in client.get("/api/products").json()] == [other["id"]]


def test_delete_twice_is_not_found(client, product):
    assert client.delete(f"/api/products/{product['id']}").status_code == 200
    assert client.delete(f"/api/products/{product['id']}").status_code == 404
