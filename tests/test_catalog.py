from bson import ObjectId

NEW_PRODUCT = {
    "image": "https://img.test/shoe.png",
    "title": "Runner",
    "description": "Light running shoe",
    "category": "footwear",
    "brand": "nike",
    "price": 120.0,
    "salePrice": 99.0,
    "totalStock": 12,
}


def test_admin_routes_reject_regular_users(client, user_headers):
    assert client.get("/api/admin/products", headers=user_headers).status_code == 403
    assert client.get("/api/admin/orders", headers=user_headers).status_code == 403
    assert client.get("/api/admin/products").status_code == 401


def test_admin_product_crud(client, db, admin_headers):
    created = client.post("/api/admin/products", json=NEW_PRODUCT, headers=admin_headers)
    assert created.status_code == 201
    product_id = created.json()["data"]["id"]
    assert created.json()["data"]["averageReview"] == 0

    listed = client.get("/api/admin/products", headers=admin_headers)
    assert [p["id"] for p in listed.json()["data"]] == [product_id]

    edited = client.put(f"/api/admin/products/{product_id}", json={"price": 110.0, "totalStock": 3},
                        headers=admin_headers)
    assert edited.status_code == 200
    assert edited.json()["data"]["price"] == 110.0
    assert edited.json()["data"]["totalStock"] == 3
    assert edited.json()["data"]["title"] == "Runner"

    deleted = client.delete(f"/api/admin/products/{product_id}", headers=admin_headers)
    assert deleted.json() == {"success": True, "message": "Product deleted successfully"}
    assert db["product"].count_documents({}) == 0


def test_admin_product_rejects_negative_stock(client, admin_headers):
    resp = client.post("/api/admin/products", json={**NEW_PRODUCT, "totalStock": -1}, headers=admin_headers)
    assert resp.status_code == 400


def test_admin_edit_or_delete_missing_product(client, admin_headers):
    missing = str(ObjectId())
    assert client.put(f"/api/admin/products/{missing}", json={"price": 1}, headers=admin_headers).status_code == 404
    assert client.delete(f"/api/admin/products/{missing}", headers=admin_headers).status_code == 404
    assert client.delete("/api/admin/products/not-an-id", headers=admin_headers).status_code == 400


def test_admin_orders(client, db, admin_headers):
    assert client.get("/api/admin/orders", headers=admin_headers).status_code == 404

    order_id = db["order"].insert_one({"userId": "u1", "orderStatus": "confirmed"}).inserted_id
    listed = client.get("/api/admin/orders", headers=admin_headers)
    assert len(listed.json()["data"]) == 1

    resp = client.put(f"/api/admin/orders/{order_id}", json={"orderStatus": "inShipping"}, headers=admin_headers)
    assert resp.json()["message"] == "Order status is updated successfully!"
    assert db["order"].find_one({"_id": order_id})["orderStatus"] == "inShipping"

    details = client.get(f"/api/admin/orders/{order_id}", headers=admin_headers)
    assert details.json()["data"]["orderStatus"] == "inShipping"

    bad = client.put(f"/api/admin/orders/{order_id}", json={"orderStatus": "teleported"}, headers=admin_headers)
    assert bad.status_code == 400


def test_shop_products_filter_and_sort(client, make_product):
    make_product("Boots", price=80.0, category="footwear", brand="puma")
    make_product("Anorak", price=120.0, category="men", brand="nike")
    make_product("Cap", price=15.0, category="accessories", brand="nike")

    resp = client.get("/api/shop/products")
    assert [p["title"] for p in resp.json()["data"]] == ["Cap", "Boots", "Anorak"]

    resp = client.get("/api/shop/products", params={"brand": "nike", "sortBy": "price-hightolow"})
    assert [p["title"] for p in resp.json()["data"]] == ["Anorak", "Cap"]

    resp = client.get("/api/shop/products", params={"category": "footwear,accessories", "sortBy": "title-atoz"})
    assert [p["title"] for p in resp.json()["data"]] == ["Boots", "Cap"]


def test_shop_product_details(client, make_product):
    product = make_product("Boots")
    resp = client.get(f"/api/shop/products/{product['_id']}")
    assert resp.json()["data"]["title"] == "Boots"
    assert client.get(f"/api/shop/products/{ObjectId()}").status_code == 404


def test_search_matches_any_text_field_case_insensitively(client, make_product):
    make_product("Leather Boots", brand="Clarks")
    make_product("Cap", category="Accessories")
    make_product("Scarf")

    titles = lambda kw: sorted(p["title"] for p in client.get(f"/api/shop/search/{kw}").json()["data"])
    assert titles("boots") == ["Leather Boots"]
    assert titles("CLARKS") == ["Leather Boots"]
    assert titles("accessor") == ["Cap"]
    assert titles("a.b") == []


def test_feature_images(client, admin_headers, user_headers):
    assert client.post("/api/common/feature", json={"image": "https://img.test/banner.png"},
                       headers=user_headers).status_code == 403
    assert client.post("/api/common/feature", json={"image": ""}, headers=admin_headers).status_code == 400

    created = client.post("/api/common/feature", json={"image": "https://img.test/banner.png"},
                          headers=admin_headers)
    assert created.status_code == 201

    listed = client.get("/api/common/feature")
    assert [f["image"] for f in listed.json()["data"]] == ["https://img.test/banner.png"]
