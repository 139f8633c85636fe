from bson import ObjectId

ADDRESS = {"userId": "u1", "address": "1 Main St", "city": "Pune", "pincode": "411001",
           "phone": "555-0100", "notes": "Leave at door"}


def test_add_and_list_addresses(client, user_headers):
    created = client.post("/api/shop/address", json=ADDRESS, headers=user_headers)
    assert created.status_code == 201
    assert created.json()["data"]["city"] == "Pune"

    listed = client.get("/api/shop/address/u1", headers=user_headers)
    assert [a["id"] for a in listed.json()["data"]] == [created.json()["data"]["id"]]
    assert client.get("/api/shop/address/u2", headers=user_headers).json()["data"] == []


def test_all_fields_are_required(client, user_headers):
    for field in ("address", "city", "pincode", "phone", "notes"):
        body = {**ADDRESS, field: ""}
        resp = client.post("/api/shop/address", json=body, headers=user_headers)
        assert resp.status_code == 400, field


def test_edit_address(client, user_headers):
    address_id = client.post("/api/shop/address", json=ADDRESS, headers=user_headers).json()["data"]["id"]
    resp = client.put(f"/api/shop/address/u1/{address_id}", json={"city": "Mumbai"}, headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["city"] == "Mumbai"
    assert resp.json()["data"]["address"] == "1 Main St"


def test_edit_or_delete_someone_elses_address(client, user_headers):
    address_id = client.post("/api/shop/address", json=ADDRESS, headers=user_headers).json()["data"]["id"]
    assert client.put(f"/api/shop/address/u2/{address_id}", json={"city": "X"},
                      headers=user_headers).status_code == 404
    assert client.delete(f"/api/shop/address/u2/{address_id}", headers=user_headers).status_code == 404


def test_delete_address(client, db, user_headers):
    address_id = client.post("/api/shop/address", json=ADDRESS, headers=user_headers).json()["data"]["id"]
    resp = client.delete(f"/api/shop/address/u1/{address_id}", headers=user_headers)
    assert resp.json() == {"success": True, "message": "Address deleted successfully"}
    assert db["address"].count_documents({}) == 0
    assert client.delete(f"/api/shop/address/u1/{ObjectId()}", headers=user_headers).status_code == 404
