from conftest import API


def test_create_and_fetch_supplier(client, supplier):
    assert supplier["email"] == "sales@agscorp.com"
    assert supplier["contactPerson"] == "Priya Nair"

    response = client.get(f"{API}/supplier/{supplier['id']}")
    assert response.status_code == 200
    assert response.json()["data"] == supplier

def test_supplier_email_is_unique(client, staff_header, supplier):
    response = client.post(f"{API}/supplier", json={
        "name": "AGS Copy",
        "contactPerson": "Someone Else",
        "phone": "555-0101",
        "email": "SALES@agscorp.com",
        "address": "1 Side Street",
    }, headers=staff_header)
    assert response.status_code == 400
    assert response.json()["message"] == "Supplier with this email already exists"

def test_supplier_field_validation(client, staff_header):
    response = client.post(f"{API}/supplier", json={
        "name": "Bad Data Ltd",
        "contactPerson": "Nobody",
        "phone": "call me maybe",
        "email": "nobody@nowhere",
        "address": "Unknown",
    }, headers=staff_header)
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert "phone: Please enter a valid phone number" in errors
    assert "email: Please enter a valid email" in errors

def test_update_supplier(client, staff_header, supplier):
    other = client.post(f"{API}/supplier", json={
        "name": "Bright Parts",
        "contactPerson": "Lee Wong",
        "phone": "555 0199",
        "email": "hello@brightparts.com",
        "address": "7 Mill Lane",
    }, headers=staff_header).json()["data"]

    clash = client.put(f"{API}/supplier/{other['id']}", json={"email": "sales@agscorp.com"}, headers=staff_header)
    assert clash.status_code == 400

    updated = client.put(f"{API}/supplier/{other['id']}", json={"phone": "+44 20 7946 0000"}, headers=staff_header)
    assert updated.status_code == 200
    assert updated.json()["data"]["phone"] == "+44 20 7946 0000"
    assert updated.json()["data"]["email"] == "hello@brightparts.com"

def test_invalid_and_missing_supplier_ids(client):
    assert client.get(f"{API}/supplier/xyz").json()["message"] == "Invalid supplier ID"
    assert client.get(f"{API}/supplier/31337").status_code == 404

def test_list_suppliers_search(client, supplier):
    assert client.get(f"{API}/supplier?search=priya").json()["pagination"]["totalItems"] == 1
    assert client.get(f"{API}/supplier?search=nomatch").json()["data"] == []

def test_link_unlink_and_guarded_delete(client, staff_header, supplier, make_product):
    product = make_product(name="Laptop")

    linked = client.post(f"{API}/supplier/link-product", json={
        "supplierId": supplier["id"], "productId": product["id"],
    }, headers=staff_header)
    assert linked.status_code == 200
    assert linked.json()["data"]["supplier"]["id"] == supplier["id"]

    blocked = client.delete(f"{API}/supplier/{supplier['id']}", headers=staff_header)
    assert blocked.status_code == 400
    assert blocked.json()["message"] == (
        "Cannot delete supplier. 1 product(s) are linked to this supplier. Please unlink products first."
    )

    unlinked = client.delete(f"{API}/supplier/unlink-product/{product['id']}", headers=staff_header)
    assert unlinked.status_code == 200
    assert unlinked.json()["data"]["supplier"] is None

    deleted = client.delete(f"{API}/supplier/{supplier['id']}", headers=staff_header)
    assert deleted.status_code == 200
    assert client.get(f"{API}/supplier/{supplier['id']}").status_code == 404

def test_link_product_rejects_bad_references(client, staff_header, supplier):
    bad_ids = client.post(f"{API}/supplier/link-product", json={
        "supplierId": "abc", "productId": 1,
    }, headers=staff_header)
    assert bad_ids.status_code == 400
    assert bad_ids.json()["errors"] == ["supplierId: Invalid supplier ID"]

    missing = client.post(f"{API}/supplier/link-product", json={
        "supplierId": supplier["id"], "productId": 999,
    }, headers=staff_header)
    assert missing.status_code == 404

def test_delete_unknown_supplier(client, staff_header):
    assert client.delete(f"{API}/supplier/555", headers=staff_header).status_code == 404

def test_supplier_products_and_stats(client, supplier, make_product):
    make_product(name="Cable", quantity=0, supplier=supplier["id"])
    make_product(name="Printer", quantity=3, supplier=supplier["id"])
    make_product(name="Support Plan", type="service", supplier=supplier["id"])
    make_product(name="Unrelated", quantity=8)

    products = client.get(f"{API}/supplier/{supplier['id']}/products").json()
    assert products["data"]["supplier"]["name"] == "AGS Corp"
    assert sorted(p["name"] for p in products["data"]["products"]) == ["Cable", "Printer", "Support Plan"]
    assert products["pagination"]["totalItems"] == 3

    stats = client.get(f"{API}/supplier/{supplier['id']}/stats").json()["data"]["stats"]
    assert stats == {
        "totalProducts": 2,
        "totalServices": 1,
        "lowStockProducts": 2,
        "outOfStockProducts": 1,
        "totalItems": 3,
    }
