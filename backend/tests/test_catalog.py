"""
Catalog tests: products, categories, suppliers and customers over HTTP.
"""

from models.product import Product
from models.sale import PaymentMethod
from models.stock import StockMovement, MovementType
from schemas.sale import SaleCreate, SaleItemCreate
from services import sales_service
from conftest import make_product


def _product_body(category, **overrides):
    body = {
        "name": "Green Tea",
        "sku": "TEA-001",
        "barcode": "5900000000001",
        "price": 12.5,
        "cost_price": 6.0,
        "quantity": 20,
        "min_quantity": 5,
        "category_id": category.id,
    }
    body.update(overrides)
    return body


class TestProducts:

    def test_create_and_read_back(self, client, manager_headers, category):
        resp = client.post("/products", json=_product_body(category), headers=manager_headers)
        assert resp.status_code == 201
        created = resp.json()
        assert created["category_name"] == "Beverages"
        assert created["is_active"] is True

        resp = client.get(f"/products/{created['id']}", headers=manager_headers)
        assert resp.json()["sku"] == "TEA-001"

    def test_duplicate_sku_conflicts(self, client, manager_headers, category, product):
        resp = client.post("/products", json=_product_body(category, sku="COF-001"), headers=manager_headers)
        assert resp.status_code == 409

    def test_duplicate_barcode_conflicts(self, client, manager_headers, category, product):
        resp = client.post(
            "/products", json=_product_body(category, barcode=product.barcode), headers=manager_headers
        )
        assert resp.status_code == 409

    def test_unknown_category_is_bad_request(self, client, manager_headers, category):
        body = _product_body(category, category_id=999)
        assert client.post("/products", json=body, headers=manager_headers).status_code == 400

    def test_update_to_taken_sku_is_bad_request(self, client, db_session, manager_headers, category, product):
        other = make_product(db_session, category, "TEA-002")
        resp = client.patch(f"/products/{other.id}", json={"sku": "COF-001"}, headers=manager_headers)
        assert resp.status_code == 400

    def test_update_keeps_own_sku(self, client, manager_headers, product):
        resp = client.patch(
            f"/products/{product.id}", json={"sku": "COF-001", "price": 27.0}, headers=manager_headers
        )
        assert resp.status_code == 200
        assert resp.json()["price"] == 27.0

    def test_lookup_by_sku_and_barcode(self, client, cashier_headers, product):
        assert client.get("/products/sku/COF-001", headers=cashier_headers).json()["id"] == product.id
        assert client.get(f"/products/barcode/{product.barcode}", headers=cashier_headers).json()["id"] == product.id
        assert client.get("/products/sku/NOPE", headers=cashier_headers).status_code == 404

    def test_barcode_lookup_skips_inactive(self, client, db_session, cashier_headers, category):
        make_product(db_session, category, "OLD-1", barcode="4000000000000", is_active=False)
        assert client.get("/products/barcode/4000000000000", headers=cashier_headers).status_code == 404

    def test_search_and_inactive_filter(self, client, db_session, cashier_headers, category, product):
        make_product(db_session, category, "OLD-1", name="Old Coffee", is_active=False)
        page = client.get("/products", params={"q": "coffee"}, headers=cashier_headers).json()
        assert page["total"] == 1

        page = client.get(
            "/products", params={"q": "coffee", "include_inactive": True}, headers=cashier_headers
        ).json()
        assert page["total"] == 2

    def test_stock_adjustment(self, client, db_session, manager, manager_headers, product):
        resp = client.patch(
            f"/products/{product.id}/stock", json={"quantity": -4, "reason": "Damaged"}, headers=manager_headers
        )
        assert resp.status_code == 200
        assert resp.json()["quantity"] == 6

        movement = db_session.query(StockMovement).one()
        assert movement.type == MovementType.ADJUSTMENT
        assert movement.reason == "Damaged"
        assert movement.user_id == manager.id

    def test_stock_cannot_go_negative(self, client, db_session, manager_headers, product):
        resp = client.patch(f"/products/{product.id}/stock", json={"quantity": -11}, headers=manager_headers)
        assert resp.status_code == 400
        db_session.expire_all()
        assert db_session.get(Product, product.id).quantity == 10

    def test_low_stock(self, client, db_session, cashier_headers, category, product):
        make_product(db_session, category, "LOW-1", name="Sugar", quantity=1, min_quantity=3)
        names = [p["name"] for p in client.get("/products/low-stock", headers=cashier_headers).json()]
        assert names == ["Sugar"]

    def test_toggle_active(self, client, manager_headers, product):
        resp = client.patch(f"/products/{product.id}/toggle-active", headers=manager_headers)
        assert resp.json()["is_active"] is False

    def test_delete_unused_product(self, client, db_session, manager_headers, product):
        client.patch(f"/products/{product.id}/stock", json={"quantity": 1}, headers=manager_headers)
        resp = client.delete(f"/products/{product.id}", headers=manager_headers)
        assert resp.status_code == 200
        assert db_session.query(Product).count() == 0
        assert db_session.query(StockMovement).count() == 0

    def test_delete_sold_product_is_blocked(self, client, db_session, cashier, manager_headers, product):
        sales_service.create_sale(
            db_session,
            SaleCreate(items=[SaleItemCreate(product_id=product.id, quantity=1)], payment_method=PaymentMethod.CASH),
            cashier,
        )
        resp = client.delete(f"/products/{product.id}", headers=manager_headers)
        assert resp.status_code == 400


class TestCategories:

    def test_create_duplicate_name_conflicts(self, client, manager_headers, category):
        resp = client.post("/categories", json={"name": "Beverages"}, headers=manager_headers)
        assert resp.status_code == 409

    def test_find_by_name(self, client, cashier_headers, category):
        resp = client.get("/categories/name/Beverages", headers=cashier_headers)
        assert resp.json()["id"] == category.id

    def test_delete_blocked_by_products(self, client, manager_headers, category, product):
        resp = client.delete(f"/categories/{category.id}", headers=manager_headers)
        assert resp.status_code == 400

    def test_delete_empty_category(self, client, manager_headers, category):
        assert client.delete(f"/categories/{category.id}", headers=manager_headers).status_code == 200
        assert client.get(f"/categories/{category.id}", headers=manager_headers).status_code == 404

    def test_cashier_cannot_create(self, client, cashier_headers):
        assert client.post("/categories", json={"name": "Snacks"}, headers=cashier_headers).status_code == 403


class TestSuppliersAndCustomers:

    def test_supplier_delete_blocked_by_products(self, client, manager_headers, supplier, product):
        assert client.delete(f"/suppliers/{supplier.id}", headers=manager_headers).status_code == 400

    def test_customer_crud(self, client, cashier_headers):
        resp = client.post(
            "/customers", json={"first_name": "Piotr", "last_name": "Zielinski", "phone": "600100200"},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        customer_id = resp.json()["id"]

        resp = client.patch(f"/customers/{customer_id}", json={"city": "Gdansk"}, headers=cashier_headers)
        assert resp.json()["city"] == "Gdansk"

        page = client.get("/customers", params={"q": "zielin"}, headers=cashier_headers).json()
        assert page["total"] == 1

    def test_customer_with_sales_cannot_be_deleted(self, client, db_session, cashier, manager_headers,
                                                   customer, product):
        sales_service.create_sale(
            db_session,
            SaleCreate(customer_id=customer.id, items=[SaleItemCreate(product_id=product.id, quantity=1)],
                       payment_method=PaymentMethod.CASH),
            cashier,
        )
        assert client.delete(f"/customers/{customer.id}", headers=manager_headers).status_code == 400

    def test_cashier_cannot_delete_customer(self, client, cashier_headers, customer):
        assert client.delete(f"/customers/{customer.id}", headers=cashier_headers).status_code == 403
