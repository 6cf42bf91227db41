"""
Sales engine tests: stock reservation, totals, cancel and remove.
"""

from datetime import datetime, timedelta

import pytest

from models.invoice import Invoice
from models.product import Product
from models.sale import Sale, SaleItem, SaleStatus, PaymentMethod
from models.stock import StockMovement, MovementType
from schemas.invoice import InvoiceCreate
from schemas.sale import SaleCreate, SaleItemCreate, SaleUpdate
from services import sales_service, invoice_service, inventory_service
from utils.errors import BadRequestError, NotFoundError
from conftest import make_product


def _sale(*lines, **kwargs):
    kwargs.setdefault("payment_method", PaymentMethod.CASH)
    items = [SaleItemCreate(product_id=pid, quantity=qty) for pid, qty in lines]
    return SaleCreate(items=items, **kwargs)


def _quantity(db, product_id):
    db.expire_all()
    return db.query(Product).filter(Product.id == product_id).one().quantity


class TestCreateSale:

    def test_decrements_stock_and_computes_totals(self, db_session, cashier, product):
        sale = sales_service.create_sale(db_session, _sale((product.id, 3)), cashier)

        assert sale.status == SaleStatus.COMPLETED
        assert sale.total_amount == 75.0
        assert sale.final_amount == 75.0
        assert sale.items[0].unit_price == 25.0
        assert _quantity(db_session, product.id) == 7

    def test_records_sale_movement(self, db_session, cashier, product):
        sale = sales_service.create_sale(db_session, _sale((product.id, 2)), cashier)
        movement = db_session.query(StockMovement).one()
        assert movement.type == MovementType.SALE
        assert movement.quantity_change == -2
        assert movement.reference == f"sale:{sale.id}"
        assert movement.user_id == cashier.id

    def test_flat_discount_and_tax(self, db_session, cashier, product):
        sale = sales_service.create_sale(
            db_session, _sale((product.id, 4), discount=10.0, tax_amount=4.5), cashier
        )
        assert sale.total_amount == 100.0
        assert sale.final_amount == 94.5

    def test_line_discount(self, db_session, cashier, product):
        payload = SaleCreate(
            items=[SaleItemCreate(product_id=product.id, quantity=2, discount=5.0)],
            payment_method=PaymentMethod.CARD,
        )
        sale = sales_service.create_sale(db_session, payload, cashier)
        assert sale.items[0].total_price == 45.0
        assert sale.total_amount == 45.0

    def test_discount_above_total_is_rejected(self, db_session, cashier, product):
        with pytest.raises(BadRequestError):
            sales_service.create_sale(db_session, _sale((product.id, 1), discount=30.0), cashier)
        assert _quantity(db_session, product.id) == 10

    def test_insufficient_stock_leaves_quantity(self, db_session, cashier, product):
        with pytest.raises(BadRequestError) as exc:
            sales_service.create_sale(db_session, _sale((product.id, 11)), cashier)
        assert exc.value.detail == "Insufficient stock for product Coffee"
        assert _quantity(db_session, product.id) == 10
        assert db_session.query(Sale).count() == 0

    def test_exact_stock_can_be_sold(self, db_session, cashier, product):
        sales_service.create_sale(db_session, _sale((product.id, 10)), cashier)
        assert _quantity(db_session, product.id) == 0

    def test_repeated_lines_are_checked_together(self, db_session, cashier, product):
        with pytest.raises(BadRequestError):
            sales_service.create_sale(db_session, _sale((product.id, 6), (product.id, 5)), cashier)
        assert _quantity(db_session, product.id) == 10

        sale = sales_service.create_sale(db_session, _sale((product.id, 6), (product.id, 4)), cashier)
        assert len(sale.items) == 2
        assert _quantity(db_session, product.id) == 0

    def test_inactive_product(self, db_session, cashier, category):
        off = make_product(db_session, category, "OFF-1", name="Retired", is_active=False)
        with pytest.raises(BadRequestError) as exc:
            sales_service.create_sale(db_session, _sale((off.id, 1)), cashier)
        assert exc.value.detail == "Product Retired is not active"

    def test_unknown_product(self, db_session, cashier):
        with pytest.raises(NotFoundError):
            sales_service.create_sale(db_session, _sale((999, 1)), cashier)

    def test_unknown_customer(self, db_session, cashier, product):
        with pytest.raises(NotFoundError):
            sales_service.create_sale(db_session, _sale((product.id, 1), customer_id=999), cashier)
        assert _quantity(db_session, product.id) == 10

    def test_empty_items(self, db_session, cashier):
        with pytest.raises(BadRequestError) as exc:
            sales_service.create_sale(db_session, SaleCreate(items=[], payment_method=PaymentMethod.CASH), cashier)
        assert exc.value.detail == "Sale must have at least one item"

    def test_failure_midway_rolls_everything_back(self, db_session, cashier, category, product, monkeypatch):
        tea = make_product(db_session, category, "TEA-1", name="Tea", price=10.0, quantity=5)
        real_adjust = inventory_service.adjust_stock
        calls = []

        def flaky_adjust(db, product_id, delta, **kwargs):
            calls.append(product_id)
            if len(calls) == 2:
                raise BadRequestError("Simulated stock failure")
            return real_adjust(db, product_id, delta, **kwargs)

        monkeypatch.setattr(inventory_service, "adjust_stock", flaky_adjust)
        with pytest.raises(BadRequestError):
            sales_service.create_sale(db_session, _sale((product.id, 2), (tea.id, 1)), cashier)

        assert _quantity(db_session, product.id) == 10
        assert _quantity(db_session, tea.id) == 5
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0
        assert db_session.query(StockMovement).count() == 0


class TestAdjustStock:

    def test_conditional_decrement(self, db_session, product):
        with pytest.raises(BadRequestError):
            inventory_service.adjust_stock(db_session, product.id, -11, movement_type=MovementType.ADJUSTMENT)
        db_session.rollback()
        assert _quantity(db_session, product.id) == 10

    def test_zero_delta(self, db_session, product):
        with pytest.raises(BadRequestError):
            inventory_service.adjust_stock(db_session, product.id, 0, movement_type=MovementType.ADJUSTMENT)


class TestCancelSale:

    def test_restores_stock(self, db_session, cashier, manager, product):
        sale = sales_service.create_sale(db_session, _sale((product.id, 3)), cashier)
        cancelled = sales_service.cancel_sale(db_session, sale.id, manager)

        assert cancelled.status == SaleStatus.CANCELLED
        assert _quantity(db_session, product.id) == 10
        restore = db_session.query(StockMovement).filter(StockMovement.type == MovementType.SALE_RESTORE).one()
        assert restore.quantity_change == 3

    def test_restores_recorded_quantity_even_after_price_change(self, db_session, cashier, product):
        sale = sales_service.create_sale(db_session, _sale((product.id, 4)), cashier)
        product.price = 99.0
        db_session.commit()
        sales_service.cancel_sale(db_session, sale.id)
        assert _quantity(db_session, product.id) == 10

    def test_double_cancel(self, db_session, cashier, product):
        sale = sales_service.create_sale(db_session, _sale((product.id, 1)), cashier)
        sales_service.cancel_sale(db_session, sale.id)
        with pytest.raises(BadRequestError) as exc:
            sales_service.cancel_sale(db_session, sale.id)
        assert exc.value.detail == "Sale is already cancelled"
        assert _quantity(db_session, product.id) == 10

    def test_unknown_sale(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.cancel_sale(db_session, 12345)


class TestRemoveSale:

    def test_completed_sale_gives_stock_back(self, db_session, cashier, product):
        sale = sales_service.create_sale(db_session, _sale((product.id, 3)), cashier)
        snapshot = sales_service.remove_sale(db_session, sale.id)

        assert snapshot["id"] == sale.id
        assert snapshot["items"] == [{"product_id": product.id, "quantity": 3}]
        assert _quantity(db_session, product.id) == 10
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0

    def test_cancelled_sale_is_not_restored_twice(self, db_session, cashier, product):
        sale = sales_service.create_sale(db_session, _sale((product.id, 3)), cashier)
        sales_service.cancel_sale(db_session, sale.id)
        sales_service.remove_sale(db_session, sale.id)
        assert _quantity(db_session, product.id) == 10

    def test_invoice_survives_without_sale(self, db_session, cashier, customer, product):
        sale = sales_service.create_sale(
            db_session, _sale((product.id, 2), customer_id=customer.id), cashier
        )
        invoice = invoice_service.create_invoice(
            db_session,
            InvoiceCreate(customer_id=customer.id, sale_id=sale.id, due_date=datetime(2030, 1, 1)),
            cashier,
        )
        sales_service.remove_sale(db_session, sale.id)

        db_session.expire_all()
        kept = db_session.query(Invoice).filter(Invoice.id == invoice.id).one()
        assert kept.sale_id is None
        assert kept.total_amount == 50.0


class TestUpdateAndList:

    def test_update_metadata(self, db_session, cashier, product):
        sale = sales_service.create_sale(db_session, _sale((product.id, 1)), cashier)
        updated = sales_service.update_sale(
            db_session, sale.id, SaleUpdate(payment_method=PaymentMethod.CARD, notes="Receipt reprinted")
        )
        assert updated.payment_method == PaymentMethod.CARD
        assert updated.notes == "Receipt reprinted"

    def test_cancelled_sale_cannot_be_updated(self, db_session, cashier, product):
        sale = sales_service.create_sale(db_session, _sale((product.id, 1)), cashier)
        sales_service.cancel_sale(db_session, sale.id)
        with pytest.raises(BadRequestError):
            sales_service.update_sale(db_session, sale.id, SaleUpdate(notes="late"))

    def test_list_filters_by_status_and_user(self, db_session, cashier, manager, product):
        first = sales_service.create_sale(db_session, _sale((product.id, 1)), cashier)
        sales_service.create_sale(db_session, _sale((product.id, 1)), manager)
        sales_service.cancel_sale(db_session, first.id)

        page = sales_service.list_sales(db_session, status=SaleStatus.COMPLETED)
        assert page["total"] == 1
        mine = sales_service.list_sales(db_session, user_id=cashier.id)
        assert [s.id for s in mine["items"]] == [first.id]

    def test_list_rejects_inverted_range(self, db_session):
        now = datetime(2024, 6, 1)
        with pytest.raises(BadRequestError):
            sales_service.list_sales(db_session, start_date=now, end_date=now - timedelta(days=1))


class TestSalesSummary:

    def test_counts_only_completed_sales(self, db_session, cashier, product):
        sales_service.create_sale(db_session, _sale((product.id, 2), tax_amount=5.0), cashier)
        other = sales_service.create_sale(
            db_session, _sale((product.id, 1), payment_method=PaymentMethod.CARD), cashier
        )
        dropped = sales_service.create_sale(db_session, _sale((product.id, 1)), cashier)
        sales_service.cancel_sale(db_session, dropped.id)

        report = sales_service.sales_report(db_session)
        assert report["total_sales"] == 2
        assert report["total_revenue"] == 80.0
        assert report["total_tax"] == 5.0
        assert report["average_sale_value"] == 40.0
        assert report["payment_method_stats"] == {"CASH": 1, "CARD": 1}
        assert other.payment_method == PaymentMethod.CARD

    def test_empty_report(self, db_session):
        report = sales_service.sales_report(db_session)
        assert report["total_sales"] == 0
        assert report["average_sale_value"] == 0.0
