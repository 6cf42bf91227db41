"""
Invoice tests: numbering, copying from sales, status machine, stats.
"""

from datetime import datetime, timedelta

import pytest

from config import settings
from models.invoice import Invoice, InvoiceStatus
from models.sale import PaymentMethod, Sale
from schemas.invoice import InvoiceCreate, InvoiceItemCreate, InvoiceStatusUpdate
from schemas.sale import SaleCreate, SaleItemCreate
from services import invoice_service, sales_service
from utils.errors import BadRequestError, ConflictError, NotFoundError

DEC_2024 = datetime(2024, 12, 15, 10, 30)
DUE = datetime(2025, 1, 15)


def _payload(customer, **kwargs):
    kwargs.setdefault("due_date", DUE)
    kwargs.setdefault("items", [
        InvoiceItemCreate(description="Consulting", quantity=2, unit_price=100.0),
    ])
    return InvoiceCreate(customer_id=customer.id, **kwargs)


def _stored_invoice(db, number, customer, user):
    invoice = Invoice(
        invoice_number=number, customer_id=customer.id, user_id=user.id,
        subtotal=10.0, total_amount=10.0, due_date=DUE, invoice_date=DEC_2024,
    )
    db.add(invoice)
    db.commit()
    return invoice


class TestInvoiceNumbers:

    def test_sequence_per_month(self, db_session, cashier, customer):
        first = invoice_service.create_invoice(db_session, _payload(customer), cashier, now=DEC_2024)
        second = invoice_service.create_invoice(db_session, _payload(customer), cashier, now=DEC_2024)
        assert first.invoice_number == "INV-202412-0001"
        assert second.invoice_number == "INV-202412-0002"

    def test_sequence_restarts_next_month(self, db_session, cashier, customer):
        invoice_service.create_invoice(db_session, _payload(customer), cashier, now=DEC_2024)
        january = invoice_service.create_invoice(
            db_session, _payload(customer), cashier, now=datetime(2025, 1, 2)
        )
        assert january.invoice_number == "INV-202501-0001"

    def test_ordering_past_four_digits(self, db_session, cashier, customer):
        _stored_invoice(db_session, "INV-202412-9999", customer, cashier)
        assert invoice_service.generate_invoice_number(db_session, DEC_2024) == "INV-202412-10000"

        _stored_invoice(db_session, "INV-202412-10000", customer, cashier)
        assert invoice_service.generate_invoice_number(db_session, DEC_2024) == "INV-202412-10001"

    def test_collision_is_retried(self, db_session, cashier, customer, monkeypatch):
        _stored_invoice(db_session, "INV-202412-0001", customer, cashier)
        real_generate = invoice_service.generate_invoice_number
        handed_out = []

        def racing_generate(db, now=None):
            # First attempt loses the race to the stored invoice
            number = "INV-202412-0001" if not handed_out else real_generate(db, now)
            handed_out.append(number)
            return number

        monkeypatch.setattr(invoice_service, "generate_invoice_number", racing_generate)
        invoice = invoice_service.create_invoice(db_session, _payload(customer), cashier, now=DEC_2024)

        assert handed_out == ["INV-202412-0001", "INV-202412-0002"]
        assert invoice.invoice_number == "INV-202412-0002"
        assert db_session.query(Invoice).count() == 2

    def test_exhausted_retries_conflict(self, db_session, cashier, customer, monkeypatch):
        _stored_invoice(db_session, "INV-202412-0001", customer, cashier)
        monkeypatch.setattr(invoice_service, "generate_invoice_number", lambda db, now=None: "INV-202412-0001")
        monkeypatch.setattr(settings, "INVOICE_NUMBER_RETRIES", 2)

        with pytest.raises(ConflictError):
            invoice_service.create_invoice(db_session, _payload(customer), cashier, now=DEC_2024)
        assert db_session.query(Invoice).count() == 1


class TestCreateInvoice:

    def test_totals(self, db_session, cashier, customer):
        payload = _payload(customer, discount=20.0, tax_amount=10.0, items=[
            InvoiceItemCreate(description="Widget", quantity=3, unit_price=50.0, discount=5.0, tax_amount=2.0),
            InvoiceItemCreate(description="Setup", quantity=1, unit_price=40.0),
        ])
        invoice = invoice_service.create_invoice(db_session, payload, cashier, now=DEC_2024)

        assert invoice.subtotal == 190.0
        assert invoice.discount == 25.0
        assert invoice.tax_amount == 12.0
        assert invoice.total_amount == 177.0
        assert invoice.items[0].total_price == 147.0
        assert invoice.status == InvoiceStatus.UNPAID
        assert invoice.invoice_date == DEC_2024

    def test_requires_items(self, db_session, cashier, customer):
        with pytest.raises(BadRequestError) as exc:
            invoice_service.create_invoice(db_session, _payload(customer, items=[]), cashier)
        assert exc.value.detail == "Invoice must have at least one item"

    def test_unknown_customer(self, db_session, cashier, customer):
        payload = _payload(customer)
        payload.customer_id = 999
        with pytest.raises(NotFoundError):
            invoice_service.create_invoice(db_session, payload, cashier)

    def test_negative_total_rejected(self, db_session, cashier, customer):
        with pytest.raises(BadRequestError):
            invoice_service.create_invoice(db_session, _payload(customer, discount=500.0), cashier)


class TestInvoiceFromSale:

    def _sale(self, db, cashier, customer, product, **kwargs):
        payload = SaleCreate(
            customer_id=customer.id,
            items=[SaleItemCreate(product_id=product.id, quantity=2)],
            payment_method=PaymentMethod.CARD,
            **kwargs,
        )
        return sales_service.create_sale(db, payload, cashier)

    def test_copies_sale_lines_and_amounts(self, db_session, cashier, customer, product):
        sale = self._sale(db_session, cashier, customer, product, discount=5.0, tax_amount=3.0)
        invoice = invoice_service.create_invoice(
            db_session, InvoiceCreate(customer_id=customer.id, sale_id=sale.id, due_date=DUE), cashier
        )

        assert invoice.sale_id == sale.id
        assert len(invoice.items) == 1
        line = invoice.items[0]
        assert (line.product_id, line.description, line.quantity, line.unit_price) == (product.id, "Coffee", 2, 25.0)
        assert invoice.subtotal == 50.0
        assert invoice.total_amount == sale.final_amount == 48.0

    def test_lines_are_independent_copies(self, db_session, cashier, customer, product):
        sale = self._sale(db_session, cashier, customer, product)
        invoice = invoice_service.create_invoice(
            db_session, InvoiceCreate(customer_id=customer.id, sale_id=sale.id, due_date=DUE), cashier
        )
        sale.items[0].unit_price = 1.0
        db_session.commit()
        db_session.refresh(invoice)
        assert invoice.items[0].unit_price == 25.0

    def test_sale_can_only_be_invoiced_once(self, db_session, cashier, customer, product):
        sale = self._sale(db_session, cashier, customer, product)
        payload = InvoiceCreate(customer_id=customer.id, sale_id=sale.id, due_date=DUE)
        invoice_service.create_invoice(db_session, payload, cashier)
        with pytest.raises(BadRequestError):
            invoice_service.create_invoice(db_session, payload, cashier)

    def test_concurrent_invoice_for_same_sale(self, db_session, cashier, customer, product, monkeypatch):
        sale = self._sale(db_session, cashier, customer, product)
        payload = InvoiceCreate(customer_id=customer.id, sale_id=sale.id, due_date=DUE)
        invoice_service.create_invoice(db_session, payload, cashier)

        # The first two checks run before the other request committed its invoice
        real_load = invoice_service._load_sale
        calls = []

        def stale_load(db, sale_id):
            calls.append(sale_id)
            if len(calls) <= 2:
                return db.query(Sale).filter(Sale.id == sale_id).one()
            return real_load(db, sale_id)

        monkeypatch.setattr(invoice_service, "_load_sale", stale_load)
        with pytest.raises(BadRequestError) as exc:
            invoice_service.create_invoice(db_session, payload, cashier)

        assert exc.value.detail.startswith(f"Sale {sale.id} already has invoice")
        assert len(calls) == 3
        assert db_session.query(Invoice).count() == 1

    def test_cancelled_sale_cannot_be_invoiced(self, db_session, cashier, customer, product):
        sale = self._sale(db_session, cashier, customer, product)
        sales_service.cancel_sale(db_session, sale.id)
        with pytest.raises(BadRequestError):
            invoice_service.create_invoice(
                db_session, InvoiceCreate(customer_id=customer.id, sale_id=sale.id, due_date=DUE), cashier
            )

    def test_unknown_sale(self, db_session, cashier, customer):
        with pytest.raises(NotFoundError):
            invoice_service.create_invoice(
                db_session, InvoiceCreate(customer_id=customer.id, sale_id=404, due_date=DUE), cashier
            )


class TestStatusMachine:

    @pytest.fixture
    def invoice(self, db_session, cashier, customer):
        return invoice_service.create_invoice(db_session, _payload(customer), cashier, now=DEC_2024)

    def test_pay_sets_paid_date(self, db_session, invoice):
        paid_at = datetime(2024, 12, 20, 9, 0)
        updated = invoice_service.update_status(
            db_session, invoice.id, InvoiceStatusUpdate(status=InvoiceStatus.PAID, paid_date=paid_at)
        )
        assert updated.status == InvoiceStatus.PAID
        assert updated.paid_date == paid_at

    def test_pay_defaults_paid_date_to_now(self, db_session, invoice):
        updated = invoice_service.update_status(
            db_session, invoice.id, InvoiceStatusUpdate(status=InvoiceStatus.PAID)
        )
        assert updated.paid_date is not None

    def test_leaving_paid_keeps_paid_date(self, db_session, invoice):
        paid_at = datetime(2024, 12, 20, 9, 0)
        invoice_service.update_status(
            db_session, invoice.id, InvoiceStatusUpdate(status=InvoiceStatus.PAID, paid_date=paid_at)
        )
        updated = invoice_service.update_status(
            db_session, invoice.id, InvoiceStatusUpdate(status=InvoiceStatus.PARTIALLY_PAID)
        )
        assert updated.status == InvoiceStatus.PARTIALLY_PAID
        assert updated.paid_date == paid_at

    def test_paid_invoice_cannot_be_cancelled(self, db_session, invoice):
        invoice_service.update_status(db_session, invoice.id, InvoiceStatusUpdate(status=InvoiceStatus.PAID))
        with pytest.raises(BadRequestError):
            invoice_service.cancel_invoice(db_session, invoice.id)
        with pytest.raises(BadRequestError):
            invoice_service.update_status(
                db_session, invoice.id, InvoiceStatusUpdate(status=InvoiceStatus.CANCELLED)
            )

    def test_cancel(self, db_session, invoice):
        result = invoice_service.cancel_invoice(db_session, invoice.id)
        assert result["message"] == "Invoice cancelled successfully"
        assert result["invoice"].status == InvoiceStatus.CANCELLED

    def test_cancelled_is_terminal(self, db_session, invoice):
        invoice_service.cancel_invoice(db_session, invoice.id)
        with pytest.raises(BadRequestError):
            invoice_service.update_status(db_session, invoice.id, InvoiceStatusUpdate(status=InvoiceStatus.PAID))

    def test_lookup_by_number(self, db_session, invoice):
        assert invoice_service.get_by_number(db_session, "INV-202412-0001").id == invoice.id
        with pytest.raises(NotFoundError):
            invoice_service.get_by_number(db_session, "INV-202412-0404")


class TestOverdueAndStats:

    def test_mark_overdue_only_touches_open_invoices(self, db_session, cashier, customer):
        past_due = datetime(2024, 12, 1)
        open_one = invoice_service.create_invoice(db_session, _payload(customer, due_date=past_due), cashier)
        paid_one = invoice_service.create_invoice(db_session, _payload(customer, due_date=past_due), cashier)
        invoice_service.update_status(db_session, paid_one.id, InvoiceStatusUpdate(status=InvoiceStatus.PAID))
        future = invoice_service.create_invoice(db_session, _payload(customer, due_date=datetime(2099, 1, 1)), cashier)

        assert invoice_service.mark_overdue(db_session, now=DEC_2024) == 1
        assert invoice_service.get_invoice(db_session, open_one.id).status == InvoiceStatus.OVERDUE
        assert invoice_service.get_invoice(db_session, paid_one.id).status == InvoiceStatus.PAID
        assert invoice_service.get_invoice(db_session, future.id).status == InvoiceStatus.UNPAID

    def test_stats_ignore_cancelled_amounts(self, db_session, cashier, customer):
        paid = invoice_service.create_invoice(db_session, _payload(customer), cashier)
        invoice_service.update_status(db_session, paid.id, InvoiceStatusUpdate(status=InvoiceStatus.PAID))
        invoice_service.create_invoice(db_session, _payload(customer), cashier)
        dropped = invoice_service.create_invoice(db_session, _payload(customer), cashier)
        invoice_service.cancel_invoice(db_session, dropped.id)

        stats = invoice_service.invoice_stats(db_session)
        assert stats["total_invoices"] == 3
        assert stats["paid_invoices"] == 1
        assert stats["unpaid_invoices"] == 1
        assert stats["cancelled_invoices"] == 1
        assert stats["total_amount"] == 400.0
        assert stats["paid_amount"] == 200.0
        assert stats["unpaid_amount"] == 200.0

    def test_list_filters(self, db_session, cashier, customer):
        invoice_service.create_invoice(db_session, _payload(customer), cashier, now=DEC_2024)
        dropped = invoice_service.create_invoice(
            db_session, _payload(customer), cashier, now=DEC_2024 + timedelta(days=1)
        )
        invoice_service.cancel_invoice(db_session, dropped.id)

        page = invoice_service.list_invoices(db_session, status=InvoiceStatus.UNPAID)
        assert page["total"] == 1
        by_customer = invoice_service.list_invoices(db_session, customer_id=customer.id)
        assert [i.id for i in by_customer["items"]][0] == dropped.id
