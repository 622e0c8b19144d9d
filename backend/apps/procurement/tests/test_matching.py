from decimal import Decimal

from django.test import SimpleTestCase

from apps.procurement.services.matching import InvoiceLineSnapshot, POLineSnapshot, evaluate_match


def po_line(line_id=1, name="Drill bit 45mm", quantity="100", price="10.00", accepted="100"):
    return POLineSnapshot(
        id=line_id,
        item_name=name,
        quantity=Decimal(quantity),
        unit_price=Decimal(price),
        accepted_quantity=Decimal(accepted),
    )


def invoice_line(description="Drill bit 45mm", quantity="100", price="10.00", po_line_id=None):
    return InvoiceLineSnapshot(
        description=description,
        quantity=Decimal(quantity),
        unit_price=Decimal(price),
        po_line_id=po_line_id,
    )


class EvaluateMatchTests(SimpleTestCase):
    def test_identical_documents_match(self):
        outcome = evaluate_match([po_line()], [invoice_line()], tolerance=Decimal("2"))
        self.assertEqual(outcome.status, "MATCHED")
        self.assertEqual(outcome.price_variance, Decimal("0.00"))
        self.assertEqual(outcome.quantity_variance, Decimal("0.00"))
        self.assertEqual(outcome.notes, "")

    def test_price_variance_beyond_tolerance(self):
        outcome = evaluate_match([po_line()], [invoice_line(price="11.00")], tolerance=Decimal("5"))
        self.assertEqual(outcome.status, "DISPUTED")
        self.assertEqual(outcome.price_variance, Decimal("10.00"))
        self.assertEqual(outcome.price_variance_amount, Decimal("100.00"))
        self.assertIn("Price variance", outcome.notes)

    def test_variance_within_tolerance_matches(self):
        outcome = evaluate_match([po_line()], [invoice_line(price="10.10")], tolerance=Decimal("2"))
        self.assertEqual(outcome.status, "MATCHED")
        self.assertEqual(outcome.price_variance, Decimal("1.00"))

    def test_price_comparison_uses_unrounded_value(self):
        # 2.004% rounds to 2.00 but is still over a 2% tolerance
        outcome = evaluate_match(
            [po_line(quantity="1000", price="10.00", accepted="1000")],
            [invoice_line(quantity="1000", price="10.20"), invoice_line(quantity="1", price="10.40")],
            tolerance=Decimal("2"),
        )
        self.assertEqual(outcome.price_variance, Decimal("2.00"))
        self.assertEqual(outcome.status, "DISPUTED")

    def test_quantity_variance_uses_accepted_quantity(self):
        outcome = evaluate_match([po_line(accepted="90")], [invoice_line()], tolerance=Decimal("5"))
        self.assertEqual(outcome.quantity_variance, Decimal("10.00"))
        self.assertEqual(outcome.status, "DISPUTED")

    def test_explicit_link_beats_name(self):
        lines = [po_line(1, name="Hose"), po_line(2, name="Clamp", price="2.00")]
        outcome = evaluate_match(
            lines,
            [invoice_line(description="Hydraulic hose 2in", price="10.00", po_line_id=1)],
            tolerance=Decimal("2"),
        )
        self.assertEqual(outcome.unmatched, [])
        self.assertEqual(outcome.price_variance_amount, Decimal("0.00"))

    def test_name_match_is_case_insensitive(self):
        outcome = evaluate_match([po_line()], [invoice_line(description="  DRILL BIT 45MM ")], tolerance=Decimal("2"))
        self.assertEqual(outcome.status, "MATCHED")

    def test_unresolved_line_forces_dispute(self):
        outcome = evaluate_match(
            [po_line()],
            [invoice_line(), invoice_line(description="Courier surcharge", quantity="1", price="5.00")],
            tolerance=Decimal("50"),
        )
        self.assertEqual(outcome.status, "DISPUTED")
        self.assertEqual(outcome.unmatched, ["Courier surcharge"])
        self.assertIn("Courier surcharge", outcome.notes)

    def test_zero_subtotal_uses_unit_basis(self):
        outcome = evaluate_match(
            [po_line(price="0.00")],
            [invoice_line(quantity="100", price="0.01")],
            tolerance=Decimal("100"),
        )
        self.assertEqual(outcome.price_variance_amount, Decimal("1.00"))
        self.assertEqual(outcome.price_variance, Decimal("100.00"))
        self.assertEqual(outcome.status, "MATCHED")
