from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from apps.finance.models import Expense, ExpenseCategory, ExpenseStatus
from apps.finance.services import ExpenseService
from apps.notifications.models import Notification
from apps.users.models import User
from apps.users.roles import Role
from shared.exceptions import InvalidTransition

BASE = "/api/v1/finance/expenses"


class ExpenseServiceTests(TestCase):
    def setUp(self):
        self.engineer = User.objects.create_user(username="engineer", password="pass123", role=Role.EMPLOYEE)
        self.accountant = User.objects.create_user(username="acc", password="pass123", role=Role.ACCOUNTANT)

    def _submit(self, amount="120.50", category=ExpenseCategory.FUEL):
        return ExpenseService.submit(
            user=self.engineer,
            amount=Decimal(amount),
            description="Fuel for site visit",
            expense_date="2026-06-01",
            category=category,
        )

    @override_settings(DEFAULT_CURRENCY="ghs")
    def test_submit_defaults_currency_and_notifies_accounts(self):
        expense = self._submit()
        self.assertEqual(expense.currency, "GHS")
        self.assertTrue(expense.expense_number.startswith("EXP-"))
        self.assertTrue(
            Notification.objects.filter(user=self.accountant, group_key="finance_expense_submitted").exists()
        )

    def test_workflow_order_is_enforced(self):
        expense = self._submit()
        with self.assertRaises(InvalidTransition):
            ExpenseService.mark_paid(expense, user=self.accountant)
        expense = ExpenseService.approve(expense, user=self.accountant)
        with self.assertRaises(InvalidTransition):
            ExpenseService.reject(expense, user=self.accountant, reason="Duplicate claim")
        expense = ExpenseService.mark_paid(expense, user=self.accountant, reference="MOMO-77")
        self.assertEqual(expense.status, ExpenseStatus.PAID)
        self.assertEqual(expense.paid_by, self.accountant)

    def test_stats(self):
        self._submit("100.00")
        approved = self._submit("50.00", category=ExpenseCategory.MEALS)
        ExpenseService.approve(approved, user=self.accountant)
        stats = ExpenseService.stats()
        self.assertEqual(stats["totalExpenses"], 2)
        self.assertEqual(stats["pendingExpenses"], 1)
        self.assertEqual(stats["totalExpensesAmount"], Decimal("150.00"))
        self.assertEqual(stats["pendingAmount"], Decimal("100.00"))
        self.assertEqual(stats["paidAmount"], Decimal("0.00"))
        self.assertEqual([row["category"] for row in stats["byCategory"]], ["FUEL", "MEALS"])


class ExpenseAPITests(APITestCase):
    def setUp(self):
        self.engineer = User.objects.create_user(username="engineer", password="pass123", role=Role.EMPLOYEE)
        self.accountant = User.objects.create_user(username="acc", password="pass123", role=Role.ACCOUNTANT)
        self.head = User.objects.create_user(username="head", password="pass123", role=Role.DEPARTMENT_HEAD)

    def _create(self, **overrides):
        self.client.force_authenticate(self.engineer)
        payload = {
            "category": "TRAVEL",
            "description": "Taxi to Tarkwa",
            "amount": "85.00",
            "expense_date": "2026-06-02",
        }
        payload.update(overrides)
        return self.client.post(f"{BASE}/", payload, format="json")

    def test_submit_and_visibility(self):
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "PENDING")
        other = User.objects.create_user(username="other", password="pass123")
        self.client.force_authenticate(other)
        self.assertEqual(self.client.get(f"{BASE}/").data["total"], 0)
        self.client.force_authenticate(self.accountant)
        self.assertEqual(self.client.get(f"{BASE}/").data["total"], 1)

    def test_amount_must_be_positive(self):
        response = self._create(amount="0")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("amount", response.data)

    def test_approve_reject_and_pay_roles(self):
        expense_id = self._create().data["id"]
        self.assertEqual(self.client.post(f"{BASE}/{expense_id}/approve/").status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.head)
        response = self.client.post(f"{BASE}/{expense_id}/reject/", {"reason": "no"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f"{BASE}/{expense_id}/approve/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.post(f"{BASE}/{expense_id}/pay/").status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.accountant)
        response = self.client.post(f"{BASE}/{expense_id}/pay/", {"reference": "CHQ-1002"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Expense.objects.get(pk=expense_id).payment_reference, "CHQ-1002")

    def test_stats_and_category_filter(self):
        self._create()
        self._create(category="MEALS")
        self.client.force_authenticate(self.accountant)
        self.assertEqual(self.client.get(f"{BASE}/", {"type": "meals"}).data["total"], 1)
        response = self.client.get(f"{BASE}/stats/")
        self.assertEqual(response.data["totalExpenses"], 2)
