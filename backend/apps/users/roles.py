"""Role catalogue and the role groups used for endpoint gating."""
from django.db import models


class Role(models.TextChoices):
    SUPER_ADMIN = "SUPER_ADMIN", "Super Admin"
    CEO = "CEO", "Chief Executive Officer"
    CFO = "CFO", "Chief Financial Officer"
    DEPARTMENT_HEAD = "DEPARTMENT_HEAD", "Department Head"
    OPERATIONS_MANAGER = "OPERATIONS_MANAGER", "Operations Manager"
    IT_MANAGER = "IT_MANAGER", "IT Manager"
    HR_MANAGER = "HR_MANAGER", "HR Manager"
    PROCUREMENT_OFFICER = "PROCUREMENT_OFFICER", "Procurement Officer"
    WAREHOUSE_MANAGER = "WAREHOUSE_MANAGER", "Warehouse Manager"
    ACCOUNTANT = "ACCOUNTANT", "Accountant"
    SAFETY_OFFICER = "SAFETY_OFFICER", "Safety Officer"
    EMPLOYEE = "EMPLOYEE", "Employee"
    VENDOR = "VENDOR", "Vendor"


EXECUTIVE_ROLES = frozenset({Role.SUPER_ADMIN, Role.CEO, Role.CFO})
MANAGEMENT_ROLES = frozenset({
    Role.DEPARTMENT_HEAD,
    Role.OPERATIONS_MANAGER,
    Role.IT_MANAGER,
    Role.HR_MANAGER,
})
LEADERSHIP_ROLES = EXECUTIVE_ROLES | MANAGEMENT_ROLES

# Procurement
REQUISITION_APPROVER_ROLES = LEADERSHIP_ROLES | {Role.PROCUREMENT_OFFICER}
PROCUREMENT_ROLES = EXECUTIVE_ROLES | {Role.OPERATIONS_MANAGER, Role.PROCUREMENT_OFFICER}
RECEIVING_ROLES = PROCUREMENT_ROLES | {Role.WAREHOUSE_MANAGER}
INVOICE_ROLES = EXECUTIVE_ROLES | {Role.PROCUREMENT_OFFICER, Role.ACCOUNTANT}
PAYMENT_ROLES = frozenset({Role.SUPER_ADMIN, Role.CFO, Role.ACCOUNTANT})
PROCUREMENT_REPORT_ROLES = LEADERSHIP_ROLES | {Role.PROCUREMENT_OFFICER, Role.ACCOUNTANT}

# Operations
INVENTORY_MANAGER_ROLES = EXECUTIVE_ROLES | {Role.OPERATIONS_MANAGER, Role.WAREHOUSE_MANAGER, Role.PROCUREMENT_OFFICER}
STOCK_RECEIVER_ROLES = LEADERSHIP_ROLES | {Role.WAREHOUSE_MANAGER, Role.PROCUREMENT_OFFICER}
STOCK_ADJUSTER_ROLES = EXECUTIVE_ROLES | {Role.WAREHOUSE_MANAGER}
SAFETY_SEE_ALL_ROLES = frozenset({Role.SUPER_ADMIN, Role.SAFETY_OFFICER, Role.OPERATIONS_MANAGER, Role.DEPARTMENT_HEAD})
TASK_SEE_ALL_ROLES = frozenset({Role.SUPER_ADMIN, Role.CEO, Role.OPERATIONS_MANAGER})
FLEET_MANAGER_ROLES = EXECUTIVE_ROLES | {Role.OPERATIONS_MANAGER, Role.DEPARTMENT_HEAD}

# People and money
LEAVE_APPROVER_ROLES = LEADERSHIP_ROLES
EXPENSE_APPROVER_ROLES = LEADERSHIP_ROLES | {Role.ACCOUNTANT}
EXPENSE_PAYER_ROLES = PAYMENT_ROLES


def has_role(user, roles) -> bool:
    return bool(user and getattr(user, "is_authenticated", False) and getattr(user, "role", None) in roles)
