"""
Role to mobile module and capability tables.

Pure lookups: no database access, same answer for the same role.
"""
from dataclasses import dataclass, field

from apps.users.roles import EXECUTIVE_ROLES, MANAGEMENT_ROLES, Role

BASE_MODULES = ("notifications", "tasks")
WORK_MODULES = ("approvals",)
CORE_MODULES = ("inventory", "safety", "employees", "leave", "expenses", "projects", "documents")
PROCUREMENT_MODULES = ("procurement", "requisitions", "receiving")
FLEET_MODULES = ("fleet",)
FINANCE_MODULES = ("finance",)

ROLE_MODULES = {
    Role.PROCUREMENT_OFFICER: WORK_MODULES + ("inventory", "documents") + PROCUREMENT_MODULES,
    Role.WAREHOUSE_MANAGER: ("inventory", "safety", "documents", "receiving", "requisitions"),
    Role.ACCOUNTANT: WORK_MODULES + ("expenses", "documents") + FINANCE_MODULES,
    Role.SAFETY_OFFICER: ("safety", "employees", "documents"),
    Role.EMPLOYEE: ("safety", "employees", "leave", "expenses", "documents"),
}

APPROVER_ROLES = EXECUTIVE_ROLES | MANAGEMENT_ROLES | {Role.PROCUREMENT_OFFICER, Role.ACCOUNTANT}
LEADERSHIP = EXECUTIVE_ROLES | MANAGEMENT_ROLES


def _dedupe(modules) -> list:
    seen = []
    for module in modules:
        if module not in seen:
            seen.append(module)
    return seen


def get_modules_for_role(role) -> list:
    if role in EXECUTIVE_ROLES:
        extra = WORK_MODULES + CORE_MODULES + PROCUREMENT_MODULES + FLEET_MODULES + FINANCE_MODULES
    elif role in MANAGEMENT_ROLES:
        extra = WORK_MODULES + CORE_MODULES + PROCUREMENT_MODULES + FLEET_MODULES
    else:
        extra = ROLE_MODULES.get(role, ())
    return _dedupe(BASE_MODULES + extra)


def get_capabilities_for_role(role) -> dict:
    """Fixed set of boolean feature switches the mobile app reads per role."""
    return {
        "canViewApprovals": role in APPROVER_ROLES,
        "canApprove": role in APPROVER_ROLES,
        "canReject": role in APPROVER_ROLES,
        "canViewTasks": True,
        "canUpdateTasks": True,
        "canCreateTasks": role in LEADERSHIP,
        "canViewInventory": role != Role.VENDOR,
        "canReceiveStock": role in LEADERSHIP | {Role.WAREHOUSE_MANAGER, Role.PROCUREMENT_OFFICER},
        "canAdjustStock": role in EXECUTIVE_ROLES | {Role.WAREHOUSE_MANAGER},
        "canCreateIncident": True,
        "canViewAllIncidents": role in LEADERSHIP | {Role.SAFETY_OFFICER},
        "canCreateInspection": role in LEADERSHIP | {Role.SAFETY_OFFICER},
        "canCreateFleetInspection": role in EXECUTIVE_ROLES | {Role.OPERATIONS_MANAGER},
        "canLogFuel": role in EXECUTIVE_ROLES | {Role.OPERATIONS_MANAGER, Role.EMPLOYEE},
        "canReportBreakdown": True,
        "canCreateRequisition": role != Role.VENDOR,
        "canViewAllRequisitions": role in LEADERSHIP | {Role.PROCUREMENT_OFFICER, Role.WAREHOUSE_MANAGER},
        "canUploadDocuments": True,
        "canShareDocuments": role in LEADERSHIP,
        "canViewAllEmployees": role in LEADERSHIP,
        "canApproveLeave": role in LEADERSHIP,
        "canApproveExpenses": role in LEADERSHIP | {Role.ACCOUNTANT},
    }


@dataclass(frozen=True)
class RoleProfile:
    role: str
    visible_modules: frozenset = field(default_factory=frozenset)
    capabilities: dict = field(default_factory=dict)


def resolve_role(role) -> RoleProfile:
    return RoleProfile(
        role=role,
        visible_modules=frozenset(get_modules_for_role(role)),
        capabilities=get_capabilities_for_role(role),
    )
