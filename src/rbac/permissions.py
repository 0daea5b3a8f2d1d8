"""
Permission Catalog

Closed set of capability identifiers shared by the role registry, the
access decision engine and the menu builder. Permissions are independent of
roles; the role -> permission mapping lives in ``rbac.roles``.

Categories:
    - CONTENT: Informational content pages
    - DATA: Generic master data
    - REPORT: Reports
    - TASK: Task assignment and completion
    - DOCUMENT: Sales/warehouse/accounting documents
    - EMPLOYEE, LEAVE, ATTENDANCE, HR: Human resources
    - BRANCH, PROVINCE: Geographic administration
    - USER: User administration
    - SYSTEM: System logs and settings
    - ACCOUNT, EXPENSE: Accounting
    - SETTINGS: Application settings
"""

from enum import Enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, Mapping, Union

from .errors import UnknownPermissionError


class Permission(str, Enum):
    """
    All permissions in the system.

    Naming: category_action (e.g., document_view, leave_approve).
    A few legacy account-module names read action_category
    (e.g., view_accounts) and are kept as-is because persisted
    permission overrides reference them.
    """

    # Content
    CONTENT_VIEW = "content_view"
    CONTENT_CREATE = "content_create"
    CONTENT_EDIT = "content_edit"
    CONTENT_DELETE = "content_delete"
    CONTENT_PUBLISH = "content_publish"

    # Data
    DATA_VIEW = "data_view"
    DATA_CREATE = "data_create"
    DATA_EDIT = "data_edit"
    DATA_DELETE = "data_delete"
    DATA_EXPORT = "data_export"
    DATA_IMPORT = "data_import"

    # Reports
    REPORT_VIEW = "report_view"
    REPORT_CREATE = "report_create"
    VIEW_REPORTS = "view_reports"
    MANAGE_REPORTS = "manage_reports"

    # Tasks
    TASK_COMPLETE = "task_complete"
    TASK_ASSIGN = "task_assign"

    # Documents
    DOCUMENT_VIEW = "document_view"
    DOCUMENT_CREATE = "document_create"
    DOCUMENT_EDIT = "document_edit"
    DOCUMENT_REVIEW = "document_review"
    DOCUMENT_APPROVE = "document_approve"
    DOCUMENT_REJECT = "document_reject"
    DOCUMENT_DELETE = "document_delete"

    # Human resources
    EMPLOYEE_VIEW = "employee_view"
    EMPLOYEE_CREATE = "employee_create"
    EMPLOYEE_EDIT = "employee_edit"
    EMPLOYEE_DELETE = "employee_delete"
    LEAVE_VIEW = "leave_view"
    LEAVE_CREATE = "leave_create"
    LEAVE_EDIT = "leave_edit"
    LEAVE_APPROVE = "leave_approve"
    LEAVE_REJECT = "leave_reject"
    ATTENDANCE_VIEW = "attendance_view"
    ATTENDANCE_CREATE = "attendance_create"
    ATTENDANCE_EDIT = "attendance_edit"
    ATTENDANCE_IMPORT = "attendance_import"
    HR_REPORTS_VIEW = "hr_reports_view"
    HR_REPORTS_CREATE = "hr_reports_create"
    HR_SETTINGS_VIEW = "hr_settings_view"
    HR_SETTINGS_EDIT = "hr_settings_edit"

    # Geography
    BRANCH_MANAGE = "branch_manage"
    BRANCH_REPORTS_VIEW = "branch_reports_view"
    BRANCH_ANALYTICS_VIEW = "branch_analytics_view"
    PROVINCE_MANAGE = "province_manage"
    PROVINCE_REPORTS_VIEW = "province_reports_view"
    PROVINCE_ANALYTICS_VIEW = "province_analytics_view"
    MANAGE_PROVINCES = "manage_provinces"

    # User administration
    USER_VIEW = "user_view"
    USER_CREATE = "user_create"
    USER_EDIT = "user_edit"
    USER_DELETE = "user_delete"
    USER_INVITE = "user_invite"
    USER_ROLE_EDIT = "user_role_edit"
    VIEW_USERS = "view_users"
    MANAGE_USERS = "manage_users"
    VIEW_ROLES = "view_roles"
    MANAGE_ROLES = "manage_roles"

    # System
    SYSTEM_LOGS_VIEW = "system_logs_view"
    SYSTEM_SETTINGS_VIEW = "system_settings_view"
    SYSTEM_SETTINGS_EDIT = "system_settings_edit"
    SPECIAL_SETTINGS_VIEW = "special_settings_view"

    # Accounting
    VIEW_ACCOUNTS = "view_accounts"
    MANAGE_ACCOUNTS = "manage_accounts"
    MANAGE_INCOME = "manage_income"
    VIEW_EXPENSE = "view_expense"
    ADD_EXPENSE = "add_expense"
    EDIT_EXPENSE = "edit_expense"
    DELETE_EXPENSE = "delete_expense"
    MANAGE_EXPENSE = "manage_expense"

    # Settings
    VIEW_SETTINGS = "view_settings"
    MANAGE_SETTINGS = "manage_settings"


class Category(str, Enum):
    """Permission categories."""
    CONTENT = "content"
    DATA = "data"
    REPORT = "report"
    TASK = "task"
    DOCUMENT = "document"
    EMPLOYEE = "employee"
    LEAVE = "leave"
    ATTENDANCE = "attendance"
    HR = "hr"
    BRANCH = "branch"
    PROVINCE = "province"
    USER = "user"
    SYSTEM = "system"
    ACCOUNT = "account"
    EXPENSE = "expense"
    SETTINGS = "settings"


@dataclass(frozen=True)
class PermissionInfo:
    """Complete information about a permission."""
    permission: Permission
    name: str
    description: str
    category: Category


# =============================================================================
# PERMISSION REGISTRY
# =============================================================================

_P = Permission
_C = Category

_CATALOG = (
    # Content
    (_P.CONTENT_VIEW, "View Content", "View informational pages", _C.CONTENT),
    (_P.CONTENT_CREATE, "Create Content", "Create posts and announcements", _C.CONTENT),
    (_P.CONTENT_EDIT, "Edit Content", "Edit posts and announcements", _C.CONTENT),
    (_P.CONTENT_DELETE, "Delete Content", "Delete posts and announcements", _C.CONTENT),
    (_P.CONTENT_PUBLISH, "Publish Content", "Publish content to all users", _C.CONTENT),

    # Data
    (_P.DATA_VIEW, "View Data", "View master data", _C.DATA),
    (_P.DATA_CREATE, "Create Data", "Create master data records", _C.DATA),
    (_P.DATA_EDIT, "Edit Data", "Edit master data records", _C.DATA),
    (_P.DATA_DELETE, "Delete Data", "Delete master data records", _C.DATA),
    (_P.DATA_EXPORT, "Export Data", "Export data to files", _C.DATA),
    (_P.DATA_IMPORT, "Import Data", "Import data from files", _C.DATA),

    # Reports
    (_P.REPORT_VIEW, "View Report", "View standard reports", _C.REPORT),
    (_P.REPORT_CREATE, "Create Report", "Create custom reports", _C.REPORT),
    (_P.VIEW_REPORTS, "View Reports", "View accounting reports", _C.REPORT),
    (_P.MANAGE_REPORTS, "Manage Reports", "Configure accounting reports", _C.REPORT),

    # Tasks
    (_P.TASK_COMPLETE, "Complete Task", "Mark assigned tasks as done", _C.TASK),
    (_P.TASK_ASSIGN, "Assign Task", "Assign tasks to other users", _C.TASK),

    # Documents
    (_P.DOCUMENT_VIEW, "View Documents", "View sales and warehouse documents", _C.DOCUMENT),
    (_P.DOCUMENT_CREATE, "Create Documents", "Create new documents", _C.DOCUMENT),
    (_P.DOCUMENT_EDIT, "Edit Documents", "Edit existing documents", _C.DOCUMENT),
    (_P.DOCUMENT_REVIEW, "Review Documents", "Review submitted documents", _C.DOCUMENT),
    (_P.DOCUMENT_APPROVE, "Approve Documents", "Approve reviewed documents", _C.DOCUMENT),
    (_P.DOCUMENT_REJECT, "Reject Documents", "Reject reviewed documents", _C.DOCUMENT),
    (_P.DOCUMENT_DELETE, "Delete Documents", "Delete documents", _C.DOCUMENT),

    # Human resources
    (_P.EMPLOYEE_VIEW, "View Employees", "View employee records", _C.EMPLOYEE),
    (_P.EMPLOYEE_CREATE, "Create Employees", "Add employee records", _C.EMPLOYEE),
    (_P.EMPLOYEE_EDIT, "Edit Employees", "Edit employee records", _C.EMPLOYEE),
    (_P.EMPLOYEE_DELETE, "Delete Employees", "Delete employee records", _C.EMPLOYEE),
    (_P.LEAVE_VIEW, "View Leave", "View leave requests", _C.LEAVE),
    (_P.LEAVE_CREATE, "Request Leave", "Submit leave requests", _C.LEAVE),
    (_P.LEAVE_EDIT, "Edit Leave", "Edit leave requests", _C.LEAVE),
    (_P.LEAVE_APPROVE, "Approve Leave", "Approve leave requests", _C.LEAVE),
    (_P.LEAVE_REJECT, "Reject Leave", "Reject leave requests", _C.LEAVE),
    (_P.ATTENDANCE_VIEW, "View Attendance", "View attendance records", _C.ATTENDANCE),
    (_P.ATTENDANCE_CREATE, "Record Attendance", "Record attendance", _C.ATTENDANCE),
    (_P.ATTENDANCE_EDIT, "Edit Attendance", "Edit attendance records", _C.ATTENDANCE),
    (_P.ATTENDANCE_IMPORT, "Import Attendance", "Import attendance files", _C.ATTENDANCE),
    (_P.HR_REPORTS_VIEW, "View HR Reports", "View HR reports", _C.HR),
    (_P.HR_REPORTS_CREATE, "Create HR Reports", "Create HR reports", _C.HR),
    (_P.HR_SETTINGS_VIEW, "View HR Settings", "View HR configuration", _C.HR),
    (_P.HR_SETTINGS_EDIT, "Edit HR Settings", "Edit HR configuration", _C.HR),

    # Geography
    (_P.BRANCH_MANAGE, "Manage Branch", "Manage own branch", _C.BRANCH),
    (_P.BRANCH_REPORTS_VIEW, "View Branch Reports", "View branch reports", _C.BRANCH),
    (_P.BRANCH_ANALYTICS_VIEW, "View Branch Analytics", "View branch analytics", _C.BRANCH),
    (_P.PROVINCE_MANAGE, "Manage Province", "Manage own province", _C.PROVINCE),
    (_P.PROVINCE_REPORTS_VIEW, "View Province Reports", "View province reports", _C.PROVINCE),
    (_P.PROVINCE_ANALYTICS_VIEW, "View Province Analytics", "View province analytics", _C.PROVINCE),
    (_P.MANAGE_PROVINCES, "Manage Provinces", "Create and edit provinces", _C.PROVINCE),

    # User administration
    (_P.USER_VIEW, "View Users", "View users in scope", _C.USER),
    (_P.USER_CREATE, "Create Users", "Create user accounts", _C.USER),
    (_P.USER_EDIT, "Edit Users", "Edit user accounts", _C.USER),
    (_P.USER_DELETE, "Delete Users", "Delete user accounts", _C.USER),
    (_P.USER_INVITE, "Invite Users", "Send user invitations", _C.USER),
    (_P.USER_ROLE_EDIT, "Edit User Roles", "Approve users and assign roles", _C.USER),
    (_P.VIEW_USERS, "View All Users", "View the user directory", _C.USER),
    (_P.MANAGE_USERS, "Manage Users", "Full user administration", _C.USER),
    (_P.VIEW_ROLES, "View Roles", "View role definitions", _C.USER),
    (_P.MANAGE_ROLES, "Manage Roles", "Edit role definitions", _C.USER),

    # System
    (_P.SYSTEM_LOGS_VIEW, "View System Logs", "View audit and system logs", _C.SYSTEM),
    (_P.SYSTEM_SETTINGS_VIEW, "View System Settings", "View system settings", _C.SYSTEM),
    (_P.SYSTEM_SETTINGS_EDIT, "Edit System Settings", "Edit system settings", _C.SYSTEM),
    (_P.SPECIAL_SETTINGS_VIEW, "View Special Settings", "View restricted settings", _C.SYSTEM),

    # Accounting
    (_P.VIEW_ACCOUNTS, "View Accounts", "View accounting entries", _C.ACCOUNT),
    (_P.MANAGE_ACCOUNTS, "Manage Accounts", "Edit accounting entries", _C.ACCOUNT),
    (_P.MANAGE_INCOME, "Manage Income", "Record and edit income", _C.ACCOUNT),
    (_P.VIEW_EXPENSE, "View Expenses", "View expense entries", _C.EXPENSE),
    (_P.ADD_EXPENSE, "Add Expense", "Record expenses", _C.EXPENSE),
    (_P.EDIT_EXPENSE, "Edit Expense", "Edit expense entries", _C.EXPENSE),
    (_P.DELETE_EXPENSE, "Delete Expense", "Delete expense entries", _C.EXPENSE),
    (_P.MANAGE_EXPENSE, "Manage Expenses", "Full expense administration", _C.EXPENSE),

    # Settings
    (_P.VIEW_SETTINGS, "View Settings", "View application settings", _C.SETTINGS),
    (_P.MANAGE_SETTINGS, "Manage Settings", "Edit application settings", _C.SETTINGS),
)

PERMISSIONS: Mapping[Permission, PermissionInfo] = MappingProxyType({
    permission: PermissionInfo(permission, name, description, category)
    for permission, name, description, category in _CATALOG
})

ALL_PERMISSIONS: FrozenSet[Permission] = frozenset(Permission)


def exists(permission: Union[Permission, str]) -> bool:
    """Check whether a permission identifier is in the catalog."""
    if isinstance(permission, Permission):
        return True
    try:
        Permission(permission)
    except ValueError:
        return False
    return True


def parse_permission(value: Union[Permission, str]) -> Permission:
    """
    Resolve a permission identifier.

    Raises:
        UnknownPermissionError: If the identifier is not in the catalog
    """
    if isinstance(value, Permission):
        return value
    try:
        return Permission(value)
    except ValueError:
        raise UnknownPermissionError(value) from None


def get_permission_info(permission: Union[Permission, str]) -> PermissionInfo:
    """Get information about a permission."""
    return PERMISSIONS[parse_permission(permission)]


def permissions_in_category(category: Category) -> FrozenSet[Permission]:
    """Get all permissions belonging to a category."""
    return frozenset(
        info.permission for info in PERMISSIONS.values() if info.category == category
    )
