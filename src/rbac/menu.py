"""
Navigation menu filtering.

Menus are declared once as a tree of ``MenuItem``. ``filter_menu`` returns
the subset a user may see, with each link resolved under the user's route
prefix (``/``, ``/{province}/`` or ``/{province}/{branch}/``):

    for entry in filter_menu(DEFAULT_MENU, profile, classifier):
        render(entry.title, entry.path)

An entry is visible when the user holds its permissions and category and
the route classifier would allow the resolved path. Groups left without
visible children are dropped.
"""

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from .permissions import Permission
from .profile import UserProfile
from .roles import RoleCategory
from .routing import RouteClassifier


@dataclass(frozen=True)
class MenuItem:
    key: str
    title: str
    template: Optional[str] = None
    """Module path relative to the user's prefix, e.g. "reports/daily"."""

    any_permissions: Tuple[Permission, ...] = ()
    """At least one required; empty means no requirement."""

    all_permissions: Tuple[Permission, ...] = ()
    category: Optional[RoleCategory] = None
    children: Tuple["MenuItem", ...] = ()

    path: Optional[str] = None
    """Resolved link; set by ``filter_menu``."""

    @property
    def is_group(self) -> bool:
        return bool(self.children)


_P = Permission

DEFAULT_MENU: Tuple[MenuItem, ...] = (
    MenuItem("overview", "Overview", "overview", category=RoleCategory.EXECUTIVE),
    MenuItem("dashboard", "Dashboard", "dashboard", category=RoleCategory.LEAD),
    MenuItem("account", "Accounting", children=(
        MenuItem("account-overview", "Accounts", "account", any_permissions=(_P.VIEW_ACCOUNTS,)),
        MenuItem("expense", "Expenses", "account/expense",
                 any_permissions=(_P.VIEW_EXPENSE, _P.MANAGE_EXPENSE)),
        MenuItem("income", "Income", "account/income", all_permissions=(_P.MANAGE_INCOME,)),
    )),
    MenuItem("reports", "Reports", "reports", any_permissions=(_P.REPORT_VIEW, _P.VIEW_REPORTS)),
    MenuItem("hr", "Human Resources", children=(
        MenuItem("employees", "Employees", "hr", any_permissions=(_P.EMPLOYEE_VIEW,)),
        MenuItem("attendance", "Attendance", "hr/attendance", any_permissions=(_P.ATTENDANCE_VIEW,)),
        MenuItem("leave", "Leave", "hr/leave", any_permissions=(_P.LEAVE_VIEW,)),
    )),
    MenuItem("users", "Users", "users", any_permissions=(_P.USER_VIEW,),
             category=RoleCategory.PROVINCE_ADMIN),
    MenuItem("settings", "Settings", "settings", category=RoleCategory.GENERAL_MANAGER),
    MenuItem("developer", "Developer", "developer", category=RoleCategory.DEVELOPER),
)


def _is_permitted(item: MenuItem, profile: UserProfile, classifier: RouteClassifier) -> bool:
    engine = classifier.engine
    if item.any_permissions and not engine.has_any_permission(profile, item.any_permissions):
        return False
    if not engine.has_all_permissions(profile, item.all_permissions):
        return False
    if item.category is not None and not engine.is_in_category(profile, item.category):
        return False
    return True


def filter_menu(
    items: Iterable[MenuItem],
    profile: UserProfile,
    classifier: Optional[RouteClassifier] = None,
) -> List[MenuItem]:
    """Visible entries for ``profile``, with ``path`` resolved."""
    classifier = classifier or RouteClassifier()
    visible = []

    for item in items:
        if not _is_permitted(item, profile, classifier):
            continue

        if item.is_group:
            children = filter_menu(item.children, profile, classifier)
            if children:
                visible.append(replace(item, children=tuple(children)))
            continue

        if item.template is None:
            continue
        path = classifier.path_for(profile, item.template)
        if classifier.authorize(path, profile):
            visible.append(replace(item, path=path))

    return visible
