from rest_framework.permissions import BasePermission

from apps.accounts.models import UserRole


ROLE_CAPABILITIES = {
    UserRole.OWNER: {
        "deliveries.view",
        "deliveries.create",
        "payments.view",
        "payments.create",
        "trucks.view",
        "purchases.view",
        "purchases.create",
        "reports.view",
        "dashboard.view",
        "employees.view",
        "employees.manage",
    },
    UserRole.EMPLOYEE: {
        "deliveries.view",
        "deliveries.create",
        "payments.view",
        "payments.create",
        "trucks.view",
        "purchases.view",
        "purchases.create",
        "reports.view",
        "dashboard.view",
    },
}


def resolve_role(user):
    group_names = set(user.groups.values_list("name", flat=True))
    for role in (UserRole.OWNER, UserRole.EMPLOYEE):
        if role in group_names:
            return role
    return getattr(user, "role", UserRole.EMPLOYEE)


def capabilities_for(user):
    if not user or not user.is_authenticated:
        return set()
    return set(ROLE_CAPABILITIES.get(resolve_role(user), set()))


def has_capability(user, *capabilities):
    user_caps = capabilities_for(user)
    return all(cap in user_caps for cap in capabilities)


class RolePermission(BasePermission):
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        capability_map = getattr(view, "capability_map", {})
        action = getattr(view, "action", None) or request.method.lower()
        required = capability_map.get(action) or capability_map.get(request.method.lower()) or set()
        if not required:
            return True

        return has_capability(request.user, *required)
