"""
Permission helpers and DRF permission classes.

Role checks resolve through django-rules (see ``accounts.rbac``); this module
adds the agent data-scoping rules and thin DRF wrappers around them.

Usage:
    from accounts.permissions import has_permission, HasPermission

    if has_permission(request.user, 'inventory.transfer'):
        ...

    class TransferViewSet(viewsets.ModelViewSet):
        permission_classes = [IsAuthenticated, HasPermission.for_perm('inventory.transfer')]
"""

from typing import Any, Optional

import rules
from rest_framework.permissions import BasePermission, SAFE_METHODS

from accounts import rbac
from accounts.models import User


def has_permission(user, permission: str) -> bool:
    """Return True when the user's role grants the permission."""
    if not user or not getattr(user, 'is_authenticated', False):
        return False
    return rules.has_perm(permission, user)


def can_view_profits(user) -> bool:
    return bool(user and user.is_authenticated) and (
        user.role == User.ROLE_SUPER_ADMIN or has_permission(user, 'sales.view_profits')
    )


def can_only_sell_from_company(user) -> bool:
    return bool(user and user.is_authenticated) and user.role == User.ROLE_SALES_EMPLOYEE


def is_admin_or_higher(user) -> bool:
    return bool(rbac.is_admin_or_higher(user))


def can_manage_users(user) -> bool:
    return has_permission(user, 'users.manage')


def can_view_reports(user) -> bool:
    return has_permission(user, 'reports.view')


def can_manage_settings(user) -> bool:
    return has_permission(user, 'settings.manage')


def can_agent_access(user, resource_type: str, resource: Optional[Any]) -> bool:
    """
    Decide whether a user may touch a resource.

    Non-agent users are not restricted here (role permissions still apply).
    Agents may only reach inventory in their own warehouse, their own sales,
    their own ledger transactions, and documents for their own sales.

    Args:
        user: Requesting user
        resource_type: 'inventory', 'sales', 'transactions' or 'documents'
        resource: Model instance being accessed
    """
    if not user or not getattr(user, 'is_authenticated', False):
        return False
    if user.role != User.ROLE_AGENT:
        return True

    agent = user.agent
    if agent is None or resource is None:
        return False

    if resource_type == 'inventory':
        return agent.warehouse_id is not None and resource.current_warehouse_id == agent.warehouse_id
    if resource_type == 'sales':
        return resource.agent_id == agent.id
    if resource_type == 'transactions':
        return resource.agent_id == agent.id
    if resource_type == 'documents':
        return resource.agent_id == agent.id
    return False


class HasPermission(BasePermission):
    """
    Grants access when the user's role carries ``required_permission``.

    Subclass per permission with ``HasPermission.for_perm('agents.view')``.
    """
    required_permission: Optional[str] = None
    message = 'You do not have permission to perform this action.'

    @classmethod
    def for_perm(cls, permission: str):
        return type(
            f'Has_{permission.replace(".", "_")}',
            (cls,),
            {'required_permission': permission},
        )

    def has_permission(self, request, view):
        if self.required_permission is None:
            return False
        return has_permission(request.user, self.required_permission)


class ReadOnlyOrPermission(HasPermission):
    """Safe methods need ``read_permission``; writes need ``required_permission``."""
    read_permission: Optional[str] = None

    @classmethod
    def for_perms(cls, read_permission: str, write_permission: str):
        return type(
            f'ReadOnlyOr_{write_permission.replace(".", "_")}',
            (cls,),
            {'read_permission': read_permission, 'required_permission': write_permission},
        )

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return has_permission(request.user, self.read_permission)
        return has_permission(request.user, self.required_permission)


class IsSuperAdmin(BasePermission):
    message = 'Only super admins can perform this action.'

    def has_permission(self, request, view):
        return bool(rbac.is_super_admin(request.user))


class IsAdminOrHigher(BasePermission):
    message = 'Only administrators can perform this action.'

    def has_permission(self, request, view):
        return is_admin_or_higher(request.user)


class CanViewReports(BasePermission):
    message = 'You do not have access to reports.'

    def has_permission(self, request, view):
        return can_view_reports(request.user)
