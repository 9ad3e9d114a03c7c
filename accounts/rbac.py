"""Centralized role-based access control definitions using django-rules."""

from __future__ import annotations

import rules

from accounts.models import User

ALL = 'all'

# Permission codenames granted by each role. ``all`` grants everything.
ROLE_PERMISSIONS = {
    User.ROLE_SUPER_ADMIN: [ALL],
    User.ROLE_ADMIN_MANAGER: [
        'agents.view', 'agents.create', 'agents.edit',
        'inventory.view', 'inventory.create', 'inventory.edit', 'inventory.transfer',
        'sales.view', 'sales.create', 'sales.edit', 'sales.view_profits',
        'documents.view', 'documents.edit',
    ],
    User.ROLE_SALES_EMPLOYEE: [
        'sales.create_company_only',
        'inventory.view_company_only',
    ],
    User.ROLE_ADMIN: [
        'agents.view', 'agents.create', 'agents.edit',
        'inventory.view', 'inventory.create', 'inventory.edit', 'inventory.transfer',
        'sales.view', 'sales.create', 'sales.edit', 'sales.view_profits',
        'documents.view', 'documents.edit',
        'reports.view',
    ],
    User.ROLE_AGENT: [
        'sales.create_agent_only',
        'inventory.view_own',
        'documents.view_own',
    ],
    User.ROLE_SHOWROOM_USER: [
        'inventory.view',
        'sales.create_company_only',
    ],
}

# Permissions no role table entry grants; only ``all`` reaches them.
SUPER_ADMIN_ONLY = [
    'reports.view',
    'settings.manage',
    'users.manage',
    'agents.fix_balances',
]

PERMISSION_CODENAMES = sorted(
    {perm for perms in ROLE_PERMISSIONS.values() for perm in perms if perm != ALL}
    | set(SUPER_ADMIN_ONLY)
)


def role_has_permission(role: str | None, permission: str) -> bool:
    perms = ROLE_PERMISSIONS.get(role or '')
    if not perms:
        return False
    return ALL in perms or permission in perms


def permissions_for_role(role: str | None) -> list[str]:
    perms = ROLE_PERMISSIONS.get(role or '', [])
    if ALL in perms:
        return list(PERMISSION_CODENAMES)
    return sorted(perms)


@rules.predicate
def is_active_user(user: User):
    return bool(user and user.is_authenticated and user.is_active)


@rules.predicate
def is_super_admin(user: User):
    return is_active_user(user) and user.role == User.ROLE_SUPER_ADMIN


@rules.predicate
def is_admin_or_higher(user: User):
    return is_active_user(user) and user.role in User.ADMIN_ROLES


@rules.predicate
def is_agent(user: User):
    return is_active_user(user) and user.role == User.ROLE_AGENT


@rules.predicate
def is_sales_employee(user: User):
    return is_active_user(user) and user.role == User.ROLE_SALES_EMPLOYEE


def _grants(permission: str):
    @rules.predicate(name=f'grants:{permission}')
    def predicate(user: User):
        return is_active_user(user) and role_has_permission(user.role, permission)
    return predicate


for _codename in PERMISSION_CODENAMES:
    rules.add_perm(_codename, _grants(_codename))


# Composite permissions used by the API ------------------------------------

can_view_inventory = _grants('inventory.view') | _grants('inventory.view_company_only') | _grants('inventory.view_own')
can_create_sales = _grants('sales.create') | _grants('sales.create_company_only')
can_view_sales = _grants('sales.view') | is_agent
can_view_documents = _grants('documents.view') | _grants('documents.view_own')

rules.add_perm('inventory.browse', can_view_inventory)
rules.add_perm('sales.create_company_sale', can_create_sales)
rules.add_perm('sales.create_agent_sale', _grants('sales.create') | _grants('sales.create_agent_only'))
rules.add_perm('sales.browse', can_view_sales)
rules.add_perm('documents.browse', can_view_documents)
rules.add_perm('agents.browse', _grants('agents.view') | is_agent)
