"""
Role-based access control.

The permission table maps each role to the resources it may touch and the
actions allowed on each of them. It is assembled once at import time and is
read-only afterwards; any (role, resource) pair missing from the table grants
nothing.

Usage:

    authorize(principal.roles, Resource.product, Action.create)
"""

from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping


class Role(str, Enum):
    admin = "admin"
    business_owner = "businessOwner"
    business_staff = "businessStaff"
    customer = "customer"


class Resource(str, Enum):
    business = "business"
    user = "user"
    waitlist_entry = "waitlist-entry"
    review = "review"
    service_group = "service-group"
    admin_user = "admin-user"
    appointment = "appointment"
    product_order_item = "product-order-item"
    product_order = "product-order"
    product = "product"
    staff_recurring_availability = "staff-recurring-availability"
    staff_service_assignment = "staff-service-assignment"


class Action(str, Enum):
    create = "create"
    delete = "delete"
    update = "update"
    view = "view"


PermissionTable = Mapping[Role, Mapping[Resource, frozenset]]

ALL_ACTIONS = frozenset(Action)
CRUD = ALL_ACTIONS
READ_ONLY = frozenset({Action.view})

# Resources without an entry for a role are denied to that role.
_BUSINESS_OWNER = {
    Resource.business: CRUD,
    Resource.user: {Action.update, Action.view, Action.create},
    Resource.waitlist_entry: CRUD,
    Resource.review: READ_ONLY,
    Resource.service_group: CRUD,
    Resource.appointment: CRUD,
    Resource.product_order_item: CRUD,
    Resource.product_order: CRUD,
    Resource.product: CRUD,
    Resource.staff_recurring_availability: CRUD,
    Resource.staff_service_assignment: CRUD,
}

# No waitlist-entry, service-group, appointment, review or admin-user access.
_BUSINESS_STAFF = {
    Resource.user: {Action.update, Action.view, Action.create},
    Resource.business: {Action.view, Action.update},
    Resource.product: CRUD,
    Resource.product_order_item: {Action.view, Action.delete},
    Resource.product_order: {Action.view, Action.delete},
    Resource.staff_recurring_availability: CRUD,
    Resource.staff_service_assignment: CRUD,
}

_CUSTOMER = {
    Resource.business: READ_ONLY,
    Resource.appointment: CRUD,
    Resource.review: CRUD,
    Resource.product_order_item: CRUD,
    Resource.product_order: CRUD,
    Resource.product: READ_ONLY,
    Resource.user: {Action.update, Action.view, Action.create},
}


def _freeze(statements: Mapping[Resource, Iterable[Action]]) -> Mapping[Resource, frozenset]:
    return MappingProxyType({resource: frozenset(actions) for resource, actions in statements.items()})


def build_permission_table() -> PermissionTable:
    """Assemble the immutable role -> resource -> actions table."""
    return MappingProxyType(
        {
            Role.admin: _freeze({resource: ALL_ACTIONS for resource in Resource}),
            Role.business_owner: _freeze(_BUSINESS_OWNER),
            Role.business_staff: _freeze(_BUSINESS_STAFF),
            Role.customer: _freeze(_CUSTOMER),
        }
    )


DEFAULT_PERMISSIONS: PermissionTable = build_permission_table()


def authorize(
    roles: Iterable,
    resource: Resource,
    action: Action,
    table: PermissionTable = DEFAULT_PERMISSIONS,
) -> bool:
    """
    Return True if any of ``roles`` grants ``action`` on ``resource``.

    Holding the permission under a single role is enough. An empty role set,
    or roles the table does not know, never grant anything.
    """
    for role in roles or ():
        statements = table.get(role)
        if not statements:
            continue
        allowed = statements.get(resource)
        if allowed and action in allowed:
            return True
    return False


def allowed_actions(
    roles: Iterable, resource: Resource, table: PermissionTable = DEFAULT_PERMISSIONS
) -> frozenset:
    """Union of the actions ``roles`` grant on ``resource``."""
    granted = set()
    for role in roles or ():
        granted |= table.get(role, {}).get(resource, frozenset())
    return frozenset(granted)
