"""
Role and capability definitions.

Routes ask for a capability (require_permission) and this module answers
from the seller's role.

Roles are a closed set:
- seller: issues tickets and sees their own sales
- admin:  everything a seller can do, plus prizes, draw and reports
"""

ROLE_SELLER = "seller"
ROLE_ADMIN = "admin"

ROLES = (ROLE_SELLER, ROLE_ADMIN)


# Each permission is defined as: (code, description)
PERMISSION_DEFINITIONS = [
    ("ISSUE_TICKET", "Issue tickets for buyers"),
    ("VIEW_OWN_TICKETS", "View tickets issued by oneself"),
    ("VIEW_ALL_TICKETS", "View every ticket and look up tickets by number"),
    ("MANAGE_PRIZES", "Edit prize titles and images"),
    ("SET_WINNING_NUMBER", "Assign winning numbers at draw time"),
    ("VIEW_SELLERS", "List sellers"),
    ("VIEW_STATS", "View per-seller sales statistics"),
]


ROLE_PERMISSIONS = {
    ROLE_SELLER: frozenset({
        "ISSUE_TICKET",
        "VIEW_OWN_TICKETS",
    }),
    # Admin has all permissions
    ROLE_ADMIN: frozenset(code for code, _ in PERMISSION_DEFINITIONS),
}


def get_role_permissions(role: str) -> frozenset:
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(seller, permission_code: str) -> bool:
    """Single capability check used by every protected route."""
    if seller is None:
        return False
    return permission_code in get_role_permissions(seller.role)
