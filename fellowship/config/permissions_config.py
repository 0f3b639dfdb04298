"""
Roles and Capabilities Configuration
This config defines the closed set of membership roles and the capability
matrix derived from it. Every "who may do X" decision goes through
has_capability() so the policy lives in one place.
"""

from enum import Enum
from typing import Dict, List, Optional, Union


class MembershipRole(str, Enum):
    MEMBER = "member"
    SMALL_GROUP_LEADER = "small_group_leader"
    ZONE_LEADER = "zone_leader"
    PASTOR = "pastor"
    ADMIN = "admin"


class MembershipStatus(str, Enum):
    INVITED = "invited"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    REMOVED = "removed"


# Ascending authority; also the row order of the capability matrix
ROLE_HIERARCHY: List[MembershipRole] = [
    MembershipRole.MEMBER,
    MembershipRole.SMALL_GROUP_LEADER,
    MembershipRole.ZONE_LEADER,
    MembershipRole.PASTOR,
    MembershipRole.ADMIN,
]

# Define capabilities grouped by resource
CAPABILITIES = {
    "messages": {
        "actions": ["send", "send_event_chat"],
        "description": "Conversation messages and Event Chat"
    },
    "members": {
        "actions": ["read"],
        "description": "Tenant member directory"
    },
}

# Roles granted each capability. None means every role.
CAPABILITY_ROLES: Dict[str, Optional[List[MembershipRole]]] = {
    "messages:send": None,
    "messages:send_event_chat": None,
    "members:read": None,
}


def _coerce_role(role: Union[str, MembershipRole, None]) -> Optional[MembershipRole]:
    if role is None:
        return None
    try:
        return MembershipRole(role)
    except ValueError:
        return None


def _coerce_status(status: Union[str, MembershipStatus, None]) -> Optional[MembershipStatus]:
    if status is None:
        return None
    try:
        return MembershipStatus(status)
    except ValueError:
        return None


def has_capability(
    role: Union[str, MembershipRole, None],
    capability: str,
    status: Union[str, MembershipStatus, None] = MembershipStatus.ACTIVE,
) -> bool:
    """Single policy check: only active memberships with a listed role hold a capability."""
    if _coerce_status(status) != MembershipStatus.ACTIVE:
        return False
    actual = _coerce_role(role)
    if actual is None or capability not in CAPABILITY_ROLES:
        return False
    allowed = CAPABILITY_ROLES[capability]
    return allowed is None or actual in allowed


def capabilities_for(role: Union[str, MembershipRole, None], status: Union[str, MembershipStatus, None] = MembershipStatus.ACTIVE) -> List[str]:
    return sorted(c for c in CAPABILITY_ROLES if has_capability(role, c, status))


def get_capability_matrix():
    """
    Returns a dictionary with all capabilities and the roles holding them
    Format: {
        "capabilities": [
            {"name": "messages:send", "resource": "messages", "action": "send", "description": "..."},
            ...
        ],
        "roles": [
            {"name": "member", "capabilities": ["members:read", ...]},
            ...
        ]
    }
    """
    capabilities = []
    for resource, config in CAPABILITIES.items():
        for action in config["actions"]:
            capabilities.append({
                "name": f"{resource}:{action}",
                "resource": resource,
                "action": action,
                "description": f"{action.replace('_', ' ').capitalize()} ({config['description']})"
            })

    roles = [
        {"name": role.value, "capabilities": capabilities_for(role)}
        for role in ROLE_HIERARCHY
    ]

    return {
        "capabilities": capabilities,
        "roles": roles
    }
