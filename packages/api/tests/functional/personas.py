# This project was developed with assistance from AI tools.
"""Persona factories for functional tests.

Each function returns a UserContext matching the DataScope built by
``core/auth.py:build_data_scope()`` for that role. Fixed user IDs
ensure cross-test consistency.
"""

from db.enums import UserRole

from src.core.auth import build_data_scope
from src.schemas.auth import UserContext

# Fixed IDs for cross-test referencing
DANA_USER_ID = "dana-whitfield-001"
OMAR_USER_ID = "omar-haddad-002"
BROKER_USER_ID = "corcoran-broker-ellen"
BROKER_OTHER_USER_ID = "elliman-broker-raj"
AGENT_USER_ID = "mgmt-agent-lucia"
ADMIN_USER_ID = "admin-user"
BOARD_USER_ID = "board-president"


def _persona(user_id: str, role: UserRole, email: str, name: str) -> UserContext:
    return UserContext(
        user_id=user_id,
        role=role,
        email=email,
        name=name,
        data_scope=build_data_scope(role, user_id),
    )


def applicant_dana() -> UserContext:
    return _persona(DANA_USER_ID, UserRole.APPLICANT, "dana@example.com", "Dana Whitfield")


def applicant_omar() -> UserContext:
    return _persona(OMAR_USER_ID, UserRole.APPLICANT, "omar@example.com", "Omar Haddad")


def broker() -> UserContext:
    return _persona(BROKER_USER_ID, UserRole.BROKER, "ellen@corcoran.example", "Ellen Park")


def broker_other() -> UserContext:
    return _persona(BROKER_OTHER_USER_ID, UserRole.BROKER, "raj@elliman.example", "Raj Mehta")


def agent() -> UserContext:
    return _persona(AGENT_USER_ID, UserRole.TRANSACTION_AGENT, "lucia@mgmt.example", "Lucia Ortiz")


def admin() -> UserContext:
    return _persona(ADMIN_USER_ID, UserRole.ADMIN, "admin@mgmt.example", "Admin User")


def board_member() -> UserContext:
    return _persona(BOARD_USER_ID, UserRole.BOARD, "president@board.example", "Board President")
