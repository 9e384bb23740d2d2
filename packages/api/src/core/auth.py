# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies.

Used by the middleware layer and by tests that build personas. Keeping them
separate from ``middleware/auth.py`` keeps FastAPI/Starlette imports out of
the workflow services.
"""

from db.enums import UserRole

from ..schemas.auth import DataScope


def build_data_scope(role: UserRole, user_id: str, brokerage_id: str | None = None) -> DataScope:
    """Build data scope rules based on the user's role.

    Brokers are scoped to the brokerage agent id carried in their token, or
    to their own subject when the realm does not map one.
    """
    if role in UserRole.party_roles():
        return DataScope(own_data_only=True, user_id=user_id)
    if role == UserRole.BROKER:
        return DataScope(broker_id=brokerage_id or user_id, user_id=user_id)
    if role in UserRole.decision_roles():
        return DataScope(full_pipeline=True)
    return DataScope()
