# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies.

Used by the middleware layer and by service code that needs to rebuild a
caller's scope (e.g. dispatch retries run outside the request lifecycle).
"""

from db.enums import UserRole

from ..schemas.auth import DataScope

# Workflow step at which each reviewer's queue begins.
REVIEWER_ENTRY_STEP: dict[UserRole, int] = {
    UserRole.FBO_OFFICER: 1,
    UserRole.DIVISION_MANAGER: 2,
    UserRole.HOD: 3,
    UserRole.SECRETARY_GENERAL: 4,
    UserRole.CEO: 5,
}


def build_data_scope(role: UserRole, user_id: str) -> DataScope:
    """Build data scope rules based on the user's role."""
    if role == UserRole.APPLICANT:
        return DataScope(own_data_only=True, user_id=user_id)
    if role in REVIEWER_ENTRY_STEP:
        return DataScope(min_step=REVIEWER_ENTRY_STEP[role])
    if role == UserRole.ADMIN:
        return DataScope(full_pipeline=True)
    # unknown -- own data only, and no user id means nothing matches
    return DataScope(own_data_only=True)
