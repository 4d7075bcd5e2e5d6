# This project was developed with assistance from AI tools.
"""Shared data scope filtering for service queries.

Centralizes the DataScope -> SQL WHERE logic so that each resource service
applies the same rules. The join_to_application parameter handles the
different join paths needed for Application queries vs. child-entity
queries (Documents, Comments).
"""

from db import Applicant, Application
from db.enums import ApplicationStatus
from sqlalchemy import false

from ..schemas.auth import DataScope, UserContext
from .status import step_index_of

# Always visible to every reviewer regardless of queue position.
_ALWAYS_VISIBLE = (ApplicationStatus.PASTOR_DOCUMENT, ApplicationStatus.REJECTED)


def visible_statuses(min_step: int) -> list[ApplicationStatus]:
    """Statuses a reviewer whose queue starts at ``min_step`` may see."""
    return [
        s for s in ApplicationStatus
        if s in _ALWAYS_VISIBLE or step_index_of(s) >= min_step
    ]


def apply_data_scope(stmt, scope: DataScope, user: UserContext, *, join_to_application=None):
    """Apply data scope filtering to a SQLAlchemy query.

    Args:
        stmt: A SQLAlchemy select statement.
        scope: The caller's DataScope.
        user: The caller's UserContext.
        join_to_application: ORM relationship attribute to join to reach
            Application (e.g., ``Document.application``). Pass ``None``
            when querying Application directly.

    Returns:
        The filtered statement.
    """
    if scope.full_pipeline:
        return stmt
    if scope.own_data_only:
        if not scope.user_id:
            return stmt.where(false())
        if join_to_application is not None:
            stmt = stmt.join(join_to_application)
        return stmt.join(Applicant, Applicant.id == Application.applicant_id).where(
            Applicant.keycloak_user_id == scope.user_id,
        )
    if scope.min_step is not None:
        if join_to_application is not None:
            stmt = stmt.join(join_to_application)
        return stmt.where(Application.status.in_(visible_statuses(scope.min_step)))
    return stmt.where(false())
