"""Audience resolution: turn a recipient policy into concrete user ids."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from portal.domain.entities import ADMIN_TIER_ROLES, RecipientType
from portal.domain.errors import ValidationError
from portal.infrastructure.repositories import UserRepository


def resolve_audience(
    session: Session,
    recipient_type: RecipientType,
    recipient_ids: Iterable[int] | None = None,
) -> set[int]:
    """Return the ids of the active users addressed by ``recipient_type``.

    The lookup only reads the user table. For ``specific`` audiences every
    listed id must belong to an active user, otherwise a
    :class:`ValidationError` names the offending ids. Accounts can change
    between authoring and sending, so callers resolve again on every fan-out.
    """

    repository = UserRepository(session)
    policy = RecipientType(recipient_type)

    if policy is RecipientType.ALL:
        return repository.list_active_ids()

    if policy is RecipientType.ADMIN:
        return repository.list_active_ids_by_role_aliases(ADMIN_TIER_ROLES)

    requested = {int(user_id) for user_id in recipient_ids or []}
    if not requested:
        raise ValidationError("Specific recipients are required")
    active = repository.list_active_ids_in(requested)
    missing = requested - active
    if missing:
        listed = ", ".join(str(user_id) for user_id in sorted(missing))
        raise ValidationError(f"Recipients are not active users: {listed}")
    return active


__all__ = ["resolve_audience"]
