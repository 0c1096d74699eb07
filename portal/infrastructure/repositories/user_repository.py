"""Persistence layer for user data."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from portal.domain.entities import Role, User
from portal.infrastructure.models import RoleModel, UserModel
from portal.utils import ensure_app_naive_datetime, ensure_app_timezone


class UserRepository:
    """Provide the user lookups needed by authentication and audience resolution."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self._get_model(id=user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        model = (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(func.lower(UserModel.email) == email.strip().lower())
            .first()
        )
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel()
        model.role_id = user.role.id
        model.name = user.name
        model.email = user.email
        model.password = user.password
        model.is_active = user.is_active
        if user.created_at is not None:
            model.created_at = ensure_app_naive_datetime(user.created_at)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def set_active(self, user_id: int, is_active: bool) -> None:
        model = self._get_model(id=user_id)
        if model is None:
            msg = f"User with id {user_id} not found"
            raise ValueError(msg)
        model.is_active = is_active
        self.session.add(model)
        self.session.commit()

    def list_active_ids(self) -> set[int]:
        query = self.session.query(UserModel.id).filter(UserModel.is_active.is_(True))
        return {user_id for (user_id,) in query.all()}

    def list_active_ids_by_role_aliases(self, aliases: Iterable[str]) -> set[int]:
        normalized = [alias.lower() for alias in aliases]
        if not normalized:
            return set()
        query = (
            self.session.query(UserModel.id)
            .join(RoleModel, UserModel.role_id == RoleModel.id)
            .filter(UserModel.is_active.is_(True))
            .filter(func.lower(RoleModel.alias).in_(normalized))
        )
        return {user_id for (user_id,) in query.all()}

    def list_active_ids_in(self, user_ids: Iterable[int]) -> set[int]:
        unique_ids = {int(user_id) for user_id in user_ids}
        if not unique_ids:
            return set()
        query = (
            self.session.query(UserModel.id)
            .filter(UserModel.id.in_(unique_ids))
            .filter(UserModel.is_active.is_(True))
        )
        return {user_id for (user_id,) in query.all()}

    def get_map_by_ids(self, user_ids: Sequence[int]) -> dict[int, User]:
        if not user_ids:
            return {}

        unique_ids = {int(user_id) for user_id in user_ids}
        query = (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(UserModel.id.in_(unique_ids))
        )
        return {model.id: self._to_entity(model) for model in query.all()}

    def _get_model(self, **filters) -> UserModel | None:
        query = self.session.query(UserModel).options(joinedload(UserModel.role))
        return query.filter_by(**filters).first()

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            role=UserRepository._role_to_entity(model.role),
            name=model.name,
            email=model.email,
            password=model.password,
            is_active=model.is_active,
            created_at=ensure_app_timezone(model.created_at),
        )

    @staticmethod
    def _role_to_entity(model_role: RoleModel | None) -> Role:
        if model_role is None:
            msg = "User role is not set"
            raise ValueError(msg)
        return Role(id=model_role.id, name=model_role.name, alias=model_role.alias)


__all__ = ["UserRepository"]
