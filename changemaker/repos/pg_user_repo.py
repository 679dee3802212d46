"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import func, select, text, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from changemaker.core.errors import SyncConflict
from changemaker.db.errors import translate_db_errors
from changemaker.db.tables import UQ_USER_EMAIL, UserRow
from changemaker.models.user import Role, User


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        lock_timeout_ms: int = 5000,
        statement_timeout_ms: int = 10000,
    ) -> None:
        self._session = session
        self._lock_timeout_ms = lock_timeout_ms
        self._statement_timeout_ms = statement_timeout_ms

    async def get_by_id(self, user_id: UUID) -> User | None:
        stmt = select(UserRow).where(UserRow.id == user_id)
        with translate_db_errors("fetch user"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_user(row)

    async def get_by_external_id(self, external_id: str) -> User | None:
        stmt = select(UserRow).where(UserRow.external_id == external_id)
        with translate_db_errors("fetch user"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_user(row)

    async def get_in_workspace(self, workspace_id: UUID, user_id: UUID) -> User | None:
        stmt = select(UserRow).where(
            UserRow.id == user_id, UserRow.workspace_id == workspace_id
        )
        with translate_db_errors("fetch user"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_user(row)

    async def upsert_by_external_id(
        self,
        *,
        external_id: str,
        email: str,
        role_on_create: Role,
        role_on_update: Role | None,
    ) -> User:
        """One INSERT .. ON CONFLICT (external_id) DO UPDATE.

        Concurrent first sign-ins for the same subject both land on the same
        row; the database arbitrates, not a read-then-write in Python.

        lock_timeout and statement_timeout are scoped with SET LOCAL, which
        outlives the savepoint until the outer transaction ends, so both go
        back to DEFAULT after the upsert.  A failed upsert rolls back the
        savepoint and the SET LOCALs with it.
        """
        stmt = insert(UserRow).values(
            id=uuid4(),
            external_id=external_id,
            email=email,
            role=role_on_create.value,
        )
        on_update: dict[str, object] = {"email": stmt.excluded.email}
        if role_on_update is not None:
            on_update["role"] = role_on_update.value
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserRow.external_id], set_=on_update
        ).returning(UserRow)

        with translate_db_errors(
            "sync user",
            {
                UQ_USER_EMAIL: lambda: SyncConflict(
                    "email is already linked to another identity"
                )
            },
        ):
            async with self._session.begin_nested():
                await self._session.execute(
                    text(f"SET LOCAL lock_timeout = {int(self._lock_timeout_ms)}")
                )
                await self._session.execute(
                    text(
                        f"SET LOCAL statement_timeout = {int(self._statement_timeout_ms)}"
                    )
                )
                row = (await self._session.execute(stmt)).scalar_one()
                await self._session.execute(text("SET LOCAL lock_timeout = DEFAULT"))
                await self._session.execute(text("SET LOCAL statement_timeout = DEFAULT"))
        return _row_to_user(row)

    async def set_workspace(
        self, user_id: UUID, workspace_id: UUID | None, role: Role
    ) -> User | None:
        stmt = (
            update(UserRow)
            .where(UserRow.id == user_id)
            .values(workspace_id=workspace_id, role=role.value)
            .returning(UserRow)
        )
        with translate_db_errors("update membership"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_user(row)

    async def update_role_in_workspace(
        self, workspace_id: UUID, user_id: UUID, role: Role
    ) -> User | None:
        stmt = (
            update(UserRow)
            .where(UserRow.id == user_id, UserRow.workspace_id == workspace_id)
            .values(role=role.value)
            .returning(UserRow)
        )
        with translate_db_errors("update member role"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_user(row)

    async def list_by_workspace(self, workspace_id: UUID) -> list[User]:
        stmt = (
            select(UserRow)
            .where(UserRow.workspace_id == workspace_id)
            .order_by(UserRow.email)
        )
        with translate_db_errors("list members"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_user(r) for r in rows]

    async def count_by_workspace(self, workspace_id: UUID) -> int:
        stmt = select(func.count()).where(UserRow.workspace_id == workspace_id)
        with translate_db_errors("count members"):
            return (await self._session.execute(stmt)).scalar_one()

    async def detach_workspace(self, workspace_id: UUID) -> int:
        stmt = (
            update(UserRow)
            .where(UserRow.workspace_id == workspace_id)
            .values(workspace_id=None, role=Role.PARTICIPANT.value)
        )
        with translate_db_errors("detach members"):
            result = await self._session.execute(stmt)
        return result.rowcount


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        email=row.email,
        external_id=row.external_id,
        role=Role.coerce(row.role) or Role.PARTICIPANT,
        workspace_id=row.workspace_id,
    )
