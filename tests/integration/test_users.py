"""
Administración de usuarios: unicidad de email, soft delete, roles y contraseña.
"""

import pytest
from sqlalchemy import select

from grimorio.core.exceptions import Forbidden, InvalidOperation, NotFound
from grimorio.core.security import get_password_hash, verify_password
from grimorio.models.auth import RefreshToken, User
from grimorio.schemas.auth import (
    AssignRolesRequest,
    ChangePasswordRequest,
    JwtUser,
    LoginRequest,
    UserCreate,
    UserUpdate,
)
from grimorio.services import auth as auth_service
from grimorio.services import users as user_service
from grimorio.services.common import flush_or_invalid


def _new_user(email="nuevo@test.com") -> UserCreate:
    return UserCreate(email=email, first_name="Lucía", last_name="Martínez", password="Clave123")


@pytest.mark.asyncio
async def test_create_user_hashes_password_and_fills_audit(db_session, admin_actor):
    created = await user_service.create_user(db_session, admin_actor, _new_user())

    stored = await db_session.scalar(select(User).where(User.id == created.id))
    assert stored.branch_id == admin_actor.branch_id
    assert stored.created_by == admin_actor.user_id
    assert stored.password_hash != "Clave123"
    assert verify_password("Clave123", stored.password_hash)
    assert created.roles == []


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected(db_session, admin_actor):
    await user_service.create_user(db_session, admin_actor, _new_user())

    with pytest.raises(InvalidOperation, match="email"):
        await user_service.create_user(db_session, admin_actor, _new_user())


@pytest.mark.asyncio
async def test_email_of_a_deleted_user_stays_taken(db_session, admin_actor):
    created = await user_service.create_user(db_session, admin_actor, _new_user())
    await user_service.delete_user(db_session, admin_actor, created.id)

    with pytest.raises(InvalidOperation):
        await user_service.create_user(db_session, admin_actor, _new_user())


@pytest.mark.asyncio
async def test_store_rejects_duplicate_email_even_without_precheck(db_session, seeded):
    for _ in range(2):
        db_session.add(User(
            branch_id=seeded.branch.id,
            created_by=seeded.admin.id,
            email="carrera@test.com",
            password_hash=get_password_hash("Clave123"),
            first_name="A",
            last_name="B",
        ))

    with pytest.raises(InvalidOperation):
        await flush_or_invalid(db_session, "El email ya está registrado.")


@pytest.mark.asyncio
async def test_deleted_user_is_hidden_but_row_remains(db_session, admin_actor):
    created = await user_service.create_user(db_session, admin_actor, _new_user())

    await user_service.delete_user(db_session, admin_actor, created.id)

    with pytest.raises(NotFound):
        await user_service.get_user(db_session, admin_actor, created.id)
    listed = await user_service.list_users(db_session, admin_actor)
    assert created.id not in [u.id for u in listed]

    row = await db_session.scalar(
        select(User).where(User.id == created.id).execution_options(include_deleted=True)
    )
    assert row is not None
    assert row.is_deleted is True
    assert row.deleted_by == admin_actor.user_id
    assert row.deleted_at is not None


@pytest.mark.asyncio
async def test_update_user_records_who_changed_it(db_session, admin_actor):
    created = await user_service.create_user(db_session, admin_actor, _new_user())

    updated = await user_service.update_user(
        db_session, admin_actor, created.id, UserUpdate(first_name="Lu", last_name="M", is_active=False)
    )

    assert updated.first_name == "Lu"
    assert updated.is_active is False
    row = await db_session.scalar(select(User).where(User.id == created.id))
    assert row.updated_by == admin_actor.user_id


@pytest.mark.asyncio
async def test_users_of_other_branches_are_not_visible(db_session, seeded, admin_actor, make_branch, make_user):
    other = await make_branch("SUC2")
    foreign = await make_user(other.id, "otro@test.com")

    with pytest.raises(NotFound):
        await user_service.get_user(db_session, admin_actor, foreign.id)
    emails = [u.email for u in await user_service.list_users(db_session, admin_actor)]
    assert "otro@test.com" not in emails


# ─── Asignación de roles ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_assign_roles_replaces_the_set(db_session, seeded, admin_actor, make_user):
    user = await make_user(seeded.branch.id, "rol@test.com", roles=[seeded.roles["Vendedor"]])

    result = await user_service.assign_roles_to_user(
        db_session, admin_actor, user.id, AssignRolesRequest(role_ids=[seeded.roles["Administrador"].id])
    )

    assert result.roles == ["Administrador"]
    assert [d.role_name for d in result.role_details] == ["Administrador"]


@pytest.mark.asyncio
async def test_assign_foreign_role_leaves_previous_roles(
    db_session, seeded, admin_actor, make_branch, make_role, make_user
):
    user = await make_user(seeded.branch.id, "rol@test.com", roles=[seeded.roles["Vendedor"]])
    other = await make_branch("SUC2")
    foreign_role = await make_role(other.id, "Ajeno")

    with pytest.raises(NotFound):
        await user_service.assign_roles_to_user(
            db_session,
            admin_actor,
            user.id,
            AssignRolesRequest(role_ids=[seeded.roles["Administrador"].id, foreign_role.id]),
        )

    current = await user_service.get_user(db_session, admin_actor, user.id)
    assert current.roles == ["Vendedor"]


# ─── Cambio de contraseña ────────────────────────────────────────────────

def _self(user) -> JwtUser:
    return JwtUser(user_id=user.id, branch_id=user.branch_id, roles=["Vendedor"], permissions=[])


@pytest.mark.asyncio
async def test_change_password_requires_the_current_password(db_session, seeded, make_user):
    user = await make_user(seeded.branch.id, "clave@test.com", roles=[seeded.roles["Vendedor"]])

    with pytest.raises(InvalidOperation):
        await user_service.change_password(
            db_session, _self(user), user.id,
            ChangePasswordRequest(current_password="Equivocada", new_password="Nueva1234"),
        )


@pytest.mark.asyncio
async def test_cannot_change_someone_elses_password(db_session, seeded, make_user):
    user = await make_user(seeded.branch.id, "clave@test.com", roles=[seeded.roles["Vendedor"]])

    with pytest.raises(Forbidden):
        await user_service.change_password(
            db_session, _self(user), seeded.admin.id,
            ChangePasswordRequest(current_password="Secreto123", new_password="Nueva1234"),
        )


@pytest.mark.asyncio
async def test_change_password_updates_hash_and_revokes_sessions(db_session, seeded, make_user):
    user = await make_user(seeded.branch.id, "clave@test.com", roles=[seeded.roles["Vendedor"]])
    tokens = await auth_service.login(db_session, LoginRequest(email="clave@test.com", password="Secreto123"))

    await user_service.change_password(
        db_session, _self(user), user.id,
        ChangePasswordRequest(current_password="Secreto123", new_password="Nueva1234"),
    )

    row = await db_session.scalar(select(User).where(User.id == user.id))
    assert verify_password("Nueva1234", row.password_hash)
    assert not verify_password("Secreto123", row.password_hash)

    revoked = await db_session.scalars(select(RefreshToken.revoked_at).where(RefreshToken.user_id == user.id))
    assert all(value is not None for value in revoked.all())
    assert tokens.refresh_token
