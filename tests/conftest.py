"""
Pytest configuration and fixtures.
"""

import os

# Configuración de pruebas antes de importar la aplicación
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-0123456789-abcdefghijklmnop"
os.environ["JWT_ISSUER"] = "Grimorio"
os.environ["JWT_AUDIENCE"] = "GrimorioClient"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["SEED_ON_STARTUP"] = "false"

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from grimorio.core.security import create_access_token, get_password_hash
from grimorio.database import Base, get_db
from grimorio.main import app
from grimorio.models.auth import Permission, Role, RolePermission, User, UserRole
from grimorio.models.organization import Branch, Employee, Position
from grimorio.schemas.auth import JwtUser
from grimorio.seed import seed_initial_data

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
ADMIN_EMAIL = "admin@elcalderoflameante.com"
ADMIN_PASSWORD = "Admin123"


@pytest.fixture(scope="function")
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="function")
async def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sesión fresca sobre una base en memoria recién creada."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Cliente HTTP con la dependencia de DB apuntando a la base de pruebas.
    Cada solicitud usa su propia sesión, igual que en producción.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def seeded(db_session: AsyncSession) -> SimpleNamespace:
    """Sucursal MAIN con permisos base, roles Administrador/Vendedor y el admin."""
    await seed_initial_data(db_session)
    await db_session.commit()

    branch = await db_session.scalar(select(Branch).where(Branch.code == "MAIN"))
    admin = await db_session.scalar(select(User).where(User.email == ADMIN_EMAIL))
    roles = {r.name: r for r in (await db_session.scalars(select(Role))).all()}
    permissions = {p.code: p for p in (await db_session.scalars(select(Permission))).all()}

    return SimpleNamespace(branch=branch, admin=admin, roles=roles, permissions=permissions)


@pytest.fixture
def admin_actor(seeded) -> JwtUser:
    return JwtUser(
        user_id=seeded.admin.id,
        branch_id=seeded.branch.id,
        roles=["Administrador"],
        permissions=sorted(seeded.permissions),
    )


@pytest.fixture
def auth_headers():
    """Arma el header Authorization para una identidad dada."""

    def _headers(actor: JwtUser) -> dict:
        return {"Authorization": f"Bearer {create_access_token(actor)}"}

    return _headers


@pytest.fixture
def make_branch(db_session: AsyncSession):
    """Crea otra sucursal (tenant) y la devuelve."""

    async def _make(code: str, name: str = "Sucursal Secundaria") -> Branch:
        branch_id = uuid.uuid4()
        branch = Branch(id=branch_id, branch_id=branch_id, created_by=uuid.uuid4(), name=name, code=code)
        db_session.add(branch)
        await db_session.commit()
        return branch

    return _make


@pytest.fixture
def make_position(db_session: AsyncSession):
    async def _make(branch_id: uuid.UUID, name: str = "Mesero") -> Position:
        position = Position(branch_id=branch_id, created_by=uuid.uuid4(), name=name, employees=[])
        db_session.add(position)
        await db_session.commit()
        return position

    return _make


@pytest.fixture
def make_employee(db_session: AsyncSession):
    async def _make(position: Position, identification: str, first_name: str = "Ana", **fields) -> Employee:
        employee = Employee(
            branch_id=position.branch_id,
            created_by=uuid.uuid4(),
            first_name=first_name,
            last_name=fields.pop("last_name", "Pérez"),
            identification_number=identification,
            hire_date=datetime(2024, 1, 15, tzinfo=timezone.utc),
            position=position,
            **fields,
        )
        db_session.add(employee)
        await db_session.commit()
        return employee

    return _make


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Crea un usuario con contraseña y los roles indicados (objetos Role)."""

    async def _make(branch_id: uuid.UUID, email: str, password: str = "Secreto123", roles=(), **fields) -> User:
        user = User(
            branch_id=branch_id,
            created_by=uuid.uuid4(),
            email=email,
            password_hash=get_password_hash(password),
            first_name=fields.pop("first_name", "Carlos"),
            last_name=fields.pop("last_name", "Gómez"),
            user_roles=[],
            **fields,
        )
        for role in roles:
            user.user_roles.append(UserRole(branch_id=branch_id, created_by=user.created_by, role=role))
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_role(db_session: AsyncSession):
    """Crea un rol con los permisos indicados (objetos Permission)."""

    async def _make(branch_id: uuid.UUID, name: str, permissions=(), is_active: bool = True) -> Role:
        role = Role(
            branch_id=branch_id,
            created_by=uuid.uuid4(),
            name=name,
            is_active=is_active,
            role_permissions=[],
            user_roles=[],
        )
        for permission in permissions:
            role.role_permissions.append(
                RolePermission(branch_id=branch_id, created_by=role.created_by, permission=permission)
            )
        db_session.add(role)
        await db_session.commit()
        return role

    return _make


@pytest.fixture
def make_permission(db_session: AsyncSession):
    async def _make(branch_id: uuid.UUID, code: str, category: str = "") -> Permission:
        permission = Permission(branch_id=branch_id, created_by=uuid.uuid4(), code=code, category=category)
        db_session.add(permission)
        await db_session.commit()
        return permission

    return _make
