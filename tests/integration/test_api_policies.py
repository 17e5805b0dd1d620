"""
Autorización por política sobre los endpoints y traducción de errores a HTTP.
"""
import uuid

import pytest

from grimorio.schemas.auth import JwtUser


def _actor(seeded, roles=(), permissions=()) -> JwtUser:
    return JwtUser(
        user_id=uuid.uuid4(),
        branch_id=seeded.branch.id,
        roles=list(roles),
        permissions=list(permissions),
    )


@pytest.mark.asyncio
async def test_health_and_request_id(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["x-request-id"] == "abc-123"


@pytest.mark.asyncio
async def test_missing_permission_is_forbidden(client, seeded, auth_headers):
    seller = _actor(seeded, roles=["Vendedor"], permissions=["POS.Sell"])

    response = await client.get("/api/v1/employees/", headers=auth_headers(seller))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_role_passes_employee_policies(client, seeded, auth_headers):
    admin = _actor(seeded, roles=["Administrador"])

    response = await client.get("/api/v1/employees/?page_number=1&page_size=10", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["items"] == []
    assert body["total_count"] == 0
    assert body["page_size"] == 10


@pytest.mark.asyncio
async def test_view_permission_does_not_allow_create(client, seeded, auth_headers, make_position):
    position = await make_position(seeded.branch.id)
    viewer = _actor(seeded, roles=["RRHH"], permissions=["RRHH.ViewEmployees"])
    payload = {
        "first_name": "Pedro",
        "last_name": "Núñez",
        "identification_number": "1712345675",
        "position_id": str(position.id),
        "hire_date": "2024-05-01T00:00:00Z",
    }

    assert (await client.get("/api/v1/employees/", headers=auth_headers(viewer))).status_code == 200
    assert (await client.post("/api/v1/employees/", json=payload, headers=auth_headers(viewer))).status_code == 403

    creator = _actor(seeded, roles=["RRHH"], permissions=["RRHH.CreateEmployees"])
    created = await client.post("/api/v1/employees/", json=payload, headers=auth_headers(creator))
    assert created.status_code == 201
    assert created.json()["position_name"] == "Mesero"


@pytest.mark.asyncio
async def test_no_token_is_unauthorized(client, seeded):
    response = await client.get("/api/v1/roles/")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_positions_are_readable_but_only_admin_writes(client, seeded, auth_headers):
    seller = _actor(seeded, roles=["Vendedor"], permissions=["POS.Sell"])
    admin = _actor(seeded, roles=["Administrador"])

    assert (await client.get("/api/v1/positions/", headers=auth_headers(seller))).status_code == 200
    denied = await client.post("/api/v1/positions/", json={"name": "Chef"}, headers=auth_headers(seller))
    assert denied.status_code == 403

    created = await client.post("/api/v1/positions/", json={"name": "Chef"}, headers=auth_headers(admin))
    assert created.status_code == 201
    assert created.json()["branch_id"] == str(seeded.branch.id)


@pytest.mark.asyncio
async def test_domain_errors_map_to_status_codes(client, seeded, auth_headers):
    admin = _actor(seeded, roles=["Administrador"])
    user = {"email": "repetido@test.com", "first_name": "Ana", "last_name": "Lora", "password": "Clave123"}

    assert (await client.post("/api/v1/users/", json=user, headers=auth_headers(admin))).status_code == 201

    duplicate = await client.post("/api/v1/users/", json=user, headers=auth_headers(admin))
    assert duplicate.status_code == 400
    assert duplicate.json() == {"detail": "El email ya está registrado."}

    missing = await client.get(f"/api/v1/users/{uuid.uuid4()}", headers=auth_headers(admin))
    assert missing.status_code == 404
    assert missing.json() == {"detail": "Usuario no encontrado."}

    bad_page = await client.get("/api/v1/employees/?page_size=0", headers=auth_headers(admin))
    assert bad_page.status_code == 400


@pytest.mark.asyncio
async def test_invalid_body_is_a_validation_error(client):
    response = await client.post("/api/v1/auth/login", json={"email": "no-es-email", "password": "x"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_change_password_of_another_user_is_forbidden(client, seeded, auth_headers):
    seller = _actor(seeded, roles=["Vendedor"])

    response = await client.post(
        f"/api/v1/users/{seeded.admin.id}/change-password",
        json={"current_password": "Admin123", "new_password": "Nueva1234"},
        headers=auth_headers(seller),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_assign_foreign_permission_over_http_keeps_previous_set(
    client, seeded, auth_headers, make_branch, make_permission
):
    admin = _actor(seeded, roles=["Administrador"])
    other = await make_branch("SUC2")
    foreign = await make_permission(other.id, "Cash.Close", "Cash")
    role_id = seeded.roles["Vendedor"].id

    response = await client.post(
        f"/api/v1/roles/{role_id}/permissions",
        json={"permission_ids": [str(seeded.permissions["Cash.Close"].id), str(foreign.id)]},
        headers=auth_headers(admin),
    )
    assert response.status_code == 404

    role = await client.get(f"/api/v1/roles/{role_id}", headers=auth_headers(admin))
    assert sorted(role.json()["permissions"]) == ["Inventory.View", "POS.Sell", "POS.ViewReports"]


@pytest.mark.asyncio
async def test_current_branch_is_readable_by_any_user(client, seeded, auth_headers):
    seller = _actor(seeded, roles=["Vendedor"])

    response = await client.get("/api/v1/branches/current", headers=auth_headers(seller))
    assert response.status_code == 200
    assert response.json()["code"] == "MAIN"

    denied = await client.put(
        "/api/v1/branches/current", json={"name": "X", "code": "X"}, headers=auth_headers(seller)
    )
    assert denied.status_code == 403
