"""API tests for role assignment"""
from certportal.domain.enums import Role


async def test_my_roles_include_citizen(client, grant_roles, auth_headers):
    await grant_roles("clerk-1", Role.CLERK)

    response = await client.get("/roles/me", headers=auth_headers("clerk-1"))

    assert response.status_code == 200
    assert response.json() == {"user_id": "clerk-1", "roles": ["citizen", "clerk"]}


async def test_admin_assigns_and_revokes_role(client, grant_roles, auth_headers):
    """
    GIVEN an admin
    WHEN they assign the staff officer role to a user and later revoke it
    THEN the user's roles reflect each change
    """
    await grant_roles("admin-1", Role.ADMIN)
    admin = auth_headers("admin-1")

    assigned = await client.post(
        "/roles/assignments",
        json={"user_id": "staff-1", "role": "staff_officer"},
        headers=admin,
    )
    assert assigned.status_code == 201
    assert assigned.json()["roles"] == ["citizen", "staff_officer"]

    queue = await client.get(
        "/applications/", params={"scope": "stage"}, headers=auth_headers("staff-1")
    )
    assert queue.status_code == 200

    revoked = await client.delete("/roles/assignments/staff-1/staff_officer", headers=admin)
    assert revoked.status_code == 204

    roles = await client.get("/roles/users/staff-1", headers=admin)
    assert roles.json()["roles"] == ["citizen"]


async def test_citizen_role_cannot_be_assigned(client, grant_roles, auth_headers):
    await grant_roles("admin-1", Role.ADMIN)

    response = await client.post(
        "/roles/assignments",
        json={"user_id": "user-1", "role": "citizen"},
        headers=auth_headers("admin-1"),
    )

    assert response.status_code == 422


async def test_non_admin_cannot_assign(client, grant_roles, auth_headers):
    await grant_roles("clerk-1", Role.CLERK)

    response = await client.post(
        "/roles/assignments",
        json={"user_id": "clerk-1", "role": "sdo"},
        headers=auth_headers("clerk-1"),
    )

    assert response.status_code == 403
    assert response.json()["error"] == "AUTHORIZATION_ERROR"
