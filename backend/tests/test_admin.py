def test_admin_endpoints_reject_regular_users(client, alice):
    _, headers = alice

    for path in ["/api/admin/users", "/api/admin/stats"]:
        response = client.get(path, headers=headers)
        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}


def test_admin_endpoints_require_token(client):
    assert client.get("/api/admin/users").status_code == 401


def test_list_and_get_users(client, admin, alice):
    _, headers = admin
    alice_user, _ = alice

    users = client.get("/api/admin/users", headers=headers).json()
    assert [u["email"] for u in users] == ["admin@example.com", "alice@example.com"]
    assert users[1]["role"] == "user"
    assert users[1]["isActive"] is True
    assert users[1]["lastLogin"] is not None

    response = client.get(f"/api/admin/users/{alice_user['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Alice"

    assert client.get("/api/admin/users/user_missing", headers=headers).status_code == 404


def test_update_user(client, admin, alice):
    _, headers = admin
    alice_user, _ = alice

    response = client.patch(
        f"/api/admin/users/{alice_user['id']}",
        json={"name": "Alice A.", "role": "admin", "isActive": False},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Alice A."
    assert body["role"] == "admin"
    assert body["isActive"] is False


def test_update_user_rejects_unknown_role(client, admin, alice):
    _, headers = admin
    alice_user, _ = alice

    response = client.patch(f"/api/admin/users/{alice_user['id']}", json={"role": "root"}, headers=headers)
    assert response.status_code == 400


def test_deactivated_user_cannot_log_in(client, admin, alice):
    _, headers = admin
    alice_user, _ = alice
    client.patch(f"/api/admin/users/{alice_user['id']}", json={"isActive": False}, headers=headers)

    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "pw123456"})
    assert response.status_code == 403


def test_delete_user(client, admin, alice):
    admin_user, headers = admin
    alice_user, _ = alice

    response = client.delete(f"/api/admin/users/{admin_user['id']}", headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot delete your own account"}

    response = client.delete(f"/api/admin/users/{alice_user['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "User deleted successfully"}
    assert client.get(f"/api/admin/users/{alice_user['id']}", headers=headers).status_code == 404


def test_stats(client, admin, alice, bob):
    _, headers = admin
    bob_user, _ = bob
    client.patch(f"/api/admin/users/{bob_user['id']}", json={"isActive": False}, headers=headers)

    stats = client.get("/api/admin/stats", headers=headers).json()

    assert stats["totalUsers"] == 3
    assert stats["activeUsers"] == 2
    assert stats["inactiveUsers"] == 1
    assert stats["adminUsers"] == 1
    assert stats["regularUsers"] == 2
    assert stats["lastUpdated"]


def test_delete_user_removes_their_memberships_and_links(client, admin, alice, bob, make_user):
    _, admin_headers = admin
    alice_user, alice_headers = alice
    bob_user, bob_headers = bob
    carol_user, carol_headers = make_user("carol@example.com", name="Carol")

    team = client.post("/api/teams", json={"name": "Squad"}, headers=alice_headers).json()["team"]
    client.post(f"/api/teams/{team['id']}/join", headers=bob_headers)
    client.post("/api/users/connections", json={"userId": carol_user["id"]}, headers=bob_headers)
    client.post(f"/api/messages/{carol_user['id']}", json={"body": "hi carol"}, headers=bob_headers)
    alice_board = client.post("/api/boards", json={"title": "Roadmap"}, headers=alice_headers).json()
    client.post(f"/api/boards/{alice_board['id']}/share", json={"email": "bob@example.com"}, headers=alice_headers)
    bob_board = client.post("/api/boards", json={"title": "Notes"}, headers=bob_headers).json()

    response = client.delete(f"/api/admin/users/{bob_user['id']}", headers=admin_headers)
    assert response.status_code == 200

    members = client.get("/api/teams", headers=alice_headers).json()[0]["members"]
    assert [m["userId"] for m in members] == [alice_user["id"]]
    assert client.get("/api/users/connections", headers=carol_headers).json() == []
    assert client.get("/api/messages/unread/counts", headers=carol_headers).json() == {}
    assert client.get(f"/api/boards/{alice_board['id']}", headers=alice_headers).json()["members"] == []
    assert client.get(f"/api/boards/{bob_board['id']}", headers=alice_headers).status_code == 404
