"""
End-to-end HTTP scenario.

PM(1) owns P1, Dev(2) is a member. T1 is created unassigned, assigned to the
developer, moved to IN_PROGRESS by the developer, and the manager's attempt to
jump straight to UNASSIGNED is rejected.
"""

from pm_api.entities import TaskStatus


def _data(resp):
    body = resp.json()
    assert body["code"] == 200, body
    return body["data"]


# -----------------------------------------------------------------------------
# Auth endpoints
# -----------------------------------------------------------------------------
class TestAuthEndpoints:
    def test_health(self, client):
        assert client.get("/").json()["status"] == "ok"

    def test_register_login_me(self, client):
        resp = client.post("/api/auth/register", json={
            "name": "New Dev", "email": "new@example.com", "password": "passw0rd!",
        })
        assert _data(resp)["role"] == "DEVELOPER"

        tokens = _data(client.post("/api/auth/login", json={"email": "new@example.com", "password": "passw0rd!"}))
        assert tokens["token_type"] == "Bearer"

        me = _data(client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}))
        assert me["email"] == "new@example.com"
        assert "ROLE_DEVELOPER" in me["authorities"]
        assert "TASK_UPDATE" in me["authorities"]

    def test_register_ignores_requested_role(self, client):
        resp = client.post("/api/auth/register", json={
            "name": "Sneaky", "email": "sneaky@example.com", "password": "passw0rd!",
            "role": "PROJECT_MANAGER",
        })
        assert _data(resp)["role"] == "DEVELOPER"

        tokens = _data(client.post("/api/auth/login", json={"email": "sneaky@example.com", "password": "passw0rd!"}))
        resp = client.post("/api/projects", json={"name": "Mine"},
                           headers={"Authorization": f"Bearer {tokens['access_token']}"})
        assert resp.status_code == 403

    def test_register_duplicate_email(self, client, dev):
        resp = client.post("/api/auth/register", json={
            "name": "Again", "email": "dev@example.com", "password": "passw0rd!",
        })
        assert resp.status_code == 409
        assert resp.json() == {"code": 409, "message": "Email already exists"}

    def test_login_wrong_password(self, client, dev):
        resp = client.post("/api/auth/login", json={"email": "dev@example.com", "password": "wrong-pass1"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Email or password invalid!"

    def test_refresh_and_introspect(self, client, tokens, dev):
        refreshed = _data(client.post("/api/auth/refresh", json={"refresh_token": tokens.issue_refresh_token(dev)}))
        valid = _data(client.post("/api/auth/introspect", json={"token": refreshed["access_token"]}))
        assert valid == {"valid": True}
        assert _data(client.post("/api/auth/introspect", json={"token": "nope"})) == {"valid": False}

    def test_refresh_rejects_verification_token(self, client, tokens, dev):
        resp = client.post("/api/auth/refresh", json={"refresh_token": tokens.issue_verification_token(dev.email)})
        assert resp.status_code == 401
        assert resp.json() == {"code": 401, "message": "Token is invalid"}

    def test_missing_token(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["code"] == 401

    def test_refresh_token_rejected_as_bearer(self, client, tokens, dev):
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens.issue_refresh_token(dev)}"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Token is invalid"

    def test_reset_password(self, client, tokens, dev):
        token = tokens.issue_verification_token("dev@example.com")
        resp = client.post("/api/auth/reset-password", json={"token": token, "new_password": "brandnew1"})
        assert resp.status_code == 200
        assert client.post("/api/auth/login", json={"email": "dev@example.com", "password": "brandnew1"}).status_code == 200

    def test_reset_password_needs_verification_token(self, client, tokens, dev):
        resp = client.post("/api/auth/reset-password", json={
            "token": tokens.issue_access_token(dev), "new_password": "brandnew1",
        })
        assert resp.status_code == 401


# -----------------------------------------------------------------------------
# Project / task scenario
# -----------------------------------------------------------------------------
class TestTaskScenario:
    def test_full_scenario(self, client, auth_header, pm, dev):
        assert (pm.id, dev.id) == (1, 2)
        as_pm, as_dev = auth_header(pm), auth_header(dev)

        project = _data(client.post("/api/projects", json={"name": "P1"}, headers=as_pm))
        pid = project["id"]
        assert project["status"] == "ACTIVE"

        members = _data(client.post(f"/api/team-members/projects/{pid}", json=[{"user_id": dev.id}], headers=as_pm))
        assert members[0]["user_id"] == dev.id

        task = _data(client.post(f"/api/tasks/projects/{pid}", json={"title": "T1"}, headers=as_pm))
        assert task["status"] == TaskStatus.UNASSIGNED.value
        tid = task["id"]

        task = _data(client.put(f"/api/tasks/{tid}/assign", json={"user_id": dev.id}, headers=as_pm))
        assert (task["status"], task["assignee_id"]) == ("TODO", dev.id)

        task = _data(client.put(f"/api/tasks/projects/{pid}/{tid}/status", json={"status": "IN_PROGRESS"},
                                headers=as_dev))
        assert task["status"] == "IN_PROGRESS"

        history = _data(client.get(f"/api/task-history/my-tasks/{tid}", headers=as_dev))
        assert len(history) == 1
        assert "Dan Developer has updated T1's status from TODO to IN_PROGRESS" in history[0]["message"]

        resp = client.put(f"/api/tasks/projects/{pid}/{tid}/status", json={"status": "UNASSIGNED"}, headers=as_pm)
        assert resp.status_code == 400
        assert resp.json() == {
            "code": 400,
            "message": "Task status can only be changed to UNASSIGNED from ARCHIVED status",
        }
        assert len(_data(client.get(f"/api/task-history/tasks/{tid}", headers=as_pm))) == 1

        my_tasks = _data(client.get(f"/api/tasks/projects/{pid}/my-tasks", headers=as_dev))
        assert [t["id"] for t in my_tasks] == [tid]

    def test_developer_cannot_create_project(self, client, auth_header, dev):
        resp = client.post("/api/projects", json={"name": "Nope"}, headers=auth_header(dev))
        assert resp.status_code == 403

    def test_unassigned_developer_cannot_change_status(self, client, auth_header, project, dev, membership, make_task):
        task = make_task("T1")
        resp = client.put(f"/api/tasks/projects/{project.id}/{task.id}/status", json={"status": "TODO"},
                          headers=auth_header(dev))
        assert resp.status_code == 403

    def test_member_view_of_self_rejected(self, client, auth_header, project, dev, membership):
        resp = client.get(f"/api/tasks/projects/{project.id}/members/{dev.id}/tasks", headers=auth_header(dev))
        assert resp.status_code == 403

    def test_remove_member_over_http(self, client, auth_header, project, pm, dev, membership, make_task):
        make_task("T1", assignee=dev)
        make_task("T2", assignee=dev, status=TaskStatus.IN_PROGRESS)

        resp = client.delete(f"/api/team-members/{membership.id}", headers=auth_header(pm))
        assert _data(resp) == {"unassigned_tasks": 2}

        unassigned = _data(client.get(f"/api/tasks/projects/{project.id}/unassigned", headers=auth_header(pm)))
        assert unassigned["total_elements"] == 2

    def test_validation_error_envelope(self, client, auth_header, project, pm):
        resp = client.post(f"/api/tasks/projects/{project.id}", json={"title": ""}, headers=auth_header(pm))
        assert resp.status_code == 400
        assert resp.json()["code"] == 400

    def test_specializations(self, client, auth_header, dev):
        names = [s["name"] for s in _data(client.get("/api/specializations", headers=auth_header(dev)))]
        assert "Backend" in names
