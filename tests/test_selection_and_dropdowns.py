"""
Member selection and project pickers.

Covers:
1. /api/users/select-member filtering, paging and the admin exclusion
2. Owned and member project dropdowns
3. Project detail with its four most recent members
"""

from datetime import datetime, timedelta

from pm_api.entities import Project, TeamMember
from pm_api.services import user_service
from pm_api.services.permission_service import PROJECT_MANAGER


def _data(resp):
    body = resp.json()
    assert body["code"] == 200, body
    return body["data"]


# -----------------------------------------------------------------------------
# Member selection
# -----------------------------------------------------------------------------
class TestSelectMember:
    def test_lists_managers_and_developers_but_never_admins(self, client, auth_header, pm, outsider, admin):
        page = _data(client.get("/api/users/select-member", headers=auth_header(pm)))

        assert [u["email"] for u in page["items"]] == [
            "dev@example.com", "outsider@example.com", "pm@example.com",
        ]
        assert page["total_elements"] == 3
        assert page["items"][0] == {"id": 2, "name": "Dan Developer", "email": "dev@example.com", "role": "DEVELOPER"}

    def test_admin_role_filter_still_excludes_admins(self, db, admin):
        page = user_service.get_users_for_team_selection(db, roles=["ADMIN"])
        assert page.total_elements == 0

    def test_search_matches_name_or_email(self, client, auth_header, pm, outsider):
        by_name = _data(client.get("/api/users/select-member", params={"search": "olga"}, headers=auth_header(pm)))
        by_email = _data(client.get("/api/users/select-member", params={"search": "dev@"}, headers=auth_header(pm)))

        assert [u["name"] for u in by_name["items"]] == ["Olga Outsider"]
        assert [u["name"] for u in by_email["items"]] == ["Dan Developer"]

    def test_role_filter_and_descending_sort(self, client, auth_header, pm, outsider):
        page = _data(client.get(
            "/api/users/select-member",
            params={"roles": ["DEVELOPER"], "sortBy": "name", "sortDirection": "desc"},
            headers=auth_header(pm),
        ))
        assert [u["name"] for u in page["items"]] == ["Olga Outsider", "Dan Developer"]

    def test_paging(self, client, auth_header, pm, outsider):
        page = _data(client.get("/api/users/select-member", params={"page": 1, "size": 2}, headers=auth_header(pm)))
        assert page["total_elements"] == 3
        assert page["total_pages"] == 2
        assert [u["name"] for u in page["items"]] == ["Paula Manager"]

    def test_excludes_current_members_of_a_project(self, client, auth_header, project, pm, outsider, membership):
        page = _data(client.get(
            "/api/users/select-member",
            params={"roles": ["DEVELOPER"], "excludeProjectId": project.id},
            headers=auth_header(pm),
        ))
        assert [u["name"] for u in page["items"]] == ["Olga Outsider"]

    def test_developer_is_rejected(self, client, auth_header, dev):
        resp = client.get("/api/users/select-member", headers=auth_header(dev))
        assert resp.status_code == 403


# -----------------------------------------------------------------------------
# Project dropdowns
# -----------------------------------------------------------------------------
class TestProjectDropdowns:
    def test_owned_projects_sorted_by_name(self, db, client, auth_header, pm, dev):
        for name in ("Gamma", "Alpha", "Beta"):
            db.add(Project(name=name, created_by_id=pm.id))
        db.add(Project(name="Aardvark", created_by_id=dev.id))
        db.commit()

        page = _data(client.get("/api/projects/dropdown", headers=auth_header(pm)))
        assert [p["name"] for p in page["items"]] == ["Alpha", "Beta", "Gamma"]
        assert set(page["items"][0]) == {"id", "name"}

    def test_owned_dropdown_search(self, db, client, auth_header, pm):
        for name in ("Website", "Mobile app", "Web admin"):
            db.add(Project(name=name, created_by_id=pm.id))
        db.commit()

        page = _data(client.get("/api/projects/dropdown", params={"search": "web"}, headers=auth_header(pm)))
        assert [p["name"] for p in page["items"]] == ["Web admin", "Website"]

    def test_member_dropdown(self, client, auth_header, project, dev, membership):
        items = _data(client.get("/api/projects/my-projects/dropdown", headers=auth_header(dev)))
        assert items == [{"id": project.id, "name": "P1"}]

    def test_member_dropdown_is_for_developers(self, client, auth_header, pm):
        resp = client.get("/api/projects/my-projects/dropdown", headers=auth_header(pm))
        assert resp.status_code == 403


# -----------------------------------------------------------------------------
# Project detail
# -----------------------------------------------------------------------------
class TestProjectDetail:
    def test_detail_lists_four_most_recent_members(self, db, client, auth_header, project, pm, make_user):
        start = datetime(2024, 1, 1, 9, 0)
        for i in range(5):
            user = make_user(f"Member {i}", f"member{i}@example.com", "DEVELOPER")
            db.add(TeamMember(user_id=user.id, project_id=project.id, added_at=start + timedelta(days=i)))
        db.commit()

        detail = _data(client.get(f"/api/projects/{project.id}/detail", headers=auth_header(pm)))

        assert detail["name"] == "P1"
        assert detail["description"] == "First project"
        assert detail["status"] == "ACTIVE"
        assert [m["user_name"] for m in detail["team_members"]] == [
            "Member 4", "Member 3", "Member 2", "Member 1",
        ]

    def test_detail_requires_ownership(self, client, auth_header, project, make_user):
        other = make_user("Other Manager", "pm2@example.com", PROJECT_MANAGER)
        resp = client.get(f"/api/projects/{project.id}/detail", headers=auth_header(other))
        assert resp.status_code == 403

    def test_detail_missing_project(self, client, auth_header, pm):
        resp = client.get("/api/projects/999/detail", headers=auth_header(pm))
        assert resp.status_code == 404
