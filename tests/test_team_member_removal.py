"""Removing a member unassigns their tasks in one transaction, with one history row per task."""

import pytest
from sqlalchemy import func, select

from pm_api.entities import Task, TaskHistory, TaskStatus, TeamMember
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.team_member import AddTeamMemberRequest
from pm_api.repositories.project_repository import TeamMemberRepository
from pm_api.services import team_member_service
from pm_api.services.task_state import is_consistent


class TestRemoveTeamMember:
    def test_removal_unassigns_every_task(self, db, project, pm, dev, membership, make_task):
        statuses = (TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.ARCHIVED)
        tasks = [make_task(f"T{i}", assignee=dev, status=s) for i, s in enumerate(statuses)]
        untouched = make_task("Unassigned one")

        count = team_member_service.remove_team_member(db, pm.id, membership.id)

        assert count == len(statuses)
        remaining = db.scalar(
            select(func.count(Task.id)).where(Task.project_id == project.id, Task.assignee_id == dev.id)
        )
        assert remaining == 0
        assert db.get(TeamMember, membership.id) is None

        rows = db.scalars(select(TaskHistory).order_by(TaskHistory.task_id)).all()
        assert len(rows) == len(statuses)
        for task, status, row in zip(tasks, statuses, rows):
            db.refresh(task)
            assert task.status is TaskStatus.UNASSIGNED
            assert is_consistent(task)
            assert row.task_id == task.id
            assert row.old_status is status
            assert row.new_status is TaskStatus.UNASSIGNED
            assert row.changed_by_id == pm.id
        db.refresh(untouched)
        assert untouched.status is TaskStatus.UNASSIGNED

    def test_removal_without_tasks(self, db, pm, membership):
        assert team_member_service.remove_team_member(db, pm.id, membership.id) == 0
        assert db.scalar(select(func.count(TaskHistory.id))) == 0

    def test_only_owner_can_remove(self, db, dev, membership, make_task):
        make_task("T1", assignee=dev)
        with pytest.raises(AppError) as exc:
            team_member_service.remove_team_member(db, dev.id, membership.id)
        assert exc.value.code is ErrorCode.UNAUTHORIZED
        assert db.get(TeamMember, membership.id) is not None
        assert db.scalar(select(func.count(TaskHistory.id))) == 0

    def test_missing_membership(self, db, pm):
        with pytest.raises(AppError) as exc:
            team_member_service.remove_team_member(db, pm.id, 404)
        assert exc.value.code is ErrorCode.NOT_FOUND


class TestAddTeamMembers:
    def test_add_members(self, db, project, pm, dev, outsider):
        added = team_member_service.add_team_members(
            db, pm.id, project.id,
            [AddTeamMemberRequest(user_id=dev.id, specialization_id=1), AddTeamMemberRequest(user_id=outsider.id)],
        )
        assert [m.user_id for m in added] == [dev.id, outsider.id]
        assert added[0].specialization is not None
        assert added[1].specialization is None

    def test_duplicate_member(self, db, project, pm, dev, membership):
        with pytest.raises(AppError) as exc:
            team_member_service.add_team_members(db, pm.id, project.id, [AddTeamMemberRequest(user_id=dev.id)])
        assert exc.value.code is ErrorCode.DUPLICATE_ENTITY
        assert exc.value.message == "User Dan Developer is already a member of this project"

    def test_membership_race_maps_constraint_to_duplicate(self, db, project, pm, dev, membership, monkeypatch):
        monkeypatch.setattr(TeamMemberRepository, "exists", lambda *a, **kw: False)

        with pytest.raises(AppError) as exc:
            team_member_service.add_team_members(db, pm.id, project.id, [AddTeamMemberRequest(user_id=dev.id)])
        assert exc.value.code is ErrorCode.DUPLICATE_ENTITY
        assert db.scalar(select(func.count(TeamMember.id))) == 1

    def test_failed_batch_adds_nobody(self, db, project, pm, dev):
        with pytest.raises(AppError) as exc:
            team_member_service.add_team_members(
                db, pm.id, project.id, [AddTeamMemberRequest(user_id=dev.id), AddTeamMemberRequest(user_id=999)],
            )
        assert exc.value.code is ErrorCode.USER_NOT_FOUND
        assert db.scalar(select(func.count(TeamMember.id))) == 0

    def test_unknown_specialization(self, db, project, pm, dev):
        with pytest.raises(AppError) as exc:
            team_member_service.add_team_members(
                db, pm.id, project.id, [AddTeamMemberRequest(user_id=dev.id, specialization_id=999)],
            )
        assert exc.value.code is ErrorCode.NOT_FOUND


class TestTeamReads:
    def test_workload_counts_assigned_tasks(self, db, project, pm, dev, membership, make_task):
        make_task("T1", assignee=dev)
        make_task("T2", assignee=dev)
        make_task("T3")
        rows = team_member_service.list_team_members_with_workload(db, pm.id, project.id)
        assert [(r.user_id, r.task_count) for r in rows] == [(dev.id, 2)]

    def test_my_team_excludes_self(self, db, project, dev, outsider, membership):
        db.add(TeamMember(user_id=outsider.id, project_id=project.id))
        db.commit()
        rows = team_member_service.get_my_team(db, dev.id, project.id)
        assert [r.user_id for r in rows] == [outsider.id]

    def test_my_team_requires_membership(self, db, project, outsider):
        with pytest.raises(AppError) as exc:
            team_member_service.get_my_team(db, outsider.id, project.id)
        assert exc.value.code is ErrorCode.UNAUTHORIZED
