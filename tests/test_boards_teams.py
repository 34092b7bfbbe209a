"""Tests for teams, boards and lists (team_service.py, board_service.py).

Covers:
- Team visibility, creation, rename, deletion, membership
- Board CRUD with team scope and cascade deletes (ledger untouched)
- List positions: append, explicit conflicts, reorder validation
- User administration
"""

import pytest

from taskboard.errors import Conflict, Forbidden, ResourceNotFound, ValidationError
from taskboard.models.board import BoardList
from taskboard.models.points import PointsHistoryEntry
from taskboard.models.task import Task


class TestTeams:
    def test_admin_sees_all_teams(self, services, seed_data):
        names = [t.name for t in services.teams.list_teams(seed_data["admin"])]
        assert names == ["Alpha", "Beta"]

    def test_member_sees_own_team(self, services, seed_data):
        teams = services.teams.list_teams(seed_data["member"])
        assert [t.id for t in teams] == [seed_data["alpha_id"]]

    def test_user_without_team_denied(self, services, seed_data):
        with pytest.raises(Forbidden):
            services.teams.list_teams(seed_data["loner"])

    def test_create_team_admin_only(self, services, seed_data):
        team = services.teams.create_team(seed_data["admin"], "Gamma")
        assert team.name == "Gamma"
        with pytest.raises(Forbidden):
            services.teams.create_team(seed_data["manager"], "Delta")

    def test_manager_renames_own_team(self, services, seed_data):
        team = services.teams.rename_team(
            seed_data["manager"], seed_data["alpha_id"], "Alpha Squad"
        )
        assert team.name == "Alpha Squad"
        with pytest.raises(Forbidden):
            services.teams.rename_team(
                seed_data["manager"], seed_data["beta_id"], "Mine now"
            )

    def test_delete_team_keeps_users_and_ledger(self, services, seed_data, db_session):
        member = seed_data["member"]
        services.tasks.complete_task(member, seed_data["task_id"])

        services.teams.delete_team(seed_data["admin"], seed_data["alpha_id"])

        assert services.repository.get_team(seed_data["alpha_id"]) is None
        assert member.team_id is None
        assert services.repository.get_task(seed_data["task_id"]) is None
        assert PointsHistoryEntry.query.filter_by(user_id=member.id).count() == 1

    def test_manager_adds_unassigned_user(self, services, seed_data):
        loner = seed_data["loner"]
        services.teams.add_member(seed_data["manager"], seed_data["alpha_id"], loner.id)
        assert loner.team_id == seed_data["alpha_id"]

    def test_manager_cannot_poach(self, services, seed_data):
        with pytest.raises(Conflict):
            services.teams.add_member(
                seed_data["manager"], seed_data["alpha_id"],
                seed_data["beta_member"].id,
            )

    def test_admin_can_move_user(self, services, seed_data):
        user = services.teams.add_member(
            seed_data["admin"], seed_data["alpha_id"], seed_data["beta_member"].id
        )
        assert user.team_id == seed_data["alpha_id"]

    @pytest.mark.parametrize("user_id", [None, ["x", "y"], {"id": "x"}, 3])
    def test_add_member_rejects_bad_user_id(self, services, seed_data, user_id):
        with pytest.raises(ValidationError):
            services.teams.add_member(seed_data["admin"], seed_data["alpha_id"], user_id)

    def test_remove_member(self, services, seed_data):
        teammate = seed_data["teammate"]
        services.teams.remove_member(
            seed_data["manager"], seed_data["alpha_id"], teammate.id
        )
        assert teammate.team_id is None
        with pytest.raises(ResourceNotFound):
            services.teams.remove_member(
                seed_data["manager"], seed_data["alpha_id"], teammate.id
            )

    def test_members_listing(self, services, seed_data):
        members = services.teams.members(seed_data["member"], seed_data["alpha_id"])
        assert {u.id for u in members} == {
            seed_data["manager"].id, seed_data["member"].id, seed_data["teammate"].id,
        }


class TestBoards:
    def test_list_boards_scoped(self, services, seed_data):
        boards = services.boards.list_boards(seed_data["member"])
        assert [b.id for b in boards] == [seed_data["board_id"]]
        assert len(services.boards.list_boards(seed_data["admin"])) == 2
        only_beta = services.boards.list_boards(
            seed_data["admin"], team_id=seed_data["beta_id"]
        )
        assert [b.id for b in only_beta] == [seed_data["beta_board"].id]

    def test_manager_creates_board_in_own_team(self, services, seed_data):
        board = services.boards.create_board(seed_data["manager"], "Sprint 2")
        assert board.team_id == seed_data["alpha_id"]
        assert board.created_by == seed_data["manager"].id

    def test_manager_cannot_create_in_other_team(self, services, seed_data):
        with pytest.raises(Forbidden):
            services.boards.create_board(
                seed_data["manager"], "Sneaky", team_id=seed_data["beta_id"]
            )

    def test_admin_without_team_must_name_one(self, services, seed_data):
        with pytest.raises(ValidationError) as exc:
            services.boards.create_board(seed_data["admin"], "No team")
        assert exc.value.details["field"] == "team_id"

        board = services.boards.create_board(
            seed_data["admin"], "Beta roadmap", team_id=seed_data["beta_id"]
        )
        assert board.team_id == seed_data["beta_id"]

    @pytest.mark.parametrize("team_id", [["x"], {"a": 1}, 7, ""])
    def test_team_id_must_be_string(self, services, seed_data, team_id):
        with pytest.raises(ValidationError):
            services.boards.create_board(seed_data["admin"], "Odd", team_id=team_id)

    def test_member_cannot_create_board(self, services, seed_data):
        with pytest.raises(Forbidden):
            services.boards.create_board(seed_data["member"], "Nope")

    def test_other_team_cannot_read_board(self, services, seed_data):
        with pytest.raises(Forbidden):
            services.boards.get_board(seed_data["beta_member"], seed_data["board_id"])

    def test_update_board(self, services, seed_data):
        board = services.boards.update_board(
            seed_data["manager"], seed_data["board_id"], {"name": "Renamed"}
        )
        assert board.name == "Renamed"
        with pytest.raises(ValidationError):
            services.boards.update_board(
                seed_data["manager"], seed_data["board_id"], {}
            )

    def test_delete_board_cascades_but_keeps_ledger(self, services, seed_data):
        services.tasks.complete_task(seed_data["member"], seed_data["task_id"])
        services.boards.delete_board(seed_data["manager"], seed_data["board_id"])

        assert services.repository.get_board(seed_data["board_id"]) is None
        assert BoardList.query.filter_by(board_id=seed_data["board_id"]).count() == 0
        assert services.repository.get_task(seed_data["task_id"]) is None
        assert PointsHistoryEntry.query.filter_by(task_id=seed_data["task_id"]).count() == 1


class TestLists:
    def test_create_list_appends(self, services, seed_data):
        blist = services.boards.create_list(
            seed_data["manager"], seed_data["board_id"], "Review"
        )
        assert blist.position == 2

    def test_explicit_taken_position_conflicts(self, services, seed_data):
        with pytest.raises(Conflict):
            services.boards.create_list(
                seed_data["manager"], seed_data["board_id"], "Dup", position=0
            )

    def test_update_list_position_conflict(self, services, seed_data):
        with pytest.raises(Conflict):
            services.boards.update_list(
                seed_data["manager"], seed_data["todo_id"], {"position": 1}
            )

    def test_reorder_swaps_positions(self, services, seed_data):
        services.boards.reorder_lists(
            seed_data["manager"], seed_data["board_id"],
            [
                {"id": seed_data["todo_id"], "position": 1},
                {"id": seed_data["done_id"], "position": 0},
            ],
        )
        lists = services.boards.lists_for_board(seed_data["member"], seed_data["board_id"])
        assert [bl.id for bl in lists] == [seed_data["done_id"], seed_data["todo_id"]]

    @pytest.mark.parametrize("items", [
        [],
        None,
        [{"id": "x"}],
        [{"position": 0}],
    ])
    def test_reorder_rejects_malformed(self, services, seed_data, items):
        with pytest.raises(ValidationError):
            services.boards.reorder_lists(
                seed_data["manager"], seed_data["board_id"], items
            )

    def test_reorder_rejects_non_string_ids(self, services, seed_data):
        with pytest.raises(ValidationError):
            services.boards.reorder_lists(
                seed_data["manager"], seed_data["board_id"],
                [{"id": [seed_data["todo_id"]], "position": 0}],
            )

    def test_reorder_rejects_duplicates(self, services, seed_data):
        with pytest.raises(ValidationError):
            services.boards.reorder_lists(
                seed_data["manager"], seed_data["board_id"],
                [
                    {"id": seed_data["todo_id"], "position": 3},
                    {"id": seed_data["done_id"], "position": 3},
                ],
            )
        with pytest.raises(ValidationError):
            services.boards.reorder_lists(
                seed_data["manager"], seed_data["board_id"],
                [
                    {"id": seed_data["todo_id"], "position": 3},
                    {"id": seed_data["todo_id"], "position": 4},
                ],
            )

    def test_reorder_rejects_foreign_list(self, services, seed_data):
        with pytest.raises(ValidationError):
            services.boards.reorder_lists(
                seed_data["manager"], seed_data["board_id"],
                [{"id": seed_data["beta_list"].id, "position": 5}],
            )

    def test_reorder_collision_with_untouched_list(self, services, seed_data):
        with pytest.raises(Conflict):
            services.boards.reorder_lists(
                seed_data["manager"], seed_data["board_id"],
                [{"id": seed_data["todo_id"], "position": 1}],
            )

    def test_delete_list_cascades_tasks(self, services, seed_data):
        services.boards.delete_list(seed_data["manager"], seed_data["todo_id"])
        assert Task.query.filter_by(list_id=seed_data["todo_id"]).count() == 0


class TestUserAdmin:
    def test_admin_changes_role(self, services, seed_data):
        user = services.users.update_user(
            seed_data["admin"], seed_data["member"].id, {"role": "manager"}
        )
        assert user.role == "manager"

    def test_unknown_role(self, services, seed_data):
        with pytest.raises(ValidationError):
            services.users.update_user(
                seed_data["admin"], seed_data["member"].id, {"role": "overlord"}
            )

    def test_unknown_field(self, services, seed_data):
        with pytest.raises(ValidationError):
            services.users.update_user(
                seed_data["admin"], seed_data["member"].id, {"total_points": 1e6}
            )

    def test_team_id_must_be_string(self, services, seed_data):
        with pytest.raises(ValidationError):
            services.users.update_user(
                seed_data["admin"], seed_data["member"].id, {"team_id": ["x"]}
            )

    def test_manager_cannot_manage_users(self, services, seed_data):
        with pytest.raises(Forbidden):
            services.users.list_users(seed_data["manager"])
