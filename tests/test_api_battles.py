"""Tests for battles API endpoints."""

from sqlalchemy.orm import Session

from agentlab.db import repo
from agentlab.db.schema import BattleHistory, Experiment


def _seed_board(add_experiment) -> None:
    add_experiment("exp-a", goal="summarize", board_name="board-1", output="A")
    add_experiment("exp-b", goal="summarize", board_name="board-1", output="B")
    add_experiment("exp-c", goal="summarize", board_name="board-1", output="")
    add_experiment("exp-d", goal="summarize", board_name="board-2", output="D")
    add_experiment("exp-e", goal="classify", board_name="board-9", output="E")


class TestCreateBattle:
    """Test POST /api/battles."""

    def test_returns_201_with_new_scores(self, client, add_experiment):
        """Equal ratings: winner 1216, loser 1184."""
        _seed_board(add_experiment)
        response = client.post(
            "/api/battles",
            json={
                "winner_id": "exp-a",
                "loser_id": "exp-b",
                "goal": "summarize",
                "board_name": "board-1",
            },
        )
        assert response.status_code == 201
        assert response.json() == {
            "winner_id": "exp-a",
            "loser_id": "exp-b",
            "winner_elo_before": 1200,
            "winner_elo_after": 1216,
            "loser_elo_before": 1200,
            "loser_elo_after": 1184,
        }

    def test_persists_scores_and_history(self, client, engine, add_experiment):
        """Scores are stored and a history row records the acting user."""
        _seed_board(add_experiment)
        client.post(
            "/api/battles",
            json={"winner_id": "exp-b", "loser_id": "exp-a"},
            headers={"X-User-Id": "user-42"},
        )

        with Session(engine) as db_session:
            assert db_session.get(Experiment, "exp-b").elo_rating == 1216
            assert db_session.get(Experiment, "exp-a").elo_rating == 1184
            history = db_session.query(BattleHistory).one()
            assert history.winner_id == "exp-b"
            assert history.user_id == "user-42"

    def test_uses_client_supplied_before_scores(self, client, add_experiment):
        """Explicit before scores drive the update."""
        _seed_board(add_experiment)
        response = client.post(
            "/api/battles",
            json={
                "winner_id": "exp-a",
                "loser_id": "exp-b",
                "winner_elo_before": 1000,
                "loser_elo_before": 1400,
            },
        )
        data = response.json()
        assert data["winner_elo_after"] == 1029
        assert data["loser_elo_after"] == 1371

    def test_same_experiment_returns_400(self, client, add_experiment):
        """An experiment cannot battle itself."""
        _seed_board(add_experiment)
        response = client.post("/api/battles", json={"winner_id": "exp-a", "loser_id": "exp-a"})
        assert response.status_code == 400

    def test_unknown_experiment_returns_404(self, client, add_experiment):
        """Unknown loser: 404 and no writes."""
        _seed_board(add_experiment)
        response = client.post("/api/battles", json={"winner_id": "exp-a", "loser_id": "ghost"})
        assert response.status_code == 404

    def test_score_write_failure_returns_500(self, client, engine, add_experiment, monkeypatch):
        """A failed first write reports failure and changes nothing."""
        _seed_board(add_experiment)

        def broken_update(db_session, experiment_id, elo_rating):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(repo, "update_elo_rating", broken_update)
        response = client.post("/api/battles", json={"winner_id": "exp-a", "loser_id": "exp-b"})

        assert response.status_code == 500
        with Session(engine) as db_session:
            assert db_session.get(Experiment, "exp-a").elo_rating == 1200
            assert db_session.get(Experiment, "exp-b").elo_rating == 1200
            assert db_session.query(BattleHistory).count() == 0

    def test_history_failure_still_returns_201(self, client, engine, add_experiment, monkeypatch):
        """History insert failure does not fail the request."""
        _seed_board(add_experiment)

        def broken_create_battle(db_session, entity):
            raise RuntimeError("insert rejected")

        monkeypatch.setattr(repo, "create_battle", broken_create_battle)
        response = client.post("/api/battles", json={"winner_id": "exp-a", "loser_id": "exp-b"})

        assert response.status_code == 201
        with Session(engine) as db_session:
            assert db_session.get(Experiment, "exp-a").elo_rating == 1216

    def test_publishes_score_updates(self, client, feed, add_experiment):
        """Both experiments get an UPDATE event with their new score."""
        _seed_board(add_experiment)
        events = []
        feed.subscribe("experiments", events.append)

        client.post("/api/battles", json={"winner_id": "exp-a", "loser_id": "exp-b"})

        assert {(e.record_id, e.payload["elo_rating"]) for e in events} == {
            ("exp-a", 1216),
            ("exp-b", 1184),
        }


class TestBattleHistory:
    """Test GET /api/battles and /api/experiments/{id}/battles."""

    def test_lists_battles_for_experiment(self, client, add_experiment):
        """Both won and lost battles are listed."""
        _seed_board(add_experiment)
        client.post("/api/battles", json={"winner_id": "exp-a", "loser_id": "exp-b"})
        client.post("/api/battles", json={"winner_id": "exp-d", "loser_id": "exp-a"})
        client.post("/api/battles", json={"winner_id": "exp-b", "loser_id": "exp-d"})

        response = client.get("/api/experiments/exp-a/battles")
        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_filter_by_goal(self, client, add_experiment):
        """goal filter narrows the history."""
        _seed_board(add_experiment)
        client.post(
            "/api/battles",
            json={"winner_id": "exp-a", "loser_id": "exp-b", "goal": "summarize"},
        )
        client.post(
            "/api/battles",
            json={"winner_id": "exp-e", "loser_id": "exp-d", "goal": "classify"},
        )

        response = client.get("/api/battles", params={"goal": "classify"})
        assert [b["winner_id"] for b in response.json()] == ["exp-e"]

    def test_unknown_experiment_returns_404(self, client):
        """Returns 404 for unknown experiment."""
        assert client.get("/api/experiments/nope/battles").status_code == 404


class TestContenders:
    """Test goal/board listing, contenders and leaderboard."""

    def test_goals_and_boards(self, client, add_experiment):
        """Only goals/boards with outputs are offered."""
        _seed_board(add_experiment)
        assert client.get("/api/battles/goals").json() == ["classify", "summarize"]
        boards = client.get("/api/battles/boards", params={"goal": "summarize"}).json()
        assert boards == ["board-1", "board-2"]

    def test_contenders_exclude_blank_output(self, client, add_experiment):
        """Experiments without output cannot battle."""
        _seed_board(add_experiment)
        response = client.get(
            "/api/battles/contenders", params={"goal": "summarize", "board_name": "board-1"}
        )
        assert sorted(e["experiment_id"] for e in response.json()) == ["exp-a", "exp-b"]

    def test_leaderboard_orders_by_elo(self, client, add_experiment):
        """Strongest experiment first."""
        _seed_board(add_experiment)
        client.post("/api/battles", json={"winner_id": "exp-b", "loser_id": "exp-a"})

        response = client.get(
            "/api/battles/leaderboard", params={"goal": "summarize", "board_name": "board-1"}
        )
        ids = [e["experiment_id"] for e in response.json()]
        assert ids[0] == "exp-b"
        assert ids[-1] == "exp-a"
