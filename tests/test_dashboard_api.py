from conftest import contract_batch

from growthlab.dashboard.service import goal_progress
from growthlab.storage.models import Experiment, ExperimentResult, ExperimentStatus, Goal


def test_goal_progress_counts_successes_among_started() -> None:
    goal = Goal(id=1, title="Meta")
    experiments = [
        Experiment(goal_id=1, status=ExperimentStatus.COMPLETED, result=ExperimentResult.SUCCESS, target_value="30"),
        Experiment(goal_id=1, status=ExperimentStatus.COMPLETED, result=ExperimentResult.FAILURE, target_value="10"),
        Experiment(goal_id=1, status=ExperimentStatus.RUNNING, expected_result="+20%"),
        Experiment(goal_id=2, status=ExperimentStatus.COMPLETED, result=ExperimentResult.SUCCESS),
    ]

    progress = goal_progress(goal, experiments)

    assert progress.total == 3
    assert progress.achieved == 1
    assert progress.average_target == 20.0
    assert round(progress.pct, 2) == 33.33


def test_goal_progress_without_linked_experiments() -> None:
    progress = goal_progress(Goal(id=7, title="Meta"), [])

    assert (progress.goal_id, progress.total, progress.pct) == (7, 0, 0.0)


def test_dashboard_overview(client, auth, llm, goal) -> None:
    llm.queue(contract_batch())
    experiments = client.post(
        "/generate-experiments",
        json={"structuredAnalysis": {"strategic_overview": "x"}, "goal_id": goal["id"]},
        headers=auth,
    ).json()["experiments"]
    first, second = experiments[0]["id"], experiments[1]["id"]
    for exp_id in (first, second):
        client.post(f"/experiments/{exp_id}/start", headers=auth)
    client.patch(f"/experiments/{first}", json={"expected_result": "30"}, headers=auth)
    client.post(
        f"/experiments/{first}/result",
        json={"final_value": 33, "result": "sucesso", "learnings": "funcionou"},
        headers=auth,
    )

    resp = client.get("/dashboard", headers=auth)

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["backlog_count"] == 3
    assert body["running_count"] == 1
    assert [e["id"] for e in body["running"]] == [second]
    assert body["latest_goal"]["id"] == goal["id"]
    assert body["progress"] == {
        "goal_id": goal["id"],
        "achieved": 1,
        "total": 2,
        "average_target": 30.0,
        "pct": 50.0,
    }


def test_dashboard_for_new_user_is_empty(client, auth) -> None:
    body = client.get("/dashboard", headers=auth).json()

    assert body["running"] == []
    assert body["goals"] == []
    assert body["latest_goal"] is None
    assert body["progress"] is None
