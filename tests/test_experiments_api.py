from conftest import contract_batch, proposal
from sqlalchemy import func, select

from growthlab.storage.models import Experiment, ExperimentResult, ExperimentStatus

ANALYSIS = {"strategic_overview": "Checkout é o gargalo"}


def _generate(client, auth, llm, goal, reply=None, **body):
    llm.queue(reply if reply is not None else contract_batch())
    payload = {"structuredAnalysis": ANALYSIS, "goal_id": str(goal["id"])}
    payload.update(body)
    return client.post("/generate-experiments", json=payload, headers=auth)


def _started(client, auth, llm, goal) -> dict:
    exp = _generate(client, auth, llm, goal).json()["experiments"][0]
    resp = client.post(f"/experiments/{exp['id']}/start", headers=auth)
    assert resp.status_code == 200, resp.text
    return resp.json()["experiment"]


def _count_experiments(db) -> int:
    return db(lambda s: s.scalar(select(func.count(Experiment.id))))


# ── generation ───────────────────────────────────────────────────────────


def test_generate_inserts_backlog_rows_for_the_goal(client, auth, llm, db, goal) -> None:
    resp = _generate(client, auth, llm, goal)

    assert resp.status_code == 200, resp.text
    experiments = resp.json()["experiments"]
    assert len(experiments) == 5
    assert {e["status"] for e in experiments} == {"backlog"}
    assert {e["goal_id"] for e in experiments} == {goal["id"]}
    assert experiments[0]["variable"] == "CTR"
    assert experiments[0]["expected_result"] == experiments[0]["target_value"] == "+20%"
    assert experiments[0]["cutoff_line"] == "+10%"
    assert _count_experiments(db) == 5

    call = llm.calls[0]
    assert call["json_mode"] is True
    assert "Dobrar vendas" in call["messages"][0]["content"]
    assert "Checkout é o gargalo" in call["messages"][1]["content"]


def test_generate_caps_at_five_and_fills_missing_cutoff(client, auth, llm, goal) -> None:
    reply = [proposal(i, cutoff_line="") for i in range(1, 8)]

    resp = _generate(client, auth, llm, goal, reply=reply)

    experiments = resp.json()["experiments"]
    assert resp.status_code == 200
    assert len(experiments) == 5
    assert experiments[0]["cutoff_line"] == "10%"



def test_generate_keeps_numeric_targets_exact(client, auth, llm, goal) -> None:
    reply = [proposal(1, target=1234567.5, cutoff_line=""), proposal(2, target=12.3456789)]

    resp = _generate(client, auth, llm, goal, reply=reply)

    first, second = resp.json()["experiments"]
    assert first["expected_result"] == first["target_value"] == "1234567.5"
    assert first["cutoff_line"] == "617283.75"
    assert second["target_value"] == "12.3456789"

def test_generate_accepts_analysis_as_json_text(client, auth, llm, goal) -> None:
    resp = _generate(client, auth, llm, goal, structuredAnalysis='{"strategic_overview": "texto"}')

    assert resp.status_code == 200
    assert '"strategic_overview": "texto"' in llm.calls[0]["messages"][1]["content"]


def test_generate_takes_goal_from_context(client, auth, llm, goal) -> None:
    llm.queue(ANALYSIS)
    ctx = client.post("/diagnose", json={"text": "vendas caindo", "goal_id": goal["id"]}, headers=auth).json()
    llm.queue(contract_batch())

    resp = client.post(
        "/generate-experiments",
        json={"structuredAnalysis": ANALYSIS, "contextId": ctx["context"]["id"]},
        headers=auth,
    )

    assert resp.status_code == 200, resp.text
    experiments = resp.json()["experiments"]
    assert {e["goal_id"] for e in experiments} == {goal["id"]}
    assert {e["context_id"] for e in experiments} == {ctx["context"]["id"]}


def test_generate_without_goal_is_400(client, auth, llm, db) -> None:
    resp = client.post("/generate-experiments", json={"structuredAnalysis": ANALYSIS}, headers=auth)

    assert resp.status_code == 400
    assert resp.json()["error"].startswith("É obrigatório informar uma meta (goal_id)")
    assert llm.calls == []
    assert _count_experiments(db) == 0


def test_generate_without_analysis_is_400(client, auth, llm, goal) -> None:
    resp = client.post("/generate-experiments", json={"goal_id": goal["id"]}, headers=auth)

    assert resp.status_code == 400
    assert llm.calls == []


def test_generate_for_unknown_goal_is_404(client, auth, llm) -> None:
    resp = client.post(
        "/generate-experiments",
        json={"structuredAnalysis": ANALYSIS, "goal_id": 999},
        headers=auth,
    )

    assert resp.status_code == 404


def test_generate_non_json_reply_is_500(client, auth, llm, db, goal) -> None:
    resp = _generate(client, auth, llm, goal, reply="aqui estão cinco ideias")

    assert resp.status_code == 500
    assert _count_experiments(db) == 0


def test_generate_twice_inserts_twice(client, auth, llm, db, goal) -> None:
    _generate(client, auth, llm, goal)
    _generate(client, auth, llm, goal)

    assert _count_experiments(db) == 10


# ── store ────────────────────────────────────────────────────────────────


def test_list_filters_by_status_and_goal(client, auth, llm, goal) -> None:
    started = _started(client, auth, llm, goal)

    running = client.get("/experiments", params={"status": "em_execucao"}, headers=auth).json()
    backlog = client.get("/experiments", params={"status": "backlog"}, headers=auth).json()
    other_goal = client.get("/experiments", params={"goal_id": goal["id"] + 1}, headers=auth).json()

    assert [e["id"] for e in running] == [started["id"]]
    assert len(backlog) == 4
    assert other_goal == []


def test_list_filters_by_goal_public_id(client, auth, llm, goal) -> None:
    _generate(client, auth, llm, goal)

    by_public = client.get("/experiments", params={"goal_id": goal["public_id"]}, headers=auth)
    malformed = client.get("/experiments", params={"goal_id": "meta-de-vendas"}, headers=auth)

    assert by_public.status_code == 200
    assert len(by_public.json()) == 5
    assert {e["goal_id"] for e in by_public.json()} == {goal["id"]}
    assert malformed.status_code == 400
    assert "error" in malformed.json()


def test_experiments_are_scoped_to_their_owner(client, auth, llm, goal, other_account) -> None:
    exp = _generate(client, auth, llm, goal).json()["experiments"][0]

    assert client.get(f"/experiments/{exp['id']}", headers=other_account.headers).status_code == 404
    assert client.get("/experiments", headers=other_account.headers).json() == []


def test_start_only_from_backlog(client, auth, llm, goal) -> None:
    started = _started(client, auth, llm, goal)

    assert started["status"] == "em_execucao"
    again = client.post(f"/experiments/{started['id']}/start", headers=auth)
    assert again.status_code == 400


def test_card_update_touches_only_sent_fields(client, auth, llm, goal) -> None:
    exp = _generate(client, auth, llm, goal).json()["experiments"][0]

    resp = client.patch(
        f"/experiments/{exp['id']}",
        json={"expected_result": "+35%", "cutoff_line": ""},
        headers=auth,
    )

    updated = resp.json()["experiment"]
    assert resp.status_code == 200
    assert updated["expected_result"] == updated["target_value"] == "+35%"
    assert updated["cutoff_line"] is None
    assert updated["hypothesis"] == exp["hypothesis"]


# ── results ──────────────────────────────────────────────────────────────


def test_record_result_completes_running_experiment(client, auth, llm, db, goal) -> None:
    exp = _started(client, auth, llm, goal)

    resp = client.post(
        f"/experiments/{exp['id']}/result",
        json={"final_value": "150", "result": "sucesso", "learnings": "CTR subiu"},
        headers=auth,
    )

    assert resp.status_code == 200, resp.text
    row = db(lambda s: s.get(Experiment, exp["id"]))
    assert row.status == ExperimentStatus.COMPLETED
    assert row.final_value == 150
    assert row.result == ExperimentResult.SUCCESS
    assert row.learnings == "CTR subiu"


def test_record_result_accepts_english_verdict_and_empty_value(client, auth, llm, db, goal) -> None:
    exp = _started(client, auth, llm, goal)

    resp = client.post(
        f"/experiments/{exp['id']}/result",
        json={"final_value": "", "result": "failure", "learnings": "Frete pesa"},
        headers=auth,
    )

    body = resp.json()["experiment"]
    assert resp.status_code == 200
    assert body["result"] == "falha"
    assert body["final_value"] is None


def test_non_numeric_value_is_rejected_without_writing(client, auth, llm, db, goal) -> None:
    exp = _started(client, auth, llm, goal)

    resp = client.post(
        f"/experiments/{exp['id']}/result",
        json={"final_value": "cento e cinquenta", "result": "sucesso", "learnings": "CTR subiu"},
        headers=auth,
    )

    assert resp.status_code == 400
    row = db(lambda s: s.get(Experiment, exp["id"]))
    assert row.status == ExperimentStatus.RUNNING
    assert row.learnings is None


def test_result_requires_verdict_and_learnings(client, auth, llm, goal) -> None:
    exp = _started(client, auth, llm, goal)
    url = f"/experiments/{exp['id']}/result"

    assert client.post(url, json={"final_value": 1, "learnings": "x"}, headers=auth).status_code == 400
    assert client.post(url, json={"final_value": 1, "result": "empate", "learnings": "x"}, headers=auth).status_code == 400
    assert client.post(url, json={"final_value": 1, "result": "sucesso", "learnings": " "}, headers=auth).status_code == 400


def test_result_on_backlog_experiment_is_400(client, auth, llm, goal) -> None:
    exp = _generate(client, auth, llm, goal).json()["experiments"][0]

    resp = client.post(
        f"/experiments/{exp['id']}/result",
        json={"final_value": 10, "result": "sucesso", "learnings": "cedo demais"},
        headers=auth,
    )

    assert resp.status_code == 400


def test_completed_card_cannot_be_edited(client, auth, llm, goal) -> None:
    exp = _started(client, auth, llm, goal)
    client.post(
        f"/experiments/{exp['id']}/result",
        json={"final_value": 5, "result": "falha", "learnings": "nada mudou"},
        headers=auth,
    )

    resp = client.patch(f"/experiments/{exp['id']}", json={"hypothesis": "nova"}, headers=auth)

    assert resp.status_code == 400
