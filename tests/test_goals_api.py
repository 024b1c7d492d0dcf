from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession


def test_create_goal_parses_decimal_comma(goal) -> None:
    assert goal["title"] == "Dobrar vendas"
    assert goal["target_value"] == 4.5
    assert goal["current_cycle"] == 0
    assert goal["platform"] == "instagram"
    assert len(goal["public_id"]) == 36


def test_create_goal_requires_title(client, auth) -> None:
    resp = client.post("/goals", json={"title": "  "}, headers=auth)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Título da meta é obrigatório"}


def test_create_goal_rejects_non_numeric_target(client, auth) -> None:
    resp = client.post("/goals", json={"title": "Meta", "target_value": "muito"}, headers=auth)

    assert resp.status_code == 400
    assert "error" in resp.json()


def test_goal_is_reachable_by_id_and_public_id(client, auth, goal) -> None:
    by_id = client.get(f"/goals/{goal['id']}", headers=auth)
    by_public = client.get(f"/goals/{goal['public_id']}", headers=auth)

    assert by_id.status_code == 200
    assert by_public.status_code == 200
    assert by_id.json()["id"] == by_public.json()["id"] == goal["id"]


def test_malformed_goal_ref_is_400_and_unknown_is_404(client, auth, goal) -> None:
    assert client.get("/goals/meta-de-vendas", headers=auth).status_code == 400
    assert client.get("/goals/999", headers=auth).status_code == 404


def test_goals_are_scoped_to_their_owner(client, auth, goal, other_account) -> None:
    assert client.get(f"/goals/{goal['id']}", headers=other_account.headers).status_code == 404
    assert client.get("/goals", headers=other_account.headers).json() == []


def test_list_goals_newest_first(client, auth, goal) -> None:
    second = client.post("/goals", json={"title": "Reduzir CAC"}, headers=auth).json()["goal"]

    titles = [g["title"] for g in client.get("/goals", headers=auth).json()]

    assert titles == [second["title"], goal["title"]]


def test_failed_commit_is_500_and_nothing_is_stored(client, auth, monkeypatch) -> None:
    async def failing_commit(self) -> None:
        raise SQLAlchemyError("commit failed: serialization failure")

    with monkeypatch.context() as m:
        m.setattr(AsyncSession, "commit", failing_commit)
        resp = client.post("/goals", json={"title": "Reduzir CAC"}, headers=auth)

    assert resp.status_code == 500
    assert "commit failed" in resp.json()["error"]
    assert client.get("/goals", headers=auth).json() == []
