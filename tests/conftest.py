import json
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.api.app import create_app
from growthlab.api.deps import get_llm_provider
from growthlab.identity.service import SessionService
from growthlab.providers.base import LLMProvider, LLMResponse
from growthlab.settings import get_settings
from growthlab.storage.database import session_scope


class FakeProvider(LLMProvider):
    """Scripted model: pops one queued reply per call and records the messages it was sent."""

    def __init__(self) -> None:
        super().__init__(api_key="test-key")
        self.calls: list[dict[str, Any]] = []
        self.replies: list[Any] = []

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> LLMResponse:
        self.calls.append({"messages": messages, "json_mode": json_mode})
        if not self.replies:
            raise AssertionError("FakeProvider called without a queued reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if not isinstance(reply, str):
            reply = json.dumps(reply, ensure_ascii=False)
        return LLMResponse(content=reply, model="fake")

    def get_default_model(self) -> str:
        return "fake"


@dataclass
class Account:
    user_id: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def settings_env(tmp_path, monkeypatch) -> Iterator[None]:
    monkeypatch.setenv("GROWTHLAB_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'growthlab.db'}")
    monkeypatch.setenv("GROWTHLAB_LLM_API_KEY", "test-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def llm() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def client(settings_env, llm) -> Iterator[TestClient]:
    app = create_app()
    app.dependency_overrides[get_llm_provider] = lambda: llm
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(client) -> Callable[[Callable[[AsyncSession], Awaitable[Any]]], Any]:
    """Run ``fn(session)`` on the app's event loop and commit."""

    def run(fn: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
        async def _call() -> Any:
            async with session_scope() as session:
                return await fn(session)

        return client.portal.call(_call)

    return run


def _seed_account(db, email: str) -> Account:
    async def seed(session: AsyncSession) -> Account:
        svc = SessionService(session)
        user = await svc.ensure_user(email, "Founder")
        token = await svc.issue(user.id)
        return Account(user_id=user.id, token=token)

    return db(seed)


@pytest.fixture
def account(db) -> Account:
    return _seed_account(db, "founder@example.com")


@pytest.fixture
def other_account(db) -> Account:
    return _seed_account(db, "rival@example.com")


@pytest.fixture
def auth(account) -> dict[str, str]:
    return account.headers


@pytest.fixture
def goal(client, auth) -> dict[str, Any]:
    resp = client.post(
        "/goals",
        json={
            "title": "Dobrar vendas",
            "description": "Loja online",
            "target_metric": "Conversão",
            "target_value": "4,5",
            "platform": "instagram",
        },
        headers=auth,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["goal"]


def proposal(n: int, **overrides: Any) -> dict[str, Any]:
    item = {
        "title": f"Experimento {n}",
        "hypothesis": f"Se mudarmos o criativo {n}, o CTR sobe",
        "metric": "CTR",
        "target": "+20%",
        "cutoff_line": "+10%",
        "ice_score": 7.5,
    }
    item.update(overrides)
    return item


def contract_batch(count: int = 5) -> dict[str, Any]:
    return {"experiments": [proposal(i) for i in range(1, count + 1)]}
