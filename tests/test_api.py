"""HTTP surface tests."""

import httpx
import pytest
import pytest_asyncio

from conftest import reply

from courtroom.main import create_app
from courtroom.orchestrator.session import get_courtroom


@pytest.fixture
def app(courtroom):
    app = create_app()
    app.dependency_overrides[get_courtroom] = lambda: courtroom
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def open_via_api(client, role="prosecution", mode="text"):
    await client.post("/api/session/scenario", json={"scenario_key": "bail_application"})
    await client.post("/api/session/role", json={"role": role})
    await client.post("/api/session/theme", json={"theme_key": "modern_metropolis"})
    return await client.post("/api/session/input-mode", json={"mode": mode})


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_catalog_endpoints(client):
    scenarios = (await client.get("/api/scenarios")).json()
    themes = (await client.get("/api/themes")).json()
    catalog = (await client.get("/api/catalog")).json()

    assert [s["key"] for s in scenarios] == ["bail_application", "landlord_tenant_dispute"]
    assert len(themes) == 3
    assert catalog["default_theme"] == "classic_mahogany"


@pytest.mark.asyncio
async def test_full_hearing(client, gateway):
    gateway.replies.append(
        reply("judge", "Bail is granted.", verdict=True, reasoning="Strong community ties.")
    )

    response = await open_via_api(client)
    view = response.json()
    assert response.status_code == 200
    assert view["status"] == "running"
    assert view["theme"] == "modern_metropolis"
    assert view["is_user_turn"]
    assert view["active_speaker"] == "defense"

    response = await client.post(
        "/api/session/argument", json={"text": "Objection, Your Honor."}
    )
    view = response.json()
    assert view["status"] == "verdict"
    assert view["is_verdict"]
    assert view["verdict_reasoning"] == "Strong community ties."
    assert [t["speaker"] for t in view["history"]] == ["defense", "prosecution", "judge"]

    response = await client.post("/api/session/end")
    assert response.json()["status"] == "selection"


@pytest.mark.asyncio
async def test_state_errors_are_conflicts(client):
    response = await client.post("/api/session/role", json={"role": "defense"})
    assert response.status_code == 409
    body = response.json()
    assert body["expected_status"] == "role_selection"
    assert body["actual_status"] == "selection"


@pytest.mark.asyncio
async def test_unknown_scenario_is_not_found(client):
    response = await client.post("/api/session/scenario", json={"scenario_key": "nope"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_judge_role_is_unprocessable(client):
    await client.post("/api/session/scenario", json={"scenario_key": "bail_application"})
    response = await client.post("/api/session/role", json={"role": "judge"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_blank_argument_is_unprocessable(client):
    await open_via_api(client)
    response = await client.post("/api/session/argument", json={"text": "  "})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_mute(client):
    response = await client.post("/api/session/mute", json={"muted": True})
    assert response.json()["muted"] is True


@pytest.mark.asyncio
async def test_speech_events_submit_one_turn(client, gateway):
    gateway.replies.append(reply("defense", "The evidence stands."))
    await open_via_api(client, mode="voice")

    response = await client.post("/api/session/listening")
    assert response.json()["is_listening"]

    for event in [
        {"event": "start"},
        {"event": "interim", "text": "I object"},
        {"event": "interim", "text": "I object to this"},
        {"event": "final", "text": "I object to this evidence."},
    ]:
        await client.post("/api/speech/events", json=event)

    response = await client.post("/api/speech/events", json={"event": "end"})
    history = response.json()["history"]
    assert [t["dialogue"] for t in history if t["speaker"] == "prosecution"] == [
        "I object to this evidence."
    ]


@pytest.mark.asyncio
async def test_speech_capability_requires_client_recognizer(client):
    response = await client.post("/api/speech/capability", json={"available": False})
    assert response.status_code == 503
