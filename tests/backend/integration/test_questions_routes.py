import pytest

from nutshell.models import AttendeeQuestion


pytestmark = pytest.mark.asyncio


async def test_submit_question_broadcasts(client, make_event, listener):
    event = await make_event()

    resp = await client.post(
        f"/api/v1/events/{event['id']}/questions",
        json={"question": "Will slides be shared?", "askedBy": "Kim", "isAnonymous": False},
    )
    assert resp.status_code == 200
    q = resp.json()["data"]
    assert q["askedBy"] == "Kim"
    assert q["votes"] == 0
    assert listener.of_type("question_added") == [q]


async def test_anonymous_question_drops_name(client, make_event):
    event = await make_event()
    resp = await client.post(
        f"/api/v1/events/{event['id']}/questions",
        json={"question": "Salary bands?", "askedBy": "Kim"},
    )
    assert resp.json()["data"]["askedBy"] is None
    assert resp.json()["data"]["isAnonymous"] is True


async def test_list_questions_by_votes(client, make_event):
    event = await make_event()
    low = await client.post(f"/api/v1/events/{event['id']}/questions", json={"question": "low"})
    high = await client.post(f"/api/v1/events/{event['id']}/questions", json={"question": "high"})
    await AttendeeQuestion.filter(id=high.json()["data"]["id"]).update(votes=5)

    data = (await client.get(f"/api/v1/events/{event['id']}/questions")).json()["data"]
    assert [q["question"] for q in data] == ["high", "low"]
    assert low.status_code == 200


async def test_questions_for_missing_event(client):
    assert (await client.get("/api/v1/events/77/questions")).status_code == 404
