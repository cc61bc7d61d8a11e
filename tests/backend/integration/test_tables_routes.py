import re

import pytest


pytestmark = pytest.mark.asyncio


async def test_create_table_assigns_join_code_and_broadcasts(client, make_event, listener):
    event = await make_event()

    resp = await client.post(
        f"/api/v1/events/{event['id']}/tables",
        json={"name": "Growth", "session": "Morning", "topic": "Pricing"},
    )
    assert resp.status_code == 200
    table = resp.json()["data"]

    assert re.fullmatch(r"[A-Z0-9]{6}", table["joinCode"])
    assert table["status"] == "OFFLINE"
    assert table["eventId"] == event["id"]
    assert listener.of_type("table_created") == [table]


async def test_join_codes_are_unique(client, make_event, make_table):
    event = await make_event()
    codes = {(await make_table(event["id"], f"T{i}"))["joinCode"] for i in range(10)}
    assert len(codes) == 10


async def test_list_tables_by_event(client, make_event, make_table):
    a = await make_event("A")
    b = await make_event("B")
    t1 = await make_table(a["id"], "One")
    await make_table(b["id"], "Other")
    t2 = await make_table(a["id"], "Two")

    resp = await client.get(f"/api/v1/events/{a['id']}/tables")
    assert [t["id"] for t in resp.json()["data"]] == [t1["id"], t2["id"]]


async def test_update_table_broadcasts_new_record(client, make_event, make_table, listener):
    event = await make_event()
    table = await make_table(event["id"])

    resp = await client.put(f"/api/v1/tables/{table['id']}", json={"isHot": True, "status": "DEGRADED"})
    assert resp.status_code == 200
    updated = resp.json()["data"]

    assert updated["isHot"] is True
    assert updated["status"] == "DEGRADED"
    assert updated["joinCode"] == table["joinCode"]
    assert updated["name"] == table["name"]
    assert listener.of_type("table_updated") == [updated]


async def test_update_rejects_unknown_status(client, make_event, make_table):
    event = await make_event()
    table = await make_table(event["id"])
    resp = await client.put(f"/api/v1/tables/{table['id']}", json={"status": "ON_FIRE"})
    assert resp.status_code == 422


async def test_delete_table_broadcasts_last_record(client, make_event, make_table, listener):
    event = await make_event()
    table = await make_table(event["id"])
    await client.post(f"/api/v1/tables/{table['id']}/transcripts", json={"text": "bye"})

    resp = await client.delete(f"/api/v1/tables/{table['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"id": table["id"], "deleted": True}

    deleted = listener.of_type("table_deleted")
    assert len(deleted) == 1
    assert deleted[0]["id"] == table["id"]
    assert deleted[0]["joinCode"] == table["joinCode"]

    assert (await client.get(f"/api/v1/tables/{table['id']}/transcripts")).status_code == 404
    assert (await client.delete(f"/api/v1/tables/{table['id']}")).status_code == 404


async def test_join_by_code_is_case_insensitive_and_activates(client, make_event, make_table, listener):
    event = await make_event()
    table = await make_table(event["id"])

    resp = await client.get(f"/api/v1/tables/join/{table['joinCode'].lower()}")
    assert resp.status_code == 200
    joined = resp.json()["data"]

    assert joined["id"] == table["id"]
    assert joined["status"] == "ACTIVE"
    assert joined["lastAudio"] is not None
    assert listener.of_type("table_updated")[0]["status"] == "ACTIVE"


async def test_join_unknown_code(client):
    resp = await client.get("/api/v1/tables/join/NOPE00")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "TABLE_NOT_FOUND"


async def test_create_table_for_missing_event(client):
    resp = await client.post("/api/v1/events/42/tables", json={"name": "Ghost"})
    assert resp.status_code == 404
