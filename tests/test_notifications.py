import pytest

from app.services import notification_service


@pytest.mark.asyncio
async def test_submission_notifies_applicant_and_mentor(client, campus, submit):
    app = await submit(campus.headers["student"])

    res = await client.get("/api/notifications", headers=campus.headers["student"])
    assert res.status_code == 200
    page = res.json()["data"]
    assert page["total"] == 1
    assert page["unread_count"] == 1
    note = page["notifications"][0]
    assert note["title"] == "Application submitted"
    assert note["source_type"] == "application"
    assert note["source_id"] == app["id"]

    res = await client.get("/api/notifications", headers=campus.headers["mentor"])
    assert res.json()["data"]["notifications"][0]["title"] == "New application to review"


@pytest.mark.asyncio
async def test_every_transition_notifies_applicant(client, campus, submit, review):
    app = await submit(campus.headers["student"])
    await review(app["id"], campus.headers["mentor"], "APPROVE_FORWARD")
    await review(app["id"], campus.headers["hod"], "REJECT", "Missing documents")

    res = await client.get("/api/notifications", headers=campus.headers["student"])
    titles = [n["title"] for n in res.json()["data"]["notifications"]]
    # newest first
    assert titles == [
        "Application rejected",
        "Application forwarded to HOD",
        "Application submitted",
    ]
    latest = res.json()["data"]["notifications"][0]
    assert "by the HOD" in latest["body"]
    assert "Missing documents" in latest["body"]


@pytest.mark.asyncio
async def test_failed_review_sends_nothing(client, campus, submit, review):
    app = await submit(campus.headers["student"])
    await review(app["id"], campus.headers["dean"], "APPROVE_FORWARD")

    res = await client.get("/api/notifications/unread-count", headers=campus.headers["student"])
    assert res.json()["data"] == {"unread_count": 1}


@pytest.mark.asyncio
async def test_mark_read_and_read_all(client, campus):
    for i in range(3):
        await notification_service.notify_user(campus.student.id, f"Notice {i}", "body")

    headers = campus.headers["student"]
    res = await client.get("/api/notifications", headers=headers, params={"limit": 2})
    page = res.json()["data"]
    assert (page["total"], page["unread_count"], len(page["notifications"])) == (3, 3, 2)

    first_id = page["notifications"][0]["id"]
    res = await client.patch(f"/api/notifications/{first_id}/read", headers=headers)
    assert res.status_code == 200
    assert res.json()["data"]["read_at"] is not None

    res = await client.get("/api/notifications", headers=headers, params={"unread_only": "true"})
    assert res.json()["data"]["total"] == 2

    res = await client.patch("/api/notifications/read-all", headers=headers)
    assert res.json()["data"] == {"updated": 2}

    res = await client.get("/api/notifications/unread-count", headers=headers)
    assert res.json()["data"]["unread_count"] == 0


@pytest.mark.asyncio
async def test_notifications_are_private(client, campus):
    note = await notification_service.notify_user(campus.student.id, "Private", "body")

    res = await client.patch(f"/api/notifications/{note.id}/read", headers=campus.headers["other_student"])
    assert res.status_code == 404
    res = await client.delete(f"/api/notifications/{note.id}", headers=campus.headers["other_student"])
    assert res.status_code == 404

    res = await client.delete(f"/api/notifications/{note.id}", headers=campus.headers["student"])
    assert res.status_code == 200
    res = await client.get("/api/notifications", headers=campus.headers["student"])
    assert res.json()["data"]["total"] == 0
