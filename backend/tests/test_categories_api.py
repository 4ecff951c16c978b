from sqlmodel import select

from chronos.models import CalendarParticipant, EventCategory


def _first_category(session, calendar):
    return session.exec(
        select(EventCategory).where(EventCategory.calendar_id == calendar.id)
    ).first()


def test_list_categories(client, owner, calendar, auth_headers):
    response = client.get(
        f"/calendars/{calendar.id}/categories", headers=auth_headers(owner)
    )
    assert response.status_code == 200
    assert {c["name"] for c in response.json()["data"]} == {
        "Arrangement",
        "Reminder",
        "Task",
    }


def test_creator_manages_categories(client, guest, calendar, auth_headers, session):
    session.add(
        CalendarParticipant(calendar_id=calendar.id, user_id=guest.id, role="creator")
    )
    session.commit()
    headers = auth_headers(guest)

    created = client.post(
        f"/calendars/{calendar.id}/categories",
        json={"name": "Travel", "color": "#00AA00"},
        headers=headers,
    )
    assert created.status_code == 201
    category_id = created.json()["data"]["id"]

    updated = client.put(
        f"/categories/{category_id}", json={"name": "Trips"}, headers=headers
    )
    assert updated.json()["data"]["name"] == "Trips"

    deleted = client.delete(f"/categories/{category_id}", headers=headers)
    assert deleted.status_code == 200
    assert client.get(f"/categories/{category_id}", headers=headers).status_code == 404


def test_reader_cannot_create_category(client, guest, calendar, auth_headers, session):
    session.add(
        CalendarParticipant(calendar_id=calendar.id, user_id=guest.id, role="reader")
    )
    session.commit()

    response = client.post(
        f"/calendars/{calendar.id}/categories",
        json={"name": "Travel"},
        headers=auth_headers(guest),
    )
    assert response.status_code == 403


def test_category_in_use_cannot_be_deleted(client, owner, calendar, auth_headers, session):
    category = _first_category(session, calendar)
    headers = auth_headers(owner)
    client.post(
        f"/calendars/{calendar.id}/events",
        json={
            "title": "Dentist",
            "category_id": str(category.id),
            "starts_at": "2026-03-04T08:00:00",
            "ends_at": "2026-03-04T09:00:00",
        },
        headers=headers,
    )

    response = client.delete(f"/categories/{category.id}", headers=headers)

    assert response.status_code == 400
    assert "events" in response.json()["message"]


def test_outsider_cannot_read_category(client, outsider, calendar, auth_headers, session):
    category = _first_category(session, calendar)
    response = client.get(f"/categories/{category.id}", headers=auth_headers(outsider))
    assert response.status_code == 403
