"""Invitation issuing and redemption."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import insert
from sqlmodel import select

from chronos.core.exceptions import InviteExpiredError, NotAuthorizedError, NotFoundError
from chronos.models import (
    CalendarEmailInvite,
    CalendarParticipant,
    Event,
    EventCategory,
    EventEmailInvite,
    EventParticipant,
    ParticipantRole,
)
from chronos.services import invitations, participants, redemption
from chronos.services.participants import add_participant

NOW = datetime(2026, 3, 1, 12, 0)


def _participants(session, calendar):
    return session.exec(
        select(CalendarParticipant).where(CalendarParticipant.calendar_id == calendar.id)
    ).all()


@pytest.fixture
def sent_mail(monkeypatch):
    sent = []
    monkeypatch.setattr(
        invitations,
        "send_calendar_invite_email",
        lambda invite, calendar, inviter: sent.append(("calendar", invite.email)),
    )
    monkeypatch.setattr(
        invitations,
        "send_event_invite_email",
        lambda invite, event, inviter: sent.append(("event", invite.email)),
    )
    return sent


@pytest.fixture
def event(session, owner, calendar):
    category = session.exec(
        select(EventCategory).where(EventCategory.calendar_id == calendar.id)
    ).first()
    event = Event(
        calendar_id=calendar.id,
        category_id=category.id,
        creator_id=owner.id,
        title="Quarterly review",
        starts_at=datetime(2026, 3, 10, 9),
        ends_at=datetime(2026, 3, 10, 10),
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


class TestInviteLinks:
    def test_expiry_is_computed_from_days(self, session, owner, calendar):
        link = invitations.create_invite_link(
            session, calendar.id, owner, expire_in_days=7, now=NOW
        )
        assert link.expires_at == NOW + timedelta(days=7)
        assert link.role == "reader"

    def test_link_without_expiry_never_expires(self, session, owner, calendar):
        link = invitations.create_invite_link(session, calendar.id, owner)
        assert link.expires_at is None
        assert not link.is_expired(NOW + timedelta(days=3650))

    def test_multiple_links_per_calendar(self, session, owner, calendar):
        invitations.create_invite_link(session, calendar.id, owner)
        invitations.create_invite_link(session, calendar.id, owner, role="creator")
        assert len(invitations.list_invite_links(session, calendar.id, owner)) == 2

    def test_reader_cannot_issue_or_list(self, session, guest, calendar):
        add_participant(session, calendar, guest.id, ParticipantRole.READER)
        with pytest.raises(NotAuthorizedError):
            invitations.create_invite_link(session, calendar.id, guest)
        with pytest.raises(NotAuthorizedError):
            invitations.list_invite_links(session, calendar.id, guest)

    def test_admin_can_issue(self, session, guest, calendar):
        add_participant(session, calendar, guest.id, ParticipantRole.ADMIN)
        link = invitations.create_invite_link(session, calendar.id, guest)
        assert link.created_by_id == guest.id

    def test_issue_for_missing_calendar(self, session, owner):
        with pytest.raises(NotFoundError):
            invitations.create_invite_link(session, uuid4(), owner)

    def test_delete_requires_matching_calendar(
        self, session, owner, calendar, make_calendar
    ):
        other = make_calendar(owner, "Other")
        link = invitations.create_invite_link(session, calendar.id, owner)
        link_id = link.id

        with pytest.raises(NotFoundError):
            invitations.delete_invite_link(session, other.id, link_id, owner)

        invitations.delete_invite_link(session, calendar.id, link_id, owner)
        with pytest.raises(NotFoundError):
            redemption.accept_invite_link(session, link_id, owner)


class TestAcceptInviteLink:
    def test_accept_creates_participant_with_link_role(
        self, session, owner, guest, calendar
    ):
        link = invitations.create_invite_link(
            session, calendar.id, owner, role=ParticipantRole.CREATOR
        )
        redemption.accept_invite_link(session, link.id, guest)

        [participant] = _participants(session, calendar)
        assert participant.user_id == guest.id
        assert participant.role == "creator"

    def test_accept_is_idempotent(self, session, owner, guest, calendar):
        link = invitations.create_invite_link(session, calendar.id, owner)
        redemption.accept_invite_link(session, link.id, guest)
        redemption.accept_invite_link(session, link.id, guest)

        assert len(_participants(session, calendar)) == 1

    def test_reaccept_does_not_downgrade(self, session, owner, guest, calendar):
        add_participant(session, calendar, guest.id, ParticipantRole.ADMIN)
        link = invitations.create_invite_link(session, calendar.id, owner)

        redemption.accept_invite_link(session, link.id, guest)

        [participant] = _participants(session, calendar)
        assert participant.role == "admin"

    def test_owner_accepting_is_a_noop(self, session, owner, calendar):
        link = invitations.create_invite_link(session, calendar.id, owner)
        redemption.accept_invite_link(session, link.id, owner)
        assert _participants(session, calendar) == []

    def test_link_is_reusable_by_many_users(
        self, session, owner, guest, outsider, calendar
    ):
        link = invitations.create_invite_link(session, calendar.id, owner)
        redemption.accept_invite_link(session, link.id, guest)
        redemption.accept_invite_link(session, link.id, outsider)
        assert {p.user_id for p in _participants(session, calendar)} == {
            guest.id,
            outsider.id,
        }

    def test_expired_link_is_rejected(self, session, owner, guest, calendar):
        link = invitations.create_invite_link(
            session, calendar.id, owner, expire_in_days=1, now=NOW
        )
        with pytest.raises(InviteExpiredError):
            redemption.accept_invite_link(
                session, link.id, guest, now=NOW + timedelta(days=1, seconds=1)
            )
        with pytest.raises(InviteExpiredError):
            redemption.get_invite_link_info(
                session, link.id, now=NOW + timedelta(days=2)
            )
        assert _participants(session, calendar) == []

    def test_link_is_valid_before_expiry(self, session, owner, guest, calendar):
        link = invitations.create_invite_link(
            session, calendar.id, owner, expire_in_days=1, now=NOW
        )
        redemption.accept_invite_link(
            session, link.id, guest, now=NOW + timedelta(hours=23)
        )
        assert len(_participants(session, calendar)) == 1

    def test_unknown_link(self, session, guest):
        with pytest.raises(NotFoundError):
            redemption.accept_invite_link(session, uuid4(), guest)

    def test_role_override_may_narrow(self, session, owner, guest, calendar):
        link = invitations.create_invite_link(
            session, calendar.id, owner, role=ParticipantRole.ADMIN
        )
        redemption.accept_invite_link(
            session, link.id, guest, role=ParticipantRole.READER
        )
        [participant] = _participants(session, calendar)
        assert participant.role == "reader"

    def test_role_override_may_not_widen(self, session, owner, guest, calendar):
        link = invitations.create_invite_link(session, calendar.id, owner)
        with pytest.raises(NotAuthorizedError):
            redemption.accept_invite_link(
                session, link.id, guest, role=ParticipantRole.ADMIN
            )
        assert _participants(session, calendar) == []

    def test_info_describes_calendar_and_owner(self, session, owner, calendar):
        link = invitations.create_invite_link(
            session, calendar.id, owner, role=ParticipantRole.CREATOR
        )
        info = redemption.get_invite_link_info(session, link.id)

        assert info.calendar_name == "Team"
        assert info.owner.username == owner.username
        assert info.role == ParticipantRole.CREATOR


class TestCalendarEmailInvites:
    def test_emails_are_normalised_and_deduplicated(
        self, session, owner, calendar, sent_mail
    ):
        invites = invitations.create_calendar_email_invites(
            session,
            calendar.id,
            owner,
            ["Gustav@Acme.io", "gustav@acme.io ", "nina@acme.io"],
            now=NOW,
        )
        assert [invite.email for invite in invites] == ["gustav@acme.io", "nina@acme.io"]
        assert all(invite.expires_at == NOW + timedelta(days=7) for invite in invites)
        assert sent_mail == [("calendar", "gustav@acme.io"), ("calendar", "nina@acme.io")]

    def test_token_differs_from_id(self, session, owner, calendar, sent_mail):
        [invite] = invitations.create_calendar_email_invites(
            session, calendar.id, owner, ["nina@acme.io"]
        )
        assert invite.token
        assert invite.token != str(invite.id)

    def test_accept_is_single_use(self, session, owner, guest, calendar, sent_mail):
        [invite] = invitations.create_calendar_email_invites(
            session,
            calendar.id,
            owner,
            [guest.email.upper()],
            role=ParticipantRole.CREATOR,
        )
        token = invite.token

        redemption.accept_calendar_email_invite(session, token, guest)

        [participant] = _participants(session, calendar)
        assert participant.role == "creator"
        assert session.exec(select(CalendarEmailInvite)).all() == []
        with pytest.raises(NotFoundError):
            redemption.accept_calendar_email_invite(session, token, guest)
        with pytest.raises(NotFoundError):
            redemption.get_calendar_email_invite_info(session, token)

    def test_email_mismatch_is_rejected(
        self, session, owner, guest, outsider, calendar, sent_mail
    ):
        [invite] = invitations.create_calendar_email_invites(
            session, calendar.id, owner, [guest.email]
        )
        with pytest.raises(NotAuthorizedError):
            redemption.accept_calendar_email_invite(session, invite.token, outsider)

        assert _participants(session, calendar) == []
        assert session.get(CalendarEmailInvite, invite.id) is not None

    def test_expired_invite(self, session, owner, guest, calendar, sent_mail):
        [invite] = invitations.create_calendar_email_invites(
            session, calendar.id, owner, [guest.email], expire_in_days=2, now=NOW
        )
        later = NOW + timedelta(days=3)
        with pytest.raises(InviteExpiredError):
            redemption.get_calendar_email_invite_info(session, invite.token, now=later)
        with pytest.raises(InviteExpiredError):
            redemption.accept_calendar_email_invite(
                session, invite.token, guest, now=later
            )

    def test_accept_keeps_existing_membership(
        self, session, owner, guest, calendar, sent_mail
    ):
        add_participant(session, calendar, guest.id, ParticipantRole.ADMIN)
        [invite] = invitations.create_calendar_email_invites(
            session, calendar.id, owner, [guest.email]
        )
        redemption.accept_calendar_email_invite(session, invite.token, guest)

        [participant] = _participants(session, calendar)
        assert participant.role == "admin"
        assert session.exec(select(CalendarEmailInvite)).all() == []

    def test_revoked_invite_cannot_be_accepted(
        self, session, owner, guest, calendar, sent_mail
    ):
        [invite] = invitations.create_calendar_email_invites(
            session, calendar.id, owner, [guest.email]
        )
        token = invite.token
        invitations.delete_calendar_email_invite(session, calendar.id, invite.id, owner)
        with pytest.raises(NotFoundError):
            redemption.accept_calendar_email_invite(session, token, guest)


class TestEventEmailInvites:
    def test_known_email_is_resolved_to_user(
        self, session, owner, guest, event, sent_mail
    ):
        invites = invitations.create_event_email_invites(
            session, event.id, owner, [guest.email, "stranger@acme.io"]
        )
        by_email = {invite.email: invite for invite in invites}
        assert by_email[guest.email].user_id == guest.id
        assert by_email["stranger@acme.io"].user_id is None
        assert ("event", "stranger@acme.io") in sent_mail

    def test_reader_cannot_invite(
        self, session, guest, calendar, event, sent_mail
    ):
        add_participant(session, calendar, guest.id, ParticipantRole.READER)
        with pytest.raises(NotAuthorizedError):
            invitations.create_event_email_invites(
                session, event.id, guest, ["nina@acme.io"]
            )

    def test_accept_adds_unconfirmed_participant(
        self, session, owner, guest, event, sent_mail
    ):
        [invite] = invitations.create_event_email_invites(
            session, event.id, owner, [guest.email]
        )
        token = invite.token
        redemption.accept_event_email_invite(session, token, guest)

        participant = session.get(EventParticipant, (event.id, guest.id))
        assert participant is not None
        assert participant.has_confirmed is False
        assert session.exec(select(EventEmailInvite)).all() == []
        with pytest.raises(NotFoundError):
            redemption.accept_event_email_invite(session, token, guest)

    def test_info_is_available_until_expiry(
        self, session, owner, guest, event, sent_mail
    ):
        [invite] = invitations.create_event_email_invites(
            session, event.id, owner, [guest.email], expire_in_days=1, now=NOW
        )
        info = redemption.get_event_email_invite_info(
            session, invite.token, now=NOW + timedelta(hours=1)
        )
        assert info.event_title == "Quarterly review"
        assert info.inviter.username == owner.username

        with pytest.raises(InviteExpiredError):
            redemption.get_event_email_invite_info(
                session, invite.token, now=NOW + timedelta(days=2)
            )

    def test_email_mismatch_is_rejected(
        self, session, owner, guest, outsider, event, sent_mail
    ):
        [invite] = invitations.create_event_email_invites(
            session, event.id, owner, [guest.email]
        )
        with pytest.raises(NotAuthorizedError):
            redemption.accept_event_email_invite(session, invite.token, outsider)
        assert session.get(EventParticipant, (event.id, outsider.id)) is None

    def test_revoke_requires_manage_events(
        self, session, owner, outsider, event, sent_mail
    ):
        [invite] = invitations.create_event_email_invites(
            session, event.id, owner, ["nina@acme.io"]
        )
        with pytest.raises(NotAuthorizedError):
            invitations.delete_event_email_invite(session, invite.id, outsider)
        invitations.delete_event_email_invite(session, invite.id, owner)
        assert invitations.list_event_email_invites(session, event.id, owner) == []


def _insert_behind_session(session, row):
    """Write ``row`` with a Core INSERT so the ORM session does not know about it."""
    session.execute(insert(type(row)).values(**row.model_dump()))
    session.commit()


def _stale_once(monkeypatch, module, name):
    """The first lookup misses, as if the other writer had not committed yet."""
    real = getattr(module, name)
    calls = []

    def lookup(*args):
        calls.append(args)
        return None if len(calls) == 1 else real(*args)

    monkeypatch.setattr(module, name, lookup)


class TestConcurrentAcceptance:
    def test_link_accept_losing_the_race_keeps_existing_row(
        self, session, owner, guest, calendar, monkeypatch
    ):
        link = invitations.create_invite_link(session, calendar.id, owner)
        link_id, guest_id = link.id, guest.id
        _insert_behind_session(
            session,
            CalendarParticipant(calendar_id=calendar.id, user_id=guest_id, role="creator"),
        )
        _stale_once(monkeypatch, participants, "get_participant")

        redemption.accept_invite_link(session, link_id, guest)

        [participant] = _participants(session, calendar)
        assert participant.user_id == guest_id
        assert participant.role == "creator"

    def test_email_accept_losing_the_race_still_consumes_invite(
        self, session, owner, guest, calendar, sent_mail, monkeypatch
    ):
        [invite] = invitations.create_calendar_email_invites(
            session, calendar.id, owner, [guest.email], role=ParticipantRole.ADMIN
        )
        token = invite.token
        _insert_behind_session(
            session,
            CalendarParticipant(calendar_id=calendar.id, user_id=guest.id, role="reader"),
        )
        _stale_once(monkeypatch, participants, "get_participant")

        redemption.accept_calendar_email_invite(session, token, guest)

        [participant] = _participants(session, calendar)
        assert participant.role == "reader"
        assert session.exec(select(CalendarEmailInvite)).all() == []

    def test_event_accept_losing_the_race_keeps_confirmation(
        self, session, owner, guest, event, sent_mail, monkeypatch
    ):
        [invite] = invitations.create_event_email_invites(
            session, event.id, owner, [guest.email]
        )
        token, event_id = invite.token, event.id
        _insert_behind_session(
            session,
            EventParticipant(event_id=event_id, user_id=guest.id, has_confirmed=True),
        )
        _stale_once(monkeypatch, redemption, "get_event_participant")

        redemption.accept_event_email_invite(session, token, guest)

        [participant] = session.exec(select(EventParticipant)).all()
        assert participant.has_confirmed is True
        assert session.exec(select(EventEmailInvite)).all() == []


def test_email_accept_commits_membership_and_invite_together(
    session, owner, guest, calendar, sent_mail, monkeypatch
):
    [invite] = invitations.create_calendar_email_invites(
        session, calendar.id, owner, [guest.email], role=ParticipantRole.CREATOR
    )
    token = invite.token
    commits = []
    real_commit = session.commit

    def counting_commit():
        commits.append(True)
        real_commit()

    monkeypatch.setattr(session, "commit", counting_commit)

    redemption.accept_calendar_email_invite(session, token, guest)

    assert len(commits) == 1
    [participant] = _participants(session, calendar)
    assert participant.role == "creator"
    assert session.exec(select(CalendarEmailInvite)).all() == []
