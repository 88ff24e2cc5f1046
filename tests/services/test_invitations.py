from datetime import datetime, timedelta

import pytest

from models.invitation import InvitationStatus
from models.project import Role
from services.errors import (
    AuthorizationError,
    DuplicateInvitationError,
    InvitationError,
)
from services.invitations import InviteCheck

NOW = datetime(2024, 3, 15, 12, 0, 0)


class TestInvitationService:
    """Tests for InvitationService."""

    def test_create_invitation(self, services, project):
        """Test issuing a pending invitation with a 7 day expiry."""
        invitation = services.invitations.create(project.id, " Guest@Example.com ", now=NOW)

        assert invitation.email == "guest@example.com"
        assert invitation.role == "member"
        assert invitation.status == InvitationStatus.PENDING
        assert invitation.expires_at == NOW + timedelta(days=7)
        assert invitation.invited_by == services.session.user_id
        assert len(invitation.token) >= 32

    def test_owner_role_cannot_be_granted(self, services, project):
        """Test invitations only grant member or viewer."""
        with pytest.raises(ValueError):
            services.invitations.create(project.id, "guest@example.com", Role.OWNER.value)

    def test_non_owner_cannot_invite(self, services, project, make_services):
        """Test members cannot send invitations."""
        member = make_services("member@example.com")
        services.members.add(project.id, member.session.user_id, Role.MEMBER)

        with pytest.raises(AuthorizationError):
            member.invitations.create(project.id, "guest@example.com", now=NOW)

    def test_duplicate_active_invitation(self, services, project):
        """Test a second invite for the same email needs confirmation."""
        first = services.invitations.create(project.id, "guest@example.com", now=NOW)

        with pytest.raises(DuplicateInvitationError) as excinfo:
            services.invitations.create(project.id, "guest@example.com", now=NOW)

        assert excinfo.value.invitation.id == first.id

    def test_replace_existing_refreshes_row(self, services, project):
        """Test confirmed replacement updates the existing invitation."""
        first = services.invitations.create(project.id, "guest@example.com", now=NOW)
        later = NOW + timedelta(days=2)

        second = services.invitations.create(
            project.id, "guest@example.com", "viewer", replace_existing=True, now=later
        )

        assert second.id == first.id
        assert second.token != first.token
        assert second.role == "viewer"
        assert second.expires_at == later + timedelta(days=7)
        assert len(services.invitations.find_by_project(project.id)) == 1

    def test_expired_invitation_is_not_a_duplicate(self, services, project):
        """Test an expired invitation does not block a new one."""
        services.invitations.create(project.id, "guest@example.com", now=NOW)

        services.invitations.create(
            project.id, "guest@example.com", now=NOW + timedelta(days=8)
        )

        assert len(services.invitations.find_by_project(project.id)) == 2

    def test_create_many(self, services, project):
        """Test inviting one email to several projects."""
        other = services.projects.create("Trip")

        invitations = services.invitations.create_many(
            [project.id, other.id], "guest@example.com", now=NOW
        )

        assert [i.project_id for i in invitations] == [project.id, other.id]
        assert len({i.token for i in invitations}) == 2

    def test_create_many_respects_existing_invitations(self, services, project):
        """Test an active invitation blocks create_many unless replacing."""
        other = services.projects.create("Trip")
        existing = services.invitations.create(other.id, "guest@example.com", now=NOW)

        with pytest.raises(DuplicateInvitationError):
            services.invitations.create_many(
                [project.id, other.id], "guest@example.com", now=NOW
            )

        invitations = services.invitations.create_many(
            [project.id, other.id], "guest@example.com", replace_existing=True, now=NOW
        )

        assert invitations[1].id == existing.id
        assert invitations[1].token != existing.token

    def test_validate_states(self, services, project):
        """Test each validation outcome."""
        invitation = services.invitations.create(project.id, "guest@example.com", now=NOW)
        validate = services.invitations.validate

        assert validate("", now=NOW)[0] == InviteCheck.INVALID
        assert validate("unknown", now=NOW)[0] == InviteCheck.INVALID
        assert validate(invitation.token, "guest@example.com", now=NOW)[0] == InviteCheck.VALID
        assert validate(invitation.token, "other@example.com", now=NOW)[0] == InviteCheck.WRONG_EMAIL

    def test_expired_is_written_back_on_read(self, services, project):
        """Test reading an overdue invitation marks it expired."""
        invitation = services.invitations.create(project.id, "guest@example.com", now=NOW)

        check, _ = services.invitations.validate(
            invitation.token, now=NOW + timedelta(days=8)
        )

        assert check == InviteCheck.EXPIRED
        stored = services.invitations.find_by_token(invitation.token, now=NOW)
        assert stored.status == InvitationStatus.EXPIRED

    def test_accept_adds_membership(self, services, project, make_services):
        """Test accepting joins the project with the invited role."""
        invitation = services.invitations.create(
            project.id, "guest@example.com", "viewer", now=NOW
        )
        guest = make_services("guest@example.com")

        accepted = guest.invitations.accept(invitation.token, now=NOW)

        assert accepted.status == InvitationStatus.ACCEPTED
        assert guest.members.get_role(project.id) == Role.VIEWER
        assert guest.projects.find(project.id) is not None
        check, _ = guest.invitations.validate(invitation.token, now=NOW)
        assert check == InviteCheck.ACCEPTED

    def test_accept_when_already_member(self, services, project, make_services):
        """Test accepting keeps an existing membership."""
        guest = make_services("guest@example.com")
        services.members.add(project.id, guest.session.user_id, Role.MEMBER)
        invitation = services.invitations.create(
            project.id, "guest@example.com", "viewer", now=NOW
        )

        guest.invitations.accept(invitation.token, now=NOW)

        assert guest.members.get_role(project.id) == Role.MEMBER

    def test_accept_with_wrong_email(self, services, project, make_services):
        """Test an invitation can only be accepted by its addressee."""
        invitation = services.invitations.create(project.id, "guest@example.com", now=NOW)
        intruder = make_services("intruder@example.com")

        with pytest.raises(InvitationError) as excinfo:
            intruder.invitations.accept(invitation.token, now=NOW)

        assert excinfo.value.status == InviteCheck.WRONG_EMAIL
        assert intruder.members.get_role(project.id) is None

    def test_accept_many_continues_past_failures(self, services, project, make_services):
        """Test a combined link accepts what it can."""
        other = services.projects.create("Trip")
        good = services.invitations.create(project.id, "guest@example.com", now=NOW)
        stale = services.invitations.create(other.id, "guest@example.com", now=NOW)
        guest = make_services("guest@example.com")

        results = guest.invitations.accept_many(
            [stale.token, "bogus", good.token], now=NOW + timedelta(days=8)
        )

        assert [check for _, check in results] == [
            InviteCheck.EXPIRED,
            InviteCheck.INVALID,
            InviteCheck.EXPIRED,
        ]

        fresh = services.invitations.create(project.id, "guest@example.com", now=NOW)
        results = guest.invitations.accept_many([fresh.token, "bogus"], now=NOW)
        assert [check for _, check in results] == [InviteCheck.VALID, InviteCheck.INVALID]

    def test_mark_expired(self, services, project):
        """Test bulk expiry only touches overdue pending invitations."""
        services.invitations.create(project.id, "a@example.com", now=NOW)
        services.invitations.create(project.id, "b@example.com", now=NOW + timedelta(days=5))

        count = services.invitations.mark_expired(now=NOW + timedelta(days=8))

        assert count == 1
        statuses = sorted(i.status.value for i in services.invitations.find_by_project(project.id))
        assert statuses == ["expired", "pending"]

    def test_cleanup_old(self, services, project):
        """Test cleanup deletes only old expired or accepted invitations."""
        services.invitations.create(project.id, "old@example.com", now=NOW)
        services.invitations.create(project.id, "new@example.com", now=NOW + timedelta(days=40))
        services.invitations.mark_expired(now=NOW + timedelta(days=50))

        removed = services.invitations.cleanup_old(now=NOW + timedelta(days=45))

        assert removed == 1
        emails = [i.email for i in services.invitations.find_by_project(project.id)]
        assert emails == ["new@example.com"]
