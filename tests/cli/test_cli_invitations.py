from argparse import Namespace

import pytest

from cli import invitations as invitations_cli
from cli.migrate import apply_pending
from db import client
from db.manager import DatabaseManager
from models.project import Role
from services.base import Services
from tools.invite_links import generate_invite_link


@pytest.fixture(autouse=True)
def clean_backend():
    client.reset_backend()
    yield
    client.reset_backend()


@pytest.fixture
def saved_configs(monkeypatch):
    """Capture configs written by the invitation commands."""
    saved = []
    monkeypatch.setattr(invitations_cli, "write_config", saved.append)
    return saved


@pytest.fixture
def shared(test_config, tmp_path):
    """A second, file-backed database with a project owned by someone else."""
    config = test_config.with_database(tmp_path / "shared", "shared.db")
    apply_pending(DatabaseManager(config))

    owner = Services(config, db_manager=DatabaseManager(config))
    owner.auth.sign_in("host@example.com", "Host")
    project = owner.projects.create("Trip")
    return config, owner, project


def _send_args(**overrides):
    args = dict(
        email="guest@example.com",
        project_ids=[],
        role="member",
        replace=False,
        embed_config=False,
    )
    args.update(overrides)
    return Namespace(**args)


class TestAcceptThroughLink:
    """Tests for accepting links that carry a database location."""

    def test_accept_switches_to_linked_database(self, shared, make_services, saved_configs):
        """Test the invitee joins the project in the linked database."""
        config, owner, project = shared
        invitation = owner.invitations.create(project.id, "guest@example.com", "viewer")
        link = generate_invite_link(config.app_url, invitation.token, config=config)
        guest = make_services("guest@example.com", "Guest")

        invitations_cli.cmd_accept(Namespace(token=link), guest)

        assert [c.db_path for c in saved_configs] == [config.db_path]
        assert client.get_backend().get_db_path() == config.db_path
        assert guest.projects.find(project.id) is None

        on_shared = Services(config, db_manager=DatabaseManager(config))
        on_shared.auth.sign_in("guest@example.com")
        assert on_shared.members.get_role(project.id) == Role.VIEWER

    def test_link_without_config_keeps_database(
        self, services, project, make_services, saved_configs
    ):
        invitation = services.invitations.create(project.id, "guest@example.com")
        link = generate_invite_link(services.config.app_url, invitation.token)
        guest = make_services("guest@example.com")

        invitations_cli.cmd_accept(Namespace(token=link), guest)

        assert saved_configs == []
        assert guest.members.get_role(project.id) == Role.MEMBER

    def test_unreadable_config_exits(self, services, project, make_services, saved_configs):
        invitation = services.invitations.create(project.id, "guest@example.com")
        link = f"http://localhost:5173/invite?token={invitation.token}&config=garbage"
        guest = make_services("guest@example.com")

        with pytest.raises(SystemExit):
            invitations_cli.cmd_accept(Namespace(token=link), guest)

        assert saved_configs == []
        assert guest.members.get_role(project.id) is None


class TestSend:
    """Tests for sending invitations from the command line."""

    def test_send_to_several_projects(self, services, project):
        other = services.projects.create("Trip")

        invitations_cli.cmd_send(_send_args(project_ids=[project.id, other.id]), services)

        assert len(services.invitations.find_by_project(project.id)) == 1
        assert len(services.invitations.find_by_project(other.id)) == 1

    def test_duplicate_declined(self, services, project, monkeypatch):
        first = services.invitations.create(project.id, "guest@example.com")
        monkeypatch.setattr("builtins.input", lambda prompt="": "no")

        invitations_cli.cmd_send(_send_args(project_ids=[project.id]), services)

        [kept] = services.invitations.find_by_project(project.id)
        assert kept.token == first.token

    def test_duplicate_replaced_on_confirm(self, services, project, monkeypatch):
        first = services.invitations.create(project.id, "guest@example.com")
        monkeypatch.setattr("builtins.input", lambda prompt="": "yes")

        invitations_cli.cmd_send(_send_args(project_ids=[project.id]), services)

        [refreshed] = services.invitations.find_by_project(project.id)
        assert refreshed.token != first.token

    def test_members_cannot_send(self, services, project, make_services):
        """Test a non-owner is stopped before any invitation is written."""
        member = make_services("member@example.com")
        services.members.add(project.id, member.session.user_id, Role.MEMBER)

        with pytest.raises(SystemExit):
            invitations_cli.cmd_send(_send_args(project_ids=[project.id]), member)

        assert services.invitations.find_by_project(project.id) == []
