import pytest

from services.errors import AuthenticationError


class TestAuthService:
    """Tests for AuthService and Session."""

    def test_sign_in_provisions_profile(self, services):
        """Test the first sign-in creates the profile."""
        profile = services.auth.sign_in("New.User@Example.com", "New User")

        assert profile.id > 0
        assert profile.email == "new.user@example.com"
        assert profile.name == "New User"
        assert services.session.user == profile

    def test_sign_in_reuses_profile(self, services):
        """Test signing in twice does not duplicate the profile."""
        first = services.auth.sign_in("user@example.com", "User")
        second = services.auth.sign_in("USER@example.com", "Other name")

        assert second.id == first.id
        assert second.name == "User"

    def test_default_name_from_email(self, services):
        """Test a missing display name falls back to the email local part."""
        assert services.auth.sign_in("jane@example.com").name == "jane"

    @pytest.mark.parametrize("email", ["", "no-at-sign", "a@b", "two words@example.com"])
    def test_invalid_email(self, services, email):
        """Test malformed emails are rejected."""
        with pytest.raises(AuthenticationError):
            services.auth.sign_in(email)

    def test_sign_out(self, services):
        """Test signing out clears the session."""
        services.auth.sign_out()

        assert services.session.user is None
        with pytest.raises(AuthenticationError):
            services.session.require_user()

    def test_find_by_email_not_found(self, services):
        """Test a missing profile lookup returns None."""
        assert services.auth.find_by_email("nobody@example.com") is None

    def test_sessions_are_per_container(self, services, make_services):
        """Test another Services container has its own signed-in user."""
        other = make_services("other@example.com")

        assert other.session.user_id != services.session.user_id
        assert services.session.user.email == "owner@example.com"
