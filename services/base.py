"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    Every service shares one Session, so signing in through services.auth
    makes the user visible to all access checks.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is
            not used to open the database.
    """

    def __init__(self, config: Config, db_manager=None):
        """Initialize services with configuration.

        Args:
            config: Config object containing application configuration.
            db_manager: Optional database manager for dependency injection (testing).
                       If None, creates DatabaseManager from config.
        """
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        # Lazy import to avoid circular dependencies
        from services.auth import AuthService, Session
        from services.categories import CategoryService
        from services.invitations import InvitationService
        from services.members import MemberService
        from services.projects import ProjectService
        from services.templates import TemplateLoader
        from services.transactions import TransactionService

        self.session = Session()
        self.templates = TemplateLoader()

        self.auth = AuthService(self.db_manager, self.session)
        self.projects = ProjectService(self.db_manager, self.session, self.templates)
        self.members = MemberService(self.db_manager, self.session)
        self.categories = CategoryService(self.db_manager, self.session)
        self.transactions = TransactionService(self.db_manager, self.session)
        self.invitations = InvitationService(self.db_manager, self.session, self.members)

    def schema(self, project_id: int):
        """Create a loaded SchemaManager for one project."""
        from services.schema import SchemaManager

        return SchemaManager(self, project_id).load()
