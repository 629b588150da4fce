"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject mock services for testing.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is
                   only used for non-database settings.
    """

    def __init__(self, config: Config, db_manager=None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        # Lazy import to avoid circular dependencies
        from services.accounts import AccountService
        from services.transactions import TransactionService
        from services.splits import SplitService
        from services.data_imports import DataImportService
        from services.categories import CategoryService
        from services.merchant_mappings import MerchantMappingService
        from services.recurring import RecurringTransactionService

        self.accounts = AccountService(self.db_manager)
        self.transactions = TransactionService(self.db_manager)
        self.splits = SplitService(self.db_manager)
        self.data_imports = DataImportService(self.db_manager)
        self.categories = CategoryService(self.db_manager)
        self.merchant_mappings = MerchantMappingService(self.db_manager)
        self.recurring = RecurringTransactionService(self.db_manager)
