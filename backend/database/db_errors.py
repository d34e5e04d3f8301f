import os


class DatabaseUnavailableError(RuntimeError):
    """Raised when the database remains unavailable after retries."""


class CatalogRecordError(ValueError):
    """Raised when a canonical record cannot be written to the catalog."""


class InvalidCategoryError(CatalogRecordError):
    """Raised when a category label is not part of the app_category enum."""


class MissingIdentifierError(CatalogRecordError):
    """Raised when a record has neither an iOS bundle id nor an Android package name."""


DB_UNAVAILABLE_EXIT_CODE = int(os.getenv("DB_UNAVAILABLE_EXIT_CODE", "75"))
