"""SQLAlchemy integration for the catalog.

Tags:
    orm, sqlalchemy
"""

from appcatalog.core.orm.session import (
    CatalogSession,
    SAConnectionBridge,
    catalog_session_factory,
    create_catalog_engine,
)

__all__ = [
    "CatalogSession",
    "SAConnectionBridge",
    "catalog_session_factory",
    "create_catalog_engine",
]
