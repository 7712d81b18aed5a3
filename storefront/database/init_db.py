"""Create the storefront tables.

    python -m storefront.database.init_db
"""
from typing import Optional

from storefront.database.database import dispose_engine, health_check, init_engine, session_scope
from storefront.models.database_models import Base
from storefront.utils.exceptions import InfrastructureError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def init_db(url: Optional[str] = None) -> None:
    engine = init_engine(url) if url else init_engine()
    try:
        Base.metadata.create_all(engine)
        with session_scope() as db:
            report = health_check(db)
        if report["status"] != "healthy":
            raise InfrastructureError("Database is not reachable after creating tables")
        logger.info(f"Tables created on {report['database']}")
    finally:
        dispose_engine()


if __name__ == "__main__":
    init_db()
