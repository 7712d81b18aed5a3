# services/base.py
from typing import Callable, Generic, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.utils.exceptions import ConflictError, InfrastructureError
from storefront.utils.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


class BaseService(Generic[T]):
    def __init__(self, db: Session):
        self.db = db

    async def _handle_db_operation(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` and commit; roll the whole unit back on any error."""
        try:
            result = operation()
            self.db.commit()
            return result
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Database integrity error: {e}")
            raise ConflictError("Database constraint violation") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database operation error: {e}")
            raise InfrastructureError() from e
        except Exception:
            self.db.rollback()
            raise
