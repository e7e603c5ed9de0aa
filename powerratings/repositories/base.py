"""
Base repository class for data access layer.

Repositories keep query logic out of the services: services ask for
"ratings for season 2026" or "games still missing an opening spread" and
never build SQLAlchemy queries themselves.

Example:
    class OverrideRepository(BaseRepository[TeamOverride]):
        def find_by_source_name(self, name: str) -> Optional[TeamOverride]:
            return self.where_first(TeamOverride.source_name == name)
"""
from abc import ABC
from typing import TypeVar, Generic, Type, Optional, List, Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """
    Common data access methods.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def create(self, **kwargs) -> T:
        """
        Create a new record.

        Returns:
            The created record (added to the session, not yet committed)
        """
        instance = self.model_type(**kwargs)
        self.db.add(instance)
        return instance

    def create_many(self, items: List[Dict[str, Any]]) -> List[T]:
        """Create multiple records (not yet committed)."""
        instances = [self.model_type(**item) for item in items]
        self.db.add_all(instances)
        return instances

    def update_fields(self, id: str, **fields) -> bool:
        """
        Partial update: write only the given columns of one row.

        Returns:
            True if a row was updated
        """
        updated = self.db.query(self.model_type).filter(
            self.model_type.id == id
        ).update(fields, synchronize_session="fetch")
        return updated > 0

    # ========================================================================
    # Query Builders
    # ========================================================================

    def query(self) -> Query:
        """Get a new query object for this model."""
        return self.db.query(self.model_type)

    def where(self, *criterion) -> List[T]:
        """Filter records using SQLAlchemy expressions."""
        return self.db.query(self.model_type).filter(*criterion).all()

    def where_first(self, *criterion) -> Optional[T]:
        """Filter records using SQLAlchemy expressions and return first match."""
        return self.db.query(self.model_type).filter(*criterion).first()

    def count(self, *criterion) -> int:
        """Count records matching optional criterion."""
        query = self.db.query(func.count(self.model_type.id))
        if criterion:
            query = query.filter(*criterion)
        return query.scalar() or 0

    # ========================================================================
    # Save Operations
    # ========================================================================

    def save(self) -> None:
        """Commit pending changes to the database."""
        self.db.commit()

    def rollback(self) -> None:
        """Rollback pending changes."""
        self.db.rollback()
