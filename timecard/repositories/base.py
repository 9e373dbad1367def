"""
Base Repository - Generic data access shared by all repositories

Repositories only flush. Commit/rollback belongs to the service that owns
the unit of work.
"""
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from timecard.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return db.get(self.model, id)

    def create(self, db: Session, data: Dict[str, Any]) -> ModelType:
        obj = self.model(**data)
        db.add(obj)
        db.flush()
        return obj

    def update(self, db: Session, db_obj: ModelType, data: Dict[str, Any]) -> ModelType:
        for field, value in data.items():
            setattr(db_obj, field, value)
        db.add(db_obj)
        db.flush()
        return db_obj

    def delete(self, db: Session, db_obj: ModelType) -> None:
        db.delete(db_obj)
        db.flush()
