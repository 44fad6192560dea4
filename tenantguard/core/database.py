# tenantguard/core/database.py

from ..extensions import db
from contextlib import contextmanager
from typing import Generator
from sqlalchemy.orm import Session

from .utils import generate_uuid, utcnow


@contextmanager
def session_manager() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.
    Commits on success, rolls back and re-raises on failure.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


class BaseModel(db.Model):
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def save(self):
        """Save instance with proper error handling"""
        with session_manager() as session:
            session.add(self)
        return self

    @classmethod
    def create(cls, **kwargs):
        """Create new instance with proper session management"""
        instance = cls(**kwargs)
        return instance.save()
