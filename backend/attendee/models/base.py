"""Base model class with common functionality."""
from datetime import datetime
from attendee import db

def utcnow() -> datetime:
    return datetime.utcnow()

class BaseModel(db.Model):
    """Base model class with common fields and methods."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def save(self) -> 'BaseModel':
        """Save instance to database."""
        db.session.add(self)
        db.session.commit()
        return self

    def touch(self) -> None:
        """Mark the row dirty so its UPDATE (and version check) is emitted."""
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.id}>'
