"""
User model for database operations.
"""

from sqlalchemy import Column, Integer, String, DateTime

from app.core.database import Base
from app.core.ids import utcnow


class User(Base):
    """
    User table model.

    Table: users
    Dashboard accounts. Passwords are stored as bcrypt hashes.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}', email='{self.email}')>"
