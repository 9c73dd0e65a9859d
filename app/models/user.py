"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Column, Integer, String

from app.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'User' or 'Admin'
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="User")

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, username={self.username!r}, role={self.role!r})"
