"""
models/user.py
--------------
User ORM model with tenant binding and role set.

Roles live in the user_roles table, one row per (user, role), so duplicates
collapse at the storage layer. Role labels are free-form strings; see
core/scopes.py for the ones that map to scopes.

The password column stores bcrypt hashes only; plain text is never stored
and never logged.
"""

from typing import FrozenSet, Iterable

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenant_auth.db.base import Base, TimestampMixin, generate_uuid


class UserRoleAssignment(Base):
    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(255), primary_key=True)

    def __repr__(self) -> str:
        return f"<UserRoleAssignment user_id={self.user_id} role={self.role}>"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="users")  # noqa: F821
    role_assignments: Mapped[list[UserRoleAssignment]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def roles(self) -> FrozenSet[str]:
        return frozenset(a.role for a in self.role_assignments)

    def set_roles(self, roles: Iterable[str]) -> None:
        """Replace the role set, keeping rows for roles that stay."""
        wanted = set(roles)
        kept = [a for a in self.role_assignments if a.role in wanted]
        existing = {a.role for a in kept}
        kept.extend(UserRoleAssignment(role=r) for r in sorted(wanted - existing))
        self.role_assignments = kept

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email}>"
