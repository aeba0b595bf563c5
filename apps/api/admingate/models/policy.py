"""
Policy store models.

Rows are keyed by natural names (object, role, action) rather than
foreign keys so that the store maps one-to-one onto Casbin lines:

    p, <role>, <object>, <action>
    g, <subject>, <role>
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IDMixin, TimestampMixin


class CasbinObject(Base, IDMixin, TimestampMixin):
    """Protectable resource class or path pattern."""

    __tablename__ = "casbin_objects"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    type: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    description: Mapped[str] = mapped_column(String(500), default="", nullable=False)

    def __repr__(self) -> str:
        return f"<CasbinObject {self.name}>"


class CasbinRole(Base, IDMixin, TimestampMixin):
    __tablename__ = "casbin_roles"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(String(500), default="", nullable=False)

    def __repr__(self) -> str:
        return f"<CasbinRole {self.name}>"


class CasbinRule(Base, IDMixin, TimestampMixin):
    """Grant of one action on one object to one role."""

    __tablename__ = "casbin_rules"
    __table_args__ = (
        UniqueConstraint("object", "role", "action", name="uq_casbin_rule_triple"),
    )

    object: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)

    def __repr__(self) -> str:
        return f"<CasbinRule {self.role} {self.object} {self.action}>"


class SubjectRole(Base, IDMixin, TimestampMixin):
    """Assignment of a subject (principal id as string) to a role."""

    __tablename__ = "subject_roles"
    __table_args__ = (
        UniqueConstraint("subject", "role", name="uq_subject_role"),
    )

    subject: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<SubjectRole {self.subject} -> {self.role}>"
