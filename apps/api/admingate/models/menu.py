"""
Menu and menu action models.
"""

from enum import IntEnum
from typing import Optional
from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IDMixin, IdType, TimestampMixin


class MenuStatus(IntEnum):
    ENABLED = 1
    DISABLED = 2


class Menu(Base, IDMixin, TimestampMixin):
    """Addressable console resource that actions attach to."""

    __tablename__ = "menus"

    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    sequence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    router: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    parent_id: Mapped[Optional[int]] = mapped_column(IdType, nullable=True, index=True)
    status: Mapped[int] = mapped_column(
        Integer,
        default=MenuStatus.ENABLED,
        nullable=False,
        index=True,
    )
    memo: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    actions: Mapped[list["MenuAction"]] = relationship(
        "MenuAction",
        back_populates="menu",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MenuAction.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Menu {self.name}>"


class MenuAction(Base, IDMixin, TimestampMixin):
    """
    Named operation on a menu.

    (menu_id, code) is kept unique by MenuService, not by a constraint.
    """

    __tablename__ = "menu_actions"

    menu_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    menu: Mapped["Menu"] = relationship("Menu", back_populates="actions")

    def __repr__(self) -> str:
        return f"<MenuAction menu={self.menu_id} code={self.code}>"
