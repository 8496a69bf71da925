"""SQLAlchemy ORM models for Inkwell."""
from __future__ import annotations

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base


# =============================================================================
# Enums
# =============================================================================


class SettingType(str, enum.Enum):
    """Groups of settings."""
    CORE = "core"      # Internal values such as dbHash
    BLOG = "blog"      # Title, description, etc.
    THEME = "theme"    # Active theme
    PLUGIN = "plugin"  # Active/installed plugins


# =============================================================================
# Settings Model
# =============================================================================


class Setting(Base):
    """A persisted key/value setting."""
    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(150), unique=True, nullable=False, index=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(150), nullable=False, default=SettingType.CORE.value)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Setting(key={self.key!r}, type={self.type!r})>"


# =============================================================================
# Roles & Permissions
# =============================================================================


permissions_roles = Table(
    "permissions_roles",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    """A named role that users are assigned to."""
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    permissions: Mapped[List["Permission"]] = relationship(
        secondary=permissions_roles, back_populates="roles", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Role(name={self.name!r})>"


class Permission(Base):
    """Permission to perform an action on a type of object."""
    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("action_type", "object_type", name="uq_permission_action_object"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    action_type: Mapped[str] = mapped_column(String(150), nullable=False)
    object_type: Mapped[str] = mapped_column(String(150), nullable=False)

    roles: Mapped[List[Role]] = relationship(
        secondary=permissions_roles, back_populates="permissions", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Permission({self.action_type} {self.object_type})>"


__all__ = ["SettingType", "Setting", "Role", "Permission", "permissions_roles"]
