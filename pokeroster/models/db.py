"""
SQLAlchemy ORM models for persistent storage.

Four relations: catalog pages and details (owned by the catalog store),
teams and team members (owned by the team store).
"""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CatalogPageDB(Base):
    """
    A name listed on a page of the remote catalog.

    Keyed by name: re-importing a name on another page replaces the row.
    """

    __tablename__ = "catalog_page"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    page: Mapped[int] = mapped_column(Integer, index=True)
    url: Mapped[str] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<CatalogPageDB(name={self.name}, page={self.page})>"


class CatalogDetailDB(Base):
    """Full detail record for one creature."""

    __tablename__ = "catalog_detail"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    height: Mapped[int] = mapped_column(Integer, default=0)
    weight: Mapped[int] = mapped_column(Integer, default=0)
    experience: Mapped[int] = mapped_column(Integer, default=0)

    # Type names in slot order
    types: Mapped[list[str]] = mapped_column(JSON, default=list)

    hp: Mapped[int] = mapped_column(Integer, default=0)
    attack: Mapped[int] = mapped_column(Integer, default=0)
    defense: Mapped[int] = mapped_column(Integer, default=0)
    speed: Mapped[int] = mapped_column(Integer, default=0)
    exp: Mapped[int] = mapped_column(Integer, default=0)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    def __repr__(self) -> str:
        return f"<CatalogDetailDB(id={self.id}, name={self.name})>"


class TeamDB(Base):
    """A named team. Members are deleted with it."""

    __tablename__ = "team"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    members: Mapped[list["TeamMemberDB"]] = relationship(
        back_populates="team", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<TeamDB(id={self.id}, name={self.name})>"


class TeamMemberDB(Base):
    """Membership of one creature in one team."""

    __tablename__ = "team_member"

    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("team.id", ondelete="CASCADE"), primary_key=True
    )
    creature_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    position: Mapped[int] = mapped_column(Integer)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    team: Mapped["TeamDB"] = relationship(back_populates="members")

    def __repr__(self) -> str:
        return (
            f"<TeamMemberDB(team={self.team_id}, creature={self.creature_id}, "
            f"position={self.position})>"
        )
