from __future__ import annotations

from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


class DirectoryRow(Base):
    __tablename__ = "directories"
    __table_args__ = (UniqueConstraint("name", "path", name="uq_directories_name_path"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    path: Mapped[str] = mapped_column(String, nullable=False, index=True)
    parent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("directories.id", ondelete="CASCADE"), index=True
    )
    last_modified: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_scanned: Mapped[Optional[int]] = mapped_column(BigInteger)
    scanned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    parent: Mapped[Optional["DirectoryRow"]] = relationship(
        back_populates="directories", remote_side="DirectoryRow.id"
    )
    directories: Mapped[list["DirectoryRow"]] = relationship(
        back_populates="parent", cascade="all, delete-orphan", passive_deletes=True
    )
    media: Mapped[list["MediaRow"]] = relationship(
        back_populates="directory", cascade="all, delete-orphan", passive_deletes=True
    )


class MediaRow(Base):
    __tablename__ = "media"
    __table_args__ = (UniqueConstraint("directory_id", "name", name="uq_media_directory_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    directory_id: Mapped[int] = mapped_column(
        ForeignKey("directories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    kind: Mapped[str] = mapped_column(String, nullable=False, default="photo")  # photo | video
    width: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    height: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    creation_date: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, index=True)
    creation_date_offset: Mapped[Optional[str]] = mapped_column(String)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    rating: Mapped[Optional[int]] = mapped_column(Integer)
    keywords: Mapped[Optional[list[str]]] = mapped_column(JSON)
    title: Mapped[Optional[str]] = mapped_column(String)
    caption: Mapped[Optional[str]] = mapped_column(Text)
    camera_data: Mapped[Optional[dict]] = mapped_column(JSON)
    position_data: Mapped[Optional[dict]] = mapped_column(JSON)
    faces: Mapped[Optional[list[dict]]] = mapped_column(JSON)
    bit_rate: Mapped[Optional[int]] = mapped_column(BigInteger)
    duration: Mapped[Optional[int]] = mapped_column(BigInteger)
    fps: Mapped[Optional[int]] = mapped_column(Integer)

    directory: Mapped[DirectoryRow] = relationship(back_populates="media")


def _enable_sqlite_foreign_keys(dbapi_connection: object, _: object) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_url(database_url: str) -> Engine:
    engine = create_engine(database_url, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_db(database_url: str | Engine) -> Engine:
    engine = (
        database_url if isinstance(database_url, Engine) else create_engine_from_url(database_url)
    )
    Base.metadata.create_all(engine)
    return engine


def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False, class_=Session, future=True)
