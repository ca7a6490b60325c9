"""SQLAlchemy models for the reserved ``core_`` system collections.

Only the collections the schema engine and the lifecycle handlers read or
write have a model here. User collections are never mapped; they are
created from field descriptions and accessed through the record store.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Engine,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from schemaflow.core.config import Settings, get_settings
from schemaflow.core.logging import get_logger
from schemaflow.domain.services.schema_manager import SystemCollections
from schemaflow.infrastructure.persistence.database import Base

logger = get_logger(__name__)


class CollectionModel(Base):
    """Collection metadata.

    A physical table without a row here is still a collection; the row only
    adds flags and presentation details.
    """

    __tablename__ = SystemCollections.COLLECTIONS

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    managed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    single: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    translation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)


class FieldModel(Base):
    """Field metadata: logical type, interface and options of a column.

    Alias fields only exist here; they have no physical column.
    """

    __tablename__ = SystemCollections.FIELDS
    __table_args__ = (UniqueConstraint("collection", "field", name="uq_core_fields_collection_field"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    field: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    interface: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    options: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    length: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    sort: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)


class RelationModel(Base):
    __tablename__ = SystemCollections.RELATIONS

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection_a: Mapped[str] = mapped_column(String(64), nullable=False)
    field_a: Mapped[str] = mapped_column(String(64), nullable=False)
    junction_key_a: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    junction_collection: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    junction_key_b: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    collection_b: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    field_b: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class GroupModel(Base):
    __tablename__ = SystemCollections.GROUPS

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)


class UserModel(Base):
    """System users.

    ``token``, ``email_notifications``, ``last_access`` and ``last_page`` are
    private: only the user themselves and administrators can read them.
    """

    __tablename__ = SystemCollections.USERS

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    first_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    token: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    group: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    last_access: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_page: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class PermissionModel(Base):
    """Per-group permissions on one collection."""

    __tablename__ = SystemCollections.PERMISSIONS

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False)
    group: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    create: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    read: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    update: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    delete: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    navigate: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    read_field_blacklist: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    write_field_blacklist: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)


class FileModel(Base):
    __tablename__ = SystemCollections.FILES

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    storage: Mapped[str] = mapped_column(String(50), nullable=False, default="local", server_default="local")
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tags: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    upload_user: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    date_uploaded: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class MessageModel(Base):
    """Messages; ``attachment`` is a comma-separated list of file ids."""

    __tablename__ = SystemCollections.MESSAGES

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_: Mapped[Optional[int]] = mapped_column("from", Integer, nullable=True)
    subject: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attachment: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column("datetime", DateTime, nullable=True)
    reply: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class SettingModel(Base):
    __tablename__ = SystemCollections.SETTINGS

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scope: Mapped[str] = mapped_column(String(64), nullable=False)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


ADMINISTRATOR_GROUP_NAME = "Administrator"


def create_system_tables(engine: Engine) -> None:
    """Create every missing system table."""
    Base.metadata.create_all(engine)
    logger.info(
        "System tables created",
        tables=sorted(Base.metadata.tables),
    )


def drop_system_tables(engine: Engine) -> None:
    Base.metadata.drop_all(engine)
    logger.info("System tables dropped")


def seed_default_groups(engine: Engine, settings: Optional[Settings] = None) -> list[int]:
    """Create the administrator and public groups when they are missing.

    The administrator group gets ``settings.admin_group_id``.

    Returns:
        Ids of the groups that were created.
    """
    settings = settings or get_settings()
    created: list[int] = []

    with Session(engine) as session, session.begin():
        if session.get(GroupModel, settings.admin_group_id) is None:
            admin = GroupModel(
                id=settings.admin_group_id,
                name=ADMINISTRATOR_GROUP_NAME,
                description="Admins have access to all managed data within the system by default",
            )
            session.add(admin)
            created.append(admin.id)

        public = session.scalar(
            select(GroupModel).where(GroupModel.name == settings.public_group_name)
        )
        if public is None:
            public = GroupModel(
                name=settings.public_group_name,
                description="This sets the data that is publicly available through the API without a token",
            )
            session.add(public)
            session.flush()
            created.append(public.id)

    logger.info("Default groups seeded", created_group_ids=created)
    return created
