"""Pod and PodVersion tables."""

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from podtrunk.db.base import Base, TimestampMixin


class PodRow(Base, TimestampMixin):
    __tablename__ = "pods"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class PodVersionRow(Base, TimestampMixin):
    __tablename__ = "pod_versions"
    __table_args__ = (UniqueConstraint("pod_id", "name", name="uq_pod_versions_pod_id_name"),)

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    pod_id: Mapped[str] = mapped_column(String(128), ForeignKey("pods.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    specification_data: Mapped[str | None] = mapped_column(Text, nullable=True)
