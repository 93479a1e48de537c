from sqlalchemy import Column, DateTime

from utils import get_jkt_now


class TimestampMixin:
    """created_at / updated_at in WIB, maintained by the ORM on insert and update."""

    created_at = Column(DateTime, default=get_jkt_now, nullable=False)
    updated_at = Column(DateTime, default=get_jkt_now, onupdate=get_jkt_now, nullable=False)
