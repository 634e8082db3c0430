from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func

from quicknotes.core.db import Base


class StorageEntryModel(Base):
    __tablename__ = "local_storage"
    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
