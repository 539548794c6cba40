from sqlalchemy import Column, JSON, String

from .base import BaseModel


class EmailList(BaseModel):
    __tablename__ = "email_lists"

    owner_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    emails = Column(JSON, nullable=False, default=list)  # [{"email": ..., "name": ...}]
