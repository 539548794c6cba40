from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text

from .base import Base, BaseModel, utcnow


class Form(BaseModel):
    __tablename__ = "forms"

    owner_id = Column(String(128), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    fields = Column(JSON, nullable=False, default=list)  # ordered field schemas
    is_public = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)


class FormResponse(Base):
    """One respondent submission. Rows are append-only."""
    __tablename__ = "form_responses"

    # Creation order, used to break submitted_at ties
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False, index=True)
    # No foreign key: responses outlive a deleted form
    form_id = Column(String, nullable=False, index=True)
    respondent_email = Column(String(255), nullable=True, index=True)
    respondent_name = Column(String(255), nullable=True)
    responses = Column(JSON, nullable=False, default=dict)
    file_uploads = Column(JSON, nullable=False, default=list)
    submitted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    ip_address = Column(String(45), nullable=True)  # IPv6 compatible
    user_agent = Column(Text, nullable=True)
