# tradecraft/models.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint

from core.database import Base

class TradecraftDocRow(Base):
    __tablename__ = "tradecraft_docs"

    id = Column(Integer, primary_key=True, index=True)

    trade = Column(String(64), nullable=False, index=True)      # "electrical", "plumbing", ...
    job_type = Column(String(128), nullable=False, index=True)  # "panel_upgrade", ...
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")

    # [{id, question, quickReplies, storeAs}]
    scoping_questions = Column(JSON, nullable=True)
    # {items: [{category, name, searchTerms, defaultQty, unit, required, notes}]}
    materials_checklist = Column(JSON, nullable=True)

    version = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (UniqueConstraint("trade", "job_type", "version", name="uq_tradecraft_trade_job_type_version"),)
