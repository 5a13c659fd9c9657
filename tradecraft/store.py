# tradecraft/store.py
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from core.database import AsyncSessionLocal
from core.models import TradecraftDoc
from tradecraft.models import TradecraftDocRow

logger = logging.getLogger(__name__)


def row_to_doc(row: TradecraftDocRow) -> TradecraftDoc:
    return TradecraftDoc.model_validate(
        {
            "title": row.title,
            "content": row.content or "",
            "job_type": row.job_type,
            "trade": row.trade,
            "scoping_questions": row.scoping_questions,
            "materials_checklist": row.materials_checklist,
        }
    )


async def load_tradecraft_doc(job_type: str, session_factory=AsyncSessionLocal) -> Optional[TradecraftDoc]:
    """
    Active tradecraft doc for a job type, or None.
    A missing or unreadable doc is not an error for the caller: the parser
    treats it like input it did not understand.
    """
    stmt = (
        select(TradecraftDocRow)
        .where(TradecraftDocRow.job_type == job_type, TradecraftDocRow.is_active.is_(True))
        .order_by(TradecraftDocRow.version.desc())
    )
    try:
        async with session_factory() as session:
            row = (await session.execute(stmt)).scalars().first()
    except SQLAlchemyError as e:
        logger.warning("[tradecraft] failed to load %s: %s", job_type, e)
        return None

    if row is None:
        logger.info("[tradecraft] no active doc for %s", job_type)
        return None

    try:
        return row_to_doc(row)
    except ValidationError as e:
        logger.warning("[tradecraft] doc for %s is malformed: %s", job_type, e)
        return None
