"""Append-only log of extraction attempts."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from focal.models.enums import ExtractionStage
from focal.models.tables import ExtractionAttempt

logger = logging.getLogger(__name__)


class ProcessingLogService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def record(
        self,
        user_id: str,
        provider: str,
        model: Optional[str],
        duration_ms: int,
        succeeded: bool,
        error: Optional[str] = None,
        stage: Optional[ExtractionStage | str] = None,
    ) -> ExtractionAttempt:
        stage_value = stage.value if isinstance(stage, ExtractionStage) else stage
        entry = ExtractionAttempt(
            user_id=user_id,
            provider=provider,
            model=model,
            duration_ms=duration_ms,
            success=succeeded,
            error=error,
            stage=stage_value,
        )
        self.db.add(entry)
        await self.db.commit()
        if succeeded:
            logger.info("[processing] user=%s provider=%s model=%s duration_ms=%d ok", user_id, provider, model, duration_ms)
        else:
            logger.warning(
                "[processing] user=%s provider=%s model=%s duration_ms=%d failed stage=%s error=%s",
                user_id, provider, model, duration_ms, stage_value, error,
            )
        return entry
