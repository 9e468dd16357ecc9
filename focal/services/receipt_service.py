"""Receipt processing orchestration.

Order of operations for an image:

1. decode the data URI and check declared dimensions (no remote call yet)
2. enforce the sliding-window quota
3. resolve the user's provider, its credentials and the category vocabulary
4. run the provider (credential fallback happens inside it)
5. log the attempt, whatever the outcome
6. on success only: record quota usage and attach the default currency

Audio follows the same sequence minus step 1.
"""

from __future__ import annotations

import datetime as dt
import logging
import time
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from focal.core.config import settings
from focal.core.exceptions import ExtractionFailedError
from focal.core.observability import sentry_breadcrumb, sentry_set_tags
from focal.models.enums import QuotaAction
from focal.models.schemas import ExpenseDraft
from focal.services.audio_service import AudioExtractionService
from focal.services.preferences import get_category_vocabulary, get_user_preferences
from focal.services.processing_log import ProcessingLogService
from focal.services.providers import ExtractionResult, ReceiptImage, ReceiptProvider, build_provider, resolve_provider_type
from focal.services.quota_service import QuotaManager, QuotaStatus
from focal.utils.helpers import decode_image_data_uri
from focal.utils.image_dimensions import validate_image_dimensions

logger = logging.getLogger(__name__)

ACTION = QuotaAction.AI_RECEIPT_PROCESSING.value


class ReceiptProcessingService:
    def __init__(
        self,
        db: AsyncSession,
        quota: QuotaManager,
        provider_factory: Callable[..., ReceiptProvider] = build_provider,
        audio_factory: Callable[[], AudioExtractionService] = AudioExtractionService,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.db = db
        self.quota = quota
        self.provider_factory = provider_factory
        self.audio_factory = audio_factory
        self.today = today
        self.log = ProcessingLogService(db)

    async def process_image(self, user_id: str, data_uri: str) -> ExpenseDraft:
        mime_type, data = decode_image_data_uri(data_uri)
        validate_image_dimensions(data, settings.MAX_IMAGE_DIMENSION)
        await self.quota.enforce(ACTION, user_id)

        prefs = await get_user_preferences(self.db, user_id)
        categories = await get_category_vocabulary(self.db, user_id)
        provider = self.provider_factory(resolve_provider_type(prefs.ai_provider), today=self.today)
        sentry_set_tags({"ai_provider": provider.name})

        result = await self._run_logged(
            user_id,
            provider.name,
            provider.model,
            provider.process_receipt(ReceiptImage(mime_type=mime_type, data=data), categories),
        )

        draft = self._unwrap(result, provider.name)[0]
        await self.quota.record_usage(ACTION, user_id)
        return draft.model_copy(update={"currency": prefs.default_currency})

    async def process_audio(
        self,
        user_id: str,
        audio: bytes,
        mime_type: str,
        local_date: Optional[dt.date] = None,
    ) -> list[ExpenseDraft]:
        await self.quota.enforce(ACTION, user_id)

        prefs = await get_user_preferences(self.db, user_id)
        categories = await get_category_vocabulary(self.db, user_id)
        service = self.audio_factory()

        result = await self._run_logged(
            user_id,
            service.name,
            service.model,
            service.process_audio(audio, mime_type, categories, local_date or self.today(), prefs.default_currency),
        )

        drafts = self._unwrap(result, service.name)
        await self.quota.record_usage(ACTION, user_id)
        return [d.model_copy(update={"currency": prefs.default_currency}) for d in drafts]

    async def quota_status(self, user_id: str) -> QuotaStatus:
        return await self.quota.status(ACTION, user_id)

    async def _run_logged(
        self,
        user_id: str,
        provider: str,
        model: Optional[str],
        call: Awaitable[ExtractionResult],
    ) -> ExtractionResult:
        """Await ``call`` and write the attempt to the processing log.

        Unexpected exceptions are logged as failed attempts and re-raised.
        """
        started = time.perf_counter()
        try:
            result = await call
        except Exception as exc:
            await self.log.record(
                user_id=user_id,
                provider=provider,
                model=model,
                duration_ms=int((time.perf_counter() - started) * 1000),
                succeeded=False,
                error=str(exc) or type(exc).__name__,
            )
            raise
        await self.log.record(
            user_id=user_id,
            provider=provider,
            model=model,
            duration_ms=int((time.perf_counter() - started) * 1000),
            succeeded=result.success,
            error=result.error,
            stage=result.stage,
        )
        return result

    @staticmethod
    def _unwrap(result: ExtractionResult, provider: str) -> list[ExpenseDraft]:
        if result.success:
            return result.drafts
        stage = result.stage.value if result.stage else None
        sentry_breadcrumb(category="extraction", message="extraction.failed", level="error", data={"provider": provider, "stage": stage})
        raise ExtractionFailedError(result.error or "Failed to process receipt", provider=provider, stage=stage)
