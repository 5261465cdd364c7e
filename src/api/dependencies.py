"""FastAPI dependencies: the process-wide CRM store and completion service.

Tests replace these through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from src.chat.completion import AnthropicCompletionService, CompletionService
from src.chat.orchestrator import ChatOrchestrator
from src.config import settings
from src.crm.store import CrmStore


@lru_cache(maxsize=1)
def get_store() -> CrmStore:
    """Return the store shared by all requests in this process."""
    return CrmStore()


@lru_cache(maxsize=1)
def get_completion_service() -> CompletionService:
    return AnthropicCompletionService(api_key=settings.anthropic_api_key, model=settings.llm_model)


def get_orchestrator(
    store: CrmStore = Depends(get_store),
    completion: CompletionService = Depends(get_completion_service),
) -> ChatOrchestrator:
    return ChatOrchestrator(store=store, completion=completion, settings=settings)
