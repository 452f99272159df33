"""Build service objects from an AppConfig."""

from typing import Optional
from src.services.asset_client import AssetClient
from src.services.chat_client import ChatClient
from src.services.command_pipeline import CommandPipeline, register_command_consumer
from src.services.event_guard import (
    DuplicateEventGuard,
    InMemorySeenEventStore,
    SupabaseSeenEventStore,
)
from src.services.http_invoker import HttpApiInvoker
from src.services.image_search import ImageSearchClient
from src.services.job_queue import InMemoryJobStore, JobDispatcher, SupabaseJobStore
from src.services.slack_webhooks import ResponseNotifier
from src.utils.config import AppConfig

# Process-local stores for QUEUE_BACKEND=memory
_memory_job_store: Optional[InMemoryJobStore] = None
_memory_seen_store: Optional[InMemorySeenEventStore] = None


def _get_memory_job_store() -> InMemoryJobStore:
    global _memory_job_store
    if _memory_job_store is None:
        _memory_job_store = InMemoryJobStore()
    return _memory_job_store


def _get_memory_seen_store() -> InMemorySeenEventStore:
    global _memory_seen_store
    if _memory_seen_store is None:
        _memory_seen_store = InMemorySeenEventStore()
    return _memory_seen_store


def build_chat_client(config: AppConfig) -> ChatClient:
    config.require("slack_bot_token")
    return ChatClient(config.slack_bot_token, config.slack_user_token or None)


def build_asset_client(config: AppConfig) -> AssetClient:
    config.require("cloudinary_cloud_name", "cloudinary_api_key", "cloudinary_api_secret")
    return AssetClient(
        config.cloudinary_cloud_name,
        config.cloudinary_api_key,
        config.cloudinary_api_secret,
        invoker=HttpApiInvoker("Cloudinary", timeout=config.http_timeout_seconds),
    )


def build_search_client(config: AppConfig, locale: Optional[str]) -> ImageSearchClient:
    config.require("google_api_key", "custom_search_engine_id")
    return ImageSearchClient(
        config.google_api_key,
        config.custom_search_engine_id,
        locale=locale,
        rights=config.search_rights,
        invoker=HttpApiInvoker("Custom Search", timeout=config.http_timeout_seconds),
    )


def build_dispatcher(config: AppConfig) -> JobDispatcher:
    if config.queue_backend == "memory":
        return JobDispatcher(_get_memory_job_store())
    config.require("supabase_url", "supabase_service_role_key")
    return JobDispatcher(SupabaseJobStore(config.supabase_url, config.supabase_service_role_key))


def build_event_guard(config: AppConfig) -> DuplicateEventGuard:
    if config.queue_backend == "memory":
        store = _get_memory_seen_store()
    else:
        config.require("supabase_url", "supabase_service_role_key")
        store = SupabaseSeenEventStore(config.supabase_url, config.supabase_service_role_key)
    return DuplicateEventGuard(store, ttl_seconds=config.dedup_ttl_seconds)


def build_pipeline(config: AppConfig) -> CommandPipeline:
    return CommandPipeline(
        asset_client=build_asset_client(config),
        chat_client=build_chat_client(config),
        search_client_factory=lambda locale: build_search_client(config, locale),
        notifier=ResponseNotifier(),
    )


def build_consumer(config: AppConfig) -> JobDispatcher:
    """Dispatcher with the command pipeline registered as a consumer."""
    dispatcher = build_dispatcher(config)
    register_command_consumer(dispatcher, build_pipeline(config))
    return dispatcher
