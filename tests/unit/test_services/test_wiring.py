"""Tests for building services from configuration."""

import pytest
from src.services import wiring
from src.services.event_guard import InMemorySeenEventStore, SupabaseSeenEventStore
from src.services.job_queue import InMemoryJobStore, SupabaseJobStore
from src.utils.config import AppConfig
from src.utils.errors import ConfigurationError


@pytest.mark.unit
def test_memory_backend_shares_process_stores(app_config, monkeypatch):
    """Test memory stores are reused across builds."""
    monkeypatch.setattr(wiring, "_memory_job_store", None)
    monkeypatch.setattr(wiring, "_memory_seen_store", None)

    first = wiring.build_dispatcher(app_config)
    second = wiring.build_dispatcher(app_config)

    assert isinstance(first.store, InMemoryJobStore)
    assert first.store is second.store
    assert isinstance(wiring.build_event_guard(app_config).store, InMemorySeenEventStore)


@pytest.mark.unit
def test_supabase_backend(app_config):
    """Test the durable backend."""
    config = app_config.model_copy(update={"queue_backend": "supabase"})

    assert isinstance(wiring.build_dispatcher(config).store, SupabaseJobStore)
    guard = wiring.build_event_guard(config)
    assert isinstance(guard.store, SupabaseSeenEventStore)
    assert guard.ttl_seconds == 3600


@pytest.mark.unit
def test_missing_credentials_raise_configuration_error():
    """Test builders name the missing settings."""
    config = AppConfig(queue_backend="memory")

    with pytest.raises(ConfigurationError) as exc_info:
        wiring.build_asset_client(config)

    assert "CLOUDINARY_CLOUD_NAME" in str(exc_info.value)


@pytest.mark.unit
def test_build_consumer_registers_command_job(app_config):
    """Test the job processor has the pipeline registered."""
    dispatcher = wiring.build_consumer(app_config)

    assert list(dispatcher.handlers) == ["executeCommandLgtm"]
