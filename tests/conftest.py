"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import Mock, AsyncMock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SLACK_SIGNING_SECRET", "test-secret")
os.environ.setdefault("SLACK_BOT_TOKEN", "xoxb-test-bot")
os.environ.setdefault("SLACK_USER_TOKEN", "xoxp-test-user")
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "demo")
os.environ.setdefault("CLOUDINARY_API_KEY", "123456789012345")
os.environ.setdefault("CLOUDINARY_API_SECRET", "test-api-secret")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")
os.environ.setdefault("CUSTOM_SEARCH_ENGINE_ID", "test-cx")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("QUEUE_BACKEND", "memory")


@pytest.fixture
def app_config():
    """AppConfig built from the test environment."""
    from src.utils.config import AppConfig
    return AppConfig.from_env()


@pytest.fixture
def sample_command_form():
    """Slash command form body as produced by urllib.parse.parse_qs."""
    return {
        "token": ["legacy-token"],
        "team_id": ["T123456"],
        "channel_id": ["C1"],
        "channel_name": ["general"],
        "user_id": ["U123456"],
        "command": ["/lgtm"],
        "text": ["https://example.com/cat.png"],
        "response_url": ["https://hooks.slack.com/commands/T123456/1/abc"],
        "trigger_id": ["1234.5678.abcdef"],
    }


@pytest.fixture
def sample_command():
    """Parsed slash command carrying an image URL."""
    from src.models.command import SlashCommand
    return SlashCommand(
        text="https://example.com/cat.png",
        user_id="U123456",
        channel_id="C1",
        channel_name="general",
        command="/lgtm",
        response_url="https://hooks.slack.com/commands/T123456/1/abc",
    )


@pytest.fixture
def sample_asset():
    """Upload response for a 400x300 PNG with color extraction."""
    from src.models.asset import AssetRecord
    return AssetRecord(
        public_id="lgtm/cat_abc123",
        asset_id="b5e6d2b39ba3e0869d67141ba7dba6cf",
        version=1733745600,
        url="http://res.cloudinary.com/demo/image/upload/v1733745600/lgtm/cat_abc123.png",
        secure_url="https://res.cloudinary.com/demo/image/upload/v1733745600/lgtm/cat_abc123.png",
        width=400,
        height=300,
        format="png",
        resource_type="image",
        original_filename="cat",
        colors=[["#FF0000", 60.2], ["#FFFFFF", 20.1]],
    )


@pytest.fixture
def sample_chat_file():
    """files.info record shared publicly in C1."""
    from src.models.chat_file import ChatFileRecord
    return ChatFileRecord(
        id="F123",
        name="cat.png",
        title="Source: https://example.com/cat.png",
        mimetype="image/png",
        url_private="https://files.slack.com/files-pri/T123456-F123/cat.png",
        permalink="https://team.slack.com/files/U123456/F123/cat.png",
        shares={"public": {"C1": [{"ts": "1733745600.000100", "channel_name": "general"}]}},
    )


@pytest.fixture
def mock_chat_client(sample_chat_file):
    """ChatClient double with every call succeeding."""
    client = Mock()
    client.upload_file = AsyncMock(return_value=sample_chat_file)
    client.update_message = AsyncMock(return_value=None)
    client.share_public_url = AsyncMock(
        return_value="https://files.slack.com/files-pri/T123456-F123/cat.png?pub_secret=abc123"
    )
    client.get_user_locale = AsyncMock(return_value="en-US")
    client.get_bot_user_id = AsyncMock(return_value="UBOT")
    return client


@pytest.fixture
def mock_notifier():
    """ResponseNotifier double."""
    notifier = Mock()
    notifier.notify = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
