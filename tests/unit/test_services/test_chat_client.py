"""Tests for the Slack chat client."""

from urllib.error import URLError
import pytest
from unittest.mock import Mock
from slack_sdk.errors import SlackApiError
from src.services.chat_client import ChatClient
from src.utils.errors import ChatApiError, NotInChannelError
from tests.utils.factories import create_chat_file_data


def slack_error(code: str) -> SlackApiError:
    return SlackApiError(f"The request to the Slack API failed. ({code})", {"ok": False, "error": code})


def make_client(user_client=None):
    bot = Mock()
    return ChatClient("xoxb-test", bot_client=bot, user_client=user_client, share_poll_interval=0), bot


@pytest.mark.unit
@pytest.mark.asyncio
async def test_upload_file_returns_record_with_share_ts():
    """Test upload followed by files.info lookup."""
    client, bot = make_client()
    info = create_chat_file_data(channel_id="C1", ts="1733745600.000100")
    bot.files_upload_v2.return_value = {"ok": True, "file": {"id": info["id"]}}
    bot.files_info.return_value = {"ok": True, "file": info}

    record = await client.upload_file("C1", b"png", "cat.png", "png", "Source: x", "![LGTM](x)")

    assert record.id == info["id"]
    assert record.share_ts("C1") == "1733745600.000100"
    bot.files_upload_v2.assert_called_once_with(
        channel="C1",
        content=b"png",
        filename="cat.png",
        title="Source: x",
        initial_comment="![LGTM](x)",
    )
    bot.files_info.assert_called_once_with(file=info["id"])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_upload_file_not_in_channel():
    """Test membership errors are recognized by type."""
    client, bot = make_client()
    bot.files_upload_v2.side_effect = slack_error("not_in_channel")

    with pytest.raises(NotInChannelError) as exc_info:
        await client.upload_file("C1", b"png", "cat.png", "png", "t", "c")

    assert exc_info.value.error == "not_in_channel"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_other_slack_errors_are_chat_api_errors():
    """Test non-membership errors stay generic."""
    client, bot = make_client()
    bot.chat_update.side_effect = slack_error("message_not_found")

    with pytest.raises(ChatApiError) as exc_info:
        await client.update_message("C1", "1.0", "text")

    assert not isinstance(exc_info.value, NotInChannelError)
    assert exc_info.value.error == "message_not_found"
    assert exc_info.value.method == "chat.update"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_share_public_url_builds_pub_secret_link():
    """Test public link uses the last permalink_public segment."""
    user = Mock()
    user.files_sharedPublicURL.return_value = {
        "ok": True,
        "file": {
            "url_private": "https://files.slack.com/files-pri/T1-F1/cat.png",
            "permalink_public": "https://slack-files.com/T1-F1-abc123",
        },
    }
    client, _ = make_client(user_client=user)

    link = await client.share_public_url("F1")

    assert link == "https://files.slack.com/files-pri/T1-F1/cat.png?pub_secret=abc123"
    user.files_sharedPublicURL.assert_called_once_with(file="F1")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_share_public_url_failure_returns_none():
    """Test best-effort promotion never raises."""
    user = Mock()
    user.files_sharedPublicURL.side_effect = slack_error("not_allowed")
    client, _ = make_client(user_client=user)

    assert await client.share_public_url("F1") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_share_public_url_without_user_token_returns_none():
    """Test promotion is skipped with no elevated credential."""
    client = ChatClient("xoxb-test", bot_client=Mock())

    assert client.user is None
    assert await client.share_public_url("F1") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_user_locale_and_bot_identity():
    """Test users.info and auth.test lookups."""
    client, bot = make_client()
    bot.users_info.return_value = {"ok": True, "user": {"id": "U1", "locale": "ja-JP"}}
    bot.auth_test.return_value = {"ok": True, "user_id": "UBOT"}

    assert await client.get_user_locale("U1") == "ja-JP"
    assert await client.get_bot_user_id() == "UBOT"
    bot.users_info.assert_called_once_with(user="U1", include_locale=True)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_share_public_url_network_error_returns_none():
    """Test transport errors from the SDK do not escape the best-effort link step."""
    user = Mock()
    user.files_sharedPublicURL.side_effect = URLError("timed out")
    client, _ = make_client(user_client=user)

    assert await client.share_public_url("F1") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_upload_file_waits_for_channel_share():
    """Test files.info is repeated until the share in the channel appears."""
    client, bot = make_client()
    info = create_chat_file_data(channel_id="C1", ts="1733745600.000100")
    bot.files_upload_v2.return_value = {"ok": True, "file": {"id": info["id"]}}
    bot.files_info.side_effect = [
        {"ok": True, "file": {**info, "shares": {}}},
        {"ok": True, "file": info},
    ]

    record = await client.upload_file("C1", b"png", "cat.png", "png", "Source: x", "![LGTM](x)")

    assert record.share_ts("C1") == "1733745600.000100"
    assert bot.files_info.call_count == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_upload_file_gives_up_after_bounded_polling():
    """Test the record is returned without a share once attempts run out."""
    bot = Mock()
    client = ChatClient("xoxb-test", bot_client=bot, share_poll_attempts=3, share_poll_interval=0)
    info = create_chat_file_data(channel_id="C1")
    bot.files_upload_v2.return_value = {"ok": True, "file": {"id": info["id"]}}
    bot.files_info.return_value = {"ok": True, "file": {**info, "shares": {}}}

    record = await client.upload_file("C1", b"png", "cat.png", "png", "Source: x", "![LGTM](x)")

    assert record.share_ts("C1") is None
    assert bot.files_info.call_count == 3
