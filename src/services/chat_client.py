"""Slack Web API client for publishing and looking up users."""

import asyncio
from typing import Any, Callable, Optional
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
from src.models.chat_file import ChatFileRecord
from src.utils.errors import ChatApiError, NotInChannelError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

# Slack error codes meaning the bot cannot post to the channel
NOT_IN_CHANNEL_ERRORS = frozenset({"not_in_channel", "channel_not_found"})

# Slack attaches channel shares to an uploaded file asynchronously
SHARE_POLL_ATTEMPTS = 5
SHARE_POLL_INTERVAL_SECONDS = 1.0


def _slack_error(e: SlackApiError, method: str) -> ChatApiError:
    error = ""
    if e.response is not None:
        error = e.response.get("error", "") or ""
    if error in NOT_IN_CHANNEL_ERRORS:
        return NotInChannelError(error, method)
    return ChatApiError(error or str(e), method)


class ChatClient:
    """
    Async facade over slack_sdk.WebClient.

    Calls run in a worker thread and are awaited one at a time. The bot token
    client does all posting; the user token client is only used to publish
    public file links.
    """

    def __init__(
        self,
        bot_token: str,
        user_token: Optional[str] = None,
        bot_client: Optional[WebClient] = None,
        user_client: Optional[WebClient] = None,
        share_poll_attempts: int = SHARE_POLL_ATTEMPTS,
        share_poll_interval: float = SHARE_POLL_INTERVAL_SECONDS,
    ):
        self.bot = bot_client or WebClient(token=bot_token)
        self.share_poll_attempts = max(1, share_poll_attempts)
        self.share_poll_interval = share_poll_interval
        if user_client is not None:
            self.user = user_client
        elif user_token:
            self.user = WebClient(token=user_token)
        else:
            self.user = None

    async def _call(self, method: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(func, **kwargs)
        except SlackApiError as e:
            raise _slack_error(e, method) from e

    async def upload_file(
        self,
        channel_id: str,
        content: bytes,
        filename: str,
        filetype: Optional[str],
        title: str,
        initial_comment: str,
    ) -> ChatFileRecord:
        """Post a file to a channel and return it with its share metadata."""
        response = await self._call(
            "files.upload",
            self.bot.files_upload_v2,
            channel=channel_id,
            content=content,
            filename=filename,
            title=title,
            initial_comment=initial_comment,
        )
        uploaded = response.get("file") or (response.get("files") or [{}])[0]
        file_id = uploaded.get("id")
        if not file_id:
            raise ChatApiError("no_file_returned", "files.upload")

        record = await self._wait_for_share(file_id, channel_id)
        logger.info(
            "File published",
            channel_id=channel_id,
            file_id=record.id,
            filetype=filetype,
            size_bytes=len(content),
        )
        return record

    async def _wait_for_share(self, file_id: str, channel_id: str) -> ChatFileRecord:
        """files.info until the file shows a share in `channel_id`, at most share_poll_attempts times."""
        for attempt in range(1, self.share_poll_attempts + 1):
            info = await self._call("files.info", self.bot.files_info, file=file_id)
            record = ChatFileRecord.model_validate(info["file"])
            if record.share_ts(channel_id):
                return record
            if attempt < self.share_poll_attempts:
                await asyncio.sleep(self.share_poll_interval)
        logger.warning(
            "File share not visible yet",
            file_id=file_id,
            channel_id=channel_id,
            attempts=self.share_poll_attempts,
        )
        return record

    async def update_message(self, channel_id: str, ts: str, text: str) -> None:
        await self._call("chat.update", self.bot.chat_update, channel=channel_id, ts=ts, text=text)

    async def share_public_url(self, file_id: str) -> Optional[str]:
        """
        Make a file publicly reachable and return its URL, or None.

        Best effort: every failure is logged and reported as None.
        """
        if self.user is None:
            logger.warning("Public link skipped, no user token configured", file_id=file_id)
            return None
        try:
            response = await self._call("files.sharedPublicURL", self.user.files_sharedPublicURL, file=file_id)
            shared = response["file"]
            pub_secret = shared["permalink_public"].split("-")[-1]
            return f"{shared['url_private']}?pub_secret={pub_secret}"
        except Exception as e:
            logger.warning("Public link creation failed", file_id=file_id, error=str(e))
            return None

    async def get_user_locale(self, user_id: str) -> Optional[str]:
        response = await self._call("users.info", self.bot.users_info, user=user_id, include_locale=True)
        locale = (response.get("user") or {}).get("locale")
        logger.debug("Resolved user locale", slack_user_id=mask_user_id(user_id), locale=locale)
        return locale

    async def get_bot_user_id(self) -> str:
        response = await self._call("auth.test", self.bot.auth_test)
        return response["user_id"]
