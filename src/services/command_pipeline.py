"""LGTM command pipeline - resolve, upload, decorate, publish, annotate, clean up."""

import random
import re
import traceback
from typing import Any, Callable, Optional
from src.models.asset import AssetRecord
from src.models.chat_file import ChatFileRecord
from src.models.command import SlashCommand
from src.models.job import PipelineResult, PipelineState
from src.services.asset_client import AssetClient
from src.services.chat_client import ChatClient
from src.services.image_search import ImageSearchClient
from src.services.job_queue import JobDispatcher
from src.services.slack_webhooks import ResponseNotifier
from src.utils.errors import ChatApiError, EmptySearchResultError, NotInChannelError
from src.utils.logging import (
    get_structured_logger,
    log_timing,
    mask_user_id,
    sanitize_message_text,
)

logger = get_structured_logger(__name__)

EXECUTE_COMMAND_JOB = "executeCommandLgtm"

URL_PATTERN = re.compile(r"((https?|ftp)(://[-_.!~*'()a-zA-Z0-9;/?:@&=+$,%#]+))")
HEX_COLOR_PATTERN = re.compile(r"#?([0-9a-fA-F]{6})")

# Stored original is bounded to 400x400; color samples feed the caption band
UPLOAD_OPTIONS = {"transformation": "c_limit,w_400,h_400", "colors": True}

FALLBACK_COLOR = "ffffff"

LGTM_TRANSFORMATION = (
    "co_rgb:ffff,l_text:Helvetica_70_bold_underline_letter_spacing_30:LGTM"
    "/co_gray,e_shadow,x_5,y_5/fl_layer_apply"
    "/g_center,y_50,co_rgb:{color},l_text:arial_25:Looks%20good%20to%20me,o_90"
)

GENERIC_FAILURE_TEXT = "Oops! Something went wrong. :sob:"


def extract_source_url(text: str) -> Optional[str]:
    """First HTTP, HTTPS or FTP URL in the command text."""
    match = URL_PATTERN.search(text or "")
    return match.group(0) if match else None


def complementary_color(color: Optional[str]) -> str:
    """
    Complement of a `#rrggbb` color as 6 lowercase hex digits.

    Each channel becomes max(R,G,B) + min(R,G,B) - channel. Grays map onto
    themselves under that rule, so they are inverted instead. Malformed or
    missing input gives FALLBACK_COLOR.
    """
    match = HEX_COLOR_PATTERN.fullmatch(color or "")
    if not match:
        return FALLBACK_COLOR

    digits = match.group(1)
    rgb = [int(digits[i:i + 2], 16) for i in (0, 2, 4)]
    if max(rgb) == min(rgb):
        return "".join(f"{255 - c:02x}" for c in rgb)

    total = max(rgb) + min(rgb)
    return "".join(f"{total - c:02x}" for c in rgb)


def not_in_channel_text(bot_user_id: str, channel_name: str) -> str:
    return (
        f"Invite <@{bot_user_id}> to join #{channel_name}\n"
        f"`/invite <@{bot_user_id}> #{channel_name}`⏎"
    )


class CommandPipeline:
    """
    Runs one slash command end to end.

    Steps run strictly in order. Any exception moves the run to FAILED and is
    reported once through the command's response_url; only the public link
    step is allowed to fail without aborting.
    """

    def __init__(
        self,
        asset_client: AssetClient,
        chat_client: ChatClient,
        search_client_factory: Callable[[Optional[str]], ImageSearchClient],
        notifier: ResponseNotifier,
        chooser: Callable[[list], Any] = random.choice,
    ):
        self.assets = asset_client
        self.chat = chat_client
        self.search_client_factory = search_client_factory
        self.notifier = notifier
        self.chooser = chooser

    async def resolve_source(self, text: str, locale: Optional[str]) -> str:
        url = extract_source_url(text)
        if url:
            return url

        candidates = await self.search_client_factory(locale).search(text)
        if not candidates:
            raise EmptySearchResultError(text)
        return self.chooser(candidates).link

    def transform(self, upload: AssetRecord) -> str:
        """URL of the decorated view; derived on the fly, nothing is stored."""
        transformation = LGTM_TRANSFORMATION.format(color=complementary_color(upload.dominant_color))
        return self.assets.delivery_url(upload.public_id, upload.format, transformation)

    async def publish(
        self,
        command: SlashCommand,
        upload: AssetRecord,
        image_url: str,
        source_url: str,
    ) -> tuple[ChatFileRecord, str]:
        content = await self.assets.download(image_url)
        file = await self.chat.upload_file(
            command.channel_id,
            content,
            upload.filename,
            upload.format,
            f"Source: {source_url}",
            f"![LGTM]({source_url})",
        )
        ts = file.share_ts(command.channel_id)
        if not ts:
            raise ChatApiError("share_ts_missing", "files.info")
        return file, ts

    async def run(self, command: SlashCommand, locale: Optional[str] = None) -> PipelineResult:
        """Execute every step; never raises."""
        state = PipelineState.RESOLVING_SOURCE
        upload: Optional[AssetRecord] = None
        source_url: Optional[str] = None

        logger.info(
            "Pipeline started",
            channel_id=command.channel_id,
            slack_user_id=mask_user_id(command.user_id),
            text_preview=sanitize_message_text(command.text, max_length=100),
            locale=locale,
        )

        try:
            with log_timing("command_pipeline", logger=logger, channel_id=command.channel_id):
                source_url = await self.resolve_source(command.text, locale)

                state = PipelineState.UPLOADING
                upload = await self.assets.upload(source_url, UPLOAD_OPTIONS)

                state = PipelineState.TRANSFORMING
                image_url = self.transform(upload)

                state = PipelineState.PUBLISHING
                file, ts = await self.publish(command, upload, image_url, source_url)

                state = PipelineState.PROMOTING
                link = await self.chat.share_public_url(file.id) or file.url_private

                state = PipelineState.ANNOTATING
                await self.chat.update_message(command.channel_id, ts, f"![LGTM]({link})")

                state = PipelineState.CLEANING_UP
                await self.assets.destroy(upload.public_id)
                upload = None
        except Exception as e:
            await self.report_failure(command, e, state)
            if upload is not None and state != PipelineState.CLEANING_UP:
                await self._discard(upload)
            return PipelineResult(state=PipelineState.FAILED, failed_at=state, error=e, source_url=source_url)

        logger.info("Pipeline completed", channel_id=command.channel_id, file_id=file.id)
        return PipelineResult(state=PipelineState.DONE, source_url=source_url, link=link)

    async def report_failure(self, command: SlashCommand, error: Exception, state: PipelineState) -> None:
        """Tell the invoking user what went wrong. Errors here are logged, not raised."""
        text = GENERIC_FAILURE_TEXT
        if isinstance(error, NotInChannelError):
            logger.info("Bot is not a member of the channel", channel_id=command.channel_id, failed_at=state.value)
            try:
                text = not_in_channel_text(await self.chat.get_bot_user_id(), command.channel_name)
            except Exception as e:
                logger.error("Bot identity lookup failed", error=str(e), exc_info=True)
        else:
            logger.error(
                "Pipeline failed",
                channel_id=command.channel_id,
                failed_at=state.value,
                error_type=type(error).__name__,
                error=str(error),
                stack="".join(traceback.format_exception(type(error), error, error.__traceback__)),
            )

        try:
            await self.notifier.notify(command.response_url, text)
        except Exception as e:
            logger.error("Failure notification could not be sent", error=str(e), exc_info=True)

    async def _discard(self, upload: AssetRecord) -> None:
        try:
            await self.assets.destroy(upload.public_id)
        except Exception as e:
            logger.warning("Temporary asset left behind", public_id=upload.public_id, error=str(e))


def register_command_consumer(dispatcher: JobDispatcher, pipeline: CommandPipeline) -> None:
    """Bind the pipeline to the executeCommandLgtm job."""

    async def handle(data: dict) -> PipelineResult:
        command = SlashCommand.model_validate(data["command"])
        return await pipeline.run(command, data.get("locale"))

    dispatcher.consume(EXECUTE_COMMAND_JOB, handle)
