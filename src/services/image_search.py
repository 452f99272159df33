"""Google Custom Search image client."""

from typing import Optional
from src.models.image_search import ImageCandidate
from src.services.http_invoker import HttpApiInvoker
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

ENDPOINT = "https://www.googleapis.com/customsearch/v1"

# Search language used when the locale has no mapping
DEFAULT_LANG = "lang_ja"

# Results per page
NUM = 10

LANGUAGES = {
    "ja-JP": "lang_ja",
    "en-US": "lang_en",
}


def search_language(locale: Optional[str]) -> str:
    """Map a Slack locale to a custom search `lr` value."""
    return LANGUAGES.get(locale or "", DEFAULT_LANG)


def page_start(page: int) -> int:
    """1-based index of the first result on `page`."""
    return NUM * (page - 1) + 1


class ImageSearchClient:
    """Keyword image search. Raises NetworkAccessError on failure."""

    def __init__(
        self,
        api_key: str,
        search_engine_id: str,
        locale: Optional[str] = None,
        rights: Optional[str] = None,
        invoker: Optional[HttpApiInvoker] = None,
    ):
        self.api_key = api_key
        self.search_engine_id = search_engine_id
        self.locale = locale
        self.rights = rights
        self.invoker = invoker or HttpApiInvoker("Custom Search")

    def build_params(self, keyword: str, page: int = 1) -> dict[str, str]:
        params = {
            "key": self.api_key,
            "cx": self.search_engine_id,
            "searchType": "image",
            "q": keyword,
            "safe": "active",
            "lr": search_language(self.locale),
            "num": str(NUM),
            "start": str(page_start(page)),
        }
        if self.rights:
            params["rights"] = self.rights
        return params

    async def search(self, keyword: str, page: int = 1) -> list[ImageCandidate]:
        """Return one page (up to NUM) of image candidates; a new call re-queries."""
        body = await self.invoker.invoke(ENDPOINT, "GET", self.build_params(keyword, page))
        items = body.get("items") or []
        candidates = [ImageCandidate.from_item(item) for item in items if item.get("link")]
        logger.info(
            "Image search completed",
            page=page,
            results=len(candidates),
            lr=search_language(self.locale),
        )
        return candidates
