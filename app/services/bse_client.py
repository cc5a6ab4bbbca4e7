"""
BSE announcement source adapter.

Queries the exchange's announcement API for a date range and decodes the
`Table` array of the response into Announcement records. One request per
page, no retries; transport failures and non-200 answers raise
SourceUnavailable, unreadable bodies raise DecodeError.
"""

import asyncio
from datetime import date
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.config import settings
from app.exceptions import DecodeError, SourceUnavailable
from app.utils.logger import setup_logger

logger = setup_logger("bse_client")

API_DATE_FORMAT = "%Y%m%d"


class Announcement(BaseModel):
    """One exchange filing as returned by the announcement API."""

    logical_name: str = Field(default="", alias="SLONGNAME")
    news_date: str = Field(default="", alias="NEWS_DT")
    attachment_id: str = Field(default="", alias="ATTACHMENTNAME")
    news_id: str | None = Field(default=None, alias="NEWSID")
    scrip_code: str | None = Field(default=None, alias="SCRIP_CD")
    headline: str | None = Field(default=None, alias="HEADLINE")
    category: str | None = Field(default=None, alias="CATEGORYNAME")
    subcategory: str | None = Field(default=None, alias="SUBCATNAME")
    pdf_flag: int | None = Field(default=None, alias="PDFFLAG")
    total_page_count: int | None = Field(default=None, alias="TotalPageCnt")

    # Unused exchange fields are kept as opaque extras
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("logical_name", "news_date", "attachment_id", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("news_id", "scrip_code", mode="before")
    @classmethod
    def to_optional_str(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @property
    def has_attachment(self) -> bool:
        return bool(self.attachment_id)

    @property
    def date_part(self) -> str:
        """Filing date with the time of day discarded."""
        return self.news_date.split("T")[0]


class AnnouncementResponse(BaseModel):
    table: list[Announcement] = Field(default_factory=list, alias="Table")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("table", mode="before")
    @classmethod
    def null_table_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


def create_http_client(timeout_seconds: float | None = None) -> httpx.AsyncClient:
    """
    Create the shared HTTP client used for the exchange API and attachments.

    The exchange is slow for large ranges, so the read timeout follows the
    operation ceiling rather than a short request timeout.
    """
    timeout_seconds = timeout_seconds or settings.operation_timeout_seconds
    timeout_config = httpx.Timeout(
        connect=30.0, read=timeout_seconds, write=30.0, pool=60.0
    )
    limits_config = httpx.Limits(
        max_keepalive_connections=10, max_connections=20, keepalive_expiry=30.0
    )
    return httpx.AsyncClient(
        timeout=timeout_config,
        limits=limits_config,
        headers={"User-Agent": settings.bse_user_agent},
        follow_redirects=True,
    )


class BSEClient:
    """Client for the exchange announcement API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = settings.bse_announcements_url,
        category: str = settings.bse_category,
        subcategory: str = settings.bse_subcategory,
    ):
        self.http_client = http_client
        self.base_url = base_url
        self.category = category
        self.subcategory = subcategory

    def build_params(self, from_date: date, to_date: date, page: int = 1) -> dict[str, str]:
        return {
            "pageno": str(page),
            "strCat": self.category,
            "strPrevDate": from_date.strftime(API_DATE_FORMAT),
            "strScrip": "",
            "strSearch": "P",
            "strToDate": to_date.strftime(API_DATE_FORMAT),
            "strType": "C",
            "subcategory": self.subcategory,
        }

    @staticmethod
    def build_headers() -> dict[str, str]:
        return {
            "Accept": "application/json, text/plain, */*",
            "Referer": "https://www.bseindia.com/",
            "User-Agent": settings.bse_user_agent,
            "Sec-CH-UA": '"Google Chrome";v="141", "Not?A_Brand";v="8", "Chromium";v="141"',
            "Sec-CH-UA-Mobile": "?0",
            "Sec-CH-UA-Platform": '"macOS"',
        }

    async def fetch_announcements(
        self, from_date: date, to_date: date, page: int = 1
    ) -> list[Announcement]:
        """Fetch one page of announcements for the date range."""
        params = self.build_params(from_date, to_date, page)
        logger.debug(
            f"Requesting announcements page {page} for {params['strPrevDate']}-{params['strToDate']}"
        )

        try:
            response = await self.http_client.get(
                self.base_url, params=params, headers=self.build_headers()
            )
        except httpx.HTTPError as e:
            raise SourceUnavailable(
                f"failed to fetch announcements: {e}",
                context={"page": page, "error_type": type(e).__name__},
            ) from e

        if response.status_code != httpx.codes.OK:
            raise SourceUnavailable(
                f"BSE API returned status {response.status_code}",
                status_code=response.status_code,
                context={"page": page},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(
                f"failed to unmarshal response: {e}",
                context={"page": page, "body_prefix": response.text[:200]},
            ) from e

        if not isinstance(payload, dict):
            raise DecodeError(
                f"unexpected response shape: {type(payload).__name__}",
                context={"page": page},
            )

        try:
            announcements = AnnouncementResponse.model_validate(payload).table
        except ValidationError as e:
            raise DecodeError(
                f"failed to decode announcements: {e}", context={"page": page}
            ) from e

        logger.info(f"Fetched {len(announcements)} announcements (page {page})")
        return announcements

    async def fetch_all_announcements(
        self,
        from_date: date,
        to_date: date,
        max_pages: int = settings.bse_max_pages,
        page_delay: float = settings.bse_page_delay_seconds,
    ) -> list[Announcement]:
        """
        Walk result pages until an empty page is returned.

        `max_pages` guards against an API that never returns an empty page.
        """
        announcements: list[Announcement] = []
        for page in range(1, max_pages + 1):
            page_items = await self.fetch_announcements(from_date, to_date, page)
            if not page_items:
                break
            announcements.extend(page_items)
            if page < max_pages:
                await asyncio.sleep(page_delay)
        else:
            logger.warning(
                f"Stopped after {max_pages} pages; later announcements were not fetched"
            )

        logger.info(f"Fetched {len(announcements)} announcements across all pages")
        return announcements

    async def get_announcements(self, from_date: date, to_date: date) -> list[Announcement]:
        """Fetch announcements using the configured paging mode."""
        if settings.bse_fetch_all_pages:
            return await self.fetch_all_announcements(from_date, to_date)
        return await self.fetch_announcements(from_date, to_date)
