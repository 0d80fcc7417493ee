"""Paginated reader for the course catalog API."""

import logging

import requests
from pydantic import ValidationError

from ..config import Config
from ..errors import MalformedPage, UpstreamUnavailable
from ..sync.models import SourceRecord
from .client import CONNECT_TIMEOUT, build_session, describe_error

logger = logging.getLogger(__name__)


class CatalogClient:
    """Read-only client for the catalog search endpoint."""

    def __init__(self, config: Config):
        self.config = config
        self.url = config.catalog_url
        self.page_size = config.catalog_page_size
        self.max_pages = config.catalog_max_pages
        self.session = build_session(config)

    def fetch_page(self, page: int) -> list[SourceRecord]:
        """Fetch and validate one page (1-based).

        Raises:
            UpstreamUnavailable: On transport or HTTP errors.
            MalformedPage: If the body is not ``{"items": [...]}`` or an
                item is not a valid course.
        """
        params = {
            "featured-only": 0,
            "page_size": self.page_size,
            "page": page,
        }
        try:
            response = self.session.get(
                self.url,
                params=params,
                timeout=(CONNECT_TIMEOUT, self.config.timeout),
            )
            response.raise_for_status()
            data = response.json()
        except ValueError as exc:
            raise MalformedPage(
                f"Catalog page {page} returned invalid JSON"
            ) from exc
        except requests.RequestException as exc:
            raise UpstreamUnavailable(
                f"Catalog page {page} failed: {describe_error(exc)}"
            ) from exc

        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise MalformedPage(f"Catalog page {page} has no 'items' list")

        try:
            return [SourceRecord.model_validate(item) for item in items]
        except ValidationError as exc:
            raise MalformedPage(
                f"Catalog page {page} contains an invalid course: {exc}"
            ) from exc

    def fetch_all(self) -> list[SourceRecord]:
        """Fetch every catalog page, in order, until a short or empty page.

        A failure on any page fails the whole fetch; a partial catalog
        would make the delete pass remove rows that still exist upstream.
        """
        logger.info("Fetching courses from catalog API...")
        records: list[SourceRecord] = []
        page = 1

        while True:
            if page > self.max_pages:
                raise MalformedPage(
                    f"Catalog returned more than {self.max_pages} full pages"
                )
            items = self.fetch_page(page)
            if items:
                records.extend(items)
                logger.info("Fetched page %d (%d courses)", page, len(items))
            if len(items) < self.page_size:
                break
            page += 1

        logger.info("Retrieved %d total courses", len(records))
        return records
