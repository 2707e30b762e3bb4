"""HTTP client for a single component registry."""

from __future__ import annotations

import logging
from typing import List, Optional

import requests

from common.http_client import HttpRequestError, get_json, new_session
from common.logging_utils import safe_url
from constants import Constants
from project.config import ConfigError, RegistryConfig, validate_registry_url
from registry.errors import RegistryRequestError
from registry.models import Component, ComponentInfo, RegistryIndex
from registry.schema import validate_component

logger = logging.getLogger(__name__)


class RegistryClient:
    """Fetches the index and component definitions of one registry.

    Args:
        namespace: Configured registry name (``default``, ``@acme``...).
        config: URL template, query params and headers.
        style: Value substituted for ``{style}`` in the URL template.
        session: Optional pre-built ``requests.Session`` (tests inject fakes).

    Raises:
        RegistryRequestError: If the URL template is not an http(s) URL.
    """

    def __init__(
        self,
        namespace: str,
        config: RegistryConfig,
        style: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        try:
            validate_registry_url(config.url.replace("{name}", "index").replace("{style}", "default"))
        except ConfigError as exc:
            raise RegistryRequestError(f"Registry '{namespace}': {exc}") from exc
        self.namespace = namespace
        self.config = config
        self.style = style or Constants.DEFAULT_STYLE
        self.session = session if session is not None else new_session(config.headers)

    def _with_style(self, url: str) -> str:
        return url.replace("{style}", self.style)

    def component_url(self, name: str) -> str:
        return self._with_style(self.config.url.replace("{name}", name))

    def index_urls(self) -> List[str]:
        """Candidate index locations, most specific first, without duplicates."""
        url = self.config.url
        candidates = []
        if Constants.SHADCN_HOST in url:
            candidates.append(Constants.SHADCN_INDEX_URL)
        base = url.rstrip("/")
        for candidate in (
            url.replace("{name}", "index"),
            (base + "/index.json").replace("/{name}.json", ""),
            (base + "/registry/index.json").replace("/{name}.json", ""),
        ):
            candidates.append(self._with_style(candidate))

        seen = set()
        unique = []
        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                unique.append(candidate)
        return unique

    def fetch_index(self) -> RegistryIndex:
        """Return the registry index.

        Candidates answering with an error status or a non-index body are
        skipped; if none yields an index the result is empty.

        Raises:
            RegistryRequestError: Every candidate failed at the transport level.
        """
        last_error: Optional[HttpRequestError] = None
        reached = False
        for url in self.index_urls():
            try:
                status, data = get_json(
                    self.session, url, context=self.namespace, params=self.config.params
                )
            except HttpRequestError as exc:
                logger.debug("Index candidate %s failed: %s", safe_url(url), exc)
                last_error = exc
                continue
            reached = True
            if data is None:
                logger.debug("Index candidate %s returned %s", safe_url(url), status)
                continue
            index = RegistryIndex.from_json(data)
            if index is not None:
                logger.debug("Loaded %d index entries from %s", len(index), safe_url(url))
                return index
        if not reached and last_error is not None:
            raise RegistryRequestError(
                f"Registry '{self.namespace}' is unreachable: {last_error}"
            ) from last_error
        logger.debug("No index found for registry '%s'", self.namespace)
        return RegistryIndex.empty()

    def fetch_component(self, name: str) -> Component:
        """Fetch and validate one component definition.

        Raises:
            RegistryRequestError: Transport failure, non-2xx status or a body
                that is not JSON.
            SchemaError: The body does not describe a component.
        """
        url = self.component_url(name)
        try:
            status, data = get_json(self.session, url, context=self.namespace, params=self.config.params)
        except HttpRequestError as exc:
            raise RegistryRequestError(f"Failed to fetch component '{name}': {exc}") from exc
        if not 200 <= status < 300:
            raise RegistryRequestError(f"Failed to fetch component '{name}': {status}")
        if data is None:
            raise RegistryRequestError(f"Failed to parse component '{name}' from {safe_url(url)}")
        validate_component(data, name)
        component = Component.from_dict(data)
        component.registry = self.namespace
        return component

    def search_components(self, query: str) -> List[ComponentInfo]:
        """Index entries whose name or type contains ``query`` (case-insensitive)."""
        needle = query.lower()
        return [
            info
            for info in self.fetch_index().as_list()
            if needle in info.name.lower() or (info.type and needle in info.type.lower())
        ]
