from loguru import logger

from fixer.core.config import settings
from fixer.core.constants import CUSTOM_CATEGORY
from fixer.models.service import MatchResult, MatchType, ServiceEntry
from fixer.services.catalog import ServiceCatalog, service_catalog


class ServiceMatcher:
    """
    Free-text lookup over the service catalog.

    Never raises: an unmatched query yields no suggestions, and unmatched free text passes
    through unchanged so users can always submit a custom service.
    """

    def __init__(
        self,
        catalog: ServiceCatalog | None = None,
        max_results: int | None = None,
        fuzzy_threshold: int | None = None,
    ):
        self.catalog = catalog or service_catalog
        self.max_results = max_results if max_results is not None else settings.SEARCH_MAX_RESULTS
        self.fuzzy_threshold = fuzzy_threshold if fuzzy_threshold is not None else settings.FUZZY_PASS_THRESHOLD

    def search(self, query: str | None) -> list[MatchResult]:
        """
        Rank catalog entries against a free-text query.

        Three passes, each only adding entries not yet matched:
          1. direct  - canonical name contains the query
          2. synonym - any synonym contains the query
          3. fuzzy   - some query token is contained in some name token; only run when the
                       first two passes found fewer than `fuzzy_threshold` entries
        The combined list keeps pass order and is capped at `max_results`.
        """
        if not query or not query.strip():
            return []

        normalized = query.lower().strip()
        matched: dict[str, MatchResult] = {}

        def add(entry: ServiceEntry, match_type: MatchType) -> None:
            if entry.name not in matched:
                matched[entry.name] = MatchResult(
                    name=entry.name, category=entry.category, match_type=match_type, source_query=query
                )

        for entry in self.catalog:
            if normalized in entry.name.lower():
                add(entry, MatchType.DIRECT)

        for entry in self.catalog:
            if any(normalized in synonym.lower() for synonym in entry.synonyms):
                add(entry, MatchType.SYNONYM)

        if len(matched) < self.fuzzy_threshold:
            query_tokens = normalized.split()
            for entry in self.catalog:
                name_tokens = entry.name.lower().split()
                if any(q in word for q in query_tokens for word in name_tokens):
                    add(entry, MatchType.FUZZY)

        results = list(matched.values())[: self.max_results]
        logger.debug(f"Service search '{normalized}' -> {len(results)} result(s)")
        return results

    def _find(self, free_text: str | None) -> ServiceEntry | None:
        if not free_text:
            return None
        normalized = free_text.lower().strip()
        if not normalized:
            return None

        for entry in self.catalog:
            if entry.name.lower() == normalized:
                return entry
        for entry in self.catalog:
            if any(synonym.lower() == normalized for synonym in entry.synonyms):
                return entry
        return None

    def normalize(self, free_text: str | None) -> str:
        """Canonical name for `free_text` (by exact name, then exact synonym), else the input unchanged."""
        entry = self._find(free_text)
        if entry is not None:
            return entry.name
        return free_text if free_text is not None else ""

    def category_for(self, free_text: str | None) -> str:
        entry = self._find(free_text)
        return entry.category if entry else CUSTOM_CATEGORY

    def is_custom(self, free_text: str | None) -> bool:
        return self._find(free_text) is None


service_matcher = ServiceMatcher()
