from fixer.data.services import SERVICES
from fixer.models.service import ServiceEntry


class ServiceCatalog:
    """
    Read-only catalog of canonical services grouped by category.
    Lookups are case-sensitive on the canonical name; use ServiceMatcher for free text.
    """

    def __init__(self, services: dict[str, dict[str, list[str]]] | None = None):
        self._entries: dict[str, ServiceEntry] = {}
        self._categories: dict[str, list[str]] = {}

        for category, entries in (SERVICES if services is None else services).items():
            names = self._categories.setdefault(category, [])
            for name, synonyms in entries.items():
                if name in self._entries:
                    raise ValueError(
                        f"Service '{name}' listed under both '{self._entries[name].category}' and '{category}'"
                    )
                # Keep declaration order but drop repeated synonyms
                unique = tuple(dict.fromkeys(s.strip() for s in synonyms if s and s.strip()))
                self._entries[name] = ServiceEntry(name=name, category=category, synonyms=unique)
                names.append(name)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries.values())

    def all_names(self) -> list[str]:
        return list(self._entries)

    def all_categories(self) -> list[str]:
        return list(self._categories)

    def names_in(self, category: str) -> list[str]:
        return list(self._categories.get(category, []))

    def lookup(self, name: str) -> ServiceEntry | None:
        return self._entries.get(name)

    def synonyms_of(self, name: str) -> tuple[str, ...]:
        entry = self._entries.get(name)
        return entry.synonyms if entry else ()

    def related(self, name: str) -> list[str]:
        """Other services in the same category as `name`; empty when `name` is not catalogued."""
        entry = self._entries.get(name)
        if entry is None:
            return []
        return [other for other in self._categories[entry.category] if other != name]


service_catalog = ServiceCatalog()
