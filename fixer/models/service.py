from enum import Enum

from pydantic import BaseModel, ConfigDict


class MatchType(Enum):
    """How a catalog entry matched a search query, best first."""

    DIRECT = "direct"
    SYNONYM = "synonym"
    FUZZY = "fuzzy"


class ServiceEntry(BaseModel):
    """A canonical service in the catalog."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    synonyms: tuple[str, ...] = ()


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    match_type: MatchType
    source_query: str
