from dataclasses import dataclass
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

MAP_SEARCH_URL = "https://map.naver.com/p/search/"
LINK_CLASS = "whereisthis-address-link"
CONTAINER_ID = "whereisthis-root"
HOST_ROOT_ID = "chrome-extension-boilerplate-react-vite-runtime-content-view-root"


@dataclass(frozen=True)
class Span:
    """A [start, end) slice of a specific text buffer."""

    start: int
    end: int
    text: str

    @classmethod
    def of(cls, buffer: str, start: int, end: int) -> "Span":
        if not 0 <= start <= end <= len(buffer):
            raise ValueError(f"Span [{start}, {end}) out of bounds for buffer of length {len(buffer)}")
        return cls(start, end, buffer[start:end])


class MatchResult(BaseModel):
    """
    Outcome of address detection on a piece of text.
    `matched` is present exactly when `valid` is True.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool = Field(..., description="True if the text contains an address.")
    matched: Optional[str] = Field(None, description="The widened address text, if any.")

    @model_validator(mode="after")
    def _check_consistency(self) -> "MatchResult":
        if self.valid != (self.matched is not None):
            raise ValueError("MatchResult.valid must be True exactly when matched is set")
        return self

    @classmethod
    def miss(cls) -> "MatchResult":
        return cls(valid=False, matched=None)

    @classmethod
    def hit(cls, matched: str) -> "MatchResult":
        return cls(valid=True, matched=matched)


class EngineSettings(BaseModel):
    """
    Tunables for the detection/linking engine.
    Defaults reproduce the browser extension's constants.
    """

    map_search_url: str = Field(MAP_SEARCH_URL, description="Prefix of the map search URL; the address is appended.")
    link_tag: str = Field("a", description="Tag name of the injected reference node.")
    link_class: str = Field(LINK_CLASS, description="Reserved class marking injected reference nodes.")
    link_title: str = Field("네이버 지도에서 보기", description="Tooltip of the injected link.")
    link_target: str = Field("_blank", description="Browsing context the link opens in.")
    link_style: str = Field(
        "color: #03C75A; text-decoration: underline; cursor: pointer",
        description="Inline style of the injected link.",
    )
    container_id: str = Field(CONTAINER_ID, description="Id of the engine's own UI container; never scanned.")
    host_root_id: str = Field(HOST_ROOT_ID, description="Id of the injected content-view root; never scanned.")
    skip_tags: Tuple[str, ...] = Field(
        ("a", "script", "style", "head"),
        description="Elements whose subtrees are never scanned.",
    )
    initial_settle_delay: float = Field(
        0.3, ge=0, description="Seconds to wait before the first scan when enabled at page load."
    )
    toggle_settle_delay: float = Field(
        1.0, ge=0, description="Seconds to wait before the first scan after a runtime toggle."
    )


# --- Boundary messages ---


class ToggleAddressLink(BaseModel):
    """Runtime message sent by the popup when the user flips the toggle."""

    action: Literal["toggleAddressLink"] = "toggleAddressLink"
    enabled: bool


class StoredPreferences(BaseModel):
    """Persisted preference record, as read from extension storage."""

    model_config = ConfigDict(populate_by_name=True)

    address_link_enabled: bool = Field(False, alias="addressLinkEnabled")


RuntimeMessage = ToggleAddressLink


def parse_message(payload: dict) -> RuntimeMessage:
    """
    Validates an incoming runtime message payload.
    Raises pydantic.ValidationError on anything outside the known set.
    """
    return ToggleAddressLink.model_validate(payload)


class EngineStats(BaseModel):
    leaves_visited: int = 0
    links_created: int = 0
    replacements_aborted: int = 0
    failures: int = 0
