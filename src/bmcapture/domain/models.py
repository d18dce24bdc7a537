"""Capture-client data model: remote settings, drafts, and categories.

``ApiSettings`` is an immutable value loaded once per context invocation and
passed explicitly to every operation that needs it. ``BookmarkDraft`` is built
per capture attempt and consumed exactly once by the API client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

API_KEY_PREFIX = "bm_"


def normalize_api_url(raw: str) -> str:
    """Strip surrounding whitespace and every trailing slash."""
    return raw.strip().rstrip("/")


class ApiSettings(BaseModel):
    """Credentials for the remote bookmark API.

    Persisted under the store keys ``apiUrl`` and ``apiKey``.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    api_url: str = Field(alias="apiUrl", min_length=1)
    api_key: str = Field(alias="apiKey", min_length=1)

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        normalized = normalize_api_url(value)
        if not normalized:
            msg = "apiUrl must not be empty"
            raise ValueError(msg)
        return normalized

    @field_validator("api_key")
    @classmethod
    def _require_prefix(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(API_KEY_PREFIX):
            msg = f"apiKey must start with {API_KEY_PREFIX!r}"
            raise ValueError(msg)
        return value

    def endpoint(self, path: str) -> str:
        """Absolute URL for an API *path* such as ``/api/categories.php``."""
        return f"{self.api_url}{path}"

    def to_store(self) -> dict[str, str]:
        """Key-value form written to the settings store."""
        return self.model_dump(by_alias=True)


class Category(BaseModel):
    """One entry of the server's flat category list.

    ``depth`` encodes the hierarchy; the server may send numeric strings
    or a null depth for root categories.
    """

    model_config = {"frozen": True, "extra": "ignore"}

    id: int
    name: str
    depth: int = Field(default=0, ge=0)

    @field_validator("depth", mode="before")
    @classmethod
    def _null_depth_is_root(cls, value: Any) -> Any:
        return 0 if value is None or value == "" else value


class TabInfo(BaseModel):
    """URL and title of a browser tab."""

    model_config = {"frozen": True}

    url: str = ""
    title: str = ""


class BookmarkDraft(BaseModel):
    """A bookmark candidate assembled from tab metadata and user edits."""

    model_config = {"frozen": True, "populate_by_name": True}

    url: str = Field(min_length=1)
    title: str | None = None
    category_id: int | None = Field(default=None, alias="categoryId")
    tags: list[str] | None = None
    is_favorite: bool = Field(default=False, alias="isFavorite")

    def to_payload(self) -> dict[str, Any]:
        """Request body for ``POST /api/external.php``.

        Optional fields are omitted rather than sent as null, zero, or empty.
        """
        payload: dict[str, Any] = {"url": self.url}
        if self.title:
            payload["title"] = self.title
        if self.category_id is not None:
            payload["category_id"] = self.category_id
        if self.tags:
            payload["tags"] = list(self.tags)
        payload["is_favorite"] = self.is_favorite
        return payload


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma-separated tag field, trimming and dropping empty tokens.

    Examples:
        >>> parse_tags(" python, ,web ,")
        ['python', 'web']
        >>> parse_tags("")
        []
    """
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def category_label(category: Category) -> str:
    """Option label with one em dash per depth level.

    Root categories carry no marker, so ``Work`` and ``— Dev`` never
    collapse to the same label through indentation alone.
    """
    indent = "—" * category.depth
    return f"{indent} {category.name}" if indent else category.name
