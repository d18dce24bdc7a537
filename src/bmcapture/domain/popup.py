"""Popup capture flow: states, events, and the pure transition function.

The popup is instantiated fresh on every open and discarded on close.
Its UI is a projection of the current state; this module owns the only
definition of which transitions exist.

    uninitialized ─┬─> not_configured
                   └─> loading ─┬─> ready ──> submitting ─┬─> success
                                └─> error                 ├─> duplicate
                                      │                   └─> error
                                      └─(retry)─> uninitialized
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from bmcapture.domain.models import BookmarkDraft, Category, category_label, parse_tags
from bmcapture.domain.outcomes import APIOutcome, OutcomeKind

# Budget for the category fetch while loading. Fixed; saves are not raced.
CATEGORY_FETCH_TIMEOUT = 10.0
CATEGORY_TIMEOUT_MESSAGE = "Request timeout"
LOAD_FAILED_MESSAGE = "Failed to load. Please check your settings."
MISSING_PAGE_URL_MESSAGE = "Please enter the page URL"
BAD_CATEGORY_MESSAGE = "Category must be a numeric ID"


class PopupState(StrEnum):
    """UI states of the capture popup."""

    UNINITIALIZED = "uninitialized"
    NOT_CONFIGURED = "not_configured"
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    ERROR = "error"


class PopupEvent(StrEnum):
    """Completed async operations and user actions that drive the popup."""

    NO_SETTINGS = "no_settings"
    SETTINGS_LOADED = "settings_loaded"
    CATEGORIES_LOADED = "categories_loaded"
    LOAD_FAILED = "load_failed"
    SUBMIT = "submit"
    SAVED = "saved"
    DUPLICATE_FOUND = "duplicate_found"
    SAVE_FAILED = "save_failed"
    RETRY = "retry"


class PopupAction(StrEnum):
    """User actions offered by a state."""

    OPEN_OPTIONS = "open_options"
    SUBMIT = "submit"
    RETRY = "retry"
    CLOSE = "close"


# --- Transition map ---

POPUP_TRANSITIONS: dict[PopupState, dict[PopupEvent, PopupState]] = {
    PopupState.UNINITIALIZED: {
        PopupEvent.NO_SETTINGS: PopupState.NOT_CONFIGURED,
        PopupEvent.SETTINGS_LOADED: PopupState.LOADING,
    },
    PopupState.NOT_CONFIGURED: {},
    PopupState.LOADING: {
        PopupEvent.CATEGORIES_LOADED: PopupState.READY,
        PopupEvent.LOAD_FAILED: PopupState.ERROR,
    },
    PopupState.READY: {
        PopupEvent.SUBMIT: PopupState.SUBMITTING,
    },
    PopupState.SUBMITTING: {
        PopupEvent.SAVED: PopupState.SUCCESS,
        PopupEvent.DUPLICATE_FOUND: PopupState.DUPLICATE,
        PopupEvent.SAVE_FAILED: PopupState.ERROR,
    },
    PopupState.SUCCESS: {},
    PopupState.DUPLICATE: {},
    PopupState.ERROR: {
        PopupEvent.RETRY: PopupState.UNINITIALIZED,
    },
}

# Close is available everywhere; these are the actions a state advertises.
POPUP_ACTIONS: dict[PopupState, tuple[PopupAction, ...]] = {
    PopupState.UNINITIALIZED: (),
    PopupState.NOT_CONFIGURED: (PopupAction.OPEN_OPTIONS,),
    PopupState.LOADING: (),
    PopupState.READY: (PopupAction.SUBMIT,),
    PopupState.SUBMITTING: (),
    PopupState.SUCCESS: (PopupAction.CLOSE,),
    PopupState.DUPLICATE: (PopupAction.CLOSE,),
    PopupState.ERROR: (PopupAction.RETRY,),
}


class InvalidTransitionError(ValueError):
    """Raised when an event is not accepted by the current state."""

    def __init__(self, state: PopupState, event: PopupEvent) -> None:
        super().__init__(f"Event {event.value!r} is not valid in state {state.value!r}")
        self.state = state
        self.event = event


def is_valid_transition(current: PopupState, event: PopupEvent) -> bool:
    """Check if *event* is accepted in state *current*."""
    return event in POPUP_TRANSITIONS.get(current, {})


def next_state(current: PopupState, event: PopupEvent) -> PopupState:
    """Return the state reached from *current* on *event*."""
    try:
        return POPUP_TRANSITIONS[current][event]
    except KeyError:
        raise InvalidTransitionError(current, event) from None


def load_event(outcome: APIOutcome) -> PopupEvent:
    """Map a category-fetch outcome to the loading-state event."""
    return PopupEvent.CATEGORIES_LOADED if outcome.ok else PopupEvent.LOAD_FAILED


def save_event(outcome: APIOutcome) -> PopupEvent:
    """Map a save outcome to the submitting-state event."""
    if outcome.ok:
        return PopupEvent.SAVED
    if outcome.kind is OutcomeKind.DUPLICATE:
        return PopupEvent.DUPLICATE_FOUND
    return PopupEvent.SAVE_FAILED


# --- Form and view models ---


class CategoryOption(BaseModel):
    """One entry of the category select."""

    model_config = {"frozen": True}

    value: int
    label: str


def category_options(categories: list[Category]) -> list[CategoryOption]:
    """Build select options in server order with depth-based labels."""
    return [CategoryOption(value=c.id, label=category_label(c)) for c in categories]


class PopupForm(BaseModel):
    """Raw form field values as the user left them.

    ``category`` is the select's value: empty for "Uncategorized".
    """

    model_config = {"frozen": True}

    url: str
    title: str = ""
    category: str = ""
    tags: str = ""
    is_favorite: bool = False

    def rejection(self) -> str | None:
        """Message for the first field that cannot go into a draft, if any."""
        if not self.url.strip():
            return MISSING_PAGE_URL_MESSAGE
        category = self.category.strip()
        if category:
            try:
                int(category)
            except ValueError:
                return BAD_CATEGORY_MESSAGE
        return None

    def to_draft(self) -> BookmarkDraft:
        """Build the draft submitted to the server."""
        category = self.category.strip()
        return BookmarkDraft(
            url=self.url.strip(),
            title=self.title.strip() or None,
            category_id=int(category) if category else None,
            tags=parse_tags(self.tags) or None,
            is_favorite=self.is_favorite,
        )


class PopupView(BaseModel):
    """Immutable snapshot of the popup for rendering."""

    model_config = {"frozen": True}

    state: PopupState
    url: str = ""
    title: str = ""
    categories: list[CategoryOption] = Field(default_factory=list)
    message: str = ""
    actions: tuple[PopupAction, ...] = ()
    bookmark: dict[str, Any] | None = None
