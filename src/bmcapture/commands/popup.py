"""Command: the capture popup for one page."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from bmcapture.commands._base import BmCommand

if TYPE_CHECKING:
    from bmcapture.commands._context import AppContext
    from bmcapture.domain.popup import PopupForm, PopupView
    from bmcapture.services.popup import CapturePopup
    from bmcapture.services.result import ServiceResult


@click.command(
    cls=BmCommand,
    examples="""\
  bmcapture popup --url https://example.com/article
  bmcapture popup --url https://example.com --title "Example" --category 3
  bmcapture popup --url https://example.com --tags "python, web" --favorite
  bmcapture --no-interact popup --url https://example.com
  bmcapture popup --url https://example.com --preview""",
)
@click.option("--url", required=True, help="URL of the page being captured.")
@click.option("--title", default="", help="Page title (pre-fills the form).")
@click.option("--category", default="", help="Category ID (empty for Uncategorized).")
@click.option("--tags", default="", help="Comma-separated tags.")
@click.option("--favorite", is_flag=True, help="Mark the bookmark as a favorite.")
@click.option("--preview", is_flag=True, help="Stop once categories are loaded.")
@click.pass_obj
def popup(
    app: AppContext,
    url: str,
    title: str,
    category: str,
    tags: str,
    favorite: bool,
    preview: bool,
) -> None:
    """Open the capture popup and save the page as a bookmark."""
    from bmcapture.domain.popup import PopupForm
    from bmcapture.services.popup import CapturePopup, StaticTabSource

    form = PopupForm(url=url, title=title, category=category, tags=tags, is_favorite=favorite)
    capture = CapturePopup(app.store, app.api_client, StaticTabSource(url, title))
    app.emit(app.run(_drive(app, capture, form, preview=preview)))


async def _drive(
    app: AppContext,
    capture: CapturePopup,
    form: PopupForm,
    *,
    preview: bool,
) -> ServiceResult:
    """Walk the popup from open to a terminal state."""
    from bmcapture.domain.popup import PopupState

    try:
        view = await capture.open()
        while True:
            if view.state is PopupState.READY:
                if preview:
                    break
                if app.interactive:
                    form = _prompt_form(view, form)
                view = await capture.submit(form)
                if view.state is PopupState.READY:
                    # The form was rejected locally.
                    break
            elif (
                view.state is PopupState.ERROR
                and app.interactive
                and click.confirm(f"{view.message} Retry?", default=True, err=True)
            ):
                view = await capture.retry()
            else:
                break
        return _to_result(capture, view, preview=preview)
    finally:
        capture.close()


def _prompt_form(view: PopupView, form: PopupForm) -> PopupForm:
    """Let the user edit the pre-filled form fields."""
    from bmcapture.output.console import render_text
    from bmcapture.output.renderers import category_table

    table = category_table([option.model_dump() for option in view.categories])
    click.echo(render_text(table), err=True)

    return form.model_copy(
        update={
            "title": click.prompt("Title", default=form.title or view.title, err=True),
            "category": click.prompt("Category ID", default=form.category, err=True),
            "tags": click.prompt("Tags", default=form.tags, err=True),
            "is_favorite": click.confirm("Favorite?", default=form.is_favorite, err=True),
        }
    )


def _to_result(capture: CapturePopup, view: PopupView, *, preview: bool) -> ServiceResult:
    from bmcapture.domain.outcomes import DUPLICATE_MESSAGE
    from bmcapture.domain.popup import PopupState
    from bmcapture.services.result import ErrorCode, ServiceResult

    data: dict[str, Any] = view.model_dump(mode="json")

    if view.state is PopupState.SUCCESS or (view.state is PopupState.READY and preview):
        return ServiceResult.success("popup", data)
    if view.state is PopupState.DUPLICATE:
        return ServiceResult.success("popup", data, warnings=[DUPLICATE_MESSAGE])
    if view.state is PopupState.READY:
        # The form was rejected before anything was sent.
        return ServiceResult.failure("popup", ErrorCode.VALIDATION_ERROR, view.message, data=data)
    if view.state is PopupState.NOT_CONFIGURED:
        return ServiceResult.failure(
            "popup",
            ErrorCode.NOT_CONFIGURED,
            "Please configure your API settings first.",
            data=data,
            detail={"hint": "bmcapture options save API_URL API_KEY"},
        )

    outcome = capture.last_outcome
    if outcome is None:
        # The active tab could not be read.
        return ServiceResult.failure("popup", ErrorCode.LOAD_ERROR, view.message, data=data)
    return ServiceResult.from_outcome("popup", outcome, data)
