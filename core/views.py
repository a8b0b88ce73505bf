"""Views for the data-exploration dashboard."""

from __future__ import annotations

import logging
from typing import Any

from django.contrib import messages
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_GET, require_http_methods

from analysis.classification import classify_columns
from analysis.errors import DatasetLoadError, UnknownColumnError
from analysis.selector import select_chart
from analysis.state import (
    DashboardState,
    select_primary,
    select_secondary,
    toggle_axis_flip,
    toggle_orientation,
)
from core.forms import ChartQueryForm, ColumnSelectionForm, DashboardActionForm, DatasetUploadForm
from core.services import (
    load_sample_dataset,
    load_session_state,
    load_uploaded_dataset,
    save_session_state,
    selector_options,
)

logger = logging.getLogger(__name__)

_QUERY_KEYS = ("primary", "secondary", "orientation", "axis_flip")


@require_http_methods(["GET", "POST"])
def dashboard(request: HttpRequest) -> HttpResponse:
    """Render the dashboard, or apply one posted user action and redirect."""

    state = load_session_state(request)
    if request.method == "POST":
        _apply_action(request, state)
        return redirect("core:dashboard")

    cached = _classification_marker(state)
    result = select_chart(state, options=selector_options())
    columns = _column_rows(state)
    if _classification_marker(state) != cached:
        save_session_state(request, state)

    context: dict[str, Any] = {
        "source_name": state.source_name,
        "row_count": len(state.dataset),
        "columns": columns,
        "selection": state.selection,
        "chart": result,
        "chart_payload": result.to_payload(),
        "upload_form": DatasetUploadForm(),
        "primary_form": ColumnSelectionForm(
            initial={"column": state.selection.primary or ""},
            columns=state.dataset.columns,
            prefix="primary",
        ),
        "secondary_form": ColumnSelectionForm(
            initial={"column": state.selection.secondary or ""},
            columns=state.dataset.columns,
            prefix="secondary",
        ),
    }
    return render(request, "core/dashboard.html", context)


@require_GET
def chart_api(request: HttpRequest) -> JsonResponse:
    """Return the render payload for the current (or a queried) selection.

    Query parameters `primary`, `secondary`, `orientation` and `axis_flip`
    evaluate an ad-hoc selection against the loaded dataset without changing
    the session's selection. Parameters left out keep their session values.
    """

    state = load_session_state(request)
    cached = _classification_marker(state)
    selection = state.selection
    if any(key in request.GET for key in _QUERY_KEYS):
        form = ChartQueryForm(request.GET, columns=state.dataset.columns)
        if not form.is_valid():
            return JsonResponse({"errors": form.errors.get_json_data()}, status=400)
        selection = form.selection(base=state.selection)

    result = select_chart(state, selection=selection, options=selector_options())
    payload = {
        "dataset": {
            "sourceName": state.source_name,
            "version": state.dataset_version,
            "rowCount": len(state.dataset),
            "columns": _column_rows(state),
        },
        "chart": result.to_payload(),
    }
    if _classification_marker(state) != cached:
        save_session_state(request, state)
    return JsonResponse(payload)


def _apply_action(request: HttpRequest, state: DashboardState) -> None:
    """Validate and apply a single posted action, then store the state."""

    action_form = DashboardActionForm(request.POST)
    if not action_form.is_valid():
        messages.error(request, "Unknown dashboard action.")
        return
    action = action_form.cleaned_data["action"]

    if action in ("upload", "load_sample"):
        _apply_load(request, state, action=action)
        return

    if action == "toggle_orientation":
        toggle_orientation(state)
    elif action == "toggle_axis_flip":
        toggle_axis_flip(state)
    else:
        prefix = "primary" if action == "select_primary" else "secondary"
        form = ColumnSelectionForm(request.POST, columns=state.dataset.columns, prefix=prefix)
        if not form.is_valid():
            messages.error(request, "Select a column from the loaded dataset.")
            return
        apply = select_primary if action == "select_primary" else select_secondary
        try:
            apply(state, form.selected_column())
        except UnknownColumnError as exc:
            messages.error(request, str(exc))
            return
    save_session_state(request, state)


def _apply_load(request: HttpRequest, state: DashboardState, *, action: str) -> None:
    """Load a new dataset; on failure the session keeps the previous one."""

    try:
        if action == "load_sample":
            load_sample_dataset(state)
        else:
            upload_form = DatasetUploadForm(request.POST, request.FILES)
            if not upload_form.is_valid():
                for error in upload_form.errors.get("csv_file", ["Upload a CSV file."]):
                    messages.error(request, error)
                return
            load_uploaded_dataset(state, upload_form.cleaned_data["csv_file"])
    except DatasetLoadError as exc:
        logger.warning("Dataset load failed", extra={"action": action, "reason": str(exc)})
        messages.error(request, f"Could not load dataset: {exc}")
        return

    save_session_state(request, state)
    messages.success(request, f"Loaded {state.source_name} ({len(state.dataset)} rows).")


def _column_rows(state: DashboardState) -> list[dict[str, str]]:
    """Return column names with their classified kinds for display."""

    classified = {item.name: str(item.kind) for item in classify_columns(state.dataset, cache=state.classifications)}
    return [{"name": column, "kind": classified.get(column, "")} for column in state.dataset.columns]


def _classification_marker(state: DashboardState) -> tuple[str | None, dict[str, str]]:
    """Return a comparable snapshot of the classification cache."""

    cache = state.classifications
    return cache.fingerprint, {name: str(kind) for name, kind in cache.kinds.items()}
