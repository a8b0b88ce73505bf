"""Service-layer functions for the core app.

Services in `core` coordinate Django concerns (settings, sessions, uploaded
files) with the pure analysis package. Views call these functions and never
touch DashboardState fields directly.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from django.conf import settings
from django.core.files.uploadedfile import UploadedFile
from django.http import HttpRequest

from analysis.errors import DatasetLoadError
from analysis.selector import ChartLayout, SelectorOptions
from analysis.state import DashboardState, load_dataset
from core.parsers.csv_dataset import decode_csv_bytes, parse_csv_dataset
from core.state_codec import decode_dashboard_state, encode_dashboard_state

logger = logging.getLogger(__name__)

STATE_SESSION_KEY: Final[str] = "data_explorer_state"
SAMPLE_DATASET_PATH: Final[Path] = Path(__file__).resolve().parent / "sample_data" / "sample.csv"
SAMPLE_DATASET_NAME: Final[str] = "sample.csv"


def selector_options() -> SelectorOptions:
    """Build SelectorOptions from Django settings."""

    return SelectorOptions(
        bin_count=settings.DATA_EXPLORER_HISTOGRAM_BINS,
        bin_rule=settings.DATA_EXPLORER_BIN_RULE,
        layout=ChartLayout(
            width=settings.DATA_EXPLORER_CHART_WIDTH,
            height=settings.DATA_EXPLORER_CHART_HEIGHT,
        ),
    )


def new_dashboard_state() -> DashboardState:
    """Return an empty state whose classifier uses the configured sample size."""

    state = DashboardState()
    state.classifications.sample_size = settings.DATA_EXPLORER_CLASSIFIER_SAMPLE_SIZE
    return state


def load_session_state(request: HttpRequest) -> DashboardState:
    """Return the session's DashboardState, seeding the sample dataset on first use.

    Args:
        request: Incoming request with a session.

    Returns:
        The decoded state, or a fresh state holding the bundled sample dataset
        when the session has none (or holds a payload that no longer decodes).
    """

    payload = request.session.get(STATE_SESSION_KEY)
    if isinstance(payload, dict):
        try:
            state = decode_dashboard_state(payload)
        except DatasetLoadError:
            logger.warning("Discarding undecodable dashboard state from session")
        else:
            state.classifications.sample_size = settings.DATA_EXPLORER_CLASSIFIER_SAMPLE_SIZE
            return state

    state = new_dashboard_state()
    load_sample_dataset(state)
    save_session_state(request, state)
    return state


def save_session_state(request: HttpRequest, state: DashboardState) -> None:
    """Store a DashboardState in the session."""

    request.session[STATE_SESSION_KEY] = encode_dashboard_state(state)


def load_sample_dataset(state: DashboardState) -> DashboardState:
    """Load the bundled sample CSV into `state`.

    Raises:
        DatasetLoadError: When the sample file is missing or unreadable.
    """

    try:
        text = SAMPLE_DATASET_PATH.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise DatasetLoadError(f"Could not read the sample dataset: {exc}.") from exc
    parsed = parse_csv_dataset(text, source_name=SAMPLE_DATASET_NAME)
    return load_dataset(state, parsed.dataset, source_name=parsed.source_name)


def load_uploaded_dataset(state: DashboardState, upload: UploadedFile) -> DashboardState:
    """Parse an uploaded CSV file and load it into `state`.

    The upload is parsed completely before `state` changes, so a failure leaves
    the previously loaded dataset in place.

    Raises:
        DatasetLoadError: When the file is too large or not a parseable CSV.
    """

    max_bytes = settings.DATA_EXPLORER_MAX_UPLOAD_BYTES
    if upload.size is not None and upload.size > max_bytes:
        raise DatasetLoadError(f"CSV file is larger than {max_bytes} bytes.")

    raw = b"".join(upload.chunks())
    parsed = parse_csv_dataset(decode_csv_bytes(raw), source_name=upload.name)
    return load_dataset(state, parsed.dataset, source_name=parsed.source_name)
