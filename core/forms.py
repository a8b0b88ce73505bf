"""Forms for the dashboard's user actions.

Each user action posted to the dashboard is validated by one of these forms
before the matching `analysis.state` action function runs.
"""

from __future__ import annotations

from collections.abc import Sequence

from django import forms
from django.conf import settings

from analysis.state import Selection

ACTION_CHOICES = (
    ("upload", "Upload CSV"),
    ("load_sample", "Load sample dataset"),
    ("select_primary", "Select variable"),
    ("select_secondary", "Select second variable"),
    ("toggle_orientation", "Toggle orientation"),
    ("toggle_axis_flip", "Toggle axis assignment"),
)

ORIENTATION_CHOICES = (("vertical", "Vertical"), ("horizontal", "Horizontal"))


def _column_choices(columns: Sequence[str]) -> list[tuple[str, str]]:
    """Return select choices for dataset columns, with an empty option first."""

    return [("", "(none)"), *[(column, column) for column in columns]]


class DashboardActionForm(forms.Form):
    """Validate the `action` discriminator posted by every dashboard control."""

    action = forms.ChoiceField(choices=ACTION_CHOICES)


class DatasetUploadForm(forms.Form):
    """Validate a user-uploaded CSV file."""

    csv_file = forms.FileField(
        label="CSV file",
        help_text="A comma-separated file whose first row names the columns.",
    )

    def clean_csv_file(self):
        """Reject files that are not `.csv` or exceed the configured size limit."""

        upload = self.cleaned_data["csv_file"]
        name = (upload.name or "").casefold()
        if not name.endswith(".csv"):
            raise forms.ValidationError("Upload a file with a .csv extension.")
        max_bytes = settings.DATA_EXPLORER_MAX_UPLOAD_BYTES
        if upload.size is not None and upload.size > max_bytes:
            raise forms.ValidationError(f"CSV files are limited to {max_bytes} bytes.")
        return upload


class ColumnSelectionForm(forms.Form):
    """Validate a single column pick against the loaded dataset."""

    column = forms.ChoiceField(required=False, choices=(), label="Variable")

    def __init__(self, *args, **kwargs) -> None:
        """Initialize column choices from the `columns` keyword argument."""

        columns = kwargs.pop("columns", ())
        super().__init__(*args, **kwargs)
        self.fields["column"].choices = _column_choices(columns)

    def selected_column(self) -> str | None:
        """Return the chosen column, or None when the empty option was picked."""

        if not self.is_valid():
            raise ValueError("ColumnSelectionForm must be valid before reading the column.")
        return self.cleaned_data.get("column") or None


class ChartQueryForm(forms.Form):
    """Validate an ad-hoc selection evaluated by the chart API."""

    primary = forms.ChoiceField(required=False, choices=(), label="Variable")
    secondary = forms.ChoiceField(required=False, choices=(), label="Second variable")
    orientation = forms.ChoiceField(required=False, choices=ORIENTATION_CHOICES, label="Orientation")
    axis_flip = forms.BooleanField(required=False, label="Put the second variable on the x axis")

    def __init__(self, *args, **kwargs) -> None:
        """Initialize column choices from the `columns` keyword argument."""

        columns = kwargs.pop("columns", ())
        super().__init__(*args, **kwargs)
        self.fields["primary"].choices = _column_choices(columns)
        self.fields["secondary"].choices = _column_choices(columns)

    def selection(self, base: Selection | None = None) -> Selection:
        """Return the typed Selection described by the query.

        Args:
            base: Selection supplying values for parameters absent from the
                query. Defaults to an empty Selection.

        Raises:
            ValueError: If the form is invalid.
        """

        if not self.is_valid():
            raise ValueError("ChartQueryForm must be valid before building a selection.")
        base = base if base is not None else Selection()
        data = self.cleaned_data
        return Selection(
            primary=(data.get("primary") or None) if "primary" in self.data else base.primary,
            secondary=(data.get("secondary") or None) if "secondary" in self.data else base.secondary,
            axis_flip=bool(data.get("axis_flip")) if "axis_flip" in self.data else base.axis_flip,
            orientation=(
                ("horizontal" if data.get("orientation") == "horizontal" else "vertical")
                if "orientation" in self.data
                else base.orientation
            ),
        )
