"""Tests for column type classification and its cache."""

from __future__ import annotations

import pytest

from analysis.classification import ClassificationCache, ColumnKind, classify, classify_columns
from analysis.dataset import Dataset
from analysis.errors import InsufficientDataError, UnknownColumnError

pytestmark = pytest.mark.unit


def test_classify_letters_as_categorical(make_dataset) -> None:
    """A column without numeric samples is categorical."""

    dataset = make_dataset(col=["a", "a", "b"])
    assert classify(dataset, "col") is ColumnKind.categorical


def test_classify_numeric_strings_as_numeric(make_dataset) -> None:
    """A column of numeric strings is numeric."""

    dataset = make_dataset(v=[str(n) for n in range(1, 11)])
    assert classify(dataset, "v") is ColumnKind.numeric


def test_classify_uses_strict_sixty_percent_threshold(make_dataset) -> None:
    """Exactly 60% numeric samples is not enough; 70% is."""

    six_of_ten = make_dataset(v=["1", "2", "3", "4", "5", "6", "x", "y", "z", "w"])
    seven_of_ten = make_dataset(v=["1", "2", "3", "4", "5", "6", "7", "y", "z", "w"])

    assert classify(six_of_ten, "v") is ColumnKind.categorical
    assert classify(seven_of_ten, "v") is ColumnKind.numeric


def test_classify_samples_only_the_first_rows(make_dataset) -> None:
    """Rows beyond the sample size do not influence the result."""

    dataset = make_dataset(v=["a"] * 10 + ["1"] * 100)
    assert classify(dataset, "v") is ColumnKind.categorical


def test_classify_counts_nulls_in_the_sample(make_dataset) -> None:
    """Null cells dilute the numeric ratio."""

    dataset = make_dataset(v=["1", "2", "3", None, None, "", "", "4", "5", "6"])
    assert classify(dataset, "v") is ColumnKind.categorical


def test_classify_typed_numbers_short_circuit(make_dataset) -> None:
    """Values typed as numbers at load time are numeric."""

    dataset = make_dataset(v=[1, 2.5, 3])
    assert classify(dataset, "v") is ColumnKind.numeric


def test_classify_constant_column_is_numeric(make_dataset) -> None:
    """A constant numeric column is numeric under the ratio policy."""

    dataset = make_dataset(v=["5"] * 10)
    assert classify(dataset, "v") is ColumnKind.numeric


def test_classify_is_deterministic(make_dataset) -> None:
    """Repeated calls return the same kind."""

    dataset = make_dataset(v=["1", "a", "2", "b", "3", "4", "5", "6", "7", "8"])
    assert {classify(dataset, "v") for _ in range(5)} == {ColumnKind.numeric}


def test_classify_empty_dataset_raises() -> None:
    """Classification of an empty dataset fails with InsufficientDataError."""

    dataset = Dataset.from_rows([], columns=["v"])
    with pytest.raises(InsufficientDataError):
        classify(dataset, "v")


def test_classify_unknown_column_raises(make_dataset) -> None:
    """Classification of a missing column fails with UnknownColumnError."""

    with pytest.raises(UnknownColumnError):
        classify(make_dataset(v=["1"]), "missing")


def test_cache_memoizes_and_invalidates_on_new_dataset(make_dataset) -> None:
    """The cache keeps kinds per dataset identity and resets on a new dataset."""

    first = make_dataset(v=["1", "2"], c=["a", "b"])
    second = make_dataset(v=["x", "y"])
    cache = ClassificationCache()

    assert cache.classify(first, "v") is ColumnKind.numeric
    assert cache.classify(first, "c") is ColumnKind.categorical
    assert cache.kinds == {"v": ColumnKind.numeric, "c": ColumnKind.categorical}

    assert cache.classify(second, "v") is ColumnKind.categorical
    assert cache.kinds == {"v": ColumnKind.categorical}
    assert cache.fingerprint == second.fingerprint


def test_classify_columns_lists_every_column(make_dataset) -> None:
    """Classify all columns in header order; empty datasets yield nothing."""

    dataset = make_dataset(n=["1", "2"], c=["a", "b"])
    result = classify_columns(dataset)

    assert [(item.name, item.kind) for item in result] == [
        ("n", ColumnKind.numeric),
        ("c", ColumnKind.categorical),
    ]
    assert classify_columns(Dataset.from_rows([], columns=["n"])) == ()


def test_cache_reuses_the_stored_fingerprint(make_dataset, monkeypatch: pytest.MonkeyPatch) -> None:
    """Classifying every column never re-hashes an already built dataset."""

    dataset = make_dataset(a=["1", "2"], b=["x", "y"], c=["3", "z"])
    calls: list[object] = []

    def counting_fingerprint(*args: object) -> str:
        calls.append(args)
        return "unused"

    monkeypatch.setattr("analysis.dataset.content_fingerprint", counting_fingerprint)
    cache = ClassificationCache()
    classify_columns(dataset, cache=cache)
    classify_columns(dataset, cache=cache)

    assert calls == []
    assert cache.fingerprint == dataset.fingerprint
