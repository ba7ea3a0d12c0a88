import logging

import pandas as pd
import pytest

from tabular_matcher.config import models
from tabular_matcher.config.models import ComparisonMode, DedupConfig, SimilarityAlgorithm
from tabular_matcher.core import deduplicator
from tabular_matcher.core.deduplicator import RecordDeduplicator, deduplicate
from tabular_matcher.core.errors import InvalidInputError, ProcessingError


def test_exact_sample_scenario(sample_records) -> None:
    result = deduplicate(sample_records, ["Name", "Email"], mode="exact")

    assert result.unique_rows == [sample_records[0], sample_records[1], sample_records[3]]
    assert result.original_count == 5
    assert result.unique_count == 3
    assert result.removed_count == 2
    assert [dup.original_index for dup in result.duplicates] == [0, 1]


def test_default_mode_is_fuzzy_jaro_winkler() -> None:
    config = DedupConfig(columns=["Name"])

    assert config.mode is ComparisonMode.FUZZY
    assert config.algorithm is SimilarityAlgorithm.JARO_WINKLER
    assert config.threshold == 0.8


def test_fuzzy_sample_scenario(sample_records) -> None:
    result = deduplicate(
        sample_records, ["Name"], mode="fuzzy", algorithm="jaro-winkler", threshold=0.95
    )

    assert result.unique_count == 3
    assert [(dup.original_index, dup.duplicate_index) for dup in result.duplicates] == [(0, 2), (1, 4)]


def test_slice_is_applied_before_processing(sample_records) -> None:
    result = deduplicate(sample_records, ["Name", "Email"], mode="exact", slice_start=1, slice_end=5)

    assert result.original_count == 4
    assert result.unique_count == 3
    # Indexes are relative to the slice
    assert [(dup.original_index, dup.duplicate_index) for dup in result.duplicates] == [(0, 3)]


def test_slice_end_past_input_is_clamped(sample_records) -> None:
    result = deduplicate(sample_records, ["Name"], mode="exact", slice_start=3, slice_end=50)

    assert result.original_count == 2


def test_empty_slice_is_rejected(sample_records) -> None:
    with pytest.raises(InvalidInputError):
        deduplicate(sample_records, ["Name"], slice_start=10)


@pytest.mark.parametrize("data", [[], None, "rows"])
def test_invalid_records_are_rejected(data) -> None:
    with pytest.raises(InvalidInputError):
        deduplicate(data, ["Name"])


def test_empty_columns_are_rejected(sample_records) -> None:
    with pytest.raises(InvalidInputError):
        deduplicate(sample_records, [])


def test_reference_annotation_creates_new_rows(sample_records) -> None:
    snapshot = [dict(row) for row in sample_records]

    result = deduplicate(sample_records, ["Name", "Email"], mode="exact", reference_field="isni")

    assert sample_records == snapshot
    first = result.unique_rows[0]
    assert first is not sample_records[0]
    assert first["Name"] == "John Doe"
    assert first["isni"].startswith("https://isni.oclc.org/sru/?query=pica.nw")
    assert "John%20Doe%20john%40e.com" in first["isni"]


def test_dataframe_input(sample_records) -> None:
    df = pd.DataFrame(sample_records)

    result = deduplicate(df, ["Name", "Email"], mode="exact")

    assert result.unique_count == 3
    assert list(result.to_frame()["Name"]) == ["John Doe", "Jane", "Bob"]


def test_warns_when_selected_column_is_absent(sample_records, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        deduplicate(sample_records, ["Name", "Phone"], mode="exact")

    assert any("Phone" in record.getMessage() for record in caplog.records)


def test_warns_when_input_exceeds_performance_limit(sample_records, caplog, monkeypatch) -> None:
    monkeypatch.setitem(models.PERFORMANCE_LIMITS, SimilarityAlgorithm.LEVENSHTEIN, 3)

    with caplog.at_level(logging.WARNING):
        deduplicate(sample_records, ["Name"], algorithm="levenshtein")

    assert any("may be slow" in record.getMessage() for record in caplog.records)


def test_unexpected_failure_is_wrapped(sample_records, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(deduplicator, "reduce_fuzzy", broken)

    with pytest.raises(ProcessingError) as excinfo:
        RecordDeduplicator(DedupConfig(columns=["Name"])).deduplicate(sample_records)

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert excinfo.value.to_dict()["kind"] == "processing_failure"


def test_filter_rows_removes_selected_duplicates(sample_records) -> None:
    result = deduplicate(sample_records, ["Name", "Email"], mode="exact")

    assert result.filter_rows(sample_records) == result.unique_rows
    kept = result.filter_rows(sample_records, selected=[1])
    assert kept == sample_records[:4]


def test_to_dict_output_contract(sample_records) -> None:
    exact = deduplicate(sample_records, ["Name"], mode="exact").to_dict()
    fuzzy = deduplicate(sample_records, ["Name"], threshold=0.95).to_dict()

    assert set(exact) == {"uniqueRows", "originalCount", "uniqueCount", "removedCount", "duplicatesFound"}
    assert exact["removedCount"] == exact["originalCount"] - exact["uniqueCount"]
    assert "score" not in exact["duplicatesFound"][0]
    assert fuzzy["duplicatesFound"][0] == {
        "original": "john doe",
        "duplicate": "john doe",
        "originalIndex": 0,
        "duplicateIndex": 2,
        "score": 1.0,
    }


def test_duplicates_frame(sample_records) -> None:
    frame = deduplicate(sample_records, ["Name"], mode="exact").duplicates_frame()

    assert list(frame["duplicate_index"]) == [2, 4]
    assert frame["score"].isna().all()
