import math

import numpy as np
import pandas as pd
import pytest

from tabular_matcher.core.errors import InvalidInputError
from tabular_matcher.core.preprocessor import (
    NULL_TOKEN,
    SignatureBuilder,
    absent_columns,
    build_signature,
    normalize_value,
    to_records,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("  John Doe ", "john doe"),
        ("MIXED case", "mixed case"),
        (42, "42"),
        (3.0, "3"),
        (2.5, "2.5"),
        (True, "true"),
        (np.int64(7), "7"),
        ("", ""),
    ],
)
def test_normalize_value_canonical_form(value, expected) -> None:
    assert normalize_value(value) == expected


@pytest.mark.parametrize("value", [None, math.nan, pd.NA, pd.NaT])
def test_absent_values_normalize_to_null_token(value) -> None:
    assert normalize_value(value) == ""
    assert normalize_value(value, NULL_TOKEN) == "NULL"


@pytest.mark.parametrize(
    "value", [None, "  Mixed Case  ", "", 10, 10.0, -1.25, False, "NULL", "Ünïcode ÉÉ"]
)
def test_normalize_value_is_idempotent(value) -> None:
    once = normalize_value(value)
    assert normalize_value(once) == once


def test_signature_joins_columns_in_selection_order() -> None:
    record = {"a": " X ", "b": "Y", "c": None}

    assert build_signature(record, ["a", "b", "c"]) == "x|y|NULL"
    assert build_signature(record, ["c", "b", "a"]) == "NULL|y|x"
    assert build_signature(record, ["a", "b"], separator=" ") == "x y"


def test_signature_treats_missing_key_as_null() -> None:
    builder = SignatureBuilder(["a", "missing"])

    assert builder.tokens({"a": "v"}) == ("v", "NULL")


def test_literal_null_string_differs_from_absent_value() -> None:
    builder = SignatureBuilder(["a"])

    assert builder.tokens({"a": "NULL"}) != builder.tokens({"a": None})


def test_to_records_accepts_dataframe() -> None:
    df = pd.DataFrame([{"a": 1, "b": "x"}, {"a": 2, "b": None}])

    records = to_records(df)

    assert len(records) == 2
    assert records[0]["b"] == "x"


@pytest.mark.parametrize("data", [[], None, "abc", {"a": 1}, [1, 2], pd.DataFrame()])
def test_to_records_rejects_invalid_input(data) -> None:
    with pytest.raises(InvalidInputError):
        to_records(data)


def test_absent_columns_lists_columns_missing_everywhere() -> None:
    records = [{"a": 1}, {"a": 2, "b": None}]

    assert absent_columns(records, ["a", "b", "c"]) == ["c"]
