"""Tests for formatter module."""

import pytest

from formatter import format_date, format_value, parse_display_date
from tag_values import Binary, DateLike, Nested, Scalar, Sequence


class TestFormatScalar:
    """Tests for scalar formatting."""

    def test_string_unchanged(self) -> None:
        assert format_value(Scalar("Acme")) == "Acme"

    def test_integer(self) -> None:
        assert format_value(Scalar(100)) == "100"

    def test_float(self) -> None:
        assert format_value(Scalar(48.8566)) == "48.8566"

    def test_booleans_lowercase(self) -> None:
        assert format_value(Scalar(True)) == "true"
        assert format_value(Scalar(False)) == "false"


class TestFormatDate:
    """Tests for date/time formatting."""

    def test_datetime(self) -> None:
        assert format_value(DateLike("2021:06:01 14:03:22")) == "2021-06-01 14:03:22"

    def test_offset_is_kept(self) -> None:
        assert format_value(DateLike("2021:06:01 14:03:22+02:00")) == "2021-06-01 14:03:22+02:00"

    def test_utc_designator(self) -> None:
        assert format_value(DateLike("2021:06:01 14:03:22Z")) == "2021-06-01 14:03:22+00:00"

    def test_date_only(self) -> None:
        assert format_value(DateLike("2021:06:01")) == "2021-06-01"

    def test_time_only(self) -> None:
        assert format_value(DateLike("14:03:22")) == "14:03:22"

    def test_custom_format(self) -> None:
        assert format_value(DateLike("2021:06:01 14:03:22"), "%d/%m/%Y %H:%M") == "01/06/2021 14:03"

    def test_fraction_is_kept(self) -> None:
        raw = "2021:06:01 14:03:22.25+02:00"
        assert format_value(DateLike(raw)) == "2021-06-01 14:03:22.25+02:00"
        assert format_value(DateLike("14:03:22.5")) == "14:03:22.5"

    def test_fraction_dropped_without_seconds(self) -> None:
        assert format_value(DateLike("2021:06:01 14:03:22.25"), "%d/%m/%Y %H:%M") == "01/06/2021 14:03"

    @pytest.mark.parametrize(
        "raw",
        ["0000:00:00 00:00:00", "2021:13:01 10:00:00", "not a date", "", "2021:02:30 10:00:00"],
    )
    def test_unparseable_is_empty(self, raw: str) -> None:
        assert format_value(DateLike(raw)) == ""
        assert format_date(raw) == ""

    def test_never_returns_raw_text(self) -> None:
        raw = "0000:00:00 00:00:00"
        assert raw not in format_value(DateLike(raw))


class TestFormatOther:
    """Tests for binary, sequence and nested formatting."""

    def test_binary_is_empty(self) -> None:
        assert format_value(Binary("(Binary data 5120 bytes)")) == ""

    def test_sequence_joined(self) -> None:
        value = Sequence((Scalar("travel"), Scalar("paris"), Scalar(3)))
        assert format_value(value) == "travel, paris, 3"

    def test_nested_compact(self) -> None:
        value = Nested({"Name": Scalar("sRGB"), "Version": Scalar(4)})
        assert format_value(value) == '{"Name":"sRGB","Version":4}'

    def test_empty_sequence(self) -> None:
        assert format_value(Sequence(())) == ""


class TestParseDisplayDate:
    """Tests for converting displayed dates back to ExifTool input."""

    def test_default_layout(self) -> None:
        assert parse_display_date("2021-06-01 14:03:22") == "2021:06:01 14:03:22"

    def test_fraction_and_offset(self) -> None:
        assert parse_display_date("2021-06-01 14:03:22.25+02:00") == "2021:06:01 14:03:22.25+02:00"

    def test_day_first_format(self) -> None:
        assert parse_display_date("02/06/2021 14:03", "%d/%m/%Y %H:%M") == "2021:06:02 14:03:00"

    def test_date_only(self) -> None:
        assert parse_display_date("2021-06-01") == "2021:06:01"

    def test_time_only(self) -> None:
        assert parse_display_date("14:03:22Z") == "14:03:22Z"

    def test_unrecognized(self) -> None:
        assert parse_display_date("next tuesday") is None

    def test_inverts_format_date(self) -> None:
        raw = "2021:06:01 14:03:22+05:30"
        assert parse_display_date(format_date(raw, "%d/%m/%Y %H:%M:%S"), "%d/%m/%Y %H:%M:%S") == raw
