"""Unit tests for formatting helpers."""

from datetime import timedelta

import pytest
from saferm.utils.formatting import format_duration, format_size, truncate_path


class TestFormatSize:
    """Tests for format_size."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (None, "0 B"),
            (0, "0 B"),
            (512, "512 B"),
            (1536, "1.5 KB"),
            (10 * 1024 * 1024, "10.0 MB"),
            (3 * 1024**4, "3.0 TB"),
        ],
    )
    def test_units(self, size: int | None, expected: str) -> None:
        assert format_size(size) == expected


class TestFormatDuration:
    """Tests for format_duration."""

    def test_days_and_hours(self) -> None:
        assert format_duration(timedelta(days=2, hours=3, minutes=59)) == "2d 3h"

    def test_hours_and_minutes(self) -> None:
        assert format_duration(timedelta(hours=5, minutes=7)) == "5h 7m"

    def test_minutes_only(self) -> None:
        assert format_duration(timedelta(minutes=42, seconds=30)) == "42m"

    def test_zero(self) -> None:
        assert format_duration(timedelta(0)) == "0m"

    def test_negative_uses_magnitude(self) -> None:
        assert format_duration(timedelta(hours=-2)) == "2h 0m"


class TestTruncatePath:
    """Tests for truncate_path."""

    def test_short_path_unchanged(self) -> None:
        assert truncate_path("/tmp/a", 20) == "/tmp/a"

    def test_long_path_elided(self) -> None:
        path = "/home/user/" + "x" * 100 + "/file.txt"
        result = truncate_path(path, 30)

        assert len(result) <= 30
        assert "..." in result
        assert result.startswith("/home/")
        assert result.endswith("file.txt")
