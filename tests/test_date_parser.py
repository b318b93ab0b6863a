"""Tests for date extraction."""

from datetime import date

from expense_ocr.parsers.date_parser import extract_date, find_date, match_date


class TestDateParser:
    """Test suite for the date pass."""

    def setup_method(self):
        """Set up a fixed reference date."""
        self.today = date(2026, 10, 16)

    def test_dash_date(self):
        assert extract_date(["2024-03-15"], self.today) == "2024-03-15"

    def test_dot_date_is_zero_padded(self):
        """Single-digit month and day are padded."""
        assert extract_date(["2024.3.5 12:01"], self.today) == "2024-03-05"

    def test_two_digit_year_uses_current_century(self):
        assert extract_date(["24-03-15"], self.today) == "2024-03-15"
        assert extract_date(["99.12.31"], date(2101, 1, 1)) == "2199-12-31"

    def test_korean_long_form(self):
        """YYYY년 MM월 DD일."""
        assert extract_date(["2023년 7월 9일"], self.today) == "2023-07-09"

    def test_first_matching_line_wins(self):
        """A later date never replaces the first one found."""
        lines = ["Shop", "2024-03-15", "24.03.16"]
        assert extract_date(lines, self.today) == "2024-03-15"

    def test_defaults_to_today(self):
        assert extract_date(["no date here"], self.today) == "2026-10-16"
        assert extract_date([], self.today) == "2026-10-16"

    def test_default_uses_system_clock(self):
        assert extract_date([]) == date.today().isoformat()

    def test_match_date_none(self):
        assert match_date("아메리카노 4,500", self.today) is None

    def test_find_date_reports_absence(self):
        """find_date distinguishes a found date from the default."""
        assert find_date(["GoodMart", "합계 1,000"], self.today) is None
        assert find_date(["GoodMart", "2024.01.05"], self.today) == "2024-01-05"
