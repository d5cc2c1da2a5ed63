from datetime import datetime

from feedesk.shared.utils.dates import months_ago
from feedesk.shared.utils.money import amount_in_words, format_rupees


class TestFormatRupees:
    """Tests for Indian digit grouping."""

    def test_small_amounts(self):
        assert format_rupees(0) == "Rs. 0"
        assert format_rupees(250) == "Rs. 250"

    def test_thousands(self):
        assert format_rupees(5000) == "Rs. 5,000"
        assert format_rupees(25000) == "Rs. 25,000"

    def test_lakhs_and_crores(self):
        assert format_rupees(150000) == "Rs. 1,50,000"
        assert format_rupees(1234567) == "Rs. 12,34,567"
        assert format_rupees(123456789) == "Rs. 12,34,56,789"

    def test_negative(self):
        assert format_rupees(-2500) == "-Rs. 2,500"


class TestAmountInWords:
    """Tests for receipt amounts in words."""

    def test_round_amount(self):
        assert amount_in_words(5000) == "Five Thousand Rupees Only"

    def test_ends_with_rupees_only(self):
        words = amount_in_words(2550)
        assert words.startswith("Two Thousand")
        assert words.endswith("Rupees Only")

    def test_lakh(self):
        assert "Lakh" in amount_in_words(100000)


class TestMonthsAgo:
    """Tests for the calendar helper behind the monthly report."""

    def test_plain(self):
        assert months_ago(datetime(2026, 10, 19), 6) == datetime(2026, 4, 19)

    def test_crosses_year(self):
        assert months_ago(datetime(2026, 2, 10), 6) == datetime(2025, 8, 10)

    def test_clamps_to_month_end(self):
        assert months_ago(datetime(2026, 8, 31), 6) == datetime(2026, 2, 28)
