"""Tests for OCR line normalization."""

import pytest

from ngid.extraction.normalizer import (
    CONFUSION_MAP,
    PREFIX_REWRITES,
    anchor_prefix,
    clean_line,
    extract_digits,
    is_candidate,
    normalize_line,
    normalize_lines,
    repair_characters,
    rewrite_prefix,
)


class TestCleanLine:
    """Tests for trimming and separator stripping."""

    def test_strips_separators_and_uppercases(self) -> None:
        assert clean_line("  ng-013 (45),67 ") == "NG0134567"

    def test_empty(self) -> None:
        assert clean_line("   ") == ""


class TestRewritePrefix:
    """Tests for the structural prefix rewrite table."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("NGOIS4567", "NG0134567"),
            ("NGO1S4567", "NG0134567"),
            ("NGOLS4567", "NG0134567"),
            ("NGOI4567", "NG0134567"),
            ("NGOL4567", "NG0134567"),
            ("NGO1X4567", "NG013X4567"),
            ("NEOS4567", "NG0134567"),
            ("NEO4567", "NG0134567"),
            ("WG0134567", "NG0134567"),
            ("W60134567", "NG0134567"),
            ("MG0134567", "NG0134567"),
            ("M60134567", "NG0134567"),
            ("N60134567", "NG0134567"),
        ],
    )
    def test_known_misreads(self, text: str, expected: str) -> None:
        assert rewrite_prefix(text) == expected

    def test_ngo1_followed_by_digit_is_kept(self) -> None:
        assert rewrite_prefix("NGO1234S6") == "NGO1234S6"

    def test_ngo1_at_end_is_kept(self) -> None:
        assert rewrite_prefix("NGO1") == "NGO1"

    def test_first_match_wins(self) -> None:
        # "NGOIS" must not fall through to the shorter "NGOI" rule.
        assert rewrite_prefix("NGOIS9") == "NG0139"

    def test_applied_at_most_once(self) -> None:
        # The "N6" left after the W6 -> NG rewrite is not rewritten again.
        assert rewrite_prefix("W6N6123") == "NGN6123"

    def test_clean_text_unchanged(self) -> None:
        assert rewrite_prefix("NG0123456") == "NG0123456"

    def test_table_is_ordered_data(self) -> None:
        leads = [lead for lead, _, _ in PREFIX_REWRITES]
        assert leads.index("NGOIS") < leads.index("NGOI")
        assert leads.index("NEOS") < leads.index("NEO")


class TestRepairCharacters:
    """Tests for confusable glyph repair."""

    def test_keeps_ascii_letters_and_digits(self) -> None:
        assert repair_characters("NGO1234S6") == "NGO1234S6"

    def test_maps_symbols(self) -> None:
        assert repair_characters("NG|23°5º") == "NG123050"

    def test_drops_unknown(self) -> None:
        assert repair_characters("NG.12#3É") == "NG123"

    def test_confusion_table_targets_are_digits(self) -> None:
        assert all(v.isdigit() and len(v) == 1 for v in CONFUSION_MAP.values())


class TestAnchorPrefix:
    """Tests for NG prefix anchoring."""

    def test_already_anchored(self) -> None:
        assert anchor_prefix("NG123") == "NG123"

    def test_drops_leading_noise(self) -> None:
        assert anchor_prefix("XYZNG123") == "NG123"

    def test_prefix_at_index_four(self) -> None:
        assert anchor_prefix("ABCDNG1") == "NG1"

    def test_prefix_too_far(self) -> None:
        assert anchor_prefix("ABCDENG1") is None

    def test_missing_prefix(self) -> None:
        assert anchor_prefix("0123456789") is None


class TestExtractDigits:
    """Tests for digit extraction after the prefix."""

    def test_maps_confusable_letters(self) -> None:
        assert extract_digits("O1234S6") == list("0123456")

    def test_skips_other_letters(self) -> None:
        assert extract_digits("1A2X3") == ["1", "2", "3"]


class TestNormalizeLine:
    """Tests for the full line normalizer."""

    def test_clean_candidate(self) -> None:
        assert normalize_line("NG0123456") == "NG0123456"

    def test_structural_repair(self) -> None:
        assert normalize_line("NGOIS4567890") == "NG0134567"

    def test_confusion_mapping(self) -> None:
        assert normalize_line("NG O1234S6") == "NG0123456"

    def test_under_length_rejected(self) -> None:
        assert normalize_line("NG12AB") is None

    def test_empty_rejected(self) -> None:
        assert normalize_line("") is None

    def test_no_prefix_rejected(self) -> None:
        assert normalize_line("0130001234") is None

    def test_takes_first_seven_digits(self) -> None:
        assert normalize_line("NG013000123499") == "NG0130001"

    def test_leading_noise(self) -> None:
        assert normalize_line("ID: NG 013-0001") == "NG0130001"

    def test_lowercase_input(self) -> None:
        assert normalize_line("ng0130001") == "NG0130001"

    def test_lowercase_b_reads_as_eight(self) -> None:
        # Upper-casing happens first, so "b" is looked up as "B".
        assert normalize_line("NG013000b") == "NG0130008"

    def test_misread_lead_with_separators(self) -> None:
        assert normalize_line("W6 013 0001") == "NG0130001"

    def test_rewrite_then_too_short_rejected(self) -> None:
        assert normalize_line("NEO12") is None

    def test_pipe_and_degree_signs(self) -> None:
        assert normalize_line("NG°|30002") == "NG0130002"

    @pytest.mark.parametrize(
        "line",
        ["NGOIS4567890", "NG O1234S6", "W6 013 0001", "xxNG9876543", "NG°|30002"],
    )
    def test_output_is_a_fixed_point(self, line: str) -> None:
        candidate = normalize_line(line)
        assert candidate is not None
        assert is_candidate(candidate)
        assert normalize_line(candidate) == candidate


class TestNormalizeLines:
    """Tests for normalizing a batch of lines."""

    def test_keeps_order_and_drops_rejects(self) -> None:
        lines = ["NG0130002", "garbage", "", "NG0130001", "NG0130002"]
        assert normalize_lines(lines) == ["NG0130002", "NG0130001", "NG0130002"]


class TestIsCandidate:
    """Tests for the identifier grammar check."""

    def test_valid(self) -> None:
        assert is_candidate("NG0123456")

    @pytest.mark.parametrize(
        "value", ["NG012345", "NG01234567", "ng0123456", "NG012345A", "NG0123456\n"]
    )
    def test_invalid(self, value: str) -> None:
        assert not is_candidate(value)
