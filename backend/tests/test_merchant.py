"""Tests for merchant key normalization and matching."""

from cadence.services.merchant import (
    INCOME_KEY_WORDS,
    extract_keywords,
    is_dismissed,
    keys_match_loose,
    keys_match_strict,
    normalize_merchant,
)


class TestNormalizeMerchant:
    """Test merchant key canonicalization."""

    def test_strips_punctuation_and_truncates(self):
        assert normalize_merchant("NETFLIX.COM 866-579-7172 CA") == "netflixcom 8665797172 ca"

    def test_three_words_by_default(self):
        assert normalize_merchant("Spotify USA Premium Family Plan") == "spotify usa premium"

    def test_collapses_whitespace(self):
        assert normalize_merchant("  City   Water\tDept  ") == "city water dept"

    def test_income_key_keeps_six_words(self):
        key = normalize_merchant("ACME CORP PAYROLL DEP PPD ID 12345", INCOME_KEY_WORDS)
        assert key == "acme corp payroll dep ppd id"

    def test_empty_descriptor(self):
        assert normalize_merchant("") == ""
        assert normalize_merchant(None) == ""

    def test_punctuation_only_descriptor(self):
        assert normalize_merchant("!!! --- ***") == ""


class TestKeyMatching:
    """Test loose and strict key comparison."""

    def test_loose_containment(self):
        assert keys_match_loose("netflixcom", "netflixcom 8665797172 ca")
        assert keys_match_loose("netflixcom 8665797172 ca", "netflix")

    def test_loose_rejects_empty(self):
        assert not keys_match_loose("", "netflix")
        assert not keys_match_loose("netflix", "")

    def test_strict_first_two_tokens(self):
        assert keys_match_strict("acme corp payroll dep ppd id", "acme corp payroll")

    def test_strict_rejects_single_token_containment(self):
        """Containment alone is not enough in strict mode."""
        assert not keys_match_strict("netflixcom", "netflix")
        assert not keys_match_strict("acme", "acme corp")

    def test_strict_equal(self):
        assert keys_match_strict("netflixcom", "netflixcom")


class TestIsDismissed:
    """Test lenient dismissal matching."""

    def test_exact(self):
        assert is_dismissed("netflixcom", ["netflixcom"])

    def test_substring_either_direction(self):
        assert is_dismissed("netflixcom", ["netflixcom 8665797172 ca"])
        assert is_dismissed("netflixcom 8665797172 ca", ["netflixcom"])

    def test_first_two_tokens(self):
        assert is_dismissed("city water utility", ["city water dept"])

    def test_second_token_differs(self):
        assert not is_dismissed("spotify premium", ["spotify usa"])

    def test_case_insensitive(self):
        assert is_dismissed("Netflixcom", ["NETFLIXCOM"])

    def test_empty_inputs(self):
        assert not is_dismissed("", ["netflixcom"])
        assert not is_dismissed("netflixcom", [])
        assert not is_dismissed("netflixcom", ["", None])


def test_extract_keywords():
    assert extract_keywords("AT&T Wireless Bill Pay Online Now") == ["att", "wireless", "bill", "pay", "online"]


def test_extract_keywords_drops_short_tokens():
    assert extract_keywords("HBO Go TV") == ["hbo"]
