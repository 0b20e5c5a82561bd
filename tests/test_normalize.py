from pmstandards.normalize import (
    build_deep_link,
    clean_cell,
    index_tokens,
    slugify,
    topic_key,
    topic_match_key,
)


def test_slugify_lowercases_hyphenates_and_strips():
    assert slugify("  Risk & Uncertainty  Management ") == "risk--uncertainty-management"
    assert slugify("ISO 21500") == "iso-21500"


def test_deep_link_is_deterministic():
    a = build_deep_link("PMBOK 7", "Risk Management", "120")
    b = build_deep_link("PMBOK 7", "Risk Management", "120")
    assert a == b == "#pmbok-7-risk-management-page-120"


def test_deep_link_changes_with_page():
    assert build_deep_link("PRINCE2", "Quality", "12") != build_deep_link("PRINCE2", "Quality", "13")


def test_deep_link_with_blank_page():
    assert build_deep_link("PRINCE2", "Quality", "") == "#prince2-quality-page-"


def test_clean_cell_handles_missing_values():
    assert clean_cell(None) == ""
    assert clean_cell(float("nan")) == ""
    assert clean_cell("  x ") == "x"
    assert clean_cell(42) == "42"


def test_index_tokens_drops_short_words_and_keeps_punctuation():
    assert index_tokens("An Risk, of the RISK-based plan") == ["risk,", "the", "risk-based", "plan"]


def test_topic_keys():
    assert topic_key("10. Risk & Uncertainty Management") == "10 risk uncertainty management"
    assert topic_match_key("  Risk Management ") == "risk management"
