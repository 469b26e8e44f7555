from __future__ import annotations

from providers.keywords import find_matching_keywords, is_recent, recency_cutoff


def test_whole_word_case_insensitive_match() -> None:
    keywords = ["AI", "LLM", "machine learning", "GPT"]

    assert find_matching_keywords("New ai model beats LLM baselines", keywords) == ["AI", "LLM"]
    assert find_matching_keywords("Machine Learning at scale", keywords) == ["machine learning"]


def test_substrings_do_not_match() -> None:
    keywords = ["AI", "GPT"]

    assert find_matching_keywords("Said the mountain trail guide", keywords) == []
    assert find_matching_keywords("ChatGPTs everywhere", keywords) == []


def test_punctuation_bounded_keywords() -> None:
    assert find_matching_keywords("Why C++ still matters", ["C++"]) == ["C++"]
    assert find_matching_keywords("(AI) news", ["AI"]) == ["AI"]


def test_duplicate_and_blank_keywords_are_ignored() -> None:
    assert find_matching_keywords("AI AI", ["AI", "AI", "", "  "]) == ["AI"]
    assert find_matching_keywords("", ["AI"]) == []


def test_recency_window_is_inclusive() -> None:
    cutoff = recency_cutoff(now=1_000_000)

    assert cutoff == 1_000_000 - 86_400
    assert is_recent(cutoff, cutoff) is True
    assert is_recent(cutoff - 1, cutoff) is False
    assert is_recent(None, cutoff) is False
    assert is_recent("not-a-time", cutoff) is False
