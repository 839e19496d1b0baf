"""Unit tests for token estimation, chunking and length/budget planning."""
import pytest

from chunking import (
    TokenSettings,
    calculate_word_targets,
    estimate_tokens,
    get_token_settings,
    split_text_into_chunks_by_tokens,
)


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _synthetic_document(paragraphs: int = 6, sentences: int = 8) -> str:
    para = " ".join(f"Sentence {i + 1} is here with detail." for i in range(sentences))
    return "\n\n".join(para for _ in range(paragraphs))


def test_estimate_tokens_non_string_is_zero():
    assert estimate_tokens(None) == 0
    assert estimate_tokens(42) == 0
    assert estimate_tokens(["a", "b"]) == 0


def test_estimate_tokens_empty_string_is_one():
    assert estimate_tokens("") == 1


def test_estimate_tokens_char_and_word_floor():
    assert estimate_tokens("Hello world") >= 2
    assert estimate_tokens("a" * 100) == 25
    # many one-letter words: word count beats chars/4
    assert estimate_tokens("a b c d e f g h") == 8


def test_estimate_tokens_grows_with_length():
    sentence = "The quick brown fox jumps over the lazy dog. "
    previous = 0
    for n in range(1, 20):
        tokens = estimate_tokens(sentence * n)
        assert tokens >= previous
        previous = tokens


@pytest.mark.parametrize("text", ["", None, 17])
def test_split_empty_or_non_string_returns_nothing(text):
    assert split_text_into_chunks_by_tokens(text, 100) == []


def test_split_returns_original_when_under_budget():
    text = "Para one. With some words.\n\nPara two. With more words here."
    chunks = split_text_into_chunks_by_tokens(text, 1000)
    assert chunks == [text]
    assert chunks[0] is text


def test_split_respects_budget_and_preserves_content():
    text = _synthetic_document()
    target = 40

    chunks = split_text_into_chunks_by_tokens(text, target)

    assert len(chunks) > 1
    for chunk in chunks:
        assert estimate_tokens(chunk) <= target
    assert _collapse("\n\n".join(chunks)) == _collapse(text)


def test_split_packs_whole_paragraphs_together():
    paragraphs = [f"Paragraph {i} has a handful of words." for i in range(10)]
    text = "\n\n".join(paragraphs)

    chunks = split_text_into_chunks_by_tokens(text, 30)

    assert len(chunks) > 1
    for chunk in chunks:
        assert estimate_tokens(chunk) <= 30
        # paragraphs are never cut in half at this budget
        for piece in chunk.split("\n\n"):
            assert piece in paragraphs
    assert "\n\n".join(chunks) == text


def test_split_keeps_document_order():
    text = "\n\n".join(f"Marker{i:03d} " + "filler words " * 20 for i in range(12))

    chunks = split_text_into_chunks_by_tokens(text, 80)

    markers = [word for chunk in chunks for word in chunk.split() if word.startswith("Marker")]
    assert markers == [f"Marker{i:03d}" for i in range(12)]


def test_long_run_on_sentence_is_hard_split():
    long_sentence = "A" + "a" * 10000 + "."
    text = long_sentence + "\n\n" + long_sentence
    target = 100

    chunks = split_text_into_chunks_by_tokens(text, target)

    assert len(chunks) > 2
    for chunk in chunks:
        assert estimate_tokens(chunk) <= target
        assert len(chunk) <= target * 4
    stripped = "".join("\n\n".join(chunks).split())
    assert stripped == "".join(text.split())


def test_oversized_sentence_flushes_pending_sentences_first():
    short = "Short opener sentence here."
    text = short + " " + ("x" * 900) + ". Closing words after it."

    chunks = split_text_into_chunks_by_tokens(text, 50)

    assert chunks[0] == short
    assert chunks[-1] == "Closing words after it."
    assert "".join("".join(chunks).split()) == "".join(text.split())


def test_split_skips_blank_paragraph_runs():
    text = "\n\n\n" + _synthetic_document(paragraphs=3) + "\n\n\n\n"
    chunks = split_text_into_chunks_by_tokens(text, 40)
    assert all(chunk.strip() for chunk in chunks)
    assert _collapse("\n\n".join(chunks)) == _collapse(text)


@pytest.mark.parametrize("summary_type", ["short", "normal", "longer"])
@pytest.mark.parametrize("length", [0, 1, 4, 5, 99, 1000, 25_000, 400_000, 2_000_000])
def test_word_targets_max_never_below_min(summary_type, length):
    targets = calculate_word_targets("x" * length, summary_type)
    assert targets.min_words_target >= 0
    assert targets.max_words_target >= targets.min_words_target


def test_word_targets_values():
    text = "x" * 50_000  # ~10,000 words

    short = calculate_word_targets(text, "short")
    assert (short.min_words_target, short.max_words_target) == (600, 1500)

    normal = calculate_word_targets(text, "normal")
    assert (normal.min_words_target, normal.max_words_target) == (2500, 4500)

    longer = calculate_word_targets(text, "longer")
    assert (longer.min_words_target, longer.max_words_target) == (5500, 9000)


def test_word_targets_caps_for_huge_inputs():
    longer = calculate_word_targets("x" * 5_000_000, "longer")
    assert longer.min_words_target == 12000
    assert longer.max_words_target == 18000


def test_word_targets_tolerates_missing_text():
    targets = calculate_word_targets(None, "short")
    assert targets.min_words_target == 0
    assert targets.max_words_target == 150


def test_token_settings_profiles():
    assert get_token_settings("short") == TokenSettings(900, 1000, 500)
    assert get_token_settings("normal") == TokenSettings(2200, 3000, 1500)
    assert get_token_settings("longer") == TokenSettings(3500, 9000, 5000)
    assert get_token_settings("unknown") == get_token_settings("normal")
