"""
chunking.py
Token-budgeted chunking utilities plus the length/budget knobs derived from
the summary type.

Functions:
- estimate_tokens(text) -> int
- split_text_into_chunks_by_tokens(text, target_tokens) -> List[str]
- calculate_word_targets(text, summary_type) -> WordTargets
- get_token_settings(summary_type) -> TokenSettings
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import List

import config

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK = re.compile(r"\n{2,}")
# Rough but practical sentence boundary
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")

PARAGRAPH_JOINER = "\n\n"
SENTENCE_JOINER = " "
MIN_HARD_SLICE_CHARS = 20


@dataclass(frozen=True)
class WordTargets:
    min_words_target: int
    max_words_target: int


@dataclass(frozen=True)
class TokenSettings:
    target_chunk_tokens: int
    max_tokens: int
    chunk_max_tokens: int


def estimate_tokens(text) -> int:
    """
    Approximate token count: ~4 characters per token for English, never
    below the number of whitespace-delimited words.
    Non-strings count as 0; the empty string counts as 1.
    """
    if not isinstance(text, str):
        return 0
    if not text:
        return 1
    by_chars = math.ceil(len(text) / 4)
    by_words = max(1, len(text.split()))
    return max(by_chars, by_words)


def split_text_into_chunks_by_tokens(text, target_tokens: int) -> List[str]:
    """
    Split text into chunks whose estimated size stays within target_tokens.

    Paragraphs are packed greedily; a paragraph that is too large on its own
    is split by sentences, and a sentence that is still too large is sliced
    into fixed-size character windows. Document order is preserved.
    Joining the chunks with a blank line reproduces the original text up to
    whitespace at the seams.
    """
    if not isinstance(text, str) or not text:
        return []

    if estimate_tokens(text) <= target_tokens:
        return [text]

    chunks: List[str] = []
    current = ""

    for paragraph in _PARAGRAPH_BREAK.split(text):
        if not paragraph.strip():
            continue

        candidate = current + PARAGRAPH_JOINER + paragraph if current else paragraph
        if estimate_tokens(candidate) <= target_tokens:
            current = candidate
            continue

        if current:
            chunks.append(current)
            current = ""

        if estimate_tokens(paragraph) > target_tokens:
            chunks.extend(_split_large_paragraph(paragraph, target_tokens))
        else:
            current = paragraph

    if current:
        chunks.append(current)

    logger.debug(
        "Split text into chunks",
        extra={"chunk_count": len(chunks), "target_tokens": target_tokens},
    )
    return chunks


def _split_large_paragraph(paragraph: str, target_tokens: int) -> List[str]:
    """Sentence-level packing for a paragraph that exceeds the budget."""
    pieces: List[str] = []
    current = ""

    for sentence in _SENTENCE_BREAK.split(paragraph):
        if not sentence.strip():
            continue

        if estimate_tokens(sentence) > target_tokens:
            if current:
                pieces.append(current)
                current = ""
            pieces.extend(_hard_split(sentence, target_tokens))
            continue

        candidate = current + SENTENCE_JOINER + sentence if current else sentence
        if estimate_tokens(candidate) <= target_tokens:
            current = candidate
        else:
            pieces.append(current)
            current = sentence

    if current:
        pieces.append(current)
    return pieces


def _hard_split(text: str, target_tokens: int) -> List[str]:
    """Last resort: fixed-size character windows, ignoring word boundaries."""
    slice_size = max(MIN_HARD_SLICE_CHARS, int(target_tokens * 4))
    return [text[i : i + slice_size] for i in range(0, len(text), slice_size)]


def calculate_word_targets(text, summary_type: str) -> WordTargets:
    """
    Min/max output length (in words) to request from the model, scaled from
    the input length. Used only as prompt guidance.
    """
    length = len(text) if isinstance(text, str) else 0
    approx_words = max(1, length // 5)

    if summary_type == "short":
        min_words = min(600, int(approx_words * 0.08))
        max_words = max(min_words + 150, int(approx_words * 0.15))
    elif summary_type == "normal":
        min_words = min(3000, int(approx_words * 0.25))
        max_words = max(min_words + 400, int(approx_words * 0.45))
    else:
        # 'longer': minimal compression
        min_words = min(12000, int(approx_words * 0.55))
        max_words = min(18000, max(min_words + 1000, int(approx_words * 0.9)))

    return WordTargets(min_words_target=min_words, max_words_target=max_words)


def get_token_settings(summary_type: str) -> TokenSettings:
    """Chunk threshold and output caps for a summary type (unknown -> normal)."""
    profile = config.TOKEN_PROFILES.get(summary_type, config.TOKEN_PROFILES["normal"])
    return TokenSettings(**profile)
