"""Unit tests for prompt assembly."""
import pytest

from prompts import (
    MCQ_CHUNK_HEADER,
    PromptPair,
    add_image_guidance,
    build_chunk_prompt,
    build_combine_prompt,
    build_qa_prompts,
    build_summary_prompts,
    get_style_instructions,
    get_tone_instructions,
)


def test_tone_instructions():
    assert "friendly" in get_tone_instructions("casual")["style"]
    assert "professional" in get_tone_instructions("formal")["style"]
    assert "simple" in get_tone_instructions("eli5")["style"]
    assert get_tone_instructions("no-such-tone") == get_tone_instructions("casual")


def test_style_instructions_expand_for_longer():
    normal = get_style_instructions("normal")
    longer = get_style_instructions("longer")
    assert set(normal) == {"teaching", "notes", "mcqs"}
    assert normal["notes"]["instructions"] != longer["notes"]["instructions"]
    assert "textbook chapter" in longer["teaching"]["instructions"]
    assert normal["mcqs"]["format"] == "multiple-choice questions"


def test_mcq_prompt_states_exact_count():
    prompts = build_summary_prompts(
        summary_type="normal", summary_style="mcqs", response_tone="formal",
        text="Photosynthesis converts light into chemical energy.", mcq_count=10,
    )
    assert "10" in prompts.user_prompt
    assert "multiple-choice" in prompts.user_prompt.lower()
    assert "no more, no fewer" in prompts.user_prompt
    assert '"correctLabel"' in prompts.user_prompt
    assert prompts.user_prompt.endswith("Photosynthesis converts light into chemical energy.")


@pytest.mark.parametrize("summary_type", ["short", "normal", "longer"])
@pytest.mark.parametrize("summary_style", ["teaching", "notes", "mcqs"])
def test_every_variant_carries_tone_and_content(summary_type, summary_style):
    prompts = build_summary_prompts(
        summary_type=summary_type, summary_style=summary_style, response_tone="eli5",
        text="DOCUMENT-BODY", mcq_count=7, min_words_target=1200, max_words_target=2400,
    )
    assert isinstance(prompts, PromptPair)
    assert "Content:\nDOCUMENT-BODY" in prompts.user_prompt
    tone = get_tone_instructions("eli5")
    assert tone["style"] in prompts.system_prompt + prompts.user_prompt or \
        tone["instructions"] in prompts.system_prompt


def test_length_targets_appear_in_detailed_prompts():
    prompts = build_summary_prompts(
        summary_type="longer", summary_style="teaching", text="body",
        min_words_target=5500, max_words_target=9000,
    )
    assert "5,500 words" in prompts.user_prompt
    assert "9,000 words" in prompts.user_prompt

    normal = build_summary_prompts(summary_type="normal", summary_style="teaching", text="body")
    assert "LENGTH TARGET" not in normal.user_prompt


def test_unknown_type_and_style_fall_back():
    fallback = build_summary_prompts(summary_type="huge", summary_style="poetry", text="t")
    expected = build_summary_prompts(summary_type="normal", summary_style="teaching", text="t")
    assert fallback == expected


def test_image_guidance_returns_new_prompts():
    system, user = "SYSTEM", "USER"
    out = add_image_guidance(system, user)
    assert out.system_prompt.startswith("SYSTEM")
    assert "supplementary context only" in out.system_prompt
    assert out.user_prompt.endswith("USER")
    assert "Do not transcribe images verbatim" in out.user_prompt
    assert (system, user) == ("SYSTEM", "USER")


def test_chunk_prompt_reuses_preamble():
    base = build_summary_prompts(summary_type="normal", summary_style="notes", text="FULL TEXT")
    prompt = build_chunk_prompt(base.user_prompt, "PART TEXT", 2, 5, "notes")
    assert prompt.startswith(base.user_prompt.split("Content:")[0])
    assert "This is part 2 of 5." in prompt
    assert prompt.endswith("Content:\nPART TEXT")
    assert "FULL TEXT" not in prompt


def test_chunk_prompt_for_mcqs_defers_questions():
    base = build_summary_prompts(summary_type="normal", summary_style="mcqs", text="FULL", mcq_count=3)
    prompt = build_chunk_prompt(base.user_prompt, "PART", 1, 2, "mcqs")
    assert prompt.startswith(MCQ_CHUNK_HEADER)
    assert "DO NOT generate any multiple-choice questions" in prompt
    assert "EXACTLY 3" not in prompt


def test_combine_prompt_labels_parts():
    prompt = build_combine_prompt(["first", "second", "third"], summary_style="notes", response_tone="formal")
    assert "=== Part 1 ===\nfirst" in prompt
    assert "=== Part 3 ===\nthird" in prompt
    assert "student notes" in prompt
    assert "professional and academic" in prompt
    assert "Removes any redundancy" in prompt


def test_combine_prompt_for_mcqs_asks_for_one_json_answer():
    prompt = build_combine_prompt(["a", "b"], summary_style="mcqs", mcq_count=12)
    assert "EXACTLY 12 multiple-choice questions" in prompt
    assert "ENTIRE original document" in prompt
    assert "a\n\n---\n\nb" in prompt
    assert '"questions"' in prompt


def test_qa_prompts_restrict_answer_to_summary():
    prompts = build_qa_prompts("The sky is blue.", "What colour is the sky?")
    assert "strictly using the information present in the SUMMARY" in prompts.system_prompt
    assert "SUMMARY:\n\nThe sky is blue." in prompts.user_prompt
    assert "QUESTION: What colour is the sky?" in prompts.user_prompt
