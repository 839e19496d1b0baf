"""
prompts.py
Prompt templates for summaries, chunk passes, the combine pass and summary Q&A.

Three independent axes pick the text:
- summary type (short / normal / longer) selects the builder
- summary style (teaching / notes / mcqs) selects the variant inside it
- response tone supplies a style phrase and instructions used everywhere

Everything here is pure string assembly.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

import config

MCQ_SCHEMA_TEMPLATE = """{{
  "intro": "<{intro}>",
  "questions": [
    {{
      "question": "...",
      "options": [ {{ "label": "A", "text": "..." }}, ... ],
      "correctLabel": "A",
      "answerText": "<optional full text answer>",
      "explanation": "{explanation}"
    }}
  ]
}}"""

TONE_INSTRUCTIONS: Dict[str, Dict[str, str]] = {
    "casual": {
        "style": "friendly and conversational",
        "instructions": (
            "Use a relaxed, approachable tone. Write as if explaining to a friend. "
            "Use contractions and everyday language."
        ),
    },
    "formal": {
        "style": "professional and academic",
        "instructions": (
            "Use formal academic language. Maintain a professional tone with precise terminology. "
            "Avoid contractions and casual expressions."
        ),
    },
    "informative": {
        "style": "fact-focused and comprehensive",
        "instructions": (
            "Focus on delivering factual information clearly. Use an encyclopedic style. "
            "Include relevant details and context."
        ),
    },
    "eli5": {
        "style": "extremely simple and beginner-friendly",
        "instructions": (
            "Explain Like I'm 5: Use the simplest possible language, avoiding ALL jargon and technical terms. "
            "If you must use a technical term, immediately explain it using everyday words that a child could understand. "
            "Use analogies and examples from daily life. Break down every concept into the most basic building blocks. "
            "Imagine explaining to someone with absolutely no background in the subject."
        ),
    },
}

MCQ_CHUNK_HEADER = (
    "Please create a concise summary of this part only. DO NOT generate any multiple-choice questions "
    "for individual parts. The MCQs should be generated only once after all parts are combined."
)

QA_SYSTEM_PROMPT = """You are a helpful study assistant.
You will be given a SUMMARY of a document and a USER QUESTION.
Answer strictly using the information present in the SUMMARY.
Do NOT invent information that is not stated or clearly implied by the summary.
If the summary does not contain enough information to answer, reply: "I don't have enough information from the summary to answer that.\""""


@dataclass(frozen=True)
class PromptPair:
    system_prompt: str
    user_prompt: str


def get_tone_instructions(tone: str) -> Dict[str, str]:
    """Tone configuration by key; unknown tones fall back to casual."""
    return TONE_INSTRUCTIONS.get(tone, TONE_INSTRUCTIONS["casual"])


def get_style_instructions(summary_type: str) -> Dict[str, Dict[str, str]]:
    """Style table; the teaching and notes wording gets richer for 'longer'."""
    longer = summary_type == "longer"
    return {
        "teaching": {
            "format": "teaching explanation",
            "instructions": (
                "Write as a comprehensive educational explanation. Use detailed paragraphs with complete sentences. "
                "Structure the content as if writing a textbook chapter - thorough, explanatory, and educational."
                if longer
                else "Write as a clear, organized explanation. Use headings, paragraphs, and complete sentences. "
                "Structure the content to teach and explain the material thoroughly."
            ),
        },
        "notes": {
            "format": "student notes",
            "instructions": (
                "Write as if a dedicated student is taking comprehensive notes during an important lecture. "
                "Use bullet points but EXPAND each point with full explanations and details. "
                "Write complete thoughts and elaborate explanations, not just short phrases. "
                "Use arrows (→), dashes (-), and indentation for hierarchy, but include thorough details at each level."
                if longer
                else "Write as if a student is taking notes during class. Use bullet points, short phrases, "
                "abbreviations where natural, key terms highlighted, and organized sections. "
                "Be concise but capture all important information. "
                "Use arrows (→), dashes (-), and indentation for hierarchy."
            ),
        },
        "mcqs": {
            "format": "multiple-choice questions",
            "instructions": (
                "Generate a short, focused study summary followed by a set of multiple-choice questions (MCQs) "
                "based on the content. Each question should have 3-4 plausible answer options and an explicit "
                "correct answer with a brief explanation."
            ),
        },
    }


def select_style(summary_type: str, summary_style: str) -> Dict[str, str]:
    styles = get_style_instructions(summary_type)
    return styles.get(summary_style, styles["teaching"])


def mcq_schema(intro: str, explanation: str) -> str:
    return MCQ_SCHEMA_TEMPLATE.format(intro=intro, explanation=explanation)


def _words(n: int) -> str:
    return f"{n:,}"


# ---------------------------------------------------------------------------
# short
# ---------------------------------------------------------------------------

def _short_teaching(tone, style, text, **_) -> PromptPair:
    system = f"""You are an expert at creating concise, bullet-point summaries with a {tone['style']} tone.
Your task is to extract the key points from documents and present them as clear, actionable bullet points.
{tone['instructions']}
{style['instructions']}
Focus on the most important information only."""
    user = f"""Please create a SHORT summary of the following content in bullet point format.
Extract only the most critical information and key takeaways.
Format your response with clear bullet points using • or - symbols.
Maintain a {tone['style']} writing style in {style['format']} format.

Content:
{text}"""
    return PromptPair(system, user)


def _short_notes(tone, style, text, **_) -> PromptPair:
    system = f"""You are an expert at creating concise student notes with a {tone['style']} tone.
Your task is to write notes as if a student is jotting down key information during a lecture.
{tone['instructions']}
{style['instructions']}
Focus on the most important information only."""
    user = f"""Please create SHORT NOTES from the following content.
Write as if you're a student taking notes - use bullet points, abbreviations, arrows (→), and short phrases.
Extract only the most critical information and key takeaways.
Use a {tone['style']} writing style in {style['format']} format.

Example format:
• Main Topic
  - Key point 1 → explanation
  - Key point 2 (important!)
  - Sub-topic:
    • Detail A
    • Detail B

Content:
{text}"""
    return PromptPair(system, user)


def _short_mcqs(tone, style, text, mcq_count, **_) -> PromptPair:
    system = (
        f"You are an expert at creating concise study prompts and multiple-choice questions in a "
        f"{tone['style']} tone. {tone['instructions']} {style['instructions']}"
    )
    user = f"""Please create a SHORT study summary followed by EXACTLY {mcq_count} high-quality multiple-choice questions based on the content below (no more, no fewer). IMPORTANT: Return ONLY valid JSON that exactly matches this schema:

{mcq_schema("short summary text", "short explanation (1-2 sentences)")}

If required, you may wrap ONLY the JSON in a single code fence labeled json (use a three-backtick fence). Do NOT include any additional text outside the JSON. Use a {tone['style']} tone for the content.

Content:
{text}"""
    return PromptPair(system, user)


# ---------------------------------------------------------------------------
# normal
# ---------------------------------------------------------------------------

def _normal_teaching(tone, style, text, min_words_target=0, max_words_target=0, **_) -> PromptPair:
    system = f"""You are an expert educational assistant with a {tone['style']} approach.
Your task is to create comprehensive summaries that help students learn and understand content better.
{tone['instructions']}
{style['instructions']}
Your summaries should be clear, well-organized, and maintain important details while being more concise than the original."""
    length_target = ""
    if min_words_target > 0:
        length_target = (
            f"\nLENGTH TARGET: At minimum, write {_words(min_words_target)} words and up to about "
            f"{_words(max_words_target)} words if needed. Avoid aggressive compression; preserve nuance and detail."
        )
    user = f"""Please create a DETAILED summary of the following content.
Organize the information logically with clear sections and headings where appropriate.
Maintain important details, examples, and explanations that help with learning.
Use a {tone['style']} writing style in {style['format']} format.
Make the content easier to study and understand.
{length_target}

Content:
{text}"""
    return PromptPair(system, user)


def _normal_notes(tone, style, text, **_) -> PromptPair:
    system = f"""You are an expert at creating detailed student notes with a {tone['style']} approach.
Your task is to write comprehensive notes as if a diligent student is capturing the content during a lecture.
{tone['instructions']}
{style['instructions']}
Your notes should be clear, well-organized, and maintain important details while using note-taking conventions."""
    user = f"""Please create DETAILED NOTES from the following content.
Write as if you're a student taking comprehensive notes during class.
Use bullet points, numbered lists, arrows (→), abbreviations, and indentation for hierarchy.
Organize information logically with clear sections and sub-sections.
Maintain important details, examples, and explanations.
Use a {tone['style']} writing style in {style['format']} format.

Example format:
# Main Topic 1
• Key concept → definition/explanation
  - Supporting detail
  - Example: [example text]
• Another key point
  - Sub-detail A
  - Sub-detail B → leads to...

# Main Topic 2
1. First major point
   • Detail
   • Detail → important connection
2. Second major point
   ...

Content:
{text}"""
    return PromptPair(system, user)


def _normal_mcqs(tone, style, text, mcq_count, **_) -> PromptPair:
    system = (
        f"You are an expert at summarizing and creating MCQs in a {tone['style']} manner. "
        f"After a concise summary, create {mcq_count} multiple-choice questions with 3-4 options each, "
        f"label the correct option and add a one-line explanation."
    )
    user = f"""Please produce a DETAILED summary followed by EXACTLY {mcq_count} multiple-choice questions based on the text below (no more, no fewer). IMPORTANT: Return ONLY valid JSON that exactly matches this schema:

{mcq_schema("detailed summary text", "brief explanation")}

If direct JSON is impossible, wrap ONLY the JSON in a single code fence labeled json (use a three-backtick fence). Do NOT include any other commentary outside the JSON.

Content:
{text}"""
    return PromptPair(system, user)


# ---------------------------------------------------------------------------
# longer
# ---------------------------------------------------------------------------

def _longer_teaching(tone, style, text, min_words_target=0, max_words_target=0, **_) -> PromptPair:
    system = f"""You are an expert educational writer with a {tone['style']} approach.
Your task is to create EXTENSIVE, COMPREHENSIVE explanations that thoroughly teach the content.
{tone['instructions']}
{style['instructions']}
Write in detailed paragraphs with complete explanations. Do NOT just list bullet points or short summaries.
Think of this as writing a textbook chapter or detailed study guide. Be thorough and comprehensive.
Minimize compression. Retain as much detail as practical while organizing and clarifying the material."""
    user = f"""Please create an EXTENSIVE, IN-DEPTH EXPLANATION of the following content.

IMPORTANT INSTRUCTIONS:
- Write in FULL PARAGRAPHS with thorough explanations, not bullet points
- Explain concepts completely - as if writing a detailed textbook chapter
- Include ALL important information: concepts, definitions, examples, context, implications
- Be comprehensive - don't skip over ideas, elaborate on everything important
- Use clear headings and sections, but write detailed explanatory paragraphs under each
- Aim for depth and thoroughness - someone should be able to learn this topic deeply from your explanation
- LENGTH TARGET: At minimum, write {_words(min_words_target)} words and up to about {_words(max_words_target)} words if needed to preserve detail. Do NOT aggressively shorten the content.

Structure your response with:
- Clear headings and subheadings for organization
- Detailed paragraphs (4-6 sentences each) explaining concepts thoroughly
- Complete explanations with reasoning, examples, and context
- Comprehensive coverage of all major topics and supporting details

Use a {tone['style']} writing style in {style['format']} format.
Write as if you're creating a detailed study guide or textbook section.

Content:
{text}"""
    return PromptPair(system, user)


def _longer_notes(tone, style, text, min_words_target=0, max_words_target=0, **_) -> PromptPair:
    system = f"""You are an expert at creating comprehensive, in-depth student notes with a {tone['style']} approach.
Your task is to write extensive notes as if a dedicated student is capturing every important detail during a lecture.
{tone['instructions']}
{style['instructions']}
Your notes should be THOROUGH and COMPREHENSIVE. Do not just list bullet points - expand on each concept with full explanations, examples, and context.
Minimize compression and preserve as much detail as practical."""
    user = f"""Please create COMPREHENSIVE, IN-DEPTH NOTES from the following content.
Write as if you're a diligent student taking detailed notes during an important lecture where you want to capture EVERYTHING.

IMPORTANT INSTRUCTIONS:
- Be THOROUGH - don't just list points, expand on them with full explanations
- Include ALL important details, concepts, definitions, examples, and context
- Write complete thoughts and explanations, not just short phrases
- Aim for comprehensive coverage - your notes should allow someone to learn the topic deeply
- Use nested bullet points with DETAILED explanations at each level
- Don't skip over ideas - elaborate and explain fully
- LENGTH TARGET: At minimum, write {_words(min_words_target)} words and up to about {_words(max_words_target)} words if needed to preserve detail.

Format with clear hierarchy but EXPAND each point:
# Main Topic 1
• Core concept: [Full explanation of the concept, not just a label]
  - Supporting detail: [Detailed explanation with context and reasoning]
    • Sub-detail: [Comprehensive explanation with examples]
    • Additional context: [More thorough explanation]
  - Another detail: [Full elaboration with implications]
    • Example: [Detailed example with explanation of why it matters]
    • Important note: [Complete explanation of significance]

## Sub-Topic 1.1
• First major point: [Thorough explanation covering all aspects]
  - Detail A: [Complete description with reasoning]
  - Detail B: [Full explanation with connections to other concepts]

Use a {tone['style']} writing style in {style['format']} format.

Content:
{text}"""
    return PromptPair(system, user)


def _longer_mcqs(tone, style, text, mcq_count, **_) -> PromptPair:
    system = (
        f"You are an expert at educational content and question generation, producing a detailed study summary "
        f"then {mcq_count} insightful multiple-choice questions with plausible distractors and answer explanations. "
        f"{tone['instructions']}"
    )
    user = f"""Please create an EXTENDED study summary and then generate EXACTLY {mcq_count} multiple-choice questions with 3-4 plausible options each based on the content below (no more, no fewer). IMPORTANT: Return ONLY valid JSON that exactly matches this schema:

{mcq_schema("detailed summary text", "short explanation")}

If direct JSON can't be produced, wrap ONLY the JSON in a single code fence labeled json (use a three-backtick fence). Do NOT include any extra text beyond the JSON. Maintain {tone['style']} tone.

Content:
{text}"""
    return PromptPair(system, user)


PROMPT_BUILDERS = {
    "short": {"teaching": _short_teaching, "notes": _short_notes, "mcqs": _short_mcqs},
    "normal": {"teaching": _normal_teaching, "notes": _normal_notes, "mcqs": _normal_mcqs},
    "longer": {"teaching": _longer_teaching, "notes": _longer_notes, "mcqs": _longer_mcqs},
}


def build_summary_prompts(
    summary_type: str = "normal",
    summary_style: str = "teaching",
    response_tone: str = "casual",
    text: str = "",
    mcq_count: int = config.DEFAULT_MCQ_COUNT,
    min_words_target: int = 0,
    max_words_target: int = 0,
) -> PromptPair:
    """
    Build the system and user prompts for a summary.

    Unknown summary types use the normal builders; unknown styles use teaching.
    """
    by_style = PROMPT_BUILDERS.get(summary_type, PROMPT_BUILDERS["normal"])
    builder = by_style.get(summary_style, by_style["teaching"])
    return builder(
        tone=get_tone_instructions(response_tone),
        style=select_style(summary_type, summary_style),
        text=text,
        mcq_count=mcq_count,
        min_words_target=min_words_target,
        max_words_target=max_words_target,
    )


def add_image_guidance(system_prompt: str, user_prompt: str) -> PromptPair:
    """Return copies of both prompts telling the model images are supporting context only."""
    system = system_prompt + """

Image usage guidance:
- PRIORITIZE the provided document text for summarization.
- Treat images as supplementary context only.
- Do NOT output a separate OCR transcript or verbatim dump of image text.
- If images contain key labels, headings, or brief captions that materially improve understanding, integrate those succinctly into the summary/notes.
- Do not over-index on images; they should aid, not dominate, the output."""

    user = """Use the attached images only to clarify or enrich the output when they add value.
Do not transcribe images verbatim or create a separate transcription section.
Focus on summarizing the provided document text; incorporate only essential details from images when relevant.

""" + user_prompt
    return PromptPair(system, user)


def build_chunk_prompt(
    user_prompt: str,
    chunk_text: str,
    chunk_index: int,
    total_chunks: int,
    summary_style: str = "teaching",
) -> str:
    """
    Prompt for one part of a multi-part document. Reuses the preamble of the
    full user prompt; MCQ style asks for a plain summary of the part instead.
    """
    if summary_style == "mcqs":
        header = MCQ_CHUNK_HEADER
    else:
        header = user_prompt.split("Content:")[0]
    return f"""{header}
This is part {chunk_index} of {total_chunks}.

Content:
{chunk_text}"""


def build_combine_prompt(
    chunk_summaries: Sequence[str],
    summary_style: str = "teaching",
    response_tone: str = "casual",
    summary_type: str = "normal",
    mcq_count: int = config.DEFAULT_MCQ_COUNT,
) -> str:
    """Prompt that merges partial summaries (or builds the one MCQ set) for the whole document."""
    tone = get_tone_instructions(response_tone)

    if summary_style == "mcqs":
        combined_parts = "\n\n---\n\n".join(chunk_summaries)
        return f"""Below are partial summaries from multiple parts of a document. Please synthesize them into ONE cohesive study summary followed by EXACTLY {mcq_count} multiple-choice questions based on the ENTIRE original document (no more, no fewer).

IMPORTANT: Return ONLY valid JSON that exactly matches this schema:

{mcq_schema("combined summary text", "brief explanation")}

Partial summaries:
{combined_parts}"""

    style = select_style(summary_type, summary_style)
    parts = "\n\n".join(
        f"=== Part {i} ===\n{summary}" for i, summary in enumerate(chunk_summaries, start=1)
    )
    return f"""Below are summaries of different parts of the same document.
Please combine them into a single, cohesive {style['format']} that:
1. Maintains all important information from each part
2. Uses a {tone['style']} writing style
3. Is well-organized with clear structure
4. Removes any redundancy while preserving completeness

Part summaries:
{parts}

Please provide the combined summary:"""


def build_qa_prompts(summary: str, question: str) -> PromptPair:
    """Answer-only-from-this-summary prompt pair for follow-up questions."""
    user = f"""SUMMARY:

{summary}

QUESTION: {question}

INSTRUCTIONS:
- Base your answer ONLY on the SUMMARY above.
- Be concise but clear. If the answer requires steps, use a short list.
- If uncertain or missing info, explicitly say you do not have enough information."""
    return PromptPair(QA_SYSTEM_PROMPT, user)


def build_messages(system_prompt: str, user_content) -> List[dict]:
    """Chat message list in the OpenAI shape every adapter accepts."""
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_content},
    ]
