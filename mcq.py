"""
mcq.py
Parse and trim multiple-choice questions in model output.

The MCQ prompts ask for strict JSON, so JSON (bare or inside a ```json fence)
is tried first; free-text question lists are handled heuristically.

Functions:
- parse_mcqs_from_text(text) -> McqSet
- trim_mcqs_from_text(text, max_count) -> str
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)```", re.I)
_TRAILING_JSON = re.compile(r"\{[\s\S]*\}\s*$")
_QUESTION_LINE = re.compile(r"^\s*(?:\d+\.|\d+\)|Q\d+[:)]|Question\s+\d+[:)])\s*", re.I)
_QUESTIONS_HEADING = re.compile(r"^\s*(Multiple[- ]?Choice|MCQs|Questions)\b", re.I)
_OPTION_LINE = re.compile(r"^\s*([A-Za-z])\s*[).:-]\s*(.*)$")
_BULLET_LINE = re.compile(r"^\s*[-*]\s+")
_ANSWER_LINE = re.compile(r"^(?:Answer|Correct Answer|Correct)[:\s]+(.+)$", re.I)
_EXPLANATION_LINE = re.compile(r"^\s*(?:Explanation|Reason|Rationale)[:\s]*\s*(.*)$", re.I)
_LETTER_ONLY = re.compile(r"^([A-Za-z])\s*[).:]?\s*$")
_LETTER_WITH_TEXT = re.compile(r"^([A-Za-z])\s*[).:]\s*(.+)$")
_STAR_SUFFIX = re.compile(r"\*+\s*$")
_MARKDOWN_EDGES = re.compile(r"^[*_`~\s]+|[*_`~\s]+$")


@dataclass
class McqOption:
    label: str
    text: str


@dataclass
class McqQuestion:
    question: str
    options: List[McqOption] = field(default_factory=list)
    correct_label: Optional[str] = None
    correct_index: Optional[int] = None
    explanation: Optional[str] = None
    answer_text: Optional[str] = None
    raw: str = ""


@dataclass
class McqSet:
    intro: str = ""
    questions: List[McqQuestion] = field(default_factory=list)


def _index_of(options: List[McqOption], label: Optional[str]) -> Optional[int]:
    if not label:
        return None
    for i, opt in enumerate(options):
        if opt.label == label:
            return i
    return None


def _parse_json(text: str) -> Optional[McqSet]:
    fenced = _FENCED_JSON.search(text)
    candidate = fenced.group(1).strip() if fenced else text.strip()
    if not candidate or candidate[0] not in "[{":
        return None
    try:
        parsed = json.loads(candidate)
    except ValueError:
        return None

    obj = {"intro": "", "questions": parsed} if isinstance(parsed, list) else parsed
    if not isinstance(obj, dict) or not isinstance(obj.get("questions"), list):
        return None

    questions = []
    for q in obj["questions"]:
        if not isinstance(q, dict):
            continue
        options = [
            McqOption(label=str(o.get("label") or "").upper(), text=str(o.get("text") or "").strip())
            for o in (q.get("options") or [])
            if isinstance(o, dict)
        ]
        correct = q.get("correctLabel") or q.get("correct")
        correct = str(correct).upper() if correct else None
        correct_index = q.get("correctIndex")
        if not isinstance(correct_index, int):
            correct_index = _index_of(options, correct)
        questions.append(McqQuestion(
            question=str(q.get("question") or q.get("prompt") or q.get("q") or "").strip(),
            options=options,
            correct_label=correct,
            correct_index=correct_index,
            explanation=q.get("explanation") or q.get("reason"),
            answer_text=q.get("answerText") or q.get("answer"),
            raw=json.dumps(q),
        ))
    return McqSet(intro=str(obj.get("intro") or obj.get("summary") or "").strip(), questions=questions)


def _first_question_line(lines: List[str]) -> int:
    for i, line in enumerate(lines):
        if _QUESTION_LINE.match(line):
            return i
        if _QUESTIONS_HEADING.match(line):
            return i + 1
    return -1


def _question_blocks(lines: List[str], start: int) -> List[List[str]]:
    blocks, current = [], []
    for line in lines[start:]:
        if _QUESTION_LINE.match(line):
            if current:
                blocks.append(current)
            current = [line]
        elif current:
            current.append(line)
    if current:
        blocks.append(current)
    return blocks


def _match_answer_text(payload: str, options: List[McqOption]) -> Optional[str]:
    pref = payload[:80].lower()
    for opt in options:
        if opt.text and pref.startswith(opt.text[:40].lower()):
            return opt.label
    snippet = re.split(r"[.|,;-]", pref)[0].strip()
    for opt in options:
        head = opt.text[:30].lower()
        if (snippet and snippet in opt.text.lower()) or (head and head in snippet):
            return opt.label
    return None


def _parse_block(block: List[str]) -> McqQuestion:
    question = McqQuestion(
        question=_QUESTION_LINE.sub("", block[0], count=1).strip(),
        raw="\n".join(block).strip(),
    )

    for raw_line in (line.strip() for line in block[1:]):
        line = _MARKDOWN_EDGES.sub("", raw_line)
        if not line:
            continue

        answer = _ANSWER_LINE.match(line)
        if answer:
            payload = answer.group(1).strip()
            letter_only = _LETTER_ONLY.match(payload)
            letter_with_text = _LETTER_WITH_TEXT.match(payload)
            if letter_only:
                question.correct_label = letter_only.group(1).upper()
            elif letter_with_text:
                question.correct_label = letter_with_text.group(1).upper()
                question.explanation = letter_with_text.group(2).strip()
            else:
                question.answer_text = payload
                question.correct_label = _match_answer_text(payload, question.options)
            continue

        explanation = _EXPLANATION_LINE.match(line)
        if explanation:
            question.explanation = explanation.group(1).strip()
            continue

        option = _OPTION_LINE.match(raw_line)
        if option:
            text = option.group(2).strip()
            starred = bool(_STAR_SUFFIX.search(text))
            label = option.group(1).upper()
            question.options.append(McqOption(label, _STAR_SUFFIX.sub("", text).strip()))
            if starred:
                question.correct_label = label
            continue

        if _BULLET_LINE.match(raw_line):
            text = _BULLET_LINE.sub("", raw_line).strip()
            starred = bool(_STAR_SUFFIX.search(text))
            label = chr(ord("A") + len(question.options))
            question.options.append(McqOption(label, _STAR_SUFFIX.sub("", text).strip()))
            if starred:
                question.correct_label = label

    question.correct_index = _index_of(question.options, question.correct_label)
    return question


def parse_mcqs_from_text(text) -> McqSet:
    """Extract an intro and the questions from a model's MCQ answer."""
    if not isinstance(text, str) or not text:
        return McqSet()

    parsed = _parse_json(text)
    if parsed is not None:
        return parsed

    lines = text.splitlines()
    start = _first_question_line(lines)
    if start == -1:
        return McqSet(intro=text.strip())

    intro = "\n".join(lines[:start]).strip()
    return McqSet(intro=intro, questions=[_parse_block(b) for b in _question_blocks(lines, start)])


def _trim_json(text: str, max_count: int) -> Optional[str]:
    fenced = _FENCED_JSON.search(text)
    trailing = None if fenced else _TRAILING_JSON.search(text)
    source = fenced.group(1).strip() if fenced else (trailing.group(0) if trailing else None)
    if not source:
        return None
    try:
        parsed = json.loads(source)
    except ValueError:
        return None

    obj = {"questions": parsed} if isinstance(parsed, list) else parsed
    if not isinstance(obj, dict) or not isinstance(obj.get("questions"), list):
        return None
    if len(obj["questions"]) <= max_count:
        return None

    pretty = json.dumps({**obj, "questions": obj["questions"][:max_count]}, indent=2, ensure_ascii=False)
    if fenced:
        return text.replace(fenced.group(0), f"\n\n```json\n{pretty}\n```\n", 1)
    return text.replace(trailing.group(0), pretty, 1)


def trim_mcqs_from_text(text, max_count) -> str:
    """Keep at most max_count questions; anything unparseable comes back unchanged."""
    if not isinstance(text, str) or not text or max_count is None:
        return text

    trimmed = _trim_json(text, max_count)
    if trimmed:
        return trimmed

    lines = text.splitlines()
    start = _first_question_line(lines)
    if start == -1:
        return text

    blocks = _question_blocks(lines, start)
    if len(blocks) <= max_count:
        return text

    logger.debug("Trimming MCQs", extra={"found": len(blocks), "kept": max_count})
    prefix = "\n".join(lines[:start]).strip()
    kept = "\n\n".join("\n".join(b) for b in blocks[:max_count])
    return f"{prefix}\n\n{kept}" if prefix else kept
