"""
summarizer.py

Map-Reduce style summarization over a pluggable LLM provider:
- small documents go out in a single streamed call
- larger ones are chunked, each chunk summarized in order (map)
- the partial summaries are merged by one more call (reduce)

Functions:
- summarize_text(text, summary_type, options_or_api_key, ...) -> str
- answer_question_about_summary(summary, question, options_or_api_key, ...) -> str
- model_supports_vision(model, provider) -> bool

Progress is reported through an optional on_progress(ProgressEvent) callback.
Nothing here is cancellable once started; callers await completion or failure.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

import config
import providers
from chunking import (
    calculate_word_targets,
    estimate_tokens,
    get_token_settings,
    split_text_into_chunks_by_tokens,
)
from prompts import (
    add_image_guidance,
    build_chunk_prompt,
    build_combine_prompt,
    build_messages,
    build_qa_prompts,
    build_summary_prompts,
)

logger = logging.getLogger(__name__)

SUMMARY_ERROR_PREFIX = "AI summarization failed:"
QA_ERROR_PREFIX = "AI Q&A failed:"

__all__ = [
    "ImageInput",
    "ProgressEvent",
    "SummaryOptions",
    "SummarizationError",
    "answer_question_about_summary",
    "estimate_tokens",
    "model_supports_vision",
    "split_text_into_chunks_by_tokens",
    "summarize_text",
]


class SummarizationError(RuntimeError):
    """Unclassified failure while summarizing or answering a question."""


@dataclass(frozen=True)
class ImageInput:
    data_url: str
    slide_number: Optional[int] = None
    alt_text: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> "ImageInput":
        """Accept an ImageInput, a bare data URL, or a mapping of its fields."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(data_url=value)
        if not isinstance(value, Mapping):
            raise TypeError(f"Unsupported image input of type {type(value).__name__}")
        return cls(
            data_url=value.get("data_url") or value.get("dataUrl") or "",
            slide_number=value.get("slide_number", value.get("slideNumber")),
            alt_text=value.get("alt_text") or value.get("altText"),
        )


@dataclass(frozen=True)
class ProgressEvent:
    """
    type is one of 'delta', 'chunk-start', 'chunk-done', 'combine-start', 'done'.
    Only the fields relevant to the type are set.
    """

    type: str
    delta_text: Optional[str] = None
    total_chars: Optional[int] = None
    chunk_index: Optional[int] = None
    total_chunks: Optional[int] = None


ProgressHandler = Callable[[ProgressEvent], None]


@dataclass(frozen=True)
class SummaryOptions:
    api_key: str = ""
    provider: str = config.DEFAULT_PROVIDER
    model: str = config.DEFAULT_MODEL
    response_tone: str = "casual"
    summary_style: str = "teaching"
    mcq_count: int = config.DEFAULT_MCQ_COUNT
    images: Sequence[ImageInput] = field(default_factory=tuple)
    on_progress: Optional[ProgressHandler] = None
    base_url: Optional[str] = None
    endpoint: Optional[str] = None
    deployment: Optional[str] = None
    api_version: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SummaryOptions":
        """Accept snake_case or the older camelCase keys."""
        aliases = {
            "apiKey": "api_key",
            "responseTone": "response_tone",
            "summaryStyle": "summary_style",
            "mcqCount": "mcq_count",
            "onProgress": "on_progress",
            "baseURL": "base_url",
            "apiVersion": "api_version",
        }
        known = set(cls.__dataclass_fields__)
        kwargs = {}
        for key, value in values.items():
            name = aliases.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    def client_kwargs(self) -> dict:
        return {
            "api_key": self.api_key or "",
            "base_url": self.base_url,
            "endpoint": self.endpoint,
            "deployment": self.deployment,
            "api_version": self.api_version,
        }


def _clamp_mcq_count(value: Any) -> int:
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return config.DEFAULT_MCQ_COUNT
    return max(config.MIN_MCQ_COUNT, min(config.MAX_MCQ_COUNT, count))


def _normalize_options(
    options_or_api_key: Union[SummaryOptions, Mapping[str, Any], str, None],
    **legacy: Any,
) -> SummaryOptions:
    """
    Fold both calling conventions into one SummaryOptions:
    an options object/mapping, or an API key followed by positional extras.
    """
    if isinstance(options_or_api_key, SummaryOptions):
        opts = options_or_api_key
    elif isinstance(options_or_api_key, Mapping):
        opts = SummaryOptions.from_mapping(options_or_api_key)
    else:
        opts = SummaryOptions.from_mapping({"api_key": options_or_api_key or "", **legacy})

    on_progress = opts.on_progress if callable(opts.on_progress) else None
    images = tuple(ImageInput.coerce(img) for img in (opts.images or ()))
    return replace(
        opts,
        on_progress=on_progress,
        images=images,
        mcq_count=_clamp_mcq_count(opts.mcq_count),
    )


def _emit(on_progress: Optional[ProgressHandler], event: ProgressEvent) -> None:
    if on_progress is not None:
        on_progress(event)


def _delta_forwarder(
    on_progress: Optional[ProgressHandler],
    chunk_index: Optional[int] = None,
    total_chunks: Optional[int] = None,
) -> Callable[[str], None]:
    """on_delta callback that forwards each delta with a running character total."""
    total_chars = 0

    def on_delta(delta: str) -> None:
        nonlocal total_chars
        total_chars += len(delta)
        _emit(on_progress, ProgressEvent(
            "delta",
            delta_text=delta,
            total_chars=total_chars,
            chunk_index=chunk_index,
            total_chunks=total_chunks,
        ))

    return on_delta


@asynccontextmanager
async def _open_client(adapter: providers.ProviderAdapter, opts: SummaryOptions):
    """Provider client for the length of one operation; closed on success or failure."""
    client = adapter.create_client(**opts.client_kwargs())
    try:
        yield client
    finally:
        await adapter.close_client(client)


def build_user_message(user_prompt: str, images: Sequence[ImageInput]) -> dict:
    """User message with optional image parts for vision models."""
    if not images:
        return {"role": "user", "content": user_prompt}

    parts = [{
        "type": "text",
        "text": (
            f"{user_prompt}\n\nConsider the following images as OPTIONAL supporting context.\n"
            "Do not transcribe them; extract only brief, high-signal labels/captions if they aid the summary:"
        ),
    }]
    for position, img in enumerate(images, start=1):
        number = img.slide_number if img.slide_number is not None else position
        label = f"Slide {number}: {img.alt_text}" if img.alt_text else f"Slide {number}"
        parts.append({"type": "text", "text": label})
        parts.append({"type": "image_url", "image_url": {"url": img.data_url}})
    return {"role": "user", "content": parts}


async def _chat_with_fallback(
    adapter: providers.ProviderAdapter,
    client: Any,
    model: str,
    messages: List[dict],
    temperature: float,
    max_tokens: int,
    on_delta: Optional[Callable[[str], None]] = None,
    label: str = "request",
) -> str:
    """
    Attempt A: streaming call. Attempt B (only after a transport-type failure
    of A): the same request without streaming. Classified provider errors
    skip attempt B and propagate as-is.
    """
    try:
        return await adapter.chat(
            client=client,
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=True,
            on_delta=on_delta,
        )
    except Exception as stream_error:
        if providers.is_classified_error(stream_error):
            raise
        logger.warning("Streaming failed for %s, falling back to non-streaming", label, exc_info=True)

    return await adapter.chat(
        client=client,
        model=model,
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
        stream=False,
    )


def _passes_through(exc: Exception) -> bool:
    """Classified provider errors reach the caller untouched so the UI can branch on them."""
    return providers.is_classified_error(exc) or isinstance(exc, providers.UnsupportedProviderError)


async def summarize_text(
    text: str,
    summary_type: str = "normal",
    options_or_api_key: Union[SummaryOptions, Mapping[str, Any], str, None] = None,
    response_tone: str = "casual",
    model: str = config.DEFAULT_MODEL,
    summary_style: str = "teaching",
    on_progress: Optional[ProgressHandler] = None,
    images: Optional[Sequence[Any]] = None,
) -> str:
    """
    Summarize text with the configured provider.

    options_or_api_key is either a SummaryOptions (or a mapping of its fields)
    or, for older callers, a bare API key followed by the positional extras.
    Returns the final summary text.
    """
    opts = _normalize_options(
        options_or_api_key,
        response_tone=response_tone,
        model=model,
        summary_style=summary_style,
        on_progress=on_progress,
        images=images or (),
    )
    adapter = providers.get_adapter(opts.provider, SUMMARY_ERROR_PREFIX)

    targets = calculate_word_targets(text, summary_type)
    prompts = build_summary_prompts(
        summary_type=summary_type,
        summary_style=opts.summary_style,
        response_tone=opts.response_tone,
        text=text,
        mcq_count=opts.mcq_count,
        min_words_target=targets.min_words_target,
        max_words_target=targets.max_words_target,
    )
    if opts.images:
        prompts = add_image_guidance(prompts.system_prompt, prompts.user_prompt)

    try:
        async with _open_client(adapter, opts) as client:
            settings = get_token_settings(summary_type)
            chunks = split_text_into_chunks_by_tokens(text, settings.target_chunk_tokens)
            logger.debug(
                "Planned summarization",
                extra={"provider": opts.provider, "summary_type": summary_type, "chunk_count": len(chunks)},
            )

            if len(chunks) <= 1:
                return await _summarize_single(adapter, client, opts, prompts, settings.max_tokens)
            return await _summarize_chunks(
                adapter, client, opts, summary_type, prompts, chunks, settings.chunk_max_tokens, settings.max_tokens
            )
    except Exception as e:
        if _passes_through(e):
            raise
        logger.error("Summarization failed: %s", e, exc_info=True)
        raise SummarizationError(f"{SUMMARY_ERROR_PREFIX} {e}") from e


async def _summarize_single(adapter, client, opts: SummaryOptions, prompts, max_tokens: int) -> str:
    messages = [
        {"role": "system", "content": prompts.system_prompt},
        build_user_message(prompts.user_prompt, opts.images),
    ]
    out = await _chat_with_fallback(
        adapter, client, opts.model, messages, config.SUMMARY_TEMPERATURE, max_tokens,
        _delta_forwarder(opts.on_progress), "summary",
    )
    _emit(opts.on_progress, ProgressEvent("done", total_chars=len(out)))
    return out


async def _summarize_chunks(
    adapter, client, opts: SummaryOptions, summary_type: str, prompts, chunks: List[str],
    chunk_max_tokens: int, max_tokens: int,
) -> str:
    total = len(chunks)
    chunk_summaries: List[str] = []

    for index, chunk in enumerate(chunks, start=1):
        _emit(opts.on_progress, ProgressEvent("chunk-start", chunk_index=index, total_chunks=total))

        chunk_prompt = build_chunk_prompt(prompts.user_prompt, chunk, index, total, opts.summary_style)
        out = await _chat_with_fallback(
            adapter, client, opts.model, build_messages(prompts.system_prompt, chunk_prompt),
            config.SUMMARY_TEMPERATURE, chunk_max_tokens,
            _delta_forwarder(opts.on_progress, index, total), f"chunk {index}/{total}",
        )
        _emit(opts.on_progress, ProgressEvent("chunk-done", chunk_index=index, total_chunks=total))
        chunk_summaries.append(out.strip())

    if len(chunk_summaries) == 1:
        only = chunk_summaries[0]
        _emit(opts.on_progress, ProgressEvent("done", total_chars=len(only)))
        return only

    _emit(opts.on_progress, ProgressEvent("combine-start"))
    combine_prompt = build_combine_prompt(
        chunk_summaries,
        summary_style=opts.summary_style,
        response_tone=opts.response_tone,
        summary_type=summary_type,
        mcq_count=opts.mcq_count,
    )
    out = await _chat_with_fallback(
        adapter, client, opts.model, build_messages(prompts.system_prompt, combine_prompt),
        config.SUMMARY_TEMPERATURE, max_tokens, _delta_forwarder(opts.on_progress), "combine",
    )
    out = out.strip()
    _emit(opts.on_progress, ProgressEvent("done", total_chars=len(out)))
    return out


async def answer_question_about_summary(
    summary: str,
    question: str,
    options_or_api_key: Union[SummaryOptions, Mapping[str, Any], str, None] = None,
    model: str = config.DEFAULT_MODEL,
    on_progress: Optional[ProgressHandler] = None,
) -> str:
    """
    Answer a question using only the given summary as context. The summary is
    sent whole; it is expected to fit a single request.
    """
    opts = _normalize_options(options_or_api_key, model=model, on_progress=on_progress)
    adapter = providers.get_adapter(opts.provider, QA_ERROR_PREFIX)
    prompts = build_qa_prompts(summary, question)

    try:
        async with _open_client(adapter, opts) as client:
            out = await _chat_with_fallback(
                adapter, client, opts.model, build_messages(prompts.system_prompt, prompts.user_prompt),
                config.QA_TEMPERATURE, config.QA_MAX_TOKENS, _delta_forwarder(opts.on_progress), "question",
            )
    except Exception as e:
        if _passes_through(e):
            raise
        logger.error("Q&A failed: %s", e, exc_info=True)
        raise SummarizationError(f"{QA_ERROR_PREFIX} {e}") from e

    out = out.strip()
    _emit(opts.on_progress, ProgressEvent("done", total_chars=len(out)))
    return out


def model_supports_vision(model: str, provider: Optional[str] = None) -> bool:
    return providers.supports_vision(model, provider)
