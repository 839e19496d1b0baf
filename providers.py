"""
providers.py
LLM provider adapters behind one small async contract, plus the registry the
summarizer resolves them from.

Contract per adapter:
- create_client(api_key, base_url, endpoint, deployment, api_version) -> client
- await close_client(client)
- await chat(client, model, messages, temperature, max_tokens, stream, on_delta) -> str
- supports_vision(model) -> bool

Adapters translate SDK failures through normalize_error(): rate-limit, quota
and bad-key failures become ProviderError with a code prefix, anything else
is raised as a plain RuntimeError carrying the SDK message.
"""

import logging
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
from anthropic import AsyncAnthropic
from openai import AsyncAzureOpenAI, AsyncOpenAI

import config

logger = logging.getLogger(__name__)

DeltaHandler = Callable[[str], None]

RATE_LIMIT = "RATE_LIMIT"
QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
INVALID_API_KEY = "INVALID_API_KEY"
UNKNOWN = "UNKNOWN"
CLASSIFIED_CODES = (RATE_LIMIT, QUOTA_EXCEEDED, INVALID_API_KEY)

_CLASSIFIED_PREFIX = re.compile(r"^(%s):" % "|".join(CLASSIFIED_CODES))


class Provider(str, Enum):
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    CUSTOM_OPENAI = "custom-openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    COHERE = "cohere"
    GROQ = "groq"
    MISTRAL = "mistral"
    XAI = "xai"
    AZURE_OPENAI = "azure-openai"


class UnsupportedProviderError(ValueError):
    """Configuration error: no adapter is registered under that name."""

    def __init__(self, provider: Any, prefix: str = ""):
        self.provider = provider
        message = f"Unsupported provider '{provider}'"
        super().__init__(f"{prefix} {message}".strip())


class ProviderError(RuntimeError):
    """Classified provider failure; str() starts with '<CODE>:'."""

    def __init__(self, code: str, message: str):
        self.code = code
        super().__init__(f"{code}: {message}")


def is_classified_error(exc: BaseException) -> bool:
    """True for rate-limit / quota / bad-key failures, by type or by message tag."""
    if isinstance(exc, ProviderError) and exc.code in CLASSIFIED_CODES:
        return True
    return bool(_CLASSIFIED_PREFIX.match(str(exc)))


def normalize_error(exc: BaseException) -> Tuple[str, str]:
    """
    Map an SDK/transport exception onto (code, user-facing message).
    """
    msg = str(exc) or exc.__class__.__name__
    status = getattr(exc, "status_code", None)
    status = str(status) if status is not None else ""

    if re.search(r"rate limit", msg, re.I) or re.search(r"\b429\b", msg) or status == "429":
        return RATE_LIMIT, f"You've hit a rate limit. {msg}"
    if re.search(r"insufficient[_\s-]?quota", msg, re.I) or re.search(r"billing|credit", msg, re.I):
        return QUOTA_EXCEEDED, "Your account has insufficient credits or quota."
    if (
        re.search(r"invalid[_\s-]?api[_\s-]?key", msg, re.I)
        or re.search(r"\b(401|403)\b", msg)
        or status in ("401", "403")
    ):
        return INVALID_API_KEY, "Your API key is invalid or unauthorized."
    return UNKNOWN, msg or "Unknown error"


def raise_normalized(exc: BaseException) -> None:
    code, message = normalize_error(exc)
    if code in CLASSIFIED_CODES:
        raise ProviderError(code, message) from exc
    raise RuntimeError(message) from exc


# Vision-capable model name patterns, per provider
VISION_PATTERNS: Dict[Provider, List[re.Pattern]] = {
    Provider.OPENROUTER: [re.compile(p, re.I) for p in (r"gpt-4o", r"omni", r"vision", r"claude-3\.5-sonnet", r"gemini-1\.5", r"llava")],
    Provider.OPENAI: [re.compile(p, re.I) for p in (r"gpt-4o-mini", r"gpt-4o", r"omni", r"vision")],
    Provider.ANTHROPIC: [re.compile(p, re.I) for p in (r"claude-3\.5-sonnet", r"claude-3-vision")],
    Provider.GOOGLE: [re.compile(p, re.I) for p in (r"gemini-1\.5-pro", r"gemini-1\.5-flash")],
    Provider.COHERE: [],
    Provider.GROQ: [re.compile(r"llava", re.I)],
    Provider.MISTRAL: [],
    Provider.XAI: [],
    Provider.AZURE_OPENAI: [re.compile(p, re.I) for p in (r"gpt-4o-mini", r"gpt-4o")],
    Provider.CUSTOM_OPENAI: [re.compile(r"vision", re.I)],
}


def supports_vision(model: Any, provider: Any = None) -> bool:
    """
    Whether a model name looks vision-capable. Uses the provider's own
    patterns when it has any, otherwise every known pattern.
    """
    if not isinstance(model, str) or not model:
        return False
    try:
        patterns = VISION_PATTERNS.get(Provider(provider), []) if provider else []
    except ValueError:
        patterns = []
    if not patterns:
        patterns = [p for group in VISION_PATTERNS.values() for p in group]
    return any(p.search(model) for p in patterns)


class ProviderAdapter:
    """Base adapter; subclasses implement create_client and chat."""

    provider: Provider

    def create_client(
        self,
        api_key: str = "",
        base_url: Optional[str] = None,
        endpoint: Optional[str] = None,
        deployment: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> Any:
        raise NotImplementedError

    async def chat(
        self,
        client: Any,
        model: str,
        messages: List[dict],
        temperature: float = config.SUMMARY_TEMPERATURE,
        max_tokens: int = 3000,
        stream: bool = False,
        on_delta: Optional[DeltaHandler] = None,
    ) -> str:
        raise NotImplementedError

    async def close_client(self, client: Any) -> None:
        """Release the client's connection pool (the openai and anthropic clients have an async close())."""
        close = getattr(client, "close", None)
        if close is not None:
            await close()

    def supports_vision(self, model: str) -> bool:
        return supports_vision(model, self.provider)


class OpenAICompatibleAdapter(ProviderAdapter):
    """Any endpoint that speaks the OpenAI chat-completions API."""

    def __init__(self, provider: Provider, base_url: Optional[str] = None, default_headers: Optional[dict] = None):
        self.provider = provider
        self.base_url = base_url
        self.default_headers = default_headers

    def create_client(self, api_key="", base_url=None, endpoint=None, deployment=None, api_version=None):
        return AsyncOpenAI(
            api_key=api_key or None,
            base_url=base_url or self.base_url,
            default_headers=self.default_headers,
            timeout=config.PROVIDER_TIMEOUT,
        )

    async def chat(self, client, model, messages, temperature=config.SUMMARY_TEMPERATURE,
                   max_tokens=3000, stream=False, on_delta=None):
        try:
            if not stream:
                resp = await client.chat.completions.create(
                    model=model, messages=messages, temperature=temperature, max_tokens=max_tokens
                )
                return (resp.choices[0].message.content or "").strip()

            full = []
            response = await client.chat.completions.create(
                model=model, messages=messages, temperature=temperature, max_tokens=max_tokens, stream=True
            )
            async for part in response:
                if not part.choices:
                    continue
                delta = part.choices[0].delta.content or ""
                if delta:
                    full.append(delta)
                    if on_delta:
                        on_delta(delta)
            return "".join(full).strip()
        except Exception as e:
            raise_normalized(e)


class CustomOpenAIAdapter(OpenAICompatibleAdapter):
    def __init__(self):
        super().__init__(Provider.CUSTOM_OPENAI)

    def create_client(self, api_key="", base_url=None, endpoint=None, deployment=None, api_version=None):
        if not base_url:
            raise ValueError("custom-openai requires base_url")
        return super().create_client(api_key=api_key, base_url=base_url)


class AzureOpenAIAdapter(OpenAICompatibleAdapter):
    """Azure deployments; the deployment name doubles as the model."""

    def __init__(self):
        super().__init__(Provider.AZURE_OPENAI)

    def create_client(self, api_key="", base_url=None, endpoint=None, deployment=None, api_version=None):
        if not endpoint:
            raise ValueError("azure-openai requires endpoint")
        if not deployment:
            raise ValueError("azure-openai requires deployment")
        return AsyncAzureOpenAI(
            api_key=api_key,
            azure_endpoint=endpoint.rstrip("/"),
            azure_deployment=deployment,
            api_version=api_version or config.AZURE_OPENAI_API_VERSION,
            timeout=config.PROVIDER_TIMEOUT,
        )

    async def chat(self, client, model, messages, temperature=config.SUMMARY_TEMPERATURE,
                   max_tokens=3000, stream=False, on_delta=None):
        return await super().chat(client, model or "", messages, temperature, max_tokens, stream, on_delta)


class AnthropicAdapter(ProviderAdapter):
    """Claude via the Messages API; the system prompt goes in its own field."""

    provider = Provider.ANTHROPIC

    def create_client(self, api_key="", base_url=None, endpoint=None, deployment=None, api_version=None):
        return AsyncAnthropic(api_key=api_key or None, timeout=config.PROVIDER_TIMEOUT)

    @staticmethod
    def _split_messages(messages: List[dict]) -> Tuple[str, List[dict]]:
        system = ""
        chat_messages = []
        for msg in messages:
            if msg.get("role") == "system":
                system = msg.get("content", "")
            else:
                chat_messages.append({"role": msg.get("role", "user"), "content": _anthropic_content(msg.get("content", ""))})
        return system, chat_messages

    async def chat(self, client, model, messages, temperature=config.SUMMARY_TEMPERATURE,
                   max_tokens=3000, stream=False, on_delta=None):
        system, chat_messages = self._split_messages(messages)
        kwargs: Dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": chat_messages,
        }
        if system:
            kwargs["system"] = system

        try:
            if not stream:
                response = await client.messages.create(**kwargs)
                return "".join(getattr(block, "text", "") for block in response.content).strip()

            full = []
            async with client.messages.stream(**kwargs) as s:
                async for delta in s.text_stream:
                    if delta:
                        full.append(delta)
                        if on_delta:
                            on_delta(delta)
            return "".join(full).strip()
        except Exception as e:
            raise_normalized(e)


def _anthropic_content(content):
    """Convert OpenAI-style multimodal parts into Anthropic content blocks."""
    if isinstance(content, str):
        return content
    blocks = []
    for part in content:
        if part.get("type") == "image_url":
            url = part["image_url"]["url"]
            match = re.match(r"data:(?P<media>[^;]+);base64,(?P<data>.+)", url, re.S)
            if match:
                blocks.append({
                    "type": "image",
                    "source": {"type": "base64", "media_type": match.group("media"), "data": match.group("data")},
                })
            else:
                blocks.append({"type": "image", "source": {"type": "url", "url": url}})
        else:
            blocks.append({"type": "text", "text": part.get("text", "")})
    return blocks


class CohereAdapter(ProviderAdapter):
    """
    Cohere v1 chat over plain HTTP (preamble + message). Only non-streaming;
    a streaming request is answered in one piece and reported as one delta.
    """

    provider = Provider.COHERE
    base_url = "https://api.cohere.ai/v1"

    def create_client(self, api_key="", base_url=None, endpoint=None, deployment=None, api_version=None):
        return httpx.AsyncClient(
            base_url=base_url or self.base_url,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            timeout=config.PROVIDER_TIMEOUT,
        )

    async def close_client(self, client):
        await client.aclose()

    async def chat(self, client, model, messages, temperature=config.SUMMARY_TEMPERATURE,
                   max_tokens=3000, stream=False, on_delta=None):
        preamble = next((m.get("content", "") for m in messages if m.get("role") == "system"), "")
        user_text = "\n\n".join(
            _plain_text(m.get("content", "")) for m in messages if m.get("role") == "user"
        )
        payload = {"model": model, "message": user_text, "temperature": temperature, "max_tokens": max_tokens}
        if preamble:
            payload["preamble"] = preamble

        try:
            response = await client.post("/chat", json=payload)
            if response.status_code >= 400:
                raise RuntimeError(f"{response.status_code} {response.reason_phrase}: {response.text}")
            out = (response.json().get("text") or "").strip()
        except Exception as e:
            raise_normalized(e)

        if stream and on_delta and out:
            on_delta(out)
        return out


def _plain_text(content) -> str:
    if isinstance(content, str):
        return content
    return "\n".join(part.get("text", "") for part in content if part.get("type") == "text")


ADAPTERS: Dict[Provider, ProviderAdapter] = {
    Provider.OPENAI: OpenAICompatibleAdapter(Provider.OPENAI),
    Provider.OPENROUTER: OpenAICompatibleAdapter(
        Provider.OPENROUTER,
        base_url="https://openrouter.ai/api/v1",
        default_headers={"HTTP-Referer": config.OPENROUTER_REFERER, "X-Title": config.OPENROUTER_TITLE},
    ),
    Provider.CUSTOM_OPENAI: CustomOpenAIAdapter(),
    Provider.ANTHROPIC: AnthropicAdapter(),
    Provider.GOOGLE: OpenAICompatibleAdapter(
        Provider.GOOGLE, base_url="https://generativelanguage.googleapis.com/v1beta/openai/"
    ),
    Provider.COHERE: CohereAdapter(),
    Provider.GROQ: OpenAICompatibleAdapter(Provider.GROQ, base_url="https://api.groq.com/openai/v1"),
    Provider.MISTRAL: OpenAICompatibleAdapter(Provider.MISTRAL, base_url="https://api.mistral.ai/v1"),
    Provider.XAI: OpenAICompatibleAdapter(Provider.XAI, base_url="https://api.x.ai/v1"),
    Provider.AZURE_OPENAI: AzureOpenAIAdapter(),
}


def get_adapter(provider: Any, error_prefix: str = "") -> ProviderAdapter:
    """Resolve an adapter by provider name; unknown names raise UnsupportedProviderError."""
    try:
        key = Provider(provider)
    except ValueError:
        raise UnsupportedProviderError(provider, error_prefix) from None
    adapter = ADAPTERS.get(key)
    if adapter is None:
        raise UnsupportedProviderError(provider, error_prefix)
    return adapter
