"""
config.py
Centralized configuration values for the summarization engine.
Edit these values (or set the env vars) to pick a provider, model and logging.
"""

import os

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv())  # this loads .env file values into os.environ

# Provider / model defaults (used when the caller does not pass them)
DEFAULT_PROVIDER = os.getenv("SUMMARIZER_PROVIDER", "openrouter")
DEFAULT_MODEL = os.getenv("SUMMARIZER_MODEL", "openai/gpt-4o-mini")

# Sampling
SUMMARY_TEMPERATURE = float(os.getenv("SUMMARY_TEMPERATURE", 0.3))
QA_TEMPERATURE = float(os.getenv("QA_TEMPERATURE", 0.2))
QA_MAX_TOKENS = int(os.getenv("QA_MAX_TOKENS", 800))

# MCQ question count bounds
DEFAULT_MCQ_COUNT = int(os.getenv("DEFAULT_MCQ_COUNT", 5))
MIN_MCQ_COUNT = 1
MAX_MCQ_COUNT = 50

# Network
PROVIDER_TIMEOUT = float(os.getenv("PROVIDER_TIMEOUT", 120))  # seconds per request
OPENROUTER_REFERER = os.getenv("OPENROUTER_REFERER", "http://localhost")
OPENROUTER_TITLE = os.getenv("OPENROUTER_TITLE", "Squailor Document Summarizer")
AZURE_OPENAI_API_VERSION = os.getenv("AZURE_OPENAI_API_VERSION", "2024-08-01-preview")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Token profiles per summary type:
#   target_chunk_tokens -> split threshold for the chunker
#   max_tokens          -> output cap for single-pass and combine calls
#   chunk_max_tokens    -> output cap for each per-chunk call
TOKEN_PROFILES = {
    "short": {"target_chunk_tokens": 900, "max_tokens": 1000, "chunk_max_tokens": 500},
    "normal": {"target_chunk_tokens": 2200, "max_tokens": 3000, "chunk_max_tokens": 1500},
    "longer": {"target_chunk_tokens": 3500, "max_tokens": 9000, "chunk_max_tokens": 5000},
}
