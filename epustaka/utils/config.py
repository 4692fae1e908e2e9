"""Load and validate environment variables. Uses python-dotenv.

This module is intentionally thin and side-effect free except for loading `.env`.
Callers should use the accessor functions below rather than reading `os.environ`
directly, to keep environment handling consistent.
"""

from pathlib import Path

from dotenv import load_dotenv
import os


def _project_root() -> Path:
    """Resolve project root (the directory holding app.py)."""
    return Path(__file__).resolve().parent.parent.parent


def load_config() -> None:
    """
    Load .env from project root. Idempotent; safe to call multiple times.
    Uses override=True to ensure .env values take precedence over existing env vars.
    """
    root = _project_root()
    env_path = root / ".env"
    load_dotenv(env_path, override=True)


def get_required(key: str) -> str:
    """
    Get required env var. Raises if missing or empty.

    Raises:
        ValueError: If key is missing or empty after trimming.
    """
    load_config()
    val = os.getenv(key, "").strip()
    if not val:
        raise ValueError(
            f"Missing required environment variable: {key}. "
            "Set it in .env or export it."
        )
    return val


def get_optional(key: str, default: str = "") -> str:
    """Get optional env var; return default if missing or empty."""
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_int(key: str, default: int) -> int:
    """Get optional env var as int; return default if missing or invalid."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_optional_bool(key: str, default: bool = False) -> bool:
    """Get optional env var as bool (1/true/yes/on); return default if missing."""
    load_config()
    raw = os.getenv(key, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# --- Public config accessors ---

def app_name() -> str:
    """Optional: title shown in the UI."""
    return get_optional("APP_NAME", "E-Pustaka")


def school_name() -> str:
    """Optional: school named in narrative reports."""
    return get_optional("SCHOOL_NAME", "SMPN 4 Mappedeceng")


def log_level() -> str:
    """Optional: logging level name. Default INFO."""
    return get_optional("LOG_LEVEL", "INFO").upper()


def log_file() -> Path | None:
    """Optional: also write logs to this file. Default stderr only."""
    val = get_optional("LOG_FILE", "")
    return Path(val) if val else None


def data_dir() -> Path:
    """Optional: directory holding the local JSON slots. Default <root>/data."""
    val = get_optional("LIBRARY_DATA_DIR", "")
    return Path(val) if val else _project_root() / "data"


def fine_per_day() -> int:
    """Optional: overdue fine per started day, in currency units. Default 500."""
    return get_optional_int("FINE_PER_DAY", 500)


def loan_days() -> int:
    """Optional: default loan period in days. Default 7."""
    return get_optional_int("LOAN_DAYS", 7)


def report_history_limit() -> int:
    """Optional: how many narrative reports to keep. Default 50."""
    return get_optional_int("REPORT_HISTORY_LIMIT", 50)


def delete_policy() -> str:
    """Optional: what deleting a book/member with open loans does: allow or reject."""
    return get_optional("DELETE_POLICY", "allow").lower()


def finalize_fine_on_return() -> bool:
    """Optional: freeze the computed overdue fine when a loan is returned. Default off."""
    return get_optional_bool("FINALIZE_FINE_ON_RETURN", False)


def sheets_sync_url() -> str | None:
    """Optional: spreadsheet web-app URL used as the remote mirror."""
    val = get_optional("SHEETS_SYNC_URL", "")
    return val or None


def sheets_sync_timeout() -> int:
    """Optional: seconds to wait on the remote mirror. Default 30."""
    return get_optional_int("SHEETS_SYNC_TIMEOUT", 30)


def grok_api_key() -> str:
    """Required: Grok API key for xAI (when LLM_PROVIDER=grok)."""
    return get_required("GROK_API_KEY")


def groq_api_key() -> str:
    """Required: Groq API key (when LLM_PROVIDER=groq)."""
    return get_required("GROQ_API_KEY")


def llm_provider() -> str:
    """Optional: LLM provider. Default grok (xAI). Use groq for free tier (Llama via Groq)."""
    return get_optional("LLM_PROVIDER", "grok").lower().strip()


def llm_base_url() -> str:
    """Chat completions URL for the active LLM provider."""
    if llm_provider() == "groq":
        return "https://api.groq.com/openai/v1/chat/completions"
    return "https://api.x.ai/v1/chat/completions"


def llm_api_key() -> str:
    """API key for the active LLM provider."""
    if llm_provider() == "groq":
        return groq_api_key()
    return grok_api_key()


def llm_model() -> str:
    """Model name for the active LLM provider."""
    if llm_provider() == "groq":
        return get_optional("GROQ_MODEL", "llama-3.3-70b-versatile")
    return get_optional("GROK_MODEL", "grok-4-1-fast")


def llm_max_tokens() -> int:
    """Optional: max tokens for LLM responses. Default 2000."""
    return get_optional_int("GROK_MAX_TOKENS", 2000)


