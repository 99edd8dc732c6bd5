import os

from dotenv import load_dotenv
from pydantic import BaseModel

INSTRUCTIONS = """\
You are an AI assistant that helps user extract information from receipts.
You will be provided with a link to a photo of a receipt.
Your task is to extract the following information from the receipt:
1. The total amount spent.
2. The date of the transaction.
3. The description of the transaction based on the data on the receipt, not longer than 50 words.
Output format:
{"totalAmount":22.25,"date":"2025-04-26T12:34:56.789Z", "description":"I spent 22.25 in Aldi. I bought..."}"""

USER_PROMPT = "You should extract the data from this image, as defined in the system requirements."

TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


class Settings(BaseModel):
    """Process-wide configuration, built once and passed to each component."""

    project: str = "expense-tracker-455519"
    location: str = "us-central1"
    model: str = "gemini-2.0-flash"
    max_output_tokens: int = 256
    timeout_seconds: float = 30.0
    provider: str = "gemini"
    image_mime_type: str = "image/jpeg"
    instructions: str = INSTRUCTIONS
    user_prompt: str = USER_PROMPT
    expose_upstream_errors: bool = False
    check_revoked: bool = False
    cors_origins: list[str] = ["http://localhost:5173"]
    sentry_dsn: str | None = None
    log_level: str = "INFO"

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        origins = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
        return cls(
            project=os.getenv("GOOGLE_CLOUD_PROJECT", "expense-tracker-455519"),
            location=os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
            model=os.getenv("RECEIPT_MODEL", "gemini-2.0-flash"),
            max_output_tokens=int(os.getenv("MODEL_MAX_OUTPUT_TOKENS", "256")),
            timeout_seconds=float(os.getenv("MODEL_TIMEOUT_SECONDS", "30")),
            provider=os.getenv("RECEIPT_PROVIDER", "gemini"),
            image_mime_type=os.getenv("IMAGE_MIME_TYPE", "image/jpeg"),
            expose_upstream_errors=_env_bool("EXPOSE_UPSTREAM_ERRORS"),
            check_revoked=_env_bool("FIREBASE_CHECK_REVOKED"),
            cors_origins=[o.strip() for o in origins if o.strip()],
            sentry_dsn=os.getenv("SENTRY_DSN") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
