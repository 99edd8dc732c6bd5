from receipt_reader.config import Settings
from receipt_reader.receipt.base import ReceiptGenerator
from receipt_reader.receipt.gemini_provider import GeminiReceiptGenerator


def get_receipt_generator(settings: Settings) -> ReceiptGenerator:
    """Return the configured receipt generation provider."""
    if settings.provider == "gemini":
        return GeminiReceiptGenerator(settings)
    raise ValueError(f"Unknown receipt provider: {settings.provider}")
