import logging
from typing import Any

from pydantic import ValidationError

from receipt_reader.config import Settings
from receipt_reader.errors import BadRequest, MethodNotAllowed
from receipt_reader.receipt.base import ExtractionResult, ReceiptGenerator, ReceiptPrompt
from receipt_reader.receipt.normalize import normalize_reply
from receipt_reader.schemas import CallerIdentity, ExtractionRequestIn

logger = logging.getLogger("receipt_reader")

ALLOWED_METHOD = "POST"


class ReceiptReader:
    """Validates a receipt request, calls the generator once and normalizes the reply."""

    def __init__(self, settings: Settings, generator: ReceiptGenerator):
        self.settings = settings
        self.generator = generator

    def validate(self, body: Any, method: str) -> ExtractionRequestIn:
        """Check the cheap preconditions: method first, then body shape."""
        if method.upper() != ALLOWED_METHOD:
            raise MethodNotAllowed(method)
        if not isinstance(body, dict):
            raise BadRequest("Missing image URI", "request body is not a JSON object")
        try:
            return ExtractionRequestIn.model_validate(body)
        except ValidationError as e:
            raise BadRequest("Missing image URI", str(e)) from e

    def build_prompt(self, request: ExtractionRequestIn) -> ReceiptPrompt:
        return ReceiptPrompt(
            instructions=self.settings.instructions,
            text=self.settings.user_prompt,
            image_uri=request.image_uri,
            mime_type=self.settings.image_mime_type,
        )

    async def read(self, caller: CallerIdentity, request: ExtractionRequestIn) -> ExtractionResult:
        raw = await self.generator.generate(self.build_prompt(request))
        result = normalize_reply(raw)
        logger.info(
            "Receipt read",
            extra={"extra_data": {"uid": caller.uid, "model": self.settings.model}},
        )
        return result

    async def extract(self, caller: CallerIdentity, body: Any, method: str) -> ExtractionResult:
        """Validate and read for an already verified caller.

        The read-receipt route runs ``validate`` before token verification and
        ``read`` after it, instead of calling this.
        """
        return await self.read(caller, self.validate(body, method))
