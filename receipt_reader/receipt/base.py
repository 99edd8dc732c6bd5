import math
import re
from typing import Protocol

from pydantic import (
    AwareDatetime,
    BaseModel,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
    field_validator,
)

# Extended ISO-8601 date and time with a mandatory UTC designator or offset.
TIMESTAMP_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?(Z|[+-]\d{2}:\d{2})"
)
_aware_datetime = TypeAdapter(AwareDatetime)


class ExtractionResult(BaseModel):
    total_amount: StrictInt | StrictFloat = Field(alias="totalAmount")
    date: StrictStr  # ISO-8601 timestamp, returned as the model wrote it
    description: StrictStr  # advisory limit of 50 words, not enforced

    @field_validator("total_amount")
    @classmethod
    def _finite(cls, value):
        try:
            finite = math.isfinite(value)
        except OverflowError:
            finite = False
        if not finite:
            raise ValueError("totalAmount must be a finite number")
        return value

    @field_validator("date")
    @classmethod
    def _iso_timestamp(cls, value: str) -> str:
        text = value.strip()
        if not TIMESTAMP_RE.fullmatch(text):
            raise ValueError(f"date is not an ISO-8601 timestamp with offset: {value!r}")
        try:
            _aware_datetime.validate_python(text)
        except ValidationError:
            raise ValueError(f"date is not an ISO-8601 timestamp: {value!r}")
        return value

    model_config = {"extra": "forbid"}


class ReceiptPrompt(BaseModel):
    """The fixed multimodal request sent for one receipt image."""

    instructions: str
    text: str
    image_uri: str
    mime_type: str = "image/jpeg"

    model_config = {"frozen": True}


class ReceiptGenerator(Protocol):
    async def generate(self, prompt: ReceiptPrompt) -> str: ...
