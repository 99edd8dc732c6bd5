from pydantic import AliasChoices, BaseModel, Field, StrictStr


class ExtractionRequestIn(BaseModel):
    image_uri: StrictStr = Field(
        validation_alias=AliasChoices("gsutilURI", "imageURI"),
        min_length=1,
    )

    model_config = {"str_strip_whitespace": True}


class CallerIdentity(BaseModel):
    uid: str
