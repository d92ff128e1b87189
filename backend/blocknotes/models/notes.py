from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel


class TextBlock(BaseModel):
    type: Literal["text"]
    content: StrictStr


class ImageBlock(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: Literal["image"]
    # opaque reference (data URI today); never decoded here
    src: StrictStr
    url: Optional[StrictStr] = None
    file_key: Optional[StrictStr] = None


ContentBlock = Annotated[Union[TextBlock, ImageBlock], Field(discriminator="type")]


class NoteWrite(BaseModel):
    # left untyped; the block validator decides what content is acceptable
    content: Any = None


class NoteOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: str
    content: list[dict[str, Any]]
    created_at: str
    updated_at: str


class NoteEnvelope(BaseModel):
    note: NoteOut


class NoteListEnvelope(BaseModel):
    notes: list[NoteOut]


class MessageOut(BaseModel):
    message: str
