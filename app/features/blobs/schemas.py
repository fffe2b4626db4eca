from pydantic import BaseModel, Field


class BlobDescriptor(BaseModel):
    url: str
    sha256: str = Field(min_length=64, max_length=64)
    size: int = Field(ge=0)
    type: str
    uploaded: int
