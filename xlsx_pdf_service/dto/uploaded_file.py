from pydantic import BaseModel, ConfigDict, Field


class UploadedFile(BaseModel):
    """Client-submitted spreadsheet for a single request. Never persisted."""

    model_config = ConfigDict(frozen=True)

    stream: bytes
    """Raw upload bytes, read at most up to the size ceiling plus one byte."""

    file_name: str = Field("", description="Filename declared by the client.")

    size: int = Field(0, ge=0, description="Declared or observed upload size in bytes.")
