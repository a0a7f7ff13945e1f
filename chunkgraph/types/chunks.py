"""
Chunk Types

Chunks are immutable units of source text produced by a parsing front end.
Only the id and text are consumed here; everything else about the chunk
belongs to the producer.
"""

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """
    A unit of source text.

    Attributes:
        id: Opaque chunk identifier
        content: Plain-text content
    """

    id: str = Field(..., description="Opaque chunk identifier")
    content: str = Field(default="", description="Plain-text content of the chunk")

    model_config = ConfigDict(frozen=True)
