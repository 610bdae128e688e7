"""
Try-on data types.

Pydantic models serialize with camelCase aliases to keep the public JSON
shape of the API (outputUrl, garmentDescription, createdAt, ...).
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DEFAULT_GARMENT_DESCRIPTION = "garment"

# The provider returns either one URL or a list of them
OutputUrl = Union[str, List[str]]


def default_description(text: Optional[str]) -> str:
    """Substitute the canonical description for empty prompts."""
    if not text:
        return DEFAULT_GARMENT_DESCRIPTION
    return text


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


@dataclass(frozen=True)
class StagedAsset:
    local_path: str
    public_url: str


@dataclass(frozen=True)
class StagedPair:
    person: StagedAsset
    garment: StagedAsset

    @property
    def urls(self) -> List[str]:
        return [self.person.public_url, self.garment.public_url]


class TryOnRequest(CamelModel):
    person_image_path: str
    garment_image_path: str
    text_prompt: Optional[str] = None


class TryOnInput(CamelModel):
    human_img: str
    garment_img: str
    garment_description: str


class TryOnResult(CamelModel):
    output_url: OutputUrl
    input: TryOnInput


class PredictionStatus(CamelModel):
    id: str
    status: str
    output: Optional[Any] = None
    error: Optional[Any] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None

