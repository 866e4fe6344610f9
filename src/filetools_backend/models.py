from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

OptionValue = Union[str, int, float, bool]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OptionType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    RANGE = "range"
    SELECT = "select"
    CHECKBOX = "checkbox"
    DATETIME = "datetime"


class ToolCategory(str, Enum):
    PDF = "pdf"
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"
    TEXT = "text"
    DEVELOPER = "developer"
    CONVERTER = "converter"
    OCR = "ocr"
    AI_WRITING = "ai-writing"


class OptionSpec(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    label: str
    type: OptionType
    options: Optional[List[str]] = None
    choice_labels: Optional[List[str]] = None
    default: Optional[OptionValue] = None
    min: Optional[float] = None
    max: Optional[float] = None
    required: bool = False
    placeholder: Optional[str] = None

    @model_validator(mode="after")
    def _check_select(self) -> "OptionSpec":
        if self.type is OptionType.SELECT:
            if not self.options:
                raise ValueError(f"select option '{self.name}' must declare its choices")
            if self.default is not None and str(self.default) not in self.options:
                raise ValueError(f"default of select option '{self.name}' is not one of its choices")
        if self.choice_labels is not None and len(self.choice_labels) != len(self.options or []):
            raise ValueError(f"choice labels of '{self.name}' do not line up with its choices")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"option '{self.name}' has min greater than max")
        return self

    @property
    def is_numeric(self) -> bool:
        return self.type in (OptionType.NUMBER, OptionType.RANGE)


class ToolDescriptor(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    category: ToolCategory
    description: str
    accepted_formats: List[str] = Field(default_factory=list)
    max_files: int = Field(default=0, ge=0)
    options: List[OptionSpec] = Field(default_factory=list)

    def option(self, name: str) -> Optional[OptionSpec]:
        return next((spec for spec in self.options if spec.name == name), None)

    def to_summary(self) -> "ToolSummary":
        return ToolSummary(id=self.id, name=self.name, category=self.category, description=self.description)


class ToolSummary(CamelModel):
    id: str
    name: str
    category: ToolCategory
    description: str


class UploadedFile(CamelModel):
    original_name: str
    stored_path: Path
    size_bytes: int
    mime_type: str

    @property
    def extension(self) -> str:
        return Path(self.original_name).suffix.lower()

    @property
    def stem(self) -> str:
        return Path(self.original_name).stem or "file"


class GeneratedArtifact(CamelModel):
    file_id: str
    file_name: str
    size_bytes: int
    created_at: datetime


class ProcessResult(BaseModel):
    artifact: GeneratedArtifact
    message: str
    additional_files: List[str] = Field(default_factory=list)
    data: Optional[Any] = None


class ArtifactPayload(CamelModel):
    file_id: str
    file_name: str
    file_size: int
    message: str
    additional_files: Optional[List[str]] = None
    data: Optional[Any] = None


class ProcessEnvelope(CamelModel):
    success: bool = True
    data: ArtifactPayload
    download_url: str


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
