"""Extraction and structural validation of LLM replies.

Every parser returns either ``ParseOk`` with validated data or ``ParseFallback``
with the reason. Nothing here raises on bad model output.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

T = TypeVar("T")

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_BARE_FENCE = re.compile(r"```\s*([\s\S]*?)\s*```")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


@dataclass(frozen=True)
class ParseOk(Generic[T]):
    value: T


@dataclass(frozen=True)
class ParseFallback:
    reason: str


ParseResult = Union[ParseOk[T], ParseFallback]


class ScheduleItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    time: Optional[str] = None
    task_id: Optional[str] = None
    title: Optional[str] = None
    reason: Optional[str] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)
    priority: Optional[str] = None
    energy_match: Optional[int] = Field(default=None, ge=1, le=5)


class ParsedSchedule(BaseModel):
    schedule: List[ScheduleItem] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Plain dicts with the keys the model actually sent."""
        return {
            "schedule": [item.model_dump(by_alias=True, exclude_unset=True) for item in self.schedule],
            "insights": list(self.insights),
        }


class ReviewSummary(BaseModel):
    summary: str
    advice: str


_STRING_LIST = TypeAdapter(List[str])


def extract_fenced_json(text: str) -> str:
    """Contents of a ```json fence, else of a bare ``` fence, else the whole text."""
    match = _JSON_FENCE.search(text) or _BARE_FENCE.search(text)
    return match.group(1) if match else text


def extract_json_array(text: str) -> str:
    match = _JSON_ARRAY.search(text)
    return match.group(0) if match else text


def _load(raw: str) -> Union[ParseOk[Any], ParseFallback]:
    try:
        return ParseOk(json.loads(raw))
    except (TypeError, ValueError) as exc:
        return ParseFallback(f"invalid JSON: {exc}")


def parse_schedule(text: str) -> ParseResult[ParsedSchedule]:
    loaded = _load(extract_fenced_json(text or ""))
    if isinstance(loaded, ParseFallback):
        return loaded
    if not isinstance(loaded.value, dict):
        return ParseFallback("expected a JSON object")
    try:
        return ParseOk(ParsedSchedule.model_validate(loaded.value))
    except PydanticValidationError as exc:
        return ParseFallback(f"schedule shape mismatch: {exc.error_count()} errors")


def parse_string_list(text: str) -> ParseResult[List[str]]:
    loaded = _load(extract_json_array(text or ""))
    if isinstance(loaded, ParseFallback):
        return loaded
    try:
        return ParseOk(_STRING_LIST.validate_python(loaded.value, strict=True))
    except PydanticValidationError as exc:
        return ParseFallback(f"expected a list of strings: {exc.error_count()} errors")


def parse_review_summary(text: str) -> ParseResult[ReviewSummary]:
    loaded = _load(extract_fenced_json(text or ""))
    if isinstance(loaded, ParseFallback):
        return loaded
    try:
        return ParseOk(ReviewSummary.model_validate(loaded.value))
    except PydanticValidationError as exc:
        return ParseFallback(f"review summary shape mismatch: {exc.error_count()} errors")
