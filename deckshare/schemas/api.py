"""
deckshare/schemas/api.py
HTTP 요청/응답 스키마 (camelCase 직렬화)
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from deckshare.schemas.enums import InstanceStatus
from deckshare.schemas.template import Template


class TemplateSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: Optional[str] = None
    slide_count: int = Field(..., alias="slideCount")


class TemplateListResponse(BaseModel):
    templates: List[TemplateSummary]


class CreateInstanceRequest(BaseModel):
    """POST /v1/instances/ 요청 바디"""
    model_config = ConfigDict(populate_by_name=True)

    template_id: str = Field(..., alias="templateId", min_length=1)
    customization: Dict[str, Any] = Field(default_factory=dict)
    origin: Optional[str] = None


class CreateInstanceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instance_id: str = Field(..., alias="instanceId")
    token: str
    link: str


class ViewResponse(BaseModel):
    """GET /v1/view/{token} 응답"""
    model_config = ConfigDict(populate_by_name=True)

    instance_id: str = Field(..., alias="instanceId")
    template_id: str = Field(..., alias="templateId")
    status: InstanceStatus
    first_slide_id: str = Field(..., alias="firstSlideId")
    forward_only: bool = Field(..., alias="forwardOnly")
    presentation: Template


class NextSlideRequest(BaseModel):
    """POST /v1/view/{token}/next 요청 바디"""
    model_config = ConfigDict(populate_by_name=True)

    current_slide_id: str = Field(..., alias="currentSlideId", min_length=1)
    answer: Any = None
    question_id: Optional[str] = Field(None, alias="questionId")


class NextSlideResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    next_slide_id: str = Field(..., alias="nextSlideId")
    terminal: bool
    requires_input: bool = Field(..., alias="requiresInput")


class CompleteResponse(BaseModel):
    completed: bool
    missing: List[str] = Field(default_factory=list)
