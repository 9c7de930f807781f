"""
deckshare/schemas/template.py
템플릿/슬라이드 스키마

- Feature: grid 계열 슬라이드의 카드 항목
- SlideQuestion: questionnaire 슬라이드에 고정으로 들어있는 문항
- Slide: 템플릿 안에서 id로만 참조되는 슬라이드 한 장
- Template: 등록 이후 변경되지 않는 슬라이드 덱 정의
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from deckshare.schemas.enums import QuestionType, SlideVariant


class Feature(BaseModel):
    model_config = ConfigDict(frozen=True)

    icon: str = ""
    title: str = ""
    description: str = ""


class SlideQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    options: Tuple[str, ...] = ()


class QuestionOption(BaseModel):
    """선택형 질문의 보기"""
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    value: Any = None


class Slide(BaseModel):
    """슬라이드

    variant 전용 필드(background, media 등)는 extra 로 그대로 보존한다.
    duration 은 ms 단위, 0 이면 자동 넘김 없이 사용자 입력을 기다린다.
    """
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1)
    type: SlideVariant
    title: Optional[str] = None
    subtitle: Optional[str] = None
    content: Optional[str] = None
    duration: int = Field(5000, ge=0)
    features: Optional[Tuple[Feature, ...]] = None
    questions: Optional[Tuple[SlideQuestion, ...]] = None

    # 삽입된 질문 슬라이드 전용
    question_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("questionId", "question_id"),
        serialization_alias="questionId",
    )
    question_type: Optional[QuestionType] = Field(
        None,
        validation_alias=AliasChoices("questionType", "question_type"),
        serialization_alias="questionType",
    )
    is_required: Optional[bool] = Field(
        None,
        validation_alias=AliasChoices("isRequired", "is_required"),
        serialization_alias="isRequired",
    )
    options: Optional[Tuple[QuestionOption, ...]] = None

    @property
    def auto_advances(self) -> bool:
        return self.duration > 0


class Template(BaseModel):
    """슬라이드 덱 템플릿 (카탈로그 등록 후 불변)"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    description: Optional[str] = None
    slides: Tuple[Slide, ...] = ()
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def default_name_to_id(cls, data: Any) -> Any:
        # name 이 비어 있으면 id 로 대체
        if isinstance(data, dict) and not data.get("name") and data.get("id"):
            data = {**data, "name": data["id"]}
        return data

    @field_validator("slides")
    @classmethod
    def validate_unique_slide_ids(cls, v: Tuple[Slide, ...]) -> Tuple[Slide, ...]:
        seen = set()
        for slide in v:
            if slide.id in seen:
                raise ValueError(f"duplicate slide id: {slide.id}")
            seen.add(slide.id)
        return v

    def get_slide(self, slide_id: str) -> Optional[Slide]:
        """Slide ID로 슬라이드 조회"""
        for slide in self.slides:
            if slide.id == slide_id:
                return slide
        return None

    def slide_ids(self) -> List[str]:
        return [slide.id for slide in self.slides]
