"""
deckshare/schemas/customization.py
커스터마이즈 요청/레코드 스키마

- CustomizationFields: simple 레벨 치환 필드 (recipientName, storeLink, customMessage + 임의 필드)
- CustomQuestion: advanced 레벨에서 덱에 끼워넣는 질문 정의
- CustomizationRequest: 운영자가 보내는 커스터마이즈 요청 전체
- Answer: 수신자가 남긴 답변
- CustomizationRecord: 커스터마이즈 결과물 (템플릿 사본 + 원본 요청 + 답변)
- RequiredCheck: 필수 질문 답변 여부 검사 결과
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from deckshare.schemas.enums import CustomizationLevel, InstanceStatus, QuestionType
from deckshare.schemas.template import QuestionOption, Template


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CustomizationFields(BaseModel):
    """simple 레벨 치환 필드

    선언되지 않은 키도 extra 로 받아서 {{key}} 치환에 사용한다.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    recipient_name: Optional[str] = Field(None, alias="recipientName")
    store_link: Optional[str] = Field(None, alias="storeLink")
    custom_message: Optional[str] = Field(None, alias="customMessage")

    def to_substitution_map(self) -> Dict[str, str]:
        """치환 가능한 문자열 값만 {placeholder key: value} 로 반환"""
        values: Dict[str, str] = {}
        for key, value in (self.model_extra or {}).items():
            if isinstance(value, str):
                values[key] = value
        if self.recipient_name is not None:
            values["recipientName"] = self.recipient_name
        if self.store_link is not None:
            values["storeLink"] = self.store_link
        if self.custom_message is not None:
            values["customMessage"] = self.custom_message
        return values


class CustomQuestion(BaseModel):
    """커스텀 질문 정의 (요청 페이로드 안에서만 존재)"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    question_text: str = Field(
        ...,
        validation_alias=AliasChoices("questionText", "question_text", "text"),
        serialization_alias="questionText",
    )
    question_type: QuestionType = Field(
        QuestionType.TEXT,
        validation_alias=AliasChoices("questionType", "question_type", "type"),
        serialization_alias="questionType",
    )
    position: int = 0
    is_required: bool = Field(
        False,
        validation_alias=AliasChoices("isRequired", "is_required", "required"),
        serialization_alias="isRequired",
    )
    options: Optional[List[QuestionOption]] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("question_text")
    @classmethod
    def validate_text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("question text must not be blank")
        return v

    @field_validator("question_type", mode="before")
    @classmethod
    def normalize_question_type(cls, v: Any) -> Any:
        # single_choice / choice 는 multiple_choice 로 취급
        if isinstance(v, str) and v.strip().lower() in ("single_choice", "choice"):
            return QuestionType.MULTIPLE_CHOICE
        return v


class CustomizationRequest(BaseModel):
    """커스터마이즈 요청

    simple 필드는 "simple" 키 아래에 넣거나 최상위에 평평하게 넣어도 된다.
    """
    model_config = ConfigDict(populate_by_name=True)

    level: CustomizationLevel = CustomizationLevel.SIMPLE
    simple: CustomizationFields = Field(default_factory=CustomizationFields)
    questions: List[CustomQuestion] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def collect_flat_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        reserved = {"level", "simple", "questions"}
        flat = {k: v for k, v in data.items() if k not in reserved}
        if not flat:
            return data
        simple = dict(data.get("simple") or {})
        for key, value in flat.items():
            simple.setdefault(key, value)
        result = {k: v for k, v in data.items() if k in reserved}
        result["simple"] = simple
        return result

    @property
    def is_advanced(self) -> bool:
        return self.level == CustomizationLevel.ADVANCED


class Answer(BaseModel):
    """수신자 답변"""
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(..., alias="questionId")
    answer_text: Optional[str] = Field(None, alias="answerText")
    answer_value: Any = Field(None, alias="answerValue")
    answered_at: datetime = Field(default_factory=_utcnow, alias="answeredAt")


class CustomizationRecord(BaseModel):
    """커스터마이즈 결과 레코드

    저장 전에는 instance_id 가 빈 문자열이다.
    """
    model_config = ConfigDict(populate_by_name=True)

    instance_id: str = Field("", alias="instanceId")
    presentation_id: str = Field(..., alias="presentationId")
    template: Template
    customization: CustomizationRequest
    answers: List[Answer] = Field(default_factory=list)
    status: InstanceStatus = InstanceStatus.DRAFT


class RequiredCheck(BaseModel):
    valid: bool
    missing: List[str] = Field(default_factory=list)
