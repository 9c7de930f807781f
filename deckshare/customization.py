"""
deckshare/customization.py
CustomizationEngine - 템플릿 개인화

두 단계 커스터마이즈를 처리합니다.
1. simple: 필드 치환 (수신자 이름, 스토어 링크, 메시지, 임의 필드)
2. advanced: 필드 치환 + 커스텀 질문 슬라이드 삽입

입력 템플릿은 절대 변경하지 않고 항상 새 사본을 반환합니다.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from pydantic import ValidationError

from deckshare.errors import ValidationFailed
from deckshare.placeholder import substitute
from deckshare.schemas.customization import (
    Answer,
    CustomizationFields,
    CustomizationRecord,
    CustomizationRequest,
    CustomQuestion,
    RequiredCheck,
)
from deckshare.schemas.enums import InstanceStatus, SlideVariant
from deckshare.schemas.template import Feature, Slide, Template

logger = logging.getLogger(__name__)

# 수신자 이름이 없을 때 사용하는 기본 표기
DEFAULT_RECIPIENT_NAME = "Customer"

# placeholder 별칭 -> 실제 필드 키
PLACEHOLDER_ALIASES = {
    "name": "recipientName",
    "link": "storeLink",
}

QUESTION_SLIDE_PREFIX = "question-"


# ============================================================
# 요청 파싱
# ============================================================
def parse_customization_request(payload: Mapping[str, Any]) -> CustomizationRequest:
    """
    원시 페이로드를 CustomizationRequest 로 검증합니다.

    Raises:
        ValidationFailed: 필수 필드 누락, 잘못된 레벨/질문 타입 등
    """
    try:
        return CustomizationRequest.model_validate(dict(payload))
    except ValidationError as e:
        logger.warning(f"[CustomizationEngine] Invalid customization payload: {e.error_count()} errors")
        raise ValidationFailed("invalid customization payload", e.errors(include_url=False, include_context=False)) from e


def _coerce_fields(fields: CustomizationFields | Mapping[str, Any] | None) -> CustomizationFields:
    if fields is None:
        return CustomizationFields()
    if isinstance(fields, CustomizationFields):
        return fields
    try:
        return CustomizationFields.model_validate(dict(fields))
    except ValidationError as e:
        raise ValidationFailed("invalid customization fields", e.errors(include_url=False, include_context=False)) from e


# ============================================================
# 1단계: 필드 치환
# ============================================================
def build_resolver(fields: CustomizationFields | Mapping[str, Any] | None) -> Dict[str, str]:
    """
    placeholder key -> 치환 값 매핑을 만든다.

    recipientName(및 별칭 name)은 값이 없거나 공백이면 DEFAULT_RECIPIENT_NAME 으로 채운다.
    """
    values = _coerce_fields(fields).to_substitution_map()

    recipient_name = (values.get("recipientName") or "").strip()
    values["recipientName"] = recipient_name or DEFAULT_RECIPIENT_NAME

    for alias, key in PLACEHOLDER_ALIASES.items():
        if alias not in values and key in values:
            values[alias] = values[key]
    return values


def _substitute_slide(slide: Slide, resolver: Dict[str, str]) -> Slide:
    update: Dict[str, Any] = {
        "title": substitute(slide.title, resolver),
        "subtitle": substitute(slide.subtitle, resolver),
        "content": substitute(slide.content, resolver),
    }
    if slide.features:
        update["features"] = tuple(
            Feature(
                icon=feature.icon,
                title=substitute(feature.title, resolver),
                description=substitute(feature.description, resolver),
            )
            for feature in slide.features
        )
    return slide.model_copy(update=update, deep=True)


def apply_field_substitution(
    template: Template,
    fields: CustomizationFields | Mapping[str, Any] | None,
) -> Template:
    """
    모든 슬라이드의 텍스트 필드(title/subtitle/content, feature 텍스트)에 치환을 적용합니다.

    Args:
        template: 원본 템플릿 (변경되지 않음)
        fields: 치환 필드

    Returns:
        치환이 적용된 템플릿 사본
    """
    resolver = build_resolver(fields)
    slides = tuple(_substitute_slide(slide, resolver) for slide in template.slides)
    return template.model_copy(update={"slides": slides}, deep=True)


# ============================================================
# 2단계: 질문 슬라이드 삽입
# ============================================================
def _unique_slide_id(base: str, taken: Set[str]) -> str:
    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def build_question_slide(question: CustomQuestion, slide_id: str) -> Slide:
    """질문 하나를 수동 넘김(duration=0) quiz 슬라이드로 변환"""
    extra: Dict[str, Any] = {}
    if question.metadata:
        extra["metadata"] = dict(question.metadata)
    return Slide(
        id=slide_id,
        type=SlideVariant.QUIZ,
        title=question.question_text,
        duration=0,
        question_id=question.id,
        question_type=question.question_type,
        is_required=question.is_required,
        options=tuple(question.options) if question.options else None,
        **extra,
    )


def insert_question_slides(
    template: Template,
    questions: Sequence[CustomQuestion | Mapping[str, Any]],
) -> Template:
    """
    질문들을 지정된 위치에 quiz 슬라이드로 삽입합니다.

    - 목표 위치 내림차순으로 삽입해서 앞선 삽입이 뒤 질문의 위치를 밀지 않게 한다.
    - 위치는 [0, 현재 슬라이드 수] 로 clamp 한다 (버리지 않음).
    - 같은 위치의 질문들은 요청 순서를 유지한다.
    """
    try:
        parsed = [
            q if isinstance(q, CustomQuestion) else CustomQuestion.model_validate(dict(q))
            for q in questions
        ]
    except ValidationError as e:
        raise ValidationFailed("invalid question definition", e.errors(include_url=False, include_context=False)) from e

    slides: List[Slide] = [slide.model_copy(deep=True) for slide in template.slides]
    taken: Set[str] = {slide.id for slide in slides}
    original_count = len(slides)

    def _clamp(position: int) -> int:
        return min(max(0, position), original_count)

    # 같은 위치끼리는 나중 질문을 먼저 넣어야 최종 순서가 요청 순서가 된다
    ordered = sorted(
        enumerate(parsed),
        key=lambda pair: (_clamp(pair[1].position), pair[1].position, pair[0]),
        reverse=True,
    )

    for _, question in ordered:
        base_id = f"{QUESTION_SLIDE_PREFIX}{question.id or uuid.uuid4().hex[:9]}"
        slide_id = _unique_slide_id(base_id, taken)
        taken.add(slide_id)

        insert_index = _clamp(question.position)
        if insert_index != question.position:
            logger.debug(
                f"[CustomizationEngine] Clamped question position {question.position} -> {insert_index}"
            )
        slides.insert(insert_index, build_question_slide(question, slide_id))

    return template.model_copy(update={"slides": tuple(slides)}, deep=True)


def _assign_question_ids(questions: Sequence[CustomQuestion]) -> List[CustomQuestion]:
    """id 가 없는 질문에 id 를 부여 (답변이 질문을 참조할 수 있게)"""
    assigned: List[CustomQuestion] = []
    for question in questions:
        if question.id:
            assigned.append(question)
        else:
            assigned.append(question.model_copy(update={"id": uuid.uuid4().hex[:12]}))
    return assigned


# ============================================================
# 통합
# ============================================================
def create_customized_presentation(
    template: Template,
    customization: CustomizationRequest | Mapping[str, Any],
    answers: Optional[Sequence[Answer]] = None,
) -> CustomizationRecord:
    """
    커스터마이즈 레코드를 생성합니다.

    치환을 먼저 적용하고, advanced 레벨이면서 질문이 있을 때만 질문 슬라이드를 삽입합니다.

    Returns:
        CustomizationRecord (instance_id 는 저장 전이므로 빈 문자열)
    """
    request = (
        customization
        if isinstance(customization, CustomizationRequest)
        else parse_customization_request(customization)
    )

    if request.questions:
        request = request.model_copy(update={"questions": _assign_question_ids(request.questions)})

    customized = apply_field_substitution(template, request.simple)

    if request.is_advanced and request.questions:
        customized = insert_question_slides(customized, request.questions)

    logger.info(
        f"[CustomizationEngine] Customized '{template.id}' "
        f"(level={request.level.value}, slides={len(template.slides)}->{len(customized.slides)})"
    )

    return CustomizationRecord(
        instance_id="",
        presentation_id=template.id,
        template=customized,
        customization=request,
        answers=list(answers or []),
        status=InstanceStatus.DRAFT,
    )


# ============================================================
# 검증 / 조회
# ============================================================
def validate_required_questions(record: CustomizationRecord) -> RequiredCheck:
    """
    필수 질문 중 답변이 없는 질문의 텍스트 목록을 반환합니다.
    레코드는 변경하지 않습니다.
    """
    if not record.customization.is_advanced:
        return RequiredCheck(valid=True, missing=[])

    answered_ids = {answer.question_id for answer in record.answers}
    missing = [
        question.question_text
        for question in record.customization.questions
        if question.is_required and (question.id or "") not in answered_ids
    ]
    return RequiredCheck(valid=not missing, missing=missing)


def extract_answers(record: CustomizationRecord) -> List[Answer]:
    return [answer.model_copy() for answer in record.answers]
