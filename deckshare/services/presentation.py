"""
deckshare/services/presentation.py
PresentationService - 공유 인스턴스 생성/열람/진행 흐름

운영자 쪽:  템플릿 선택 -> 커스터마이즈 -> 토큰 발급 -> 저장 -> 링크 반환
수신자 쪽:  토큰으로 열람 -> 슬라이드 진행 (답변 기록) -> 완료
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from deckshare.catalog import TemplateCatalog, get_catalog
from deckshare.customization import (
    create_customized_presentation,
    parse_customization_request,
    validate_required_questions,
)
from deckshare.errors import ExhaustedRetries, NotFound, TokenCollision
from deckshare.flow import FlowController, get_flow_controller
from deckshare.repository import InMemoryInstanceRepository, InstanceRepository
from deckshare.schemas.customization import CustomizationRecord, RequiredCheck
from deckshare.schemas.enums import InstanceStatus
from deckshare.token_issuer import TokenIssuer, get_token_issuer, share_link

logger = logging.getLogger(__name__)

# 저장 단계 재시도 횟수. 각 시도 안에서 issuer 가 max_attempts 번까지 존재 검사를 하므로
# 생성 한 번의 존재 검사는 최대 save_attempts * issuer.max_attempts 번이다.
DEFAULT_SAVE_ATTEMPTS = 3


@dataclass
class IssuedInstance:
    instance_id: str
    token: str
    link: str
    record: CustomizationRecord


@dataclass
class ViewSession:
    record: CustomizationRecord
    first_slide_id: str
    forward_only: bool


@dataclass
class Navigation:
    next_slide_id: str
    terminal: bool
    requires_input: bool


class PresentationService:
    def __init__(
        self,
        catalog: TemplateCatalog,
        repository: InstanceRepository,
        issuer: TokenIssuer,
        flow: FlowController,
        origin: str,
        save_attempts: int = DEFAULT_SAVE_ATTEMPTS,
    ):
        self.catalog = catalog
        self.repository = repository
        self.issuer = issuer
        self.flow = flow
        self.origin = origin
        self.save_attempts = save_attempts

    # ============================================================
    # 운영자: 생성
    # ============================================================
    async def create_instance(
        self,
        template_id: str,
        customization: Mapping[str, Any],
        origin: Optional[str] = None,
    ) -> IssuedInstance:
        """
        커스터마이즈된 공유 인스턴스를 만들고 링크를 발급합니다.

        Raises:
            NotFound: 템플릿 없음
            ValidationFailed: 잘못된 커스터마이즈 페이로드
            ExhaustedRetries: 토큰 발급/저장 재시도 한도 초과
        """
        template = self.catalog.require(template_id)
        request = parse_customization_request(customization)
        record = create_customized_presentation(template, request)

        # 발급 시점 검사와 저장 사이에 같은 토큰이 끼어들면 저장소가 거부한다
        for attempt in range(1, self.save_attempts + 1):
            token = await self.issuer.issue_unique(self.repository.exists)
            try:
                instance_id = await self.repository.save(record, token)
                break
            except TokenCollision:
                logger.warning(
                    f"[PresentationService] Token recorded concurrently, retrying "
                    f"({attempt}/{self.save_attempts})"
                )
        else:
            raise ExhaustedRetries(self.save_attempts)

        await self.repository.update_status(instance_id, InstanceStatus.SENT)
        record = record.model_copy(update={"instance_id": instance_id, "status": InstanceStatus.SENT})

        link = share_link(origin or self.origin, token)
        logger.info(f"[PresentationService] Created instance {instance_id} for '{template_id}'")
        return IssuedInstance(instance_id=instance_id, token=token, link=link, record=record)

    # ============================================================
    # 수신자: 열람 / 진행 / 완료
    # ============================================================
    async def _load(self, token: str) -> CustomizationRecord:
        # 형식이 틀린 토큰은 저장소 조회 없이 "없음"
        if not self.issuer.validate(token):
            raise NotFound("share token", token)
        return await self.repository.load_by_token(token)

    async def open_by_token(self, token: str) -> ViewSession:
        """토큰으로 덱을 열고 첫 슬라이드를 알려준다 (처음 열람이면 viewed 로 표시)"""
        record = await self._load(token)
        family_id = record.presentation_id
        first = self.flow.first_slide(family_id, record.template.slide_ids())

        if record.status in (InstanceStatus.DRAFT, InstanceStatus.SENT):
            await self.repository.update_status(record.instance_id, InstanceStatus.VIEWED)
            record = record.model_copy(update={"status": InstanceStatus.VIEWED})

        return ViewSession(
            record=record,
            first_slide_id=first,
            forward_only=self.flow.is_forward_only(family_id),
        )

    async def navigate(
        self,
        token: str,
        current_slide_id: str,
        answer: Any = None,
        question_id: Optional[str] = None,
    ) -> Navigation:
        """
        답변이 있으면 기록하고 다음 슬라이드를 계산합니다.

        question_id 를 생략하면 삽입된 질문 슬라이드는 그 질문 id, 그 외에는 슬라이드 id 로 기록한다.
        """
        record = await self._load(token)
        family_id = record.presentation_id
        order = record.template.slide_ids()

        if answer is not None:
            slide = record.template.get_slide(current_slide_id)
            key = question_id or (slide.question_id if slide and slide.question_id else current_slide_id)
            await self.repository.record_answer(record.instance_id, key, answer)

        next_id = self.flow.next_slide(family_id, current_slide_id, answer, slide_order=order)
        next_slide = record.template.get_slide(next_id)
        return Navigation(
            next_slide_id=next_id,
            terminal=self.flow.is_terminal(family_id, next_id, order),
            requires_input=self.flow.requires_input(family_id, next_slide or next_id),
        )

    async def complete(self, token: str) -> RequiredCheck:
        """필수 질문이 모두 답변되었으면 completed 로 표시"""
        record = await self._load(token)
        check = validate_required_questions(record)
        if check.valid and record.status != InstanceStatus.COMPLETED:
            await self.repository.update_status(record.instance_id, InstanceStatus.COMPLETED)
        return check


# ============================================================
# 싱글턴
# ============================================================
_service_instance: Optional[PresentationService] = None


def _default_repository() -> InstanceRepository:
    from deckshare.config import STORAGE_BACKEND

    if STORAGE_BACKEND == "memory":
        return InMemoryInstanceRepository()
    from deckshare.database import SessionLocal, get_engine
    from deckshare.sql_repository import SqlInstanceRepository

    get_engine()
    return SqlInstanceRepository(SessionLocal)


def get_presentation_service() -> PresentationService:
    """설정 기반 PresentationService 싱글턴 (FastAPI 의존성으로도 사용)"""
    global _service_instance
    if _service_instance is None:
        from deckshare.config import SHARE_ORIGIN

        _service_instance = PresentationService(
            catalog=get_catalog(),
            repository=_default_repository(),
            issuer=get_token_issuer(),
            flow=get_flow_controller(),
            origin=SHARE_ORIGIN,
        )
    return _service_instance
