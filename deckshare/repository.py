"""
deckshare/repository.py
저장소 협력자 계약 + 인메모리 구현

커스터마이즈 레코드를 공유 토큰 아래에 저장하고, 토큰으로 다시 꺼낸다.
토큰 유일성의 최종 보루는 저장소다: 중복 토큰 저장은 TokenCollision 으로 거부한다.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Protocol, runtime_checkable

from deckshare.errors import NotFound, TokenCollision
from deckshare.schemas.customization import Answer, CustomizationRecord
from deckshare.schemas.enums import InstanceStatus

logger = logging.getLogger(__name__)


@runtime_checkable
class InstanceRepository(Protocol):
    """공유 인스턴스 저장소 인터페이스"""

    async def exists(self, token: str) -> bool:
        ...

    async def save(self, record: CustomizationRecord, token: str) -> str:
        """레코드 저장 후 instance id 반환 (토큰 중복이면 TokenCollision)"""
        ...

    async def load_by_token(self, token: str) -> CustomizationRecord:
        """토큰으로 레코드 조회 (없으면 NotFound)"""
        ...

    async def record_answer(self, instance_id: str, question_id: str, value: Any) -> Answer:
        """답변 upsert (같은 질문의 이전 답변은 교체)"""
        ...

    async def update_status(self, instance_id: str, status: InstanceStatus) -> None:
        ...


def make_answer(question_id: str, value: Any) -> Answer:
    """문자열은 answer_text, 그 외(dict 등 구조화 값)는 answer_value 로 보관"""
    if isinstance(value, str):
        return Answer(question_id=question_id, answer_text=value)
    return Answer(question_id=question_id, answer_value=value)


class InMemoryInstanceRepository:
    """프로세스 메모리 저장소 (테스트/로컬 실행용)"""

    def __init__(self):
        self._records: Dict[str, CustomizationRecord] = {}
        self._tokens: Dict[str, str] = {}  # token -> instance_id
        self._timestamps: Dict[str, Dict[str, datetime]] = {}
        self._lock = asyncio.Lock()

    async def exists(self, token: str) -> bool:
        return token in self._tokens

    async def save(self, record: CustomizationRecord, token: str) -> str:
        async with self._lock:
            if token in self._tokens:
                raise TokenCollision(token)
            instance_id = uuid.uuid4().hex
            self._records[instance_id] = record.model_copy(update={"instance_id": instance_id}, deep=True)
            self._tokens[token] = instance_id
            self._timestamps[instance_id] = {"created_at": datetime.now(timezone.utc)}
        logger.info(f"[InMemoryRepository] Saved instance {instance_id} ({record.presentation_id})")
        return instance_id

    def _require(self, instance_id: str) -> CustomizationRecord:
        record = self._records.get(instance_id)
        if record is None:
            raise NotFound("instance", instance_id)
        return record

    async def load_by_token(self, token: str) -> CustomizationRecord:
        instance_id = self._tokens.get(token)
        if instance_id is None:
            raise NotFound("share token", token)
        return self._require(instance_id).model_copy(deep=True)

    async def record_answer(self, instance_id: str, question_id: str, value: Any) -> Answer:
        async with self._lock:
            record = self._require(instance_id)
            answer = make_answer(question_id, value)
            answers = [a for a in record.answers if a.question_id != question_id]
            answers.append(answer)
            self._records[instance_id] = record.model_copy(update={"answers": answers})
        return answer

    async def update_status(self, instance_id: str, status: InstanceStatus) -> None:
        async with self._lock:
            record = self._require(instance_id)
            self._records[instance_id] = record.model_copy(update={"status": status})
            self._timestamps[instance_id][f"{status.value}_at"] = datetime.now(timezone.utc)

    def timestamps(self, instance_id: str) -> Dict[str, datetime]:
        return dict(self._timestamps.get(instance_id, {}))
