"""
deckshare/sql_repository.py
SQLAlchemy 기반 InstanceRepository 구현

세션은 호출마다 session_factory 에서 새로 열고 닫는다.
share_token 의 unique 제약 위반(IntegrityError)은 TokenCollision 으로 변환한다.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deckshare.crud import instance as crud
from deckshare.db_models.instance import PresentationInstance
from deckshare.errors import NotFound, TokenCollision
from deckshare.repository import make_answer
from deckshare.schemas.customization import Answer, CustomizationRecord, CustomizationRequest
from deckshare.schemas.enums import InstanceStatus
from deckshare.schemas.template import Template

logger = logging.getLogger(__name__)

# 상태 -> 타임스탬프 컬럼
_STATUS_TIMESTAMPS = {
    InstanceStatus.SENT: "sent_at",
    InstanceStatus.VIEWED: "viewed_at",
    InstanceStatus.COMPLETED: "completed_at",
}


def _utcnow() -> datetime:
    # DateTime 컬럼은 naive UTC 로 저장
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlInstanceRepository:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    async def exists(self, token: str) -> bool:
        with self._session() as db:
            return crud.token_exists(db, token)

    async def save(self, record: CustomizationRecord, token: str) -> str:
        fields = record.customization.simple
        instance = PresentationInstance(
            id=uuid.uuid4().hex,
            share_token=token,
            presentation_id=record.presentation_id,
            recipient_name=fields.recipient_name,
            store_link=fields.store_link,
            customization_level=record.customization.level,
            status=record.status,
            customization=record.customization.model_dump(mode="json", by_alias=True),
            template=record.template.model_dump(mode="json", by_alias=True),
        )
        with self._session() as db:
            try:
                crud.create_instance(db, instance)
            except IntegrityError as e:
                db.rollback()
                raise TokenCollision(token) from e
            instance_id = instance.id

        for answer in record.answers:
            value = answer.answer_text if answer.answer_text is not None else answer.answer_value
            await self.record_answer(instance_id, answer.question_id, value)

        logger.info(f"[SqlRepository] Saved instance {instance_id} ({record.presentation_id})")
        return instance_id

    async def load_by_token(self, token: str) -> CustomizationRecord:
        with self._session() as db:
            instance = crud.get_instance_by_token(db, token)
            if instance is None:
                raise NotFound("share token", token)
            answers = [
                Answer(
                    question_id=row.question_id,
                    answer_text=row.answer_text,
                    answer_value=row.answer_value,
                    answered_at=row.answered_at.replace(tzinfo=timezone.utc),
                )
                for row in crud.get_answers_by_instance_id(db, instance.id)
            ]
            return CustomizationRecord(
                instance_id=instance.id,
                presentation_id=instance.presentation_id,
                template=Template.model_validate(instance.template),
                customization=CustomizationRequest.model_validate(instance.customization),
                answers=answers,
                status=instance.status,
            )

    async def record_answer(self, instance_id: str, question_id: str, value: Any) -> Answer:
        answer = make_answer(question_id, value)
        with self._session() as db:
            if crud.get_instance_by_id(db, instance_id) is None:
                raise NotFound("instance", instance_id)
            crud.upsert_answer(
                db,
                instance_id=instance_id,
                question_id=question_id,
                answer_text=answer.answer_text,
                answer_value=answer.answer_value,
                answered_at=answer.answered_at.replace(tzinfo=None),
            )
        return answer

    async def update_status(self, instance_id: str, status: InstanceStatus) -> None:
        with self._session() as db:
            instance = crud.get_instance_by_id(db, instance_id)
            if instance is None:
                raise NotFound("instance", instance_id)
            instance.status = status
            column = _STATUS_TIMESTAMPS.get(status)
            if column:
                setattr(instance, column, _utcnow())
            crud.update_instance(db, instance)
