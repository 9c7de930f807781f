from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from deckshare.db_models.instance import PresentationInstance, QuestionAnswer


def get_instance_by_id(db: Session, instance_id: str) -> Optional[PresentationInstance]:
    """Instance ID로 공유 인스턴스를 조회합니다."""
    return db.query(PresentationInstance).filter(PresentationInstance.id == instance_id).first()


def get_instance_by_token(db: Session, share_token: str) -> Optional[PresentationInstance]:
    """공유 토큰으로 인스턴스를 조회합니다."""
    return db.query(PresentationInstance).filter(PresentationInstance.share_token == share_token).first()


def token_exists(db: Session, share_token: str) -> bool:
    return (
        db.query(PresentationInstance.id)
        .filter(PresentationInstance.share_token == share_token)
        .first()
        is not None
    )


def create_instance(db: Session, instance: PresentationInstance) -> PresentationInstance:
    """새 인스턴스를 DB에 저장합니다. (share_token 중복이면 IntegrityError)"""
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance


def update_instance(db: Session, instance: PresentationInstance) -> PresentationInstance:
    """인스턴스 정보를 업데이트하고 DB에 저장합니다."""
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance


def upsert_answer(
    db: Session,
    instance_id: str,
    question_id: str,
    answer_text: Optional[str],
    answer_value: Any,
    answered_at: datetime,
) -> QuestionAnswer:
    """
    질문 답변 저장 (같은 instance/question 조합이면 덮어쓰기)
    """
    db_obj = (
        db.query(QuestionAnswer)
        .filter(QuestionAnswer.instance_id == instance_id, QuestionAnswer.question_id == question_id)
        .first()
    )
    if db_obj is None:
        db_obj = QuestionAnswer(instance_id=instance_id, question_id=question_id)
    db_obj.answer_text = answer_text
    db_obj.answer_value = answer_value
    db_obj.answered_at = answered_at
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def get_answers_by_instance_id(db: Session, instance_id: str) -> list[QuestionAnswer]:
    """특정 인스턴스의 모든 답변을 저장 순서대로 조회"""
    return (
        db.query(QuestionAnswer)
        .filter(QuestionAnswer.instance_id == instance_id)
        .order_by(QuestionAnswer.id)
        .all()
    )
