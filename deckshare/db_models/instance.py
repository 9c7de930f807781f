from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from deckshare.database import Base
from deckshare.schemas.enums import CustomizationLevel, InstanceStatus

# PostgreSQL 에서는 JSONB, 그 외(SQLite 테스트 등)에서는 JSON
JsonType = JSON().with_variant(JSONB(), "postgresql")


# ============================================================
# SQLAlchemy ORM PresentationInstance Model
# ============================================================
class PresentationInstance(Base):
    __tablename__ = "presentation_instances"

    id = Column(String(32), primary_key=True)

    # 공유 토큰: 최종 유일성 보장은 이 unique 제약
    share_token = Column(String(32), nullable=False, unique=True, index=True)

    # 원본 템플릿 ID (flow family 선택에도 사용)
    presentation_id = Column(String, nullable=False, index=True)

    recipient_name = Column(String, nullable=True)
    store_link = Column(String, nullable=True)
    customization_level = Column(SQLEnum(CustomizationLevel), nullable=False, default=CustomizationLevel.SIMPLE)
    status = Column(SQLEnum(InstanceStatus), nullable=False, default=InstanceStatus.DRAFT)

    # 원본 커스터마이즈 요청 (감사/재생용)
    customization = Column(JsonType, nullable=False, default=dict)

    # 커스터마이즈된 템플릿 사본
    template = Column(JsonType, nullable=False, default=dict)

    # 시간 정보
    create_time = Column(DateTime, server_default=func.now())
    update_time = Column(DateTime, server_default=func.now(), onupdate=func.now())
    sent_at = Column(DateTime, nullable=True)
    viewed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    answers = relationship(
        "QuestionAnswer",
        back_populates="instance",
        cascade="all, delete-orphan",
        order_by="QuestionAnswer.id",
    )


class QuestionAnswer(Base):
    __tablename__ = "question_answers"
    __table_args__ = (UniqueConstraint("instance_id", "question_id", name="uq_answer_per_question"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    instance_id = Column(String(32), ForeignKey("presentation_instances.id"), nullable=False, index=True)
    question_id = Column(String, nullable=False)
    answer_text = Column(Text, nullable=True)
    answer_value = Column(JsonType, nullable=True)
    answered_at = Column(DateTime, nullable=False)

    instance = relationship("PresentationInstance", back_populates="answers")
