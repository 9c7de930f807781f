"""
deckshare/schemas/enums.py
모든 Enum 정의 통합
"""
from enum import Enum


class SlideVariant(str, Enum):
    """슬라이드 레이아웃 종류"""
    PERSONALIZED_HERO = "personalized-hero"
    ANIMATED_HERO = "animated-hero"
    HERO = "hero"
    SPLIT = "split"
    HALF_RIGHT = "half-right"
    GRID = "grid"
    STATS = "stats"
    TIMELINE = "timeline"
    TESTIMONIALS = "testimonials"
    QUESTIONNAIRE = "questionnaire"
    QUIZ = "quiz"
    CONTACT = "contact"
    FINAL = "final"
    VIDEO = "video"
    INPUT = "input"


class QuestionType(str, Enum):
    """커스텀 질문 답변 타입"""
    TEXT = "text"
    YES_NO = "yes_no"
    MULTIPLE_CHOICE = "multiple_choice"
    RATING = "rating"


class CustomizationLevel(str, Enum):
    SIMPLE = "simple"        # 필드 치환만
    ADVANCED = "advanced"    # 필드 치환 + 질문 슬라이드 삽입


class InstanceStatus(str, Enum):
    """공유 인스턴스 상태"""
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    COMPLETED = "completed"
