"""
deckshare - 개인화 슬라이드 덱 공유 서버

템플릿 카탈로그, 커스터마이즈 엔진, 슬라이드 플로우, 공유 토큰 발급을 묶은 패키지
"""
from deckshare.catalog import TemplateCatalog, get_catalog
from deckshare.customization import (
    apply_field_substitution,
    create_customized_presentation,
    extract_answers,
    insert_question_slides,
    parse_customization_request,
    validate_required_questions,
)
from deckshare.errors import (
    DeckshareError,
    ExhaustedRetries,
    NotFound,
    TokenCollision,
    UnknownBranch,
    ValidationFailed,
)
from deckshare.flow import FlowController, get_flow_controller
from deckshare.token_issuer import TokenIssuer, get_token_issuer, share_link

__all__ = [
    "TemplateCatalog",
    "get_catalog",
    "apply_field_substitution",
    "create_customized_presentation",
    "extract_answers",
    "insert_question_slides",
    "parse_customization_request",
    "validate_required_questions",
    "DeckshareError",
    "ExhaustedRetries",
    "NotFound",
    "TokenCollision",
    "UnknownBranch",
    "ValidationFailed",
    "FlowController",
    "get_flow_controller",
    "TokenIssuer",
    "get_token_issuer",
    "share_link",
]
