"""
deckshare/errors.py
도메인 예외 정의

- NotFound: 템플릿/토큰 없음 (복구 가능, 사용자에게 "이용 불가" 상태로 노출)
- ValidationFailed: 커스터마이즈 페이로드/템플릿 정의 형식 오류
- ExhaustedRetries: 토큰 발급 재시도 한도 초과
- UnknownBranch: 플로우 테이블에 정의되지 않은 전이 (데이터 작성 버그)
- TokenCollision: 저장 시점 토큰 중복 (재시도 대상)
"""
from __future__ import annotations

from typing import Any, List, Optional


class DeckshareError(Exception):
    """deckshare 공통 베이스 예외"""


class NotFound(DeckshareError):
    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class ValidationFailed(DeckshareError):
    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)


class ExhaustedRetries(DeckshareError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"could not issue a unique token after {attempts} attempts")


class UnknownBranch(DeckshareError):
    def __init__(self, family_id: str, slide_id: Optional[str] = None, reason: str = ""):
        self.family_id = family_id
        self.slide_id = slide_id
        self.reason = reason
        detail = f"family={family_id!r}"
        if slide_id is not None:
            detail += f", slide={slide_id!r}"
        if reason:
            detail += f": {reason}"
        super().__init__(f"no transition defined ({detail})")


class TokenCollision(DeckshareError):
    def __init__(self, token: str):
        self.token = token
        super().__init__(f"share token already recorded: {token}")
