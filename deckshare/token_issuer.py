"""
deckshare/token_issuer.py
TokenIssuer - 공유 링크 토큰 발급

토큰은 대문자 + 숫자(대소문자 혼동 없음) 고정 길이 문자열이다.
유일성은 호출자가 넘겨주는 exists_check(보통 저장소 조회)로 확인하고,
정해진 횟수 안에 못 찾으면 ExhaustedRetries 로 실패를 드러낸다.
"""
from __future__ import annotations

import inspect
import logging
import re
import secrets
import string
from typing import Awaitable, Callable, Optional, Union

from deckshare.errors import ExhaustedRetries

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_TOKEN_LENGTH = 12
DEFAULT_MAX_ATTEMPTS = 10

ExistsCheck = Callable[[str], Union[bool, Awaitable[bool]]]


class TokenIssuer:
    def __init__(
        self,
        length: int = DEFAULT_TOKEN_LENGTH,
        alphabet: str = TOKEN_ALPHABET,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        if length <= 0:
            raise ValueError("token length must be positive")
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if len(set(alphabet)) != len(alphabet) or not alphabet:
            raise ValueError("alphabet must be non-empty and free of duplicates")
        self.length = length
        self.alphabet = alphabet
        self.max_attempts = max_attempts
        self._pattern = re.compile(f"^[{re.escape(alphabet)}]{{{length}}}$")

    def generate(self) -> str:
        """alphabet 에서 균등하게 뽑은 고정 길이 토큰"""
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))

    def validate(self, token: Optional[str]) -> bool:
        """길이/문자 집합 형식 검사 (존재 여부는 보지 않음)"""
        return isinstance(token, str) and bool(self._pattern.match(token))

    async def issue_unique(self, exists_check: ExistsCheck) -> str:
        """
        exists_check 가 False 를 돌려주는 토큰을 찾을 때까지 생성을 반복합니다.

        Args:
            exists_check: token -> bool (동기 함수 또는 코루틴 함수)

        Returns:
            발급 시점 기준으로 중복되지 않는 토큰

        Raises:
            ExhaustedRetries: max_attempts 번 모두 충돌했을 때
        """
        for attempt in range(1, self.max_attempts + 1):
            token = self.generate()
            exists = exists_check(token)
            if inspect.isawaitable(exists):
                exists = await exists
            if not exists:
                if attempt > 1:
                    logger.info(f"[TokenIssuer] Issued token after {attempt} attempts")
                return token
            logger.warning(f"[TokenIssuer] Token collision on attempt {attempt}/{self.max_attempts}")

        logger.error(
            f"[TokenIssuer] Could not issue a unique token in {self.max_attempts} attempts; "
            f"check the existence lookup or the token length/alphabet"
        )
        raise ExhaustedRetries(self.max_attempts)


def share_link(origin: str, token: str) -> str:
    """<origin>/view/<token>"""
    return f"{origin.rstrip('/')}/view/{token}"


# ============================================================
# 싱글턴
# ============================================================
_issuer_instance: Optional[TokenIssuer] = None


def get_token_issuer() -> TokenIssuer:
    """설정값 기반 TokenIssuer 싱글턴 반환"""
    global _issuer_instance
    if _issuer_instance is None:
        from deckshare.config import TOKEN_LENGTH, TOKEN_MAX_ATTEMPTS

        _issuer_instance = TokenIssuer(length=TOKEN_LENGTH, max_attempts=TOKEN_MAX_ATTEMPTS)
    return _issuer_instance
