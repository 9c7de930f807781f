"""
deckshare/placeholder.py
{{key}} 플레이스홀더 치환기

하나의 정규식으로 문자열을 왼쪽부터 한 번만 훑는다.
- 값이 있는 키: 값으로 교체
- 값이 없는 키: 마커를 그대로 남김 (템플릿/페이로드 불일치를 운영자가 볼 수 있게)
- 치환된 값은 다시 스캔하지 않음
"""
from __future__ import annotations

import re
from typing import Callable, List, Mapping, Optional, Union

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_.\-]+)\s*\}\}")

Resolver = Union[Mapping[str, str], Callable[[str], Optional[str]]]


def _lookup(resolver: Resolver, key: str) -> Optional[str]:
    if callable(resolver):
        return resolver(key)
    return resolver.get(key)


def substitute(text: Optional[str], resolver: Resolver) -> Optional[str]:
    """
    text 안의 {{key}} 마커를 resolver 값으로 교체합니다.

    Args:
        text: 원본 문자열 (None/빈 문자열은 그대로 반환)
        resolver: key -> value 매핑 또는 key 를 받아 값(없으면 None)을 돌려주는 함수

    Returns:
        치환된 문자열
    """
    if not text:
        return text

    def _replace(match: re.Match) -> str:
        value = _lookup(resolver, match.group(1))
        if value is None:
            return match.group(0)
        return value

    return PLACEHOLDER_PATTERN.sub(_replace, text)


def find_placeholders(text: Optional[str]) -> List[str]:
    """text 에 등장하는 placeholder key 목록 (등장 순서, 중복 제거)"""
    if not text:
        return []
    return list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(text)))
