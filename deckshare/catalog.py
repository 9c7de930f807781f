"""
deckshare/catalog.py
TemplateCatalog - 템플릿 ID -> 불변 Template 인덱스

최초 사용 시 한 번만 빌드되고, 이후에는 읽기 전용이다.
동시에 여러 호출자가 처음 접근해도 빌드는 한 번만 실행된다 (lock + double-check).
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from deckshare.errors import NotFound, ValidationFailed
from deckshare.schemas.template import Template

logger = logging.getLogger(__name__)

TemplateDefinition = Union[Template, Dict[str, Any]]
TemplateSource = Union[Iterable[TemplateDefinition], Callable[[], Iterable[TemplateDefinition]]]


class TemplateCatalog:
    """
    템플릿 카탈로그

    호스트가 한 번 생성해서 소비자에게 넘겨준다.
    테스트에서는 fixture 템플릿 리스트로 바로 만들 수 있다.
    """

    def __init__(self, source: TemplateSource):
        """
        Args:
            source: 템플릿 정의 시퀀스 또는 그것을 반환하는 인자 없는 함수
        """
        self._source = source
        self._templates: Dict[str, Template] = {}
        self._loaded = False
        self._lock = threading.Lock()

    # ============================================================
    # 라이프사이클
    # ============================================================
    def load(self) -> None:
        """카탈로그 빌드 (두 번째 호출부터는 no-op)"""
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            self._templates = self._build()
            self._loaded = True
            logger.info(f"[TemplateCatalog] Registered {len(self._templates)} templates")

    def clear(self) -> None:
        """인덱스를 비워 다음 접근 시 다시 빌드되게 한다"""
        with self._lock:
            self._templates = {}
            self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def _build(self) -> Dict[str, Template]:
        definitions = self._source() if callable(self._source) else self._source

        templates: Dict[str, Template] = {}
        for definition in definitions:
            template = self._to_template(definition)
            if template.id in templates:
                raise ValidationFailed(f"duplicate template id: {template.id}")
            templates[template.id] = template
        return templates

    @staticmethod
    def _to_template(definition: TemplateDefinition) -> Template:
        if isinstance(definition, Template):
            return definition
        try:
            return Template.model_validate(definition)
        except ValidationError as e:
            template_id = definition.get("id", "?") if isinstance(definition, dict) else "?"
            logger.error(f"[TemplateCatalog] Invalid template definition '{template_id}': {e}")
            raise ValidationFailed(
                f"invalid template definition: {template_id}", e.errors(include_url=False, include_context=False)
            ) from e

    # ============================================================
    # 조회
    # ============================================================
    def get(self, template_id: str) -> Optional[Template]:
        """템플릿 조회 (없으면 None)"""
        self.load()
        return self._templates.get(template_id)

    def require(self, template_id: str) -> Template:
        """템플릿 조회 (없으면 NotFound)"""
        template = self.get(template_id)
        if template is None:
            raise NotFound("template", template_id)
        return template

    def list(self) -> List[Template]:
        """등록 순서대로 모든 템플릿"""
        self.load()
        return list(self._templates.values())

    def has(self, template_id: str) -> bool:
        self.load()
        return template_id in self._templates

    def __len__(self) -> int:
        self.load()
        return len(self._templates)


# ============================================================
# 번들 템플릿 기반 기본 카탈로그
# ============================================================
_catalog_instance: Optional[TemplateCatalog] = None


def get_catalog() -> TemplateCatalog:
    """번들된 템플릿 디렉토리로 만든 TemplateCatalog 싱글턴 반환"""
    global _catalog_instance
    if _catalog_instance is None:
        from deckshare.config import TEMPLATES_BASE_PATH
        from deckshare.loader import TemplateLoader

        _catalog_instance = TemplateCatalog(TemplateLoader(TEMPLATES_BASE_PATH).load_all)
    return _catalog_instance
