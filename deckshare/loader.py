"""
deckshare/loader.py
번들된 템플릿 YAML 로더

data/templates/ 아래에 템플릿 하나당 YAML 파일 하나를 둔다.
    data/templates/
        demo.yaml
        omega-balance.yaml
        ...
파일명(확장자 제외)과 YAML 안의 id 는 같아야 한다.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List

import yaml

from deckshare.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)


class TemplateLoader:
    """템플릿 YAML 파일들을 로드하는 로더"""

    SUFFIX = ".yaml"

    def __init__(self, base_path: str | Path):
        """
        Args:
            base_path: 템플릿 YAML 들이 위치한 디렉토리
        """
        self.base_path = Path(base_path)

    def _get_template_path(self, template_id: str) -> Path:
        return self.base_path / f"{template_id}{self.SUFFIX}"

    def _load_yaml_file(self, file_path: Path) -> dict[str, Any]:
        """단일 YAML 파일 로드"""
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"[TemplateLoader] Failed to parse YAML file {file_path}: {e}")
            raise ValidationFailed(f"invalid template file: {file_path.name}", [str(e)]) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationFailed(f"template file must contain a mapping: {file_path.name}")
        return data

    def load(self, template_id: str) -> dict[str, Any]:
        """
        템플릿 ID로 YAML 정의를 로드합니다.

        Raises:
            NotFound: 파일이 없을 때
            ValidationFailed: YAML 파싱 실패 또는 id 불일치
        """
        file_path = self._get_template_path(template_id)
        if not file_path.exists():
            raise NotFound("template", template_id)

        data = self._load_yaml_file(file_path)
        declared_id = data.setdefault("id", template_id)
        if declared_id != template_id:
            raise ValidationFailed(
                f"template id {declared_id!r} does not match file name {file_path.name}"
            )

        logger.debug(
            f"[TemplateLoader] Loaded template '{template_id}': "
            f"{len(data.get('slides') or [])} slides"
        )
        return data

    def exists(self, template_id: str) -> bool:
        return self._get_template_path(template_id).exists()

    def list_templates(self) -> list[str]:
        """사용 가능한 모든 템플릿 ID 목록 (파일명 순)"""
        if not self.base_path.exists():
            return []
        return sorted(
            path.stem
            for path in self.base_path.iterdir()
            if path.is_file() and path.suffix == self.SUFFIX
        )

    def load_all(self) -> List[dict[str, Any]]:
        """모든 템플릿 정의를 파일명 순으로 로드"""
        definitions = [self.load(template_id) for template_id in self.list_templates()]
        logger.info(
            f"[TemplateLoader] Loaded {len(definitions)} template definitions from {self.base_path}"
        )
        return definitions
