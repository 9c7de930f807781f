"""
test/conftest.py
공용 테스트 픽스처 - 모든 테스트에서 공유

기본 템플릿: demo
  s1 - personalized-hero, "Hello {{recipientName}}"
  s2 - quiz (필수), 수동 넘김
"""
import copy
from pathlib import Path

import pytest

from deckshare.catalog import TemplateCatalog
from deckshare.flow import BUILTIN_FAMILIES, FlowController
from deckshare.loader import TemplateLoader
from deckshare.repository import InMemoryInstanceRepository
from deckshare.schemas.template import Template
from deckshare.services.presentation import PresentationService
from deckshare.token_issuer import TokenIssuer


# ============================================================
# 템플릿 픽스처
# ============================================================

TEMPLATES_DIR = Path(__file__).parent.parent / "deckshare" / "data" / "templates"
SHARE_ORIGIN = "https://decks.example.com"

DEMO_DEFINITION = {
    "id": "demo",
    "name": "Demo",
    "slides": [
        {
            "id": "s1",
            "type": "personalized-hero",
            "title": "Hello {{recipientName}}",
            "subtitle": "Store: {{storeLink}}",
            "content": "{{customMessage}} / {{unknownKey}}",
            "duration": 6000,
            "features": [
                {"icon": "*", "title": "For {{name}}", "description": "{{link}}"},
            ],
        },
        {
            "id": "s2",
            "type": "quiz",
            "title": "Do you like our products?",
            "duration": 0,
            "isRequired": True,
        },
    ],
}

LONG_DEFINITION = {
    "id": "long",
    "name": "Long",
    "slides": [{"id": f"p{i}", "type": "hero", "title": f"Page {i}"} for i in range(1, 6)],
}


@pytest.fixture
def demo_definition() -> dict:
    return copy.deepcopy(DEMO_DEFINITION)


@pytest.fixture
def demo_template() -> Template:
    return Template.model_validate(copy.deepcopy(DEMO_DEFINITION))


@pytest.fixture
def long_template() -> Template:
    return Template.model_validate(copy.deepcopy(LONG_DEFINITION))


@pytest.fixture
def fixture_catalog() -> TemplateCatalog:
    """fixture 템플릿 두 개로 만든 카탈로그"""
    return TemplateCatalog([copy.deepcopy(DEMO_DEFINITION), copy.deepcopy(LONG_DEFINITION)])


@pytest.fixture(scope="session")
def bundled_catalog() -> TemplateCatalog:
    """번들 YAML 템플릿 카탈로그 (세션 범위 - 한 번만 로드)"""
    catalog = TemplateCatalog(TemplateLoader(TEMPLATES_DIR).load_all)
    catalog.load()
    return catalog


# ============================================================
# 서비스 픽스처
# ============================================================

@pytest.fixture
def flow() -> FlowController:
    return FlowController(BUILTIN_FAMILIES)


@pytest.fixture
def repository() -> InMemoryInstanceRepository:
    return InMemoryInstanceRepository()


@pytest.fixture
def service(bundled_catalog, repository, flow) -> PresentationService:
    return PresentationService(
        catalog=bundled_catalog,
        repository=repository,
        issuer=TokenIssuer(),
        flow=flow,
        origin=SHARE_ORIGIN,
    )
