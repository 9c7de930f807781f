# Routes 메인
# v1 라우터들을 하나의 api_router 로 묶습니다. (앱 생성은 deckshare/main.py)
from fastapi import APIRouter

from deckshare.api.routes.v1 import instances, templates, view

api_router = APIRouter()

api_router.include_router(templates.router, prefix="/v1/templates", tags=["templates"])
api_router.include_router(instances.router, prefix="/v1/instances", tags=["instances"])
api_router.include_router(view.router, prefix="/v1/view", tags=["view"])
