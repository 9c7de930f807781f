"""
deckshare/main.py
FastAPI 메인 애플리케이션

개인화 슬라이드 덱 공유 서버
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from deckshare.api.routes.main import api_router
from deckshare.catalog import get_catalog
from deckshare.config import STORAGE_BACKEND, TEMPLATES_BASE_PATH

# ============================================================
# 로깅 설정
# ============================================================
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 라이프사이클 관리"""
    # Startup
    logger.info("Starting deckshare server...")
    logger.info(f"Templates path: {TEMPLATES_BASE_PATH}")
    logger.info(f"Storage backend: {STORAGE_BACKEND}")

    # 카탈로그는 요청 처리 전에 한 번 빌드
    catalog = get_catalog()
    catalog.load()
    logger.info(f"Available templates: {[t.id for t in catalog.list()]}")

    yield

    # Shutdown
    logger.info("Shutting down deckshare server...")


app = FastAPI(
    title="Deckshare Server",
    description="개인화 슬라이드 덱 공유 서버",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/health", summary="헬스 체크")
async def health_check() -> dict:
    """서버 상태 확인"""
    return {"status": "healthy"}


# ============================================================
# 개발 서버 실행
# ============================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "deckshare.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
