"""
deckshare/database.py
SQLAlchemy ORM 설정 및 DB 연결 관리
"""
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from deckshare.config import DATABASE_URL

# 세션 팩토리 (엔진은 최초 사용 시 바인딩)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
)

# Base 클래스 (모든 ORM 모델이 상속)
Base = declarative_base()

_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """DATABASE_URL 로 엔진을 만들고 SessionLocal 에 바인딩"""
    global _engine
    if _engine is None:
        _engine = create_engine(
            DATABASE_URL,
            echo=False,  # 디버깅을 위해 True로 변경 가능
            pool_pre_ping=True,  # 연결 유효성 검사
        )
        SessionLocal.configure(bind=_engine)
    return _engine


def get_db() -> Generator:
    """
    의존성 주입용 DB 세션 생성 함수
    FastAPI와 함께 사용할 경우:
        from fastapi import Depends
        def some_endpoint(db: Session = Depends(get_db)):
            ...
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Optional[Engine] = None) -> None:
    """모든 테이블 생성"""
    import deckshare.db_models  # noqa: F401  (모델 등록)

    Base.metadata.create_all(bind=engine or get_engine())


def drop_db(engine: Optional[Engine] = None) -> None:
    """모든 테이블 삭제 (테스트용)"""
    import deckshare.db_models  # noqa: F401

    Base.metadata.drop_all(bind=engine or get_engine())
