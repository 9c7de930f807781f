"""
deckshare/config.py
환경 변수 기반 설정
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# .env 파일 로드
load_dotenv()

TEMPLATES_BASE_PATH = Path(
    os.getenv("TEMPLATES_BASE_PATH", str(Path(__file__).parent / "data" / "templates"))
)

# 공유 링크 origin (<origin>/view/<token>)
SHARE_ORIGIN = os.getenv("SHARE_ORIGIN", "http://localhost:3000")

TOKEN_LENGTH = int(os.getenv("TOKEN_LENGTH", "12"))
TOKEN_MAX_ATTEMPTS = int(os.getenv("TOKEN_MAX_ATTEMPTS", "10"))

DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "password")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "deckshare_db")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# 인스턴스 저장소: "sql" (DATABASE_URL) 또는 "memory" (프로세스 메모리)
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql").lower()
