"""
init_db.py
데이터베이스 초기화 스크립트

    python init_db.py          # presentation_instances / question_answers 테이블 생성
    python init_db.py reset    # 모두 삭제 후 다시 생성
"""
# 모든 모델을 먼저 import해서 Base.metadata에 등록
from deckshare.db_models import PresentationInstance, QuestionAnswer  # noqa: F401
from deckshare.database import drop_db, init_db

if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "reset":
        print("DB를 리셋합니다...")
        drop_db()
        init_db()
    else:
        print("DB를 초기화합니다...")
        init_db()
