"""
애플리케이션 진입점
백엔드 서버를 실행합니다.

사용법:
    python app.py
    또는
    uvicorn study_blocks.main:app --host 0.0.0.0 --port 8000
"""

import os

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("study_blocks.main:app", host="0.0.0.0", port=port)
