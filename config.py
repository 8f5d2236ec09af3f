import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.path.join(BASE_DIR, "launch.log")

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# 문제 은행 / 채점 서버 설정
QUESTION_BANK_URL = os.getenv("QUESTION_BANK_URL", "https://schoozy.in/api/exam")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10.0"))

# 시험 설정
EXAM_TITLE = os.getenv("EXAM_TITLE", "Olympiad Exam")
EXAM_TOTAL_QUESTIONS = int(os.getenv("EXAM_TOTAL_QUESTIONS", "30"))
EXAM_DURATION_MINUTES = int(os.getenv("EXAM_DURATION_MINUTES", "180"))  # 3시간
EXAM_LANGUAGES = [
    lang.strip() for lang in os.getenv("EXAM_LANGUAGES", "English,Hindi").split(",") if lang.strip()
]
TIMER_TICK_SECONDS = float(os.getenv("TIMER_TICK_SECONDS", "1.0"))

# 세션 만료: 시험 시간보다 짧으면 진행 중인 시험이 정리되므로 시험 시간 + 1시간을 기본값으로
SESSION_TTL = int(os.getenv("SESSION_TTL", str(EXAM_DURATION_MINUTES * 60 + 3600)))

# 감독(카메라) 설정
PROCTORING_ENABLED = os.getenv("PROCTORING_ENABLED", "1") not in ("0", "false", "False")
CAMERA_INDEX = int(os.getenv("CAMERA_INDEX", "0"))
