"""
공부 블록 도메인 예외
각 예외는 고정된 kind 문자열과 HTTP 상태 코드를 가집니다.
"""

from typing import Dict, Optional


class StudyBlockError(Exception):
    """모든 도메인 예외의 기반 클래스"""
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict:
        return {"error": self.message, "kind": self.kind}


class InvalidInput(StudyBlockError):
    kind = "invalid_input"
    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["field"] = self.field
        return data


class TooSoon(StudyBlockError):
    kind = "too_soon"
    status_code = 400


class Conflict(StudyBlockError):
    kind = "conflict"
    status_code = 409

    def __init__(self, message: str, subject: Optional[str] = None,
                 start_time: Optional[str] = None):
        super().__init__(message)
        self.subject = subject
        self.start_time = start_time

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["conflict"] = {"subject": self.subject, "startTime": self.start_time}
        return data


class Unauthenticated(StudyBlockError):
    kind = "unauthenticated"
    status_code = 401


class NotFound(StudyBlockError):
    kind = "not_found"
    status_code = 404


class SendError(StudyBlockError):
    kind = "send_error"
    status_code = 500


class StoreError(StudyBlockError):
    kind = "store_error"
    status_code = 500
