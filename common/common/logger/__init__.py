import json
import logging
import os
import sys


# JsonFormatter 가 최상위 필드로 꺼내 쓰는 extra 키 목록.
# 요청 추적(request_trace)과 스핀 트랜잭션 로그가 공통으로 사용한다.
EXTRA_LOG_KEYS: tuple[str, ...] = (
    "request_id",
    "method",
    "path",
    "status",
    "duration",
    "customer_id",
    "box_id",
    "order_id",
    "ledger_entry_id",
)


def setup_logger(name: str = "elyxyr", level: str | None = None) -> logging.Logger:
    """애플리케이션 전역 로거를 설정하고 반환한다.

    Args:
        name: 로거 이름 (기본값: elyxyr, SERVICE_NAME 환경변수가 우선)
        level: 로그 레벨 (기본값: None -> 환경변수 LOG_LEVEL 또는 INFO 사용)

    Returns:
        설정된 logging.Logger 인스턴스
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")

    log_level = getattr(logging, level.upper(), logging.INFO)

    service_name = os.getenv("SERVICE_NAME", name)
    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)

    # 이미 핸들러가 있다면 제거 (create_app 이 테스트에서 여러 번 호출될 수 있음)
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter(service_name=service_name))
    logger.addHandler(handler)

    # 모듈별 로거(logging.getLogger(__name__))는 루트 로거로 전파되므로 루트에도 연결한다.
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

    return logger


class JsonFormatter(logging.Formatter):
    """한 줄짜리 JSON 로그 포맷터.

    - datetime, level, logger, message 필드를 기본으로 포함한다.
    - EXTRA_LOG_KEYS 에 해당하는 extra 값이 있으면 같은 레벨의 필드로 추가한다.
    - 예외 정보가 있으면 exc_info 필드에 문자열로 추가한다.
    """

    def __init__(self, service_name: str | None = None) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")
        self._service_name = service_name

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_record: dict[str, object] = {
            "datetime": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in EXTRA_LOG_KEYS:
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        service_name = getattr(record, "service_name", None) or self._service_name
        if service_name:
            log_record["service_name"] = service_name

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False, default=str)
