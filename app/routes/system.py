import os
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import List

from fastapi import APIRouter

from app.deps import get_settings, get_translator_config
from core import logging_config

router = APIRouter(prefix="/system", tags=["system"])


def _pkg_version(*names: str) -> str:
    for name in names:
        try:
            return version(name)
        except PackageNotFoundError:
            continue
    return "missing"


@router.get("/runtime")
async def get_runtime_status():
    settings = get_settings()
    config = get_translator_config(settings)

    return {
        "versions": {
            "python": sys.version.split()[0],
            "fastapi": _pkg_version("fastapi"),
            "pydantic": _pkg_version("pydantic"),
            "beautifulsoup4": _pkg_version("beautifulsoup4"),
            "openai": _pkg_version("openai"),
            "deep-translator": _pkg_version("deep-translator", "deep_translator"),
        },
        "settings": {
            "target_language": settings.target_language,
            "translator": {
                "enabled": config.enabled,
                "default_service": config.default_service.value,
                "ai_configured": config.ai_configured,
                "ai_model": config.ai_translate_model or config.ai_model,
                "request_timeout_ms": config.request_timeout_ms,
                "max_inflight_calls": os.getenv("TRANSLATE_MAX_INFLIGHT_CALLS", "0"),
            },
        },
        "paths": {
            "log_dir": str(logging_config.LOG_DIR.resolve()),
        },
    }


@router.get("/logs", response_model=List[str])
async def get_system_logs(lines: int = 100):
    """
    Get the last N lines of the application log.
    """
    log_dir = logging_config.LOG_DIR
    if not log_dir.exists():
        return ["Log directory not found"]

    # 日志文件按日期命名: 20260126_app.log
    log_files = sorted(log_dir.glob("*_app.log"))
    if not log_files:
        return ["No log files found"]

    latest_log = log_files[-1]
    try:
        with open(latest_log, "r", encoding="utf-8") as f:
            content = f.readlines()
            return content[-lines:]
    except OSError as e:
        return [f"Error reading log file: {str(e)}"]
