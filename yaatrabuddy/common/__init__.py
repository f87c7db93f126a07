# yaatrabuddy/common/__init__.py
"""
Общие утилиты, константы, ошибки и логгер.
"""

from yaatrabuddy.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from yaatrabuddy.common.constants import TypeMsg, UUID_PATTERN

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
    "UUID_PATTERN",
]
