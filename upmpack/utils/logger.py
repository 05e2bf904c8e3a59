"""upmpack 日志配置

提供统一的日志配置和格式化功能，支持普通文本和结构化 JSON 两种输出格式。

级别约定（由低到高）:
    DEBUG    非常详细的调试信息（--debug）
    VERBOSE  外部命令输出、跳过的文件等（--verbose）
    INFO     常规输出，可被 --quiet 屏蔽
    STEP     流水线步骤标题，--quiet 下仍然输出
    WARNING / ERROR
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

VERBOSE = 15
STEP = 25

logging.addLevelName(VERBOSE, "VERBOSE")
logging.addLevelName(STEP, "STEP")


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "INFO",
            "logger": "module.name",
            "message": "log message",
            "module": "filename",
            "function": "func_name",
            "line": 42,
            "exception": "traceback..." (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            # 使用 record.created 而非 datetime.now()，记录事件发生时间而非格式化时间
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


class ErrorCounter(logging.Handler):
    """统计 ERROR 及以上级别的日志条数（进程级错误计数器）"""

    def __init__(self) -> None:
        super().__init__(level=logging.ERROR)
        self.count = 0

    def emit(self, record: logging.LogRecord) -> None:
        self.count += 1


class LogContext:
    """日志上下文，取代全局的 quiet/verbose/debug 标志和错误计数

    由 setup_logging() 创建，注入到流水线中。
    """

    def __init__(self, level: int, counter: ErrorCounter) -> None:
        self.level = level
        self._counter = counter

    @property
    def error_count(self) -> int:
        return self._counter.count

    def reset_errors(self) -> None:
        self._counter.count = 0

    def close(self) -> None:
        """从根日志器上摘除错误计数器"""
        logging.getLogger().removeHandler(self._counter)


def resolve_level(
    *, verbose: bool = False, debug: bool = False, quiet: bool = False,
) -> int:
    """根据命令行开关计算控制台输出级别，debug 优先于 verbose，quiet 最后生效"""
    if debug:
        return logging.DEBUG
    if verbose:
        return VERBOSE
    if quiet:
        return STEP
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    debug: bool = False,
    quiet: bool = False,
    json_output: bool = False,
) -> LogContext:
    """配置根日志器并返回日志上下文

    参数:
        verbose: 输出外部命令的实时输出等中等详细信息
        debug: 输出全部调试信息
        quiet: 屏蔽常规输出，仅保留步骤标题、警告和错误
        json_output: 为 True 时使用 JSON 格式（适用于 CI），否则使用人类可读格式

    说明:
        - 输出到 stderr
        - 自动清理已有 handlers，避免重复输出
        - 错误计数器独立于控制台级别，--quiet 下依然计数
    """
    root = logging.getLogger()

    # 清理已有 handlers，避免重复添加导致日志重复输出
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    level = resolve_level(verbose=verbose, debug=debug, quiet=quiet)
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    elif level <= logging.DEBUG:
        fmt = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
        handler.setFormatter(logging.Formatter(fmt))
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)

    counter = ErrorCounter()
    root.addHandler(counter)
    return LogContext(level, counter)


def reset_logging() -> None:
    """重置根日志器配置

    清理所有已注册的 handlers，恢复到未配置状态。
    常用于测试环境或需要重新配置日志的场景。
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
