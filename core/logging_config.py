"""
Structlog 日志配置模块

get_logger 返回的 logger 不依赖 structlog 全局配置，事件以标准库 LogRecord
（extra 携带上下文字段）输出，宿主应用的 logging 配置照常生效。
configure_logging 只为客户端自身的 logger 安装渲染 handler，不改动根 logger。
"""
import logging
import json
import structlog
from structlog.processors import TimeStamper, add_log_level, JSONRenderer
from structlog.dev import ConsoleRenderer
from structlog.contextvars import merge_contextvars
from structlog.stdlib import ExtraAdder, ProcessorFormatter, render_to_log_kwargs
from typing import Any, Iterable, List, Mapping, Optional

from core.config import settings


# 客户端输出日志的 logger（含底层 httpx）
LIBRARY_LOGGERS = ("infrastructure.external.cloudfiles", "httpx")

# configure_logging 安装的 handler 名称，重复配置时只替换它
HANDLER_NAME = "cloudfiles-structlog"

# 不允许出现在日志中的请求头
SENSITIVE_HEADERS = frozenset({"x-auth-token", "x-auth-key", "x-storage-token"})

# 绑定到每个 logger 的处理链，最后转换为标准库 logging 的 msg/extra
_LOGGER_PROCESSORS: List[Any] = [
    merge_contextvars,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    render_to_log_kwargs,
]


def mask_headers(headers: Mapping[str, str]) -> dict:
    """返回可安全写入日志的请求头副本（令牌与密钥被遮盖）。"""
    return {
        k: ("***" if k.lower() in SENSITIVE_HEADERS else v)
        for k, v in headers.items()
    }


def get_renderer(json_logs: Optional[bool] = None) -> Any:
    """选择渲染器：默认 DEBUG 下输出控制台格式，否则输出 JSON。"""
    if json_logs is None:
        json_logs = not settings.DEBUG
    if not json_logs:
        return ConsoleRenderer(colors=False)
    # structlog 会向 serializer 传入 default/sort_keys 等参数
    def _dumps(obj, default=None, **kwargs):
        return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)
    return JSONRenderer(serializer=_dumps)


def _resolve_level(level: Optional[str] = None) -> int:
    name = level or settings.LOG_LEVEL
    if name:
        resolved = logging.getLevelName(name.upper())
        if isinstance(resolved, int):
            return resolved
    return logging.DEBUG if settings.DEBUG else logging.INFO


def build_handler(json_logs: Optional[bool] = None) -> logging.Handler:
    """创建以 structlog 渲染（含 extra 上下文字段）的 StreamHandler。"""
    formatter = ProcessorFormatter(
        foreign_pre_chain=[
            add_log_level,
            TimeStamper(fmt="iso"),
            ExtraAdder(),
        ],
        processors=[
            ProcessorFormatter.remove_processors_meta,
            get_renderer(json_logs),
        ],
    )
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    logger_names: Iterable[str] = LIBRARY_LOGGERS,
) -> None:
    """
    为客户端 logger 安装 structlog 渲染 handler

    Args:
        level: 日志级别名称，默认取 settings.LOG_LEVEL / DEBUG
        json_logs: 是否输出 JSON，默认非 DEBUG 时输出 JSON
        logger_names: 需要配置的 logger 名称
    """
    resolved = _resolve_level(level)
    for name in logger_names:
        target = logging.getLogger(name)
        for existing in [h for h in target.handlers if h.get_name() == HANDLER_NAME]:
            target.removeHandler(existing)
        target.addHandler(build_handler(json_logs))
        target.setLevel(resolved)
        target.propagate = False


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """获取 structlog logger 实例（底层为同名标准库 logger）。"""
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_LOGGER_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )
