import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


MAX_CONTENT_LENGTH = 500
MASK = '********'


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    return f'{func.__module__}.{func.__qualname__}'


def get_chain_start_time() -> str:
    """Elapsed time since the outermost decorated call of this chain started."""
    now = time.perf_counter()
    if call_depth_var.get() <= 1 or not chain_start_time_var.get():
        chain_start_time_var.set(now)
    return f'chain:{now - chain_start_time_var.get():.6f}s'


def reset_call_depth() -> None:
    depth = call_depth_var.get() - 1
    call_depth_var.set(max(depth, 0))
    if depth <= 0:
        chain_start_time_var.set(0)


def should_mask_keyword(key: Any, value: Any) -> Any:
    if isinstance(key, str) and any(word in key.lower() for word in SENSITIVE_KEYWORDS):
        return MASK
    return value


def mask_sensitive(data: Any) -> Any:
    if isinstance(data, str) and any(f'{word}=' in data.lower() for word in SENSITIVE_KEYWORDS):
        return MASK
    return data


def truncate_content(data: Any) -> Any:
    text = data if isinstance(data, str) else repr(data)
    if len(text) <= MAX_CONTENT_LENGTH:
        return data
    return f'{text[:MAX_CONTENT_LENGTH]}...<{len(text) - MAX_CONTENT_LENGTH} more chars>'
