"""
@File       : logger.py
@Description: 日志初始化（控制台彩色 + 按天分割的文件日志）

@Time       : 2026/01/12 21:05
@Author     : hcy18
"""
import logging
from datetime import datetime
from pathlib import Path

from colorlog import ColoredFormatter

from telco_reco.utils.trace_context import current_trace_id

LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(trace_id)s] - %(filename)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class TraceIdFilter(logging.Filter):
    """把当前请求的 traceId 注入到每条日志记录."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = current_trace_id() or "-"
        return True


def _find_project_root() -> Path:
    """向上查找含 pyproject.toml 的目录，也就是项目根目录."""
    project_root = Path(__file__).resolve().parent
    while project_root != project_root.parent:
        if (project_root / "pyproject.toml").exists():
            return project_root
        project_root = project_root.parent
    return Path.cwd()


def setup_logging(
        log_level: int = logging.INFO,
        log_dir: str = "logs",
        console_color: bool = True,
        log_to_file: bool = True,
) -> logging.Logger:
    """
    初始化日志系统。

    Args:
        log_level: 日志级别，默认 INFO
        log_dir: 日志文件存储目录（相对于项目根目录）
        console_color: 是否启用控制台彩色输出
        log_to_file: 是否写入按天分割的日志文件

    Returns:
        配置好的 root logger（通常不需要使用返回值）
    """
    file_formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if console_color:
        console_formatter = ColoredFormatter(
            fmt='%(log_color)s' + LOG_FORMAT,
            datefmt=DATE_FORMAT,
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'white',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'bold_red',
            }
        )
    else:
        console_formatter = file_formatter

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # 清除已有 handlers（避免重复日志）
    if root_logger.handlers:
        root_logger.handlers.clear()

    trace_filter = TraceIdFilter()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(console_formatter)
    console_handler.addFilter(trace_filter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_dir_path = _find_project_root() / log_dir
        log_dir_path.mkdir(exist_ok=True)
        log_file = log_dir_path / f"{datetime.now().strftime('%Y-%m-%d')}.log"

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(file_formatter)
        file_handler.addFilter(trace_filter)
        root_logger.addHandler(file_handler)

    return root_logger


app_logger = logging.getLogger("telco_reco")
