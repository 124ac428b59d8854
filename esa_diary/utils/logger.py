"""
日志管理模块
配置和管理应用的日志记录
"""

import logging
import sys
from pathlib import Path

from .config import Settings

# 全局日志记录器，在 setup_logger 调用前仅向上传播
logger = logging.getLogger("esa_diary")


def setup_logger(settings: Settings, name: str = "esa_diary") -> logging.Logger:
    """
    设置日志记录器
    交互界面运行时默认只写文件，避免日志打乱终端显示

    Args:
        settings: 应用配置
        name: 日志记录器名称

    Returns:
        配置好的日志记录器
    """
    # 创建日志目录
    log_dir = Path(settings.log_file).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    log = logging.getLogger(name)
    log.setLevel(level)

    # 清除已有的处理器
    log.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # 文件处理器
    file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    log.addHandler(file_handler)

    # 控制台处理器（可选）
    if settings.log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        log.addHandler(console_handler)

    return log
