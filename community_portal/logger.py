# community_portal/logger.py
'''
统一日志入口：handler 只挂在包根 logger "community_portal" 上，
各模块通过 get_logger(__name__) 取得子 logger，日志向上冒泡，避免每个模块各挂一份 handler
'''
import logging
from logging.handlers import RotatingFileHandler
import os

ROOT_LOGGER = "community_portal"

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = "portal.log"

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root  # 已配置过

    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    root.propagate = False
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    # LOG_DIR 置空则只输出到控制台
    if LOG_DIR:
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, LOG_FILE),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    _configure_root()
    # 包外的脚本（run.py / create_admin.py）也挂到包根下
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
