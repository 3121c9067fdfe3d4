import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import tiktoken
from appdirs import AppDirs
from rich.logging import RichHandler

from aic.constants import APP_NAME, LOG_FILE_NAME, MASK, NOT_SET, SHORT_TOKEN_MASK

# Initialize AppDirs
dirs = AppDirs(APP_NAME)
CONFIG_DIR = Path(dirs.user_config_dir)
LOG_DIR = Path(dirs.user_log_dir)
LOG_FILE = LOG_DIR / LOG_FILE_NAME

# Third-party loggers that are chatty at INFO level.
_QUIET_LOGGERS = ("openai", "httpx", "httpcore", "git")


def count_tokens(text: str, model: str = "gpt-4") -> int:
    """
    Returns the number of tokens in a text string using tiktoken.
    Defaults to gpt-4 encoding (cl100k_base).
    """
    try:
        encoding = tiktoken.encoding_for_model(model)
        return len(encoding.encode(text))
    except Exception as e:
        encoding = tiktoken.get_encoding("cl100k_base")  # Fallback to GPT-4 encoding
        logging.getLogger(__name__).warning(
            f"Error encoding tokens, falling back: {e}", exc_info=True
        )
        return len(encoding.encode(text, errors="replace"))


def mask_token(token: str | None) -> str:
    """Masks an API token for display: keeps the first four characters only."""
    if not token:
        return NOT_SET
    if len(token) > 8:
        return f"{token[:4]}{MASK}"
    return SHORT_TOKEN_MASK


def setup_logging(debug: bool = False) -> logging.Logger:
    """Configures application-wide logging with rotation and UTF-8 support."""
    handlers: list[logging.Handler] = []
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                LOG_FILE,
                maxBytes=5 * 1024 * 1024,  # 5 MB
                backupCount=1,
                encoding="utf-8",
            )
        )
    except OSError:
        # Read-only home directory: run without a log file.
        handlers.append(logging.NullHandler())

    if debug:
        handlers.append(RichHandler(level=logging.DEBUG, show_path=False))

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logging.getLogger(APP_NAME)
