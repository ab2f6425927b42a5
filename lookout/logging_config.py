import logging
import logging.handlers
from rich.logging import RichHandler
from rich.console import Console

from .config import Settings


def setup_logging(settings: Settings) -> None:
    log_dir = settings.log_directory
    log_dir.mkdir(parents=True, exist_ok=True)

    console = Console(width=120)
    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_level=True,
        show_path=True,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
    )
    rich_handler.setLevel(settings.log_level)

    # File handler with detailed format for debugging
    file_format = (
        "%(asctime)s - %(levelname)s - "
        "%(filename)s:%(lineno)d in %(funcName)s() - "
        "%(message)s"
    )

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=settings.log_file_path,
        when="midnight",
        interval=1,
        backupCount=settings.log_retention_days,
        encoding="utf-8",
    )
    file_handler.setLevel(settings.log_level)
    file_handler.setFormatter(logging.Formatter(file_format))

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)

    # Clear any existing handlers to avoid duplicates on app reload
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.addHandler(rich_handler)
    root_logger.addHandler(file_handler)

    # Silence noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.info(
        f"[bold green]Logging initialized[/] - "
        f"File: [cyan]{settings.log_file_path}[/], "
        f"Level: [yellow]{settings.log_level}[/], "
        f"Retention: [blue]{settings.log_retention_days}[/] days"
    )
