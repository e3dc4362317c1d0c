import logging
import logging.handlers
import os
import sys
import time
from functools import wraps
from typing import Optional


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    format_string: Optional[str] = None
):
    """
    Set up logging configuration for the enhancement engine

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of backup files to keep
        format_string: Custom format string for log messages
    """

    if format_string is None:
        format_string = (
            '%(asctime)s - %(name)s - %(levelname)s - '
            '[%(filename)s:%(lineno)d] - %(message)s'
        )

    formatter = logging.Formatter(
        format_string,
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

    # Quiet third-party decoders
    logging.getLogger("PIL").setLevel(logging.WARNING)

    engine_loggers = [
        "medenhance.core.pipeline",
        "medenhance.core.codec",
        "medenhance.core.noise_reduction",
        "medenhance.core.contrast",
        "medenhance.core.sharpening",
        "medenhance.core.resizer",
        "medenhance.utils.image_utils",
    ]

    for logger_name in engine_loggers:
        logging.getLogger(logger_name).setLevel(level)


class EngineLogger:
    """Logger wrapper for enhancement engine components"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.component_name = name

    def log_processing_start(self, operation: str, details: Optional[dict] = None):
        """Log the start of a processing operation"""
        message = f"Starting {operation}"
        if details:
            detail_str = ", ".join([f"{k}={v}" for k, v in details.items()])
            message += f" - {detail_str}"
        self.logger.info(message, stacklevel=2)

    def log_processing_end(self, operation: str, success: bool,
                           duration: float, details: Optional[dict] = None):
        """Log the end of a processing operation"""
        status = "completed" if success else "failed"
        message = f"{operation} {status} in {duration:.2f}s"

        if details:
            detail_str = ", ".join([f"{k}={v}" for k, v in details.items()])
            message += f" - {detail_str}"

        if success:
            self.logger.info(message, stacklevel=2)
        else:
            self.logger.error(message, stacklevel=2)

    def log_performance_metric(self, metric_name: str, value: float, unit: str = ""):
        """Log performance metrics"""
        message = f"Performance metric: {metric_name} = {value:.2f}"
        if unit:
            message += f" {unit}"
        self.logger.info(message, stacklevel=2)

    def log_stage(self, step_number: int, stage: str, width: int, height: int):
        """Log a pipeline stage with the buffer geometry it runs on"""
        self.logger.info(f"Step {step_number}: {stage} ({width}x{height})", stacklevel=2)

    def log_error_with_context(self, error: Exception, context: dict):
        """Log error with additional context"""
        context_str = ", ".join([f"{k}={v}" for k, v in context.items()])
        self.logger.error(f"Error in {self.component_name}: {str(error)} - Context: {context_str}", stacklevel=2)
        self.logger.debug("Full traceback:", exc_info=True)

    # Plain passthroughs so the wrapper can stand in for a logging.Logger
    def debug(self, msg, *args, **kwargs):
        self.logger.debug(msg, *args, stacklevel=2, **kwargs)

    def info(self, msg, *args, **kwargs):
        self.logger.info(msg, *args, stacklevel=2, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self.logger.warning(msg, *args, stacklevel=2, **kwargs)

    def error(self, msg, *args, **kwargs):
        self.logger.error(msg, *args, stacklevel=2, **kwargs)


def get_logger(name: str) -> EngineLogger:
    """Get an engine logger instance"""
    return EngineLogger(name)


def timing_decorator(func):
    """Decorator to measure and log processing time"""
    timing_logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            processing_time = time.perf_counter() - start_time
            timing_logger.debug(f"{func.__qualname__} completed in {processing_time:.4f} seconds")
            return result
        except Exception as e:
            processing_time = time.perf_counter() - start_time
            timing_logger.error(f"{func.__qualname__} failed after {processing_time:.4f} seconds: {str(e)}")
            raise
    return wrapper
