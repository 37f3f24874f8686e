import os
import threading
from datetime import datetime
from enum import Enum

from .local_file_strategy import LocalFileStrategy

DEFAULT_LOG_PATH = "/tmp/spatialising_logs.txt"
LOG_PATH_ENV = "SPATIALISING_LOG_PATH"


class Logger:
    """
    Static logger shared by the simulation driver and the calibration layer.

    Messages are dropped until a storage strategy is installed, and messages
    below `min_priority` are dropped always. Debug output of long calibration
    runs is large, so hosts usually raise the threshold to INFO.
    """

    class LogPriority(Enum):
        DEBUG = 1
        INFO = 2
        WARNING = 3
        ERROR = 4
        CRITICAL = 5
        DEFAULT = 6

    is_logging_enabled = True
    log_storage_strategy = None
    min_priority = LogPriority.DEBUG
    _lock = threading.RLock()

    @classmethod
    def initialize(cls, file_location=None):
        """
        Install a file strategy unless one is already set.

        Args:
            file_location: Log file path; SPATIALISING_LOG_PATH or
                /tmp/spatialising_logs.txt when None.
        """
        with cls._lock:
            if cls.log_storage_strategy is not None:
                return
            file_location = file_location or os.getenv(LOG_PATH_ENV, DEFAULT_LOG_PATH)
            cls.log_storage_strategy = LocalFileStrategy(file_location)
            cls.log(f"Logger initialized with default file storage at {file_location}.")

    @classmethod
    def log(cls, message, priority=LogPriority.DEBUG):
        with cls._lock:
            if not (cls.is_logging_enabled and cls.log_storage_strategy):
                return
            if priority.value < cls.min_priority.value:
                return
            cls.log_storage_strategy.store_log(
                message, priority.name, datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            )

    @classmethod
    def set_log_storage_strategy(cls, log_storage_strategy):
        with cls._lock:
            cls.log_storage_strategy = log_storage_strategy

    @classmethod
    def set_min_priority(cls, priority):
        """Drop messages below `priority` (a LogPriority or its name)."""
        if isinstance(priority, str):
            priority = cls.LogPriority[priority.upper()]
        with cls._lock:
            cls.min_priority = priority

    @classmethod
    def flush_logs(cls):
        with cls._lock:
            if cls.is_logging_enabled and cls.log_storage_strategy:
                cls.log_storage_strategy.flush_logs()

    @classmethod
    def disable_logging(cls):
        with cls._lock:
            cls.log("Logging disabled", cls.LogPriority.INFO)
            cls.is_logging_enabled = False

    @classmethod
    def enable_logging(cls):
        with cls._lock:
            cls.is_logging_enabled = True
            cls.log("Logging enabled", cls.LogPriority.INFO)

    @classmethod
    def reset(cls):
        """Back to the unconfigured state: no strategy, enabled, DEBUG threshold."""
        with cls._lock:
            cls.log_storage_strategy = None
            cls.is_logging_enabled = True
            cls.min_priority = cls.LogPriority.DEBUG
