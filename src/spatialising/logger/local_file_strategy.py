import os
from datetime import datetime

from .log_storage_strategy import LogStorageStrategy


class LocalFileStrategy(LogStorageStrategy):
    """
    Writes simulation and calibration log entries to a text file.

    The file is truncated on construction unless `append` is set, so one
    calibration run maps to one log file.
    """

    def __init__(self, file_location, append=False):
        self.file_location = os.path.abspath(os.fspath(file_location))
        os.makedirs(os.path.dirname(self.file_location), exist_ok=True)
        if append and os.path.exists(self.file_location):
            self._write_header("LOG REOPENED", mode='a')
        else:
            self._write_header("LOG INITIALIZATION")

    def _write_header(self, label, mode='w'):
        with open(self.file_location, mode) as log_file:
            log_file.write(f"{label}: {datetime.now()}\n")

    def store_log(self, message, priority, timestamp):
        with open(self.file_location, 'a') as log_file:
            log_file.write(f"[{timestamp}] [{priority}] {message}\n")

    def flush_logs(self):
        self._write_header("LOG FLUSHED")
