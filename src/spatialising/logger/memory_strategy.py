from .log_storage_strategy import LogStorageStrategy

class MemoryStrategy(LogStorageStrategy):
    """
    Keeps log entries in memory as (timestamp, priority, message) tuples.
    Used by embedding hosts that collect logs of a calibration run themselves.
    """

    def __init__(self):
        self.entries = []

    def store_log(self, message, priority, timestamp):
        self.entries.append((timestamp, priority, message))

    def flush_logs(self):
        self.entries.clear()

    def messages(self, priority=None):
        """Return logged messages, optionally only those of one priority name."""
        return [m for _, p, m in self.entries if priority is None or p == priority]
