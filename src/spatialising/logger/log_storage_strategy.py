from abc import ABC, abstractmethod


class LogStorageStrategy(ABC):
    """Where Logger puts its entries."""

    @abstractmethod
    def store_log(self, message, priority, timestamp):
        """
        Parameters:
        message (str): The log message.
        priority (str): Name of the LogPriority.
        timestamp (str): Formatted time of the call.
        """

    @abstractmethod
    def flush_logs(self):
        """Discard every stored entry."""
