"""Local SQLite persistence: telemetry buffer and configuration cache."""

from pysaillogger.storage._database import Database
from pysaillogger.storage.buffer import DurableBuffer
from pysaillogger.storage.configuration_cache import ConfigurationCache

__all__ = ["ConfigurationCache", "Database", "DurableBuffer"]
