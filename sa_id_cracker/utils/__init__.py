"""
Utility modules for the SA ID password cracker.
"""

from .config import Config, verbosity_to_level
from .exceptions import (
    IdCrackerError,
    InvalidArgumentError,
    DocumentNotFoundError,
    DocumentNotEncryptedError,
    TesterFaultError,
    WorkerError,
    ConfigError,
)
from .logger import Logger, get_logger
