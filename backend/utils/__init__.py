"""
Utility modules
"""
from .logger import (
    get_logger,
    get_timestamped_logger,
    ProgressLogger,
    LOG_DIR
)
from .error_tracker import (
    ErrorTracker,
    ErrorRecord,
    ErrorStep,
)

__all__ = [
    'get_logger',
    'get_timestamped_logger',
    'ProgressLogger',
    'LOG_DIR',
    'ErrorTracker',
    'ErrorRecord',
    'ErrorStep',
]
