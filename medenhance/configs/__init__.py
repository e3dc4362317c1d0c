"""
Configuration module for the enhancement pipeline

Contains the algorithm configuration dataclass and the application settings.
"""

from .processing_config import EnhancementConfig
from .settings import Settings, get_settings, get_log_config

__all__ = [
    'EnhancementConfig',
    'Settings',
    'get_settings',
    'get_log_config',
]
