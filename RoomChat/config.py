"""
Configuration module for RoomChat.
Stores the settings that may be overridden from the environment.
"""

import os
from typing import Dict, Any


class Config:
    """Application configuration class."""

    # Server Configuration
    DEFAULT_SERVER_ADDRESS = os.environ.get("ROOMCHAT_SERVER", "ws://127.0.0.1:9001")
    DEFAULT_ROOM = os.environ.get("ROOMCHAT_ROOM", "general")

    # Connection Configuration
    HANDSHAKE_TIMEOUT_SECONDS = float(os.environ.get("ROOMCHAT_HANDSHAKE_TIMEOUT", "5"))

    # Logging Configuration
    LOG_ENV = os.environ.get("ROOMCHAT_ENV", "development")
    LOG_DIR = os.environ.get("ROOMCHAT_LOG_DIR", "./logs")

    @classmethod
    def get_config(cls) -> Dict[str, Any]:
        """Get all configuration values as a dictionary."""
        return {
            "DEFAULT_SERVER_ADDRESS": cls.DEFAULT_SERVER_ADDRESS,
            "DEFAULT_ROOM": cls.DEFAULT_ROOM,
            "HANDSHAKE_TIMEOUT_SECONDS": cls.HANDSHAKE_TIMEOUT_SECONDS,
            "LOG_ENV": cls.LOG_ENV,
            "LOG_DIR": cls.LOG_DIR,
        }


# Create config instance
config = Config()
