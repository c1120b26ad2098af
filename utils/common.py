# utils/common.py
"""Path helpers shared by configuration and logging"""
import os

# ⚠️ DO NOT import settings here - causes circular import with config.py


def get_project_root() -> str:
    """Returns the absolute path to the project's root directory."""
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def get_log_file_path(filename: str = 'rag_demo.log') -> str:
    """Returns the default log file path under <project root>/log.

    The directory itself is created by the logging setup, not here, so that
    importing the settings never touches the filesystem.
    """
    return os.path.join(get_project_root(), 'log', filename)
