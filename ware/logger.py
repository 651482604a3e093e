"""
Action logging for ware
Appends one line per package operation to the ware log file
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ware.config import DEFAULT_LOG_FILE

FALLBACK_LOG_FILE = os.path.join("~", ".local", "state", "ware", "ware.log")


class LoggerManager:
    """Manages the append-only action log for ware"""

    def __init__(self, log_path: str = DEFAULT_LOG_FILE, verbose: bool = False):
        """Attach a file handler on log_path, falling back to the user's state dir"""
        self.logger = logging.getLogger("ware")
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        file_handler = self._open_file_handler(log_path)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self.logger.addHandler(file_handler)

        if verbose:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.DEBUG)
            console_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(console_handler)

    def _open_file_handler(self, log_path: str) -> logging.FileHandler:
        try:
            Path(log_path).parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
            self.log_path = log_path
            return handler
        except OSError:
            fallback = os.path.expanduser(FALLBACK_LOG_FILE)
            Path(fallback).parent.mkdir(parents=True, exist_ok=True)
            self.log_path = fallback
            return logging.FileHandler(fallback, mode='a', encoding='utf-8')

    def log_event(self, message: str):
        """Append a free-form entry, e.g. 'System updated'"""
        self.logger.info(message)

    def log_error(self, message: str, error: Optional[Exception] = None):
        if error:
            self.logger.error(f"{message}: {error}")
        else:
            self.logger.error(message)

    # ==================== Installation/Uninstallation Logging ====================

    def log_install_attempt(self, package_name: str):
        self.log_event(f"Install requested: {package_name}")

    def log_install_success(self, package_name: str, via: str):
        self.log_event(f"Installed via {via}: {package_name}")

    def log_install_failure(self, package_name: str):
        self.log_event(f"FAILED install: {package_name}")

    def log_uninstall_attempt(self, package_name: str):
        self.log_event(f"Remove requested: {package_name}")

    def log_uninstall_success(self, package_name: str, via: str):
        self.log_event(f"Removed via {via}: {package_name}")

    def log_uninstall_failure(self, package_name: str):
        self.log_event(f"FAILED remove: {package_name}")

    # ==================== Log File Management ====================

    def get_log_file_path(self) -> str:
        return self.log_path

    def read_log_file(self, lines: int = 100) -> str:
        """Read the last N lines from the log file"""
        for handler in self.logger.handlers:
            handler.flush()
        try:
            with open(self.log_path, 'r', encoding='utf-8') as f:
                all_lines = f.readlines()
                return ''.join(all_lines[-lines:])
        except FileNotFoundError:
            return "Log file not found"
        except OSError as e:
            return f"Error reading log file: {e}"

    def close(self):
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()


_logger_instance = None


def get_logger(log_path: Optional[str] = None, verbose: bool = False) -> LoggerManager:
    """Get or create the global logger instance"""
    global _logger_instance
    if _logger_instance is None or log_path is not None:
        _logger_instance = LoggerManager(log_path or DEFAULT_LOG_FILE, verbose=verbose)
    return _logger_instance
