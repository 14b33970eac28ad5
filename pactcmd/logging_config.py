"""
Logging configuration for pactcmd.

Provides structured JSON logging and an audit logger for command
build and verification events.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import List, Optional

# Context variable for request ID tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per line, suitable for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


class AuditLogger:
    """
    Specialized logger for command audit events.

    Records which commands were built and which were accepted or
    rejected by the verifier, keyed by command hash.
    """

    def __init__(self, name: str = "pactcmd.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        """Internal logging method with extra fields."""
        if not self._logger.isEnabledFor(level):
            return
        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def command_built(self, command_hash: str, schemes: List[str]) -> None:
        """Log construction of a signed command."""
        self._log(
            logging.INFO,
            "COMMAND_BUILT",
            command_hash=command_hash,
            schemes=schemes,
            signatures=len(schemes),
            message=f"Command built with {len(schemes)} signature(s)"
        )

    def command_verified(self, command_hash: str, signatures: int) -> None:
        """Log a command that passed verification."""
        self._log(
            logging.INFO,
            "COMMAND_VERIFIED",
            command_hash=command_hash,
            signatures=signatures,
            message=f"Command {command_hash} verified"
        )

    def command_rejected(self, command_hash: str, reason: str) -> None:
        """Log a command that failed verification."""
        self._log(
            logging.WARNING,
            "COMMAND_REJECTED",
            command_hash=command_hash,
            reason=reason,
            message=f"Command {command_hash} rejected"
        )

    def key_pair_import_failed(self, scheme: str, reason: str) -> None:
        """Log a rejected key pair import."""
        self._log(
            logging.WARNING,
            "KEY_PAIR_IMPORT_FAILED",
            scheme=scheme,
            reason=reason,
            message=f"Key pair import failed for {scheme}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for an application embedding pactcmd.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (recommended for production)
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Args:
        request_id: Request ID to set, or None to generate one

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


# Global audit logger instance
audit_log = AuditLogger()
