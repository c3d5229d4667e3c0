"""
Structured JSON logging for the upload path.
Every line carries service, action, status and message, plus whichever of
content_version_id, record_id, drive_file_id, error_type and error_message
apply. E-mail addresses are partially masked.
"""

import logging
import json
from datetime import datetime
from typing import Optional
import re


def mask_email(email: Optional[str]) -> Optional[str]:
    """
    Partially mask an email address for privacy.
    Example: john.doe@example.com -> j***@example.com
    """
    if not email or '@' not in email:
        return email

    local, domain = email.split('@', 1)
    return f"{local[:1]}***@{domain}"


def mask_emails_in_text(text: str) -> str:
    """
    Find and mask all email addresses in a text string.
    """
    email_pattern = r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b'

    def replacer(match):
        return mask_email(match.group(0))

    return re.sub(email_pattern, replacer, text)


class StructuredLogger:
    """
    Outputs JSON-formatted logs with consistent fields.
    """

    def __init__(self, service: str = "upload", logger_name: str = "crm_drive.upload"):
        self.service = service
        self.logger = logging.getLogger(logger_name)

    def _log(
        self,
        level: int,
        action: str,
        status: str,
        message: str,
        content_version_id: Optional[str] = None,
        record_id: Optional[str] = None,
        drive_file_id: Optional[str] = None,
        error_type: Optional[str] = None,
        error_message: Optional[str] = None,
        mask_sensitive: bool = True,
        **extra_fields
    ):
        log_data = {
            "timestamp": datetime.now().astimezone().isoformat(),
            "service": self.service,
            "action": action,
            "status": status,
            "message": mask_emails_in_text(message) if mask_sensitive else message,
        }

        if content_version_id:
            log_data["content_version_id"] = content_version_id
        if record_id:
            log_data["record_id"] = record_id
        if drive_file_id:
            log_data["drive_file_id"] = drive_file_id
        if error_type:
            log_data["error_type"] = error_type
        if error_message:
            log_data["error_message"] = mask_emails_in_text(error_message) if mask_sensitive else error_message

        for key, value in extra_fields.items():
            if isinstance(value, str) and mask_sensitive:
                log_data[key] = mask_emails_in_text(value)
            else:
                log_data[key] = value

        self.logger.log(level, json.dumps(log_data, default=str))

    def info(
        self,
        action: str,
        status: str = "success",
        message: str = "",
        content_version_id: Optional[str] = None,
        record_id: Optional[str] = None,
        drive_file_id: Optional[str] = None,
        **extra_fields
    ):
        """
        Log informational message.

        Args:
            action: The operation being performed (e.g., "dispatch", "upload", "resolve_folder")
            status: Status of the operation (default: "success")
            message: Human-readable message
            content_version_id: CRM file version being processed
            record_id: Owning CRM record
            drive_file_id: Google Drive file or folder ID
            **extra_fields: Additional fields to include in the log
        """
        self._log(
            logging.INFO,
            action=action,
            status=status,
            message=message,
            content_version_id=content_version_id,
            record_id=record_id,
            drive_file_id=drive_file_id,
            **extra_fields
        )

    def warning(
        self,
        action: str,
        status: str = "warning",
        message: str = "",
        content_version_id: Optional[str] = None,
        record_id: Optional[str] = None,
        drive_file_id: Optional[str] = None,
        **extra_fields
    ):
        """Log warning message."""
        self._log(
            logging.WARNING,
            action=action,
            status=status,
            message=message,
            content_version_id=content_version_id,
            record_id=record_id,
            drive_file_id=drive_file_id,
            **extra_fields
        )

    def error(
        self,
        action: str,
        message: str,
        error: Optional[Exception] = None,
        content_version_id: Optional[str] = None,
        record_id: Optional[str] = None,
        drive_file_id: Optional[str] = None,
        **extra_fields
    ):
        """Log error message, with the exception type and text when given."""
        error_type = None
        error_message = None

        if error:
            error_type = type(error).__name__
            error_message = str(error)

        self._log(
            logging.ERROR,
            action=action,
            status="error",
            message=message,
            content_version_id=content_version_id,
            record_id=record_id,
            drive_file_id=drive_file_id,
            error_type=error_type,
            error_message=error_message,
            **extra_fields
        )


# Singleton instance for the upload path
upload_logger = StructuredLogger(service="upload")
