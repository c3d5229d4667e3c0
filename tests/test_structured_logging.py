"""
Tests for structured JSON logging.
"""

import json
import logging
from io import StringIO
from utils.structured_logging import StructuredLogger, mask_email, mask_emails_in_text


def _capture(logger: StructuredLogger) -> StringIO:
    log_stream = StringIO()
    logger.logger.addHandler(logging.StreamHandler(log_stream))
    logger.logger.setLevel(logging.INFO)
    return log_stream


def test_mask_email():
    assert mask_email("john.doe@example.com") == "j***@example.com"
    assert mask_email("a@example.com") == "a***@example.com"
    assert mask_email("") == ""
    assert mask_email(None) is None
    assert mask_email("not-an-email") == "not-an-email"


def test_mask_emails_in_text():
    masked = mask_emails_in_text("Shared by john.doe@example.com with jane.smith@company.com")
    assert "j***@example.com" in masked
    assert "j***@company.com" in masked
    assert "john.doe@example.com" not in masked


def test_structured_logger_info():
    logger = StructuredLogger(service="upload", logger_name="test.upload.info")
    log_stream = _capture(logger)

    logger.info(
        action="upload",
        message="Uploaded invoice.pdf to Account/ACC-001",
        content_version_id="068-1",
        record_id="ACC-001",
        drive_file_id="drive-123",
        mime_type="application/pdf",
    )

    log_data = json.loads(log_stream.getvalue())
    assert log_data["service"] == "upload"
    assert log_data["action"] == "upload"
    assert log_data["status"] == "success"
    assert log_data["content_version_id"] == "068-1"
    assert log_data["record_id"] == "ACC-001"
    assert log_data["drive_file_id"] == "drive-123"
    assert log_data["mime_type"] == "application/pdf"
    assert "timestamp" in log_data


def test_structured_logger_error():
    logger = StructuredLogger(service="upload", logger_name="test.upload.error")
    log_stream = _capture(logger)

    logger.error(
        action="upload",
        message="Upload job 7 failed",
        error=RuntimeError("Drive quota exceeded"),
        record_id="ACC-001",
        job_id=7,
    )

    log_data = json.loads(log_stream.getvalue())
    assert log_data["status"] == "error"
    assert log_data["error_type"] == "RuntimeError"
    assert log_data["error_message"] == "Drive quota exceeded"
    assert log_data["job_id"] == 7


def test_structured_logger_warning_omits_empty_fields():
    logger = StructuredLogger(service="health", logger_name="test.health.warning")
    log_stream = _capture(logger)

    logger.warning(action="health_check", message="1 failed upload job(s)")

    log_data = json.loads(log_stream.getvalue())
    assert log_data["status"] == "warning"
    assert "record_id" not in log_data
    assert "drive_file_id" not in log_data


def test_structured_logger_masks_emails():
    logger = StructuredLogger(service="upload", logger_name="test.upload.mask")
    log_stream = _capture(logger)

    logger.error(
        action="upload",
        message="Impersonation failed for admin@example.com",
        error=PermissionError("denied for admin@example.com"),
        owner="owner@example.com",
    )

    output = log_stream.getvalue()
    assert "admin@example.com" not in output
    assert "owner@example.com" not in output
    log_data = json.loads(output)
    assert log_data["owner"] == "o***@example.com"


def test_structured_logger_mask_disabled():
    logger = StructuredLogger(service="upload", logger_name="test.upload.nomask")
    log_stream = _capture(logger)

    logger.info(action="upload", message="Sent to admin@example.com", mask_sensitive=False)

    assert json.loads(log_stream.getvalue())["message"] == "Sent to admin@example.com"
