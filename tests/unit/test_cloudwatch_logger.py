"""Unit tests for logging configuration and the CloudWatch handler."""

import logging
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from cloud_inspector.config import Settings
from cloud_inspector.utils.cloudwatch_logger import (
    CloudWatchHandler,
    configure_cloudwatch_logging,
    configure_logging,
)
from cloud_inspector.utils.correlation import CorrelationIDFilter


@pytest.fixture
def root_handlers():
    """Restore root logger handlers after each test."""
    root = logging.getLogger()
    saved = list(root.handlers)
    yield root
    for handler in list(root.handlers):
        if handler not in saved:
            root.removeHandler(handler)


class TestCloudWatchHandler:
    """Tests for CloudWatchHandler class."""

    @patch("cloud_inspector.utils.cloudwatch_logger.boto3.client")
    def test_handler_initialization(self, mock_boto_client):
        mock_client = MagicMock()
        mock_boto_client.return_value = mock_client

        handler = CloudWatchHandler(log_group="/test/group", log_stream="test-stream", region="eu-west-1")

        assert handler.log_group == "/test/group"
        assert handler.log_stream == "test-stream"
        mock_boto_client.assert_called_once_with("logs", region_name="eu-west-1")
        mock_client.create_log_group.assert_called_once_with(logGroupName="/test/group")
        mock_client.create_log_stream.assert_called_once_with(
            logGroupName="/test/group",
            logStreamName="test-stream",
        )

    @patch("cloud_inspector.utils.cloudwatch_logger.boto3.client")
    def test_existing_group_and_stream_tolerated(self, mock_boto_client):
        mock_client = MagicMock()
        mock_boto_client.return_value = mock_client
        exists = ClientError({"Error": {"Code": "ResourceAlreadyExistsException"}}, "Create")
        mock_client.create_log_group.side_effect = exists
        mock_client.create_log_stream.side_effect = exists

        handler = CloudWatchHandler(log_group="/test/group", log_stream="s")

        assert handler is not None

    @patch("cloud_inspector.utils.cloudwatch_logger.boto3.client")
    def test_other_client_errors_raise(self, mock_boto_client):
        mock_client = MagicMock()
        mock_boto_client.return_value = mock_client
        mock_client.create_log_group.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException"}}, "CreateLogGroup"
        )

        with pytest.raises(ClientError):
            CloudWatchHandler(log_group="/test/group", log_stream="s")

    @patch("cloud_inspector.utils.cloudwatch_logger.boto3.client")
    def test_emit_puts_log_event(self, mock_boto_client):
        mock_client = MagicMock()
        mock_boto_client.return_value = mock_client
        handler = CloudWatchHandler(log_group="/g", log_stream="s")
        handler.setFormatter(logging.Formatter("%(message)s"))
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)

        handler.emit(record)

        kwargs = mock_client.put_log_events.call_args.kwargs
        assert kwargs["logGroupName"] == "/g"
        assert kwargs["logStreamName"] == "s"
        assert kwargs["logEvents"][0]["message"] == "hello"
        assert kwargs["logEvents"][0]["timestamp"] == int(record.created * 1000)

    @patch("cloud_inspector.utils.cloudwatch_logger.boto3.client")
    def test_emit_failure_goes_to_handle_error(self, mock_boto_client):
        mock_client = MagicMock()
        mock_boto_client.return_value = mock_client
        mock_client.put_log_events.side_effect = ClientError(
            {"Error": {"Code": "ThrottlingException"}}, "PutLogEvents"
        )
        handler = CloudWatchHandler(log_group="/g", log_stream="s")
        handler.handleError = MagicMock()
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)

        handler.emit(record)

        handler.handleError.assert_called_once_with(record)


class TestConfigureCloudWatchLogging:
    def test_disabled(self, root_handlers):
        before = list(root_handlers.handlers)

        assert configure_cloudwatch_logging(log_group="/g", enable=False) is None
        assert root_handlers.handlers == before

    @patch("cloud_inspector.utils.cloudwatch_logger.boto3.client")
    def test_enabled_adds_handler(self, mock_boto_client, root_handlers):
        mock_boto_client.return_value = MagicMock()

        handler = configure_cloudwatch_logging(log_group="/g", region="us-west-2")

        assert handler in root_handlers.handlers
        assert handler.log_stream == "application"
        assert any(isinstance(f, CorrelationIDFilter) for f in handler.filters)

    @patch("cloud_inspector.utils.cloudwatch_logger.boto3.client")
    def test_setup_failure_falls_back_to_console(self, mock_boto_client, root_handlers, caplog):
        mock_client = MagicMock()
        mock_client.create_log_group.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException"}}, "CreateLogGroup"
        )
        mock_boto_client.return_value = mock_client

        with caplog.at_level(logging.WARNING):
            assert configure_cloudwatch_logging(log_group="/g") is None

        assert "CloudWatch logging unavailable" in caplog.text


class TestConfigureLogging:
    @patch("cloud_inspector.utils.cloudwatch_logger.configure_cloudwatch_logging")
    def test_passes_settings_through(self, mock_configure, monkeypatch, root_handlers):
        monkeypatch.setenv("CLOUDWATCH_ENABLED", "true")
        monkeypatch.setenv("CLOUDWATCH_LOG_GROUP", "/custom/group")
        monkeypatch.setenv("AWS_REGION", "ap-south-1")

        configure_logging(Settings())

        mock_configure.assert_called_once_with(
            log_group="/custom/group",
            log_stream=None,
            region="ap-south-1",
            enable=True,
        )
