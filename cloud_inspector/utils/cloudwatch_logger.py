"""Logging setup: console logging plus an optional CloudWatch Logs handler."""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Settings
from .correlation import CorrelationIDFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


class CloudWatchHandler(logging.Handler):
    """Logging handler that ships records to an AWS CloudWatch Logs stream."""

    def __init__(
        self,
        log_group: str,
        log_stream: str,
        region: str = "us-east-1",
    ):
        """
        Initialize CloudWatch logging handler.

        Args:
            log_group: CloudWatch log group name
            log_stream: CloudWatch log stream name
            region: AWS region for CloudWatch
        """
        super().__init__()
        self.log_group = log_group
        self.log_stream = log_stream
        self.region = region
        self.client = boto3.client("logs", region_name=region)
        self._ensure_log_group_and_stream()

    def _ensure_log_group_and_stream(self) -> None:
        """Create the log group and stream, tolerating ones that already exist."""
        for create, kwargs in (
            (self.client.create_log_group, {"logGroupName": self.log_group}),
            (
                self.client.create_log_stream,
                {"logGroupName": self.log_group, "logStreamName": self.log_stream},
            ),
        ):
            try:
                create(**kwargs)
            except ClientError as e:
                if e.response["Error"]["Code"] != "ResourceAlreadyExistsException":
                    raise

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.client.put_log_events(
                logGroupName=self.log_group,
                logStreamName=self.log_stream,
                logEvents=[
                    {
                        "message": self.format(record),
                        "timestamp": int(record.created * 1000),
                    }
                ],
            )
        except (BotoCoreError, ClientError):
            self.handleError(record)


def configure_cloudwatch_logging(
    log_group: str,
    log_stream: Optional[str] = None,
    region: str = "us-east-1",
    enable: bool = True,
) -> Optional[CloudWatchHandler]:
    """
    Attach a CloudWatch handler to the root logger.

    Args:
        log_group: CloudWatch log group name
        log_stream: CloudWatch log stream name (default: application)
        region: AWS region for CloudWatch
        enable: Skip configuration entirely when False

    Returns:
        The installed handler, or None when disabled or unavailable
    """
    if not enable:
        return None

    log_stream = log_stream or "application"
    try:
        handler = CloudWatchHandler(log_group=log_group, log_stream=log_stream, region=region)
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"CloudWatch logging unavailable, continuing with console only: {str(e)}")
        return None

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIDFilter())
    logging.getLogger().addHandler(handler)
    logger.info(f"CloudWatch logging configured: group={log_group}, stream={log_stream}")
    return handler


def configure_logging(config: Settings, level: Optional[str] = None) -> None:
    """
    Configure console logging and, when enabled, CloudWatch logging.

    Args:
        config: Application settings
        level: Overrides ``config.log_level``
    """
    logging.basicConfig(
        level=getattr(logging, (level or config.log_level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, CorrelationIDFilter) for f in handler.filters):
            handler.addFilter(CorrelationIDFilter())

    configure_cloudwatch_logging(
        log_group=config.cloudwatch_log_group,
        log_stream=config.cloudwatch_log_stream,
        region=config.aws_region,
        enable=config.cloudwatch_enabled,
    )
