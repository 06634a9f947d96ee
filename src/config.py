"""Configuration management for the Donald King serverless functions."""

import json
import os
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ConfigurationError
from .logging_config import create_execution_logger

DEFAULT_RSS_URL = (
    "https://news.google.com/rss/search?q=Donald%20trump&hl=en-US&gl=US&ceid=US%3Aen"
)
DEFAULT_BASE_URL = "https://api.fireworks.ai/inference/v1"
DEFAULT_MODEL_ID = "accounts/fireworks/models/llama-v3-8b-instruct"
USER_AGENT = "DonaldKingBot/1.0 (+https://github.com/)"

# Keys looked up, in order, when the secret is stored as JSON
SECRET_KEYS = ("api_key", "apiKey", "fireworks_api_key", "token")


@dataclass
class FeedConfig:
    """Configuration for the RSS feed fetch."""

    url: str = DEFAULT_RSS_URL
    user_agent: str = USER_AGENT
    max_articles: int = 3


@dataclass
class GenerationConfig:
    """Configuration for the Fireworks chat-completions API."""

    api_key: str
    model_id: str = DEFAULT_MODEL_ID
    base_url: str = DEFAULT_BASE_URL
    temperature: float = 0.7

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


@dataclass
class MetricsConfig:
    """Configuration for CloudWatch metrics."""

    enabled: bool = False
    namespace: str = "DonaldKing-News"
    region: str = "us-east-1"


class Config:
    """Main configuration manager."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.rss_url = os.getenv("NEWS_RSS_URL") or DEFAULT_RSS_URL
        self.base_url = os.getenv("FIREWORKS_BASE_URL") or DEFAULT_BASE_URL
        self.api_key = os.getenv("FIREWORKS_API_KEY", "").strip()
        self.secret_name = os.getenv("FIREWORKS_SECRET_NAME", "").strip()
        self.model_id = os.getenv("FIREWORKS_MODEL") or DEFAULT_MODEL_ID
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.metrics_enabled = (
            os.getenv("CLOUDWATCH_METRICS_ENABLED", "false").lower() == "true"
        )

    def get_feed_config(self) -> FeedConfig:
        """Get RSS feed configuration."""
        return FeedConfig(url=self.rss_url)

    def get_generation_config(self, execution_id: str | None = None) -> GenerationConfig:
        """Get generation configuration.

        Raises:
            ConfigurationError: If no API key is configured
        """
        return GenerationConfig(
            api_key=self.get_api_key(execution_id),
            model_id=self.model_id,
            base_url=self.base_url,
        )

    def get_metrics_config(self) -> MetricsConfig:
        """Get CloudWatch metrics configuration."""
        return MetricsConfig(enabled=self.metrics_enabled, region=self.aws_region)

    def get_api_key(self, execution_id: str | None = None) -> str:
        """Resolve the Fireworks API key.

        The environment variable wins; Secrets Manager is only consulted when a
        secret name is configured and the variable is unset.
        """
        if self.api_key:
            return self.api_key

        if self.secret_name:
            try:
                return get_fireworks_api_key(
                    self.secret_name, self.aws_region, execution_id
                )
            except RuntimeError as e:
                raise ConfigurationError(str(e)) from e

        raise ConfigurationError("FIREWORKS_API_KEY environment variable is not set.")


def get_fireworks_api_key(
    secret_name: str, aws_region: str, execution_id: str | None = None
) -> str:
    """
    Retrieve the Fireworks API key from AWS Secrets Manager.

    Supports plain string secrets and JSON objects holding the key under one of
    ``SECRET_KEYS``. The key itself is never logged.

    Raises:
        RuntimeError: If the secret cannot be retrieved or holds no usable key
    """
    secrets_logger = create_execution_logger("secrets_manager", execution_id)

    if not secret_name or not secret_name.strip():
        raise ValueError("Secret name cannot be empty")

    try:
        secrets_logger.info(f"Retrieving Fireworks API key from Secrets Manager: {secret_name}")
        secrets_client = boto3.client("secretsmanager", region_name=aws_region)
        response = secrets_client.get_secret_value(SecretId=secret_name)

        secret_value = response.get("SecretString", "")
        if not secret_value or not secret_value.strip():
            raise ValueError(f"Secret {secret_name} contains empty value")

        try:
            secret_data = json.loads(secret_value)
        except json.JSONDecodeError:
            secrets_logger.info("Using plain text secret")
            return secret_value.strip()

        if not isinstance(secret_data, dict):
            raise ValueError(f"JSON secret {secret_name} must be an object")

        for key in SECRET_KEYS:
            value = secret_data.get(key)
            if isinstance(value, str) and value.strip():
                secrets_logger.info("Using API key from JSON secret", secret_key=key)
                return value.strip()

        raise ValueError(f"No API key found in JSON secret {secret_name}")

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        secrets_logger.error(
            f"AWS Secrets Manager error retrieving {secret_name}: {error_code}"
        )
        raise RuntimeError(f"Failed to retrieve secret {secret_name}") from e
    except ValueError as e:
        secrets_logger.error(f"Invalid secret format for {secret_name}: {e}")
        raise RuntimeError(f"Invalid secret format for {secret_name}") from e
    except BotoCoreError as e:
        secrets_logger.error(
            f"Unexpected error retrieving secret {secret_name}: {type(e).__name__}"
        )
        raise RuntimeError(f"Failed to retrieve secret {secret_name}") from e
