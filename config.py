"""Application configuration classes."""

from __future__ import annotations

import os

SUPPORTED_DEPLOYMENT_MODES = {"split_routing", "frontend_first", "nextjs_first"}
DEPLOYMENT_MODE_ALIASES = {"nextjs_first": "frontend_first"}

DEFAULT_JSONAPI_INCLUDES = ",".join(
    (
        "field_image",
        "field_image.field_media_image",
        "field_media",
        "field_media.field_media_image",
        "field_media.field_media_video_file",
        "field_media.field_media_file",
        "field_hero_image",
        "field_hero_image.field_media_image",
        "field_thumbnail",
        "field_thumbnail.field_media_image",
    )
)


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "drupal-frontend-starter"
    SECRET_KEY = _get_env("SECRET_KEY", "change-me")

    DEPLOYMENT_MODE = _get_env("DEPLOYMENT_MODE", "split_routing")
    DRUPAL_BASE_URL = _get_env("DRUPAL_BASE_URL", "")
    DRUPAL_ORIGIN_URL = _get_env("DRUPAL_ORIGIN_URL", "")
    DRUPAL_PROXY_SECRET = _get_env("DRUPAL_PROXY_SECRET", "")
    DRUPAL_JWT_TOKEN = _get_env("DRUPAL_JWT_TOKEN", "")
    DRUPAL_BASIC_USERNAME = _get_env("DRUPAL_BASIC_USERNAME", "")
    DRUPAL_BASIC_PASSWORD = _get_env("DRUPAL_BASIC_PASSWORD", "")
    DRUPAL_IMAGE_DOMAIN = _get_env("DRUPAL_IMAGE_DOMAIN", "")
    DRUPAL_LANGCODE = _get_env("DRUPAL_LANGCODE", "")
    REVALIDATION_SECRET = _get_env("REVALIDATION_SECRET", "")

    REQUEST_TIMEOUT_SECONDS = float(_get_env("REQUEST_TIMEOUT_SECONDS", "10"))
    PROXY_TIMEOUT_SECONDS = float(_get_env("PROXY_TIMEOUT_SECONDS", "30"))
    RESOLVER_CACHE_SECONDS = int(_get_env("RESOLVER_CACHE_SECONDS", "60"))
    JSONAPI_CACHE_SECONDS = int(_get_env("JSONAPI_CACHE_SECONDS", "60"))
    JSONAPI_INCLUDES = _get_env("JSONAPI_INCLUDES", DEFAULT_JSONAPI_INCLUDES)
    LAYOUT_BUILDER_ENABLED = _get_env("LAYOUT_BUILDER_ENABLED", "false").lower() == "true"

    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _get_env("LOG_JSON_ENABLED", "false").lower() == "true"
    LOG_FORMAT = _get_env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")
    TIMING_LOGS_ENABLED = _get_env("TIMING_LOGS_ENABLED", "false").lower() == "true"
    TIMING_MIN_DURATION_MS = os.getenv("TIMING_MIN_DURATION_MS")


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration for the test suite; ignores backend settings from the environment."""

    DEBUG = False
    TESTING = True

    DEPLOYMENT_MODE = "split_routing"
    DRUPAL_BASE_URL = ""
    DRUPAL_ORIGIN_URL = ""
    DRUPAL_PROXY_SECRET = ""
    DRUPAL_JWT_TOKEN = ""
    DRUPAL_BASIC_USERNAME = ""
    DRUPAL_BASIC_PASSWORD = ""
    DRUPAL_IMAGE_DOMAIN = ""
    DRUPAL_LANGCODE = ""
    REVALIDATION_SECRET = ""
    JSONAPI_INCLUDES = DEFAULT_JSONAPI_INCLUDES
    LAYOUT_BUILDER_ENABLED = False


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Return the config class for the requested environment.

    Args:
        config_name: Optional explicit config identifier. If omitted, the
            APP_ENV environment variable is consulted.

    Raises:
        KeyError: If the requested configuration is not defined.
    """

    env_candidate = config_name if config_name is not None else os.getenv("APP_ENV", "development")
    env_name = (env_candidate or "development").lower()
    try:
        return CONFIG_BY_ENV[env_name]
    except KeyError as exc:
        raise KeyError(f"Unknown APP_ENV '{env_name}'") from exc


def normalize_deployment_mode(value: str | None) -> str:
    """Validate a deployment mode name and resolve legacy aliases.

    Raises:
        ValueError: If the mode is not supported.
    """

    normalized = (value or "split_routing").strip().lower()
    if normalized not in SUPPORTED_DEPLOYMENT_MODES:
        raise ValueError(
            f"Unsupported DEPLOYMENT_MODE '{value}'. "
            f"Allowed values: {sorted(SUPPORTED_DEPLOYMENT_MODES)}"
        )
    return DEPLOYMENT_MODE_ALIASES.get(normalized, normalized)
