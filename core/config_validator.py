# core/config_validator.py

import logging
from typing import List

from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Settings the API cannot run without.
    Returns list of missing required variables.
    """
    missing = []

    # Store + identity provider both go through the service-role client
    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_optional_config() -> List[str]:
    """
    Optional or suspicious configuration (warnings only).
    """
    warnings = []

    if not settings.SUPABASE_ANON_KEY:
        warnings.append("SUPABASE_ANON_KEY (optional but recommended)")
    if not isinstance(logging.getLevelName(settings.LOG_LEVEL.upper()), int):
        warnings.append(f"LOG_LEVEL={settings.LOG_LEVEL} is not a logging level, using INFO")
    if settings.DEFAULT_PAGE_SIZE <= 0:
        warnings.append("DEFAULT_PAGE_SIZE must be positive")
    if settings.DEFAULT_MINIMUM_STOCK < 0:
        warnings.append("DEFAULT_MINIMUM_STOCK must not be negative")

    return warnings


def validate_config_on_startup():
    """
    Raises RuntimeError if critical config is missing.
    Logs warnings for optional config.
    """
    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    for warning in missing_optional:
        logger.warning(f"Configuration warning: {warning}")

    logger.info("Configuration validation passed")
