import os
import logging
from dotenv import load_dotenv

from .telemetry.log import LOGGER_NAME, get_logger
from .config import ApiRequestConfig, load_config

CONFIG_FILE_ENV = "APIREQUEST_CONFIG_FILE"
DEFAULT_CONFIG_FILE_PATH = "apirequest.yaml"

# handlers are attached by configure_logging, never on import
LOG = logging.getLogger(LOGGER_NAME)


def configure_logging(config: ApiRequestConfig) -> logging.Logger:
    return get_logger(config.logging_format, logging.getLevelName(config.logging_level))


def load_default_config(config_file_path: str | None = None) -> ApiRequestConfig:
    """
    Load process-wide defaults from ``.env``, ``APIREQUEST_*`` variables and the
    YAML config file, then configure the package logger.
    """
    load_dotenv()
    config_file_path = config_file_path or os.getenv(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE_PATH)

    if not os.path.exists(config_file_path):
        config_yaml_string = ""
    else:
        with open(config_file_path) as f:
            config_yaml_string = f.read()

    config = load_config(config_yaml_string)
    configure_logging(config)
    if not config_yaml_string:
        LOG.debug(f"No config yaml loaded from: {config_file_path}")
    return config
