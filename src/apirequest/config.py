import os
import yaml
from pydantic import BaseModel, field_validator
from typing import Literal, Mapping, Optional, Any, Type, List

ENV_PREFIX = "APIREQUEST_"

# env vars are plain strings; these fields are decoded as YAML flow values
_STRUCTURED_FIELDS = {"default_params", "user_agent_directives"}


class ApiRequestConfig(BaseModel):
    # Auth
    api_key: Optional[str] = None

    # Parameters merged under every client's and every call's params
    default_params: Mapping[str, Any] = {}

    # Transport defaults
    timeout: Optional[float] = None
    retry: bool = True
    user_agent_directives: List[Mapping[str, Any]] = []

    # Logging
    logging_format: Literal["text", "json"] = "text"
    logging_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "WARNING"

    @field_validator("logging_level", mode="before")
    @classmethod
    def upper_logging_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


def filter_value_from_env(
    CLS: Type[BaseModel] = ApiRequestConfig, prefix: str = ENV_PREFIX
) -> dict[str, Any]:
    config_keys = CLS.model_fields.keys()
    env_already_keys = {}
    for key in config_keys:
        value = os.getenv(f"{prefix}{key.upper()}", None)
        if value is None:
            continue
        if key in _STRUCTURED_FIELDS:
            value = yaml.safe_load(value)
        env_already_keys[key] = value
    return env_already_keys


def filter_value_from_yaml(
    yaml_string, CLS: Type[BaseModel] = ApiRequestConfig
) -> dict[str, Any]:
    yaml_config_data: dict | None = yaml.safe_load(yaml_string)
    if yaml_config_data is None:
        return {}

    yaml_already_keys = {}
    config_keys = CLS.model_fields.keys()
    for key in config_keys:
        value = yaml_config_data.get(key, None)
        if value is None:
            continue
        yaml_already_keys[key] = value
    return yaml_already_keys


def load_config(yaml_string: str = "") -> ApiRequestConfig:
    """YAML values are overlaid on environment values."""
    values = filter_value_from_env()
    values.update(filter_value_from_yaml(yaml_string))
    return ApiRequestConfig(**values)
