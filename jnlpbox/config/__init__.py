"""Configuration models and loading."""

from .models import (
    DescriptorConfig,
    EnvironmentMapping,
    JnlpboxSettings,
    PackConfig,
    SecurityAttributes,
    SigningConfig,
)
from .settings import JnlpboxConfig, create_jnlpbox_config, load_settings


__all__ = [
    "DescriptorConfig",
    "EnvironmentMapping",
    "JnlpboxConfig",
    "JnlpboxSettings",
    "PackConfig",
    "SecurityAttributes",
    "SigningConfig",
    "create_jnlpbox_config",
    "load_settings",
]
