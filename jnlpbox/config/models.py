"""Configuration models."""

from pathlib import Path
from typing import Any

from pydantic import ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jnlpbox.archive.manifest import SECURITY_ATTRIBUTES
from jnlpbox.models.base import JnlpboxBaseModel
from jnlpbox.pack.options import PackerOptions


class SecurityAttributes(JnlpboxBaseModel):
    """Manifest security attributes to write into every processed jar.

    Fields accept either the Python name or the manifest attribute name, so a
    config file may say ``Application-Name:`` or ``application_name:``.
    Values are written literally, surrounding whitespace included.
    """

    model_config = ConfigDict(str_strip_whitespace=False)

    permissions: str | None = Field(default=None, alias="Permissions")
    codebase: str | None = Field(default=None, alias="Codebase")
    application_name: str | None = Field(default=None, alias="Application-Name")
    application_library_allowable_codebase: str | None = Field(
        default=None, alias="Application-Library-Allowable-Codebase"
    )
    caller_allowable_codebase: str | None = Field(
        default=None, alias="Caller-Allowable-Codebase"
    )
    trusted_only: str | None = Field(default=None, alias="Trusted-Only")
    trusted_library: str | None = Field(default=None, alias="Trusted-Library")

    @field_validator("*")
    @classmethod
    def validate_single_line(cls, v: str | None) -> str | None:
        if v is not None and ("\n" in v or "\r" in v):
            raise ValueError("Manifest attribute values must be a single line")
        return v

    def as_manifest_attributes(self) -> dict[str, str | None]:
        """Values keyed by manifest attribute name, in write order."""
        values = self.model_dump(by_alias=True)
        return {name: values.get(name) for name in SECURITY_ATTRIBUTES}

    def configured(self) -> list[tuple[str, str]]:
        """Non-empty attributes, in write order."""
        return [
            (name, value)
            for name, value in self.as_manifest_attributes().items()
            if value
        ]


class SigningConfig(JnlpboxBaseModel):
    """Options passed to the external jar signer."""

    # Keep passwords out of validation error messages
    model_config = ConfigDict(hide_input_in_errors=True)

    skip: bool = Field(default=False, description="Do not sign anything")
    alias: str | None = Field(
        default=None, description="Keystore alias; required unless skip is set"
    )
    keystore: str | None = None
    storepass: SecretStr | None = None
    keypass: SecretStr | None = None
    storetype: str | None = None
    provider_name: str | None = None
    provider_class: str | None = None
    provider_arg: str | None = None
    sigfile: str | None = None
    digest_algorithm: str | None = Field(
        default=None, description="Passed as -digestalg; tool default when unset"
    )
    tsa: str | None = Field(default=None, description="Timestamp authority URL")
    jarsigner_executable: Path | None = Field(
        default=None, description="Explicit jarsigner path"
    )
    jar_home: Path | None = Field(
        default=None, description="JDK home used to locate jarsigner"
    )
    timeout_seconds: float | None = Field(
        default=600.0,
        gt=0,
        description="Kill the signer after this many seconds; unset waits forever",
    )


class PackConfig(JnlpboxBaseModel):
    delete_unpacked_jars: bool = Field(
        default=False, description="Remove jars once their .pack.gz exists"
    )


class DescriptorConfig(JnlpboxBaseModel):
    """Launch descriptor generation and signed embedding."""

    sign_jnlp_file: bool = False
    sign_jnlp_file_with_template: bool = Field(
        default=False,
        description="Embed APPLICATION_TEMPLATE.JNLP from the signing template",
    )
    jnlp_template: Path | None = None
    jnlp_signing_template: Path | None = None
    jnlp_file: Path | None = Field(
        default=None,
        description="Where jnlp-file writes the descriptor; default <product>.jnlp",
    )
    href_prefix: str = Field(
        default="plugins/", description="Prefix of every generated jar href"
    )


class EnvironmentMapping(JnlpboxBaseModel):
    """Maps an OSGi ``os/arch`` key to launch descriptor os and arch values."""

    key: str
    os: str
    arch: str

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        if v.count("/") != 1 or not all(part for part in v.split("/")):
            raise ValueError("Environment key must look like 'os/arch'")
        return v


class JnlpboxSettings(BaseSettings):
    """Top-level settings with environment variable support.

    Precedence order (highest to lowest):
    1. Environment variables (``JNLPBOX_``, nested with ``__``)
    2. Constructor arguments (file data)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="JNLPBOX_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="forbid",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        return (env_settings, init_settings)

    log_level: str = "WARNING"
    workers: int = Field(
        default=1, ge=1, description="Artifacts processed in parallel"
    )

    security: SecurityAttributes = Field(default_factory=SecurityAttributes)
    signing: SigningConfig = Field(default_factory=SigningConfig)
    packer: PackerOptions = Field(default_factory=PackerOptions)
    pack: PackConfig = Field(default_factory=PackConfig)
    descriptor: DescriptorConfig = Field(default_factory=DescriptorConfig)
    environments: list[EnvironmentMapping] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a recognized value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.strip().upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return upper_v


__all__ = [
    "DescriptorConfig",
    "EnvironmentMapping",
    "JnlpboxSettings",
    "PackConfig",
    "SecurityAttributes",
    "SigningConfig",
]
