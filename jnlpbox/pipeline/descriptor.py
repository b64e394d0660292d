"""Launch descriptor (JNLP file) generation.

The descriptor is the JNLP template with one ``<resources>`` element per
target environment listing the plugin jars. It is written next to the product
for clients to download and, because Java Web Start only trusts a JNLP file
whose copy is signed inside the main jar under ``JNLP-INF/``, also embedded in
the jar holding the application main class. The embedded copy may come from a
separate signing template.
"""

import xml.etree.ElementTree as ET
from collections.abc import Sequence
from pathlib import Path

from jnlpbox.config.models import DescriptorConfig
from jnlpbox.core.errors import ConfigError, FilesystemError
from jnlpbox.core.structlog_logger import get_struct_logger
from jnlpbox.models.artifact import Artifact, PluginArtifact
from jnlpbox.pipeline.platforms import NO_ENVIRONMENT, PlatformTable
from jnlpbox.utils.resources import write_bytes_atomically


logger = get_struct_logger(__name__)

APPLICATION_JNLP = "JNLP-INF/APPLICATION.JNLP"
APPLICATION_TEMPLATE_JNLP = "JNLP-INF/APPLICATION_TEMPLATE.JNLP"
DEFAULT_HREF_PREFIX = "plugins/"


def _parse(template: Path) -> ET.ElementTree:
    try:
        return ET.parse(template)
    except ET.ParseError as e:
        raise ConfigError(f"Invalid JNLP template {template}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read JNLP template {template}: {e}") from e


def read_main_class(template: Path) -> str:
    """``application-desc/@main-class`` of a JNLP template.

    Raises:
        ConfigError: If the template is unreadable or has no main class
    """
    element = _parse(template).getroot().find("application-desc")
    main_class = element.get("main-class") if element is not None else None
    if not main_class:
        raise ConfigError(f"No application-desc main-class in {template}")
    return main_class


def main_class_entry(main_class: str) -> str:
    """``org.example.Main`` -> ``org/example/Main.class``"""
    return main_class.replace(".", "/") + ".class"


class JnlpDescriptorBuilder:
    """Renders the descriptor for the security stage and the jnlp-file command."""

    def __init__(
        self,
        jnlp_template: Path,
        artifacts: Sequence[Artifact],
        platforms: PlatformTable,
        signing_template: Path | None = None,
        href_prefix: str = DEFAULT_HREF_PREFIX,
    ) -> None:
        self.jnlp_template = jnlp_template
        self.signing_template = signing_template
        self.artifacts = list(artifacts)
        self.platforms = platforms
        self.href_prefix = href_prefix
        self._main_class: str | None = None
        self._content: bytes | None = None

    @property
    def main_class(self) -> str:
        if self._main_class is None:
            self._main_class = read_main_class(self.jnlp_template)
            logger.info("application_main_class", main_class=self._main_class)
        return self._main_class

    @property
    def entry_name(self) -> str:
        if self.signing_template is not None:
            return APPLICATION_TEMPLATE_JNLP
        return APPLICATION_JNLP

    def descriptor_bytes(self) -> bytes:
        """Copy embedded in the main jar, rendered once per run."""
        if self._content is None:
            self._content = self._render(self.signing_template or self.jnlp_template)
        return self._content

    def jnlp_file_bytes(self) -> bytes:
        """Descriptor served to clients; always rendered from the JNLP template."""
        return self._render(self.jnlp_template)

    def write_jnlp_file(self, output: Path) -> Path:
        """Write the client descriptor to ``output``.

        Raises:
            ConfigError: If ``output`` is the template itself
            FilesystemError: If the file cannot be written
        """
        output = Path(output)
        if output.resolve() == Path(self.jnlp_template).resolve():
            raise ConfigError(f"Refusing to overwrite the JNLP template {output}")
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create {output.parent}: {e}") from e
        write_bytes_atomically(output, self.jnlp_file_bytes())
        logger.info(
            "jnlp_file_written", path=str(output), artifacts=len(self.artifacts)
        )
        return output

    def _render(self, template: Path) -> bytes:
        tree = _parse(template)
        self._add_resources(tree.getroot())
        return ET.tostring(tree.getroot(), encoding="utf-8", xml_declaration=True)

    def _add_resources(self, root: ET.Element) -> None:
        groups: dict[str, list[PluginArtifact]] = {}
        for artifact in self.artifacts:
            if isinstance(artifact, PluginArtifact):
                groups.setdefault(artifact.env_key, []).append(artifact)

        for env_key, plugins in groups.items():
            if env_key == NO_ENVIRONMENT:
                self._append_resources(root, plugins, None, None)
                continue
            for platform in self.platforms.lookup(env_key):
                self._append_resources(root, plugins, platform.os, platform.arch)

    def _append_resources(
        self,
        root: ET.Element,
        plugins: list[PluginArtifact],
        os: str | None,
        arch: str | None,
    ) -> None:
        resources = ET.SubElement(root, "resources")
        if os is not None:
            resources.set("os", os)
        if arch is not None:
            resources.set("arch", arch)
        for plugin in plugins:
            jar = ET.SubElement(resources, "jar")
            jar.set("href", f"{self.href_prefix}{plugin.describe()}.jar")


def _require_template(config: DescriptorConfig, purpose: str) -> Path:
    if config.jnlp_template is None:
        raise ConfigError(f"descriptor.jnlp_template is required to {purpose}")
    return config.jnlp_template


def create_descriptor_builder(
    config: DescriptorConfig,
    artifacts: Sequence[Artifact],
    platforms: PlatformTable,
) -> JnlpDescriptorBuilder | None:
    """Builder for the embedded copy, or None when descriptor signing is off.

    Raises:
        ConfigError: If a required template is not configured
    """
    if not config.sign_jnlp_file:
        return None
    jnlp_template = _require_template(config, "sign the JNLP file")

    signing_template = None
    if config.sign_jnlp_file_with_template:
        if config.jnlp_signing_template is None:
            raise ConfigError(
                "descriptor.jnlp_signing_template is required when "
                "sign_jnlp_file_with_template is set"
            )
        signing_template = config.jnlp_signing_template

    return JnlpDescriptorBuilder(
        jnlp_template, artifacts, platforms, signing_template, config.href_prefix
    )


def create_jnlp_file_builder(
    config: DescriptorConfig,
    artifacts: Sequence[Artifact],
    platforms: PlatformTable,
) -> JnlpDescriptorBuilder:
    """Builder for the client descriptor; independent of ``sign_jnlp_file``."""
    return JnlpDescriptorBuilder(
        _require_template(config, "write the JNLP file"),
        artifacts,
        platforms,
        href_prefix=config.href_prefix,
    )


__all__ = [
    "APPLICATION_JNLP",
    "APPLICATION_TEMPLATE_JNLP",
    "JnlpDescriptorBuilder",
    "create_descriptor_builder",
    "create_jnlp_file_builder",
    "main_class_entry",
    "read_main_class",
]
