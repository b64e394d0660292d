"""Artifact pipeline: sources, stages and batch orchestration."""

from .descriptor import (
    JnlpDescriptorBuilder,
    create_descriptor_builder,
    create_jnlp_file_builder,
)
from .orchestrator import Orchestrator, create_orchestrator
from .platforms import Platform, PlatformTable, create_platform_table
from .stages import Stage, StageContext, StageReport, infer_state, run_stage
from .walker import (
    ArtifactListWalker,
    ProductDirectoryWalker,
    load_artifact_list,
    walk_product_directory,
)


__all__ = [
    "ArtifactListWalker",
    "JnlpDescriptorBuilder",
    "Orchestrator",
    "Platform",
    "PlatformTable",
    "ProductDirectoryWalker",
    "Stage",
    "StageContext",
    "StageReport",
    "create_descriptor_builder",
    "create_jnlp_file_builder",
    "create_orchestrator",
    "create_platform_table",
    "infer_state",
    "load_artifact_list",
    "run_stage",
    "walk_product_directory",
]
