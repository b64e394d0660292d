"""Packer options shared by the normalize and pack steps."""

from typing import Literal

from pydantic import Field

from jnlpbox.models.base import JnlpboxBaseModel


class PackerOptions(JnlpboxBaseModel):
    """Encoder settings.

    Normalization and the final pack must use identical options, otherwise the
    packed layout of a signed archive no longer matches what was signed.
    """

    effort: int = Field(
        default=5, ge=0, le=9, description="0 stores bands uncompressed, 9 is smallest"
    )
    segment_limit: int = Field(
        default=1_000_000,
        ge=-1,
        description=(
            "Approximate bytes per segment; -1 for one segment, "
            "0 for one entry per segment"
        ),
    )
    keep_file_order: bool = Field(
        default=True, description="Keep entry order instead of sorting by name"
    )
    modification_time: Literal["keep", "latest"] = Field(
        default="keep", description="Keep entry times or stamp all with the latest one"
    )
    deflate_hint: Literal["keep", "true", "false"] = Field(
        default="keep", description="Per-entry compression on unpack"
    )


__all__ = ["PackerOptions"]
