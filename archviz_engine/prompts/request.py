"""Immutable generation request built from the current selection state."""

from __future__ import annotations

from dataclasses import dataclass

from ..assets import ImageAsset
from .catalog import DEFAULT_RENDER_STYLE

TABS = ("exterior", "interior", "plan")
INTERIOR_INPUT_MODES = ("standard", "from_2d", "from_3d")


@dataclass(frozen=True)
class GenerationRequest:
    tab: str = "exterior"
    render_style_id: str = DEFAULT_RENDER_STYLE
    arch_style_id: str = ""
    interior_style_id: str = ""
    plan_style_id: str = ""
    scene_id: str = ""
    room_type_id: str = ""
    interior_input_mode: str = "standard"
    free_text: str = ""
    edit_command: str = ""
    source_image: ImageAsset | None = None
    reference_image: ImageAsset | None = None

    def __post_init__(self) -> None:
        if self.tab not in TABS:
            raise ValueError(f"Unknown tab '{self.tab}'. Expected one of: {', '.join(TABS)}.")
        if self.interior_input_mode not in INTERIOR_INPUT_MODES:
            raise ValueError(
                f"Unknown interior input mode '{self.interior_input_mode}'. "
                f"Expected one of: {', '.join(INTERIOR_INPUT_MODES)}."
            )

    @property
    def style_id(self) -> str:
        """The one style selection that applies to the active tab."""

        if self.tab == "interior":
            return self.interior_style_id
        if self.tab == "plan":
            return self.plan_style_id
        return self.arch_style_id

    @property
    def has_source(self) -> bool:
        return self.source_image is not None

    @property
    def has_reference(self) -> bool:
        return self.reference_image is not None

    @property
    def uses_strict_interior_mode(self) -> bool:
        return self.tab == "interior" and self.interior_input_mode in {"from_2d", "from_3d"}

    @property
    def archive_label(self) -> str:
        """Text recorded alongside archived results."""

        return self.edit_command or self.free_text or "Generated Image"
