"""Floor-plan reading: turns a 2D plan image into a layout description.

The returned text is meant to be placed in the request's free text, where the
2D-plan interior mode picks it up as strict visual instructions.
"""

from __future__ import annotations

import textwrap

from .assets import ImageAsset
from .credentials import CredentialResolver
from .errors import AnalysisError, ValidationError
from .models.registry import ANALYSIS_ROLE, ModelRegistry
from .prompts.catalog import INTERIOR_STYLES, lookup
from .providers.base import BackendCall, ImageBackend, InlineImagePart, TextPart
from .runs.events import EventWriter

DEFAULT_ANALYSIS_STYLE = "Modern Luxury"


def build_analysis_prompt(style: str) -> str:
    return textwrap.dedent(
        f"""
        [ROLE: Expert Architectural Visualizer & Prompt Engineer]
        [TASK: Analyze 2D Floor Plan -> Create 3D Render Prompt]

        Analyze the uploaded floor plan image strictly with high precision regarding architectural symbols.

        1. Architectural Symbols Analysis (CRITICAL):
           - Windows vs Doors: distinguish these carefully.
             - Swing Door: a quarter-circle arc indicating the swing path.
             - Window: a rectangle inside the wall thickness or a simple line closing a gap. No arc means it is
               likely a window.
             - Sliding Door: two overlapping lines or arrows, usually leading to a balcony or outside.

        2. Layout & Spatial Mapping:
           - Identify the main entrance.
           - Locate key furniture: Bed, Wardrobe, Desk/Work Zone, Sofa.
           - Describe elements relative to each other (e.g. "Opposite the bed is a TV console").

        3. Materials & Style:
           - Focus on the overall style '{style}'.
           - Only use material codes (like F1/C1) if clearly legible; otherwise infer premium materials suitable
             for the style.

        4. Lighting:
           - Identify the main source of natural light (usually the sliding door or large window).

        [OUTPUT FORMAT]:
        Write a single, highly detailed English prompt for an AI Image Generator.
        - Start directly with the scene description: "Eye-level view of a [Style] [Room Type]..."
        - Describe the position of every element precisely (Right wall, Left wall, Top/Bottom).
        - Ensure Windows and Doors are described according to the symbols above.
        - End with: "8k resolution, photorealistic, cinematic lighting".
        - Do not include introductory text. Just output the raw prompt.
        """
    ).strip()


class PlanAnalyzer:
    def __init__(
        self,
        backend: ImageBackend,
        *,
        credentials: CredentialResolver,
        events: EventWriter,
        models: ModelRegistry | None = None,
    ) -> None:
        self.backend = backend
        self.credentials = credentials
        self.events = events
        self.models = models or ModelRegistry()

    async def analyze(
        self,
        plan_image: ImageAsset | None,
        interior_style_id: str = "",
        override_key: str | None = None,
    ) -> str:
        if plan_image is None:
            raise ValidationError("No plan image to analyze.", user_message="Please upload a plan image first.")
        credential = self.credentials.resolve(override_key)
        entry = lookup(INTERIOR_STYLES, interior_style_id)
        style = entry.label if entry else (interior_style_id or DEFAULT_ANALYSIS_STYLE)
        model = self.models.for_role(ANALYSIS_ROLE)
        call = BackendCall(
            model=model.name,
            parts=(
                TextPart(text=build_analysis_prompt(style)),
                InlineImagePart(data=plan_image.data, media_type=plan_image.media_type),
            ),
        )
        try:
            response = await self.backend.generate(call, credential.api_key)
        except Exception as exc:
            self.events.emit("plan_analysis_failed", model=model.name, error=str(exc))
            raise AnalysisError(str(exc)) from exc

        candidate = response.first_candidate()
        text = candidate.first_text() if candidate else None
        if not text:
            self.events.emit("plan_analysis_failed", model=model.name, error="empty response")
            raise AnalysisError("Backend returned no analysis text.")
        text = text.strip()
        self.events.emit("plan_analyzed", model=model.name, style=style, text_chars=len(text))
        return text
