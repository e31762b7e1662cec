"""Instruction composer.

``compose`` runs a fixed pipeline of stages over an immutable ``PromptDraft``.
Each stage takes the request and the draft so far and returns a new draft, so
any stage can be exercised on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Sequence

from ..errors import ValidationError
from .catalog import (
    ARCH_STYLES,
    DEFAULT_NEGATIVE_PROMPT,
    EXTERIOR_SCENES,
    INTERIOR_STYLES,
    PLAN_STYLES,
    RIGID_ISOMETRIC_PLAN_STYLES,
    ROOM_TYPES,
    lookup,
    render_style_prompt,
)
from .request import GenerationRequest

# Free text longer than this is treated as a plan analysis in 2D-plan mode.
STRICT_ANALYSIS_MIN_CHARS = 50

STRICT_VISUAL_INSTRUCTIONS_HEADER = "[STRICT VISUAL INSTRUCTIONS]"
INPAINTING_HEADER = "[CRITICAL INSTRUCTION: INPAINTING MODE]"

PLAN_STRICT_CONVERSION = (
    " [Instruction]: STRICT CONVERSION. Convert this 2D plan into a 3D Isometric view. You MUST preserve the "
    "exact wall layout, proportions, and furniture placement of the source image. Do not change the design. "
    "Only change the perspective to 3D Isometric."
)
PLAN_REDRAW = (
    " [Instruction]: Analyze this image (sketch or plan). Redraw it as a high-quality floor plan in the "
    "specified style, maintaining the layout but enhancing clarity and aesthetics."
)
PRESERVE_COMPOSITION = (
    " [STRICT CONSTRAINT]: Preserve the original image style, camera angle, composition, and lighting exactly. "
    "Do not change the overall look. "
)
BLEND_INSTRUCTION = (
    " [Instruction]: Use the first image as the main structural base. Use the second image as a reference for "
    "style. Blend the aesthetic of the second image into the first image."
)
COMPOSITION_REFERENCE_INSTRUCTION = (
    " [Instruction]: You must use the provided image as the strict reference for composition. DO NOT change "
    "the style. DO NOT change the overall structure."
)
STYLE_REFERENCE_INSTRUCTION = " [Instruction]: Use this image as a style reference."


@dataclass(frozen=True)
class PromptDraft:
    segments: tuple[str, ...] = ()
    free_text_embedded: bool = False

    @property
    def text(self) -> str:
        return "".join(self.segments)

    def add(self, *segments: str) -> PromptDraft:
        return replace(self, segments=self.segments + tuple(segment for segment in segments if segment))


Stage = Callable[[GenerationRequest, PromptDraft], PromptDraft]


def validate(request: GenerationRequest) -> None:
    """Reject requests that carry nothing to generate from."""

    if request.tab != "exterior":
        return
    if _clean(request.free_text) or request.arch_style_id or request.scene_id:
        return
    if request.has_source or request.has_reference:
        return
    raise ValidationError("Exterior request has no description, style, scene or image.")


def stage_base(request: GenerationRequest, draft: PromptDraft) -> PromptDraft:
    if request.tab == "interior":
        if request.interior_input_mode == "from_2d" and request.has_source:
            return _plan_to_room_block(request, draft)
        if request.interior_input_mode == "from_3d" and request.has_source:
            return draft.add(
                "[TASK: RENDER 3D MODEL SCREENSHOT TO PHOTOREALISM]\n",
                "INPUT ANALYSIS: The input image is a raw 3D model screenshot (e.g., SketchUp, Revit, Rhino) "
                "or a white model.\n",
                "INSTRUCTION: Apply realistic materials, textures, and lighting to the EXISTING geometry. "
                "DO NOT change the structure. Turn the 'clay' or 'viewport' look into a high-end photograph. "
                "Keep the camera angle exactly the same.\n",
                "Strictly preserve the geometry of the input image. Analyze the position of every furniture "
                "piece and keep it exactly where it is. Apply realistic textures and lighting only.\n",
            )
        return draft.add("Generate a high quality interior design image. ")
    if request.tab == "plan":
        return draft.add("Generate a high quality architectural floor plan. ")
    return draft.add("Generate a high quality image of exterior view. ")


def _plan_to_room_block(request: GenerationRequest, draft: PromptDraft) -> PromptDraft:
    analysis = _clean(request.free_text)
    draft = draft.add(
        "[ROLE: SENIOR ARCHITECTURAL VISUALIZER]\n",
        "TASK: Convert 2D Floor Plan to 3D Interior. 100% ACCURACY REQUIRED.\n",
    )
    if len(analysis) > STRICT_ANALYSIS_MIN_CHARS:
        draft = draft.add(
            f"{STRICT_VISUAL_INSTRUCTIONS_HEADER}:\n{analysis}\n\n",
            "INSTRUCTION: The above text describes the EXACT layout found in the input image. You MUST follow "
            "it for furniture placement, lighting, and materials.\n",
        )
        draft = replace(draft, free_text_embedded=True)
    else:
        draft = draft.add(
            "CHAIN OF THOUGHT PROCESS:\n",
            "1. SCAN INPUT: Identify the exact pixel coordinates of the Bed, Wardrobe, Nightstands, Door, "
            "and Windows.\n",
            "2. GEOMETRY LOCK: Create a rigid 3D bounding box for each furniture item found. DO NOT MOVE THEM. "
            "DO NOT ROTATE THEM. DO NOT RESIZE THEM.\n",
            "3. RENDER: Apply the requested style to these LOCKED coordinates.\n",
        )
    return draft.add(
        "OUTPUT REQUIREMENT: The final image must perfectly match the layout of the source plan. If the bed is "
        "on the left in the plan, it MUST be on the left in the render.\n"
    )


def stage_descriptors(request: GenerationRequest, draft: PromptDraft) -> PromptDraft:
    if request.tab == "interior":
        room = lookup(ROOM_TYPES, request.room_type_id)
        style = lookup(INTERIOR_STYLES, request.interior_style_id)
        if room:
            draft = draft.add(f"{room.prompt}. ")
        if style:
            draft = draft.add(f"{style.prompt}. ")
        return draft
    if request.tab == "plan":
        plan_style = lookup(PLAN_STYLES, request.plan_style_id)
        return draft.add(f"{plan_style.prompt}. ") if plan_style else draft
    scene = lookup(EXTERIOR_SCENES, request.scene_id)
    arch_style = lookup(ARCH_STYLES, request.arch_style_id)
    if scene:
        draft = draft.add(f"{scene.prompt} ")
    if arch_style:
        draft = draft.add(f"Architecture Style: {arch_style.prompt}. ")
    return draft


def stage_free_text(request: GenerationRequest, draft: PromptDraft) -> PromptDraft:
    text = _clean(request.free_text)
    if not text or draft.free_text_embedded:
        return draft
    label = "Description" if request.tab == "plan" else "Additional Details"
    return draft.add(f"{label}: {text}. ")


def stage_render_style(request: GenerationRequest, draft: PromptDraft) -> PromptDraft:
    return draft.add(f"Render Style: {render_style_prompt(request.render_style_id)}. ")


def stage_source_image(request: GenerationRequest, draft: PromptDraft) -> PromptDraft:
    if not request.has_source:
        return draft
    if request.tab == "plan":
        if request.plan_style_id in RIGID_ISOMETRIC_PLAN_STYLES:
            return draft.add(PLAN_STRICT_CONVERSION)
        return draft.add(PLAN_REDRAW)
    if request.tab == "interior" and request.interior_input_mode != "standard":
        return draft
    command = _clean(request.edit_command)
    if command:
        return draft.add(
            f"\n{INPAINTING_HEADER}",
            f'\nUSER COMMAND: "{command}"',
            "\n\nRULES:",
            "\n1. FROZEN BACKGROUND: Do NOT change the room layout, walls, floor, ceiling, or existing furniture. "
            "The scene must remain EXACTLY the same.",
            "\n2. INSERTION ONLY: Only add/modify the object specified in the command.",
            "\n3. STYLE MATCHING: The new object must match the lighting, perspective, and style of the "
            "original image.",
            "\n4. NO RE-IMAGINING: This is an EDIT, not a new generation.",
        )
    draft = draft.add(PRESERVE_COMPOSITION)
    text = _clean(request.free_text)
    if text and text not in draft.text:
        draft = draft.add(f'ACTION: Edit based on: "{text}". Keep everything else exactly the same. ')
    return draft


def stage_edit_command(request: GenerationRequest, draft: PromptDraft) -> PromptDraft:
    command = _clean(request.edit_command)
    if request.has_source or not command:
        return draft
    return draft.add(f"Additional details: {command}. ")


def stage_exclusions(request: GenerationRequest, draft: PromptDraft) -> PromptDraft:
    return draft.add(f"Exclude: {DEFAULT_NEGATIVE_PROMPT}.")


def stage_image_roles(request: GenerationRequest, draft: PromptDraft) -> PromptDraft:
    if request.has_source and request.has_reference:
        return draft.add(BLEND_INSTRUCTION)
    if request.has_source:
        if request.tab == "plan" or request.uses_strict_interior_mode:
            return draft
        return draft.add(COMPOSITION_REFERENCE_INSTRUCTION)
    if request.has_reference:
        return draft.add(STYLE_REFERENCE_INSTRUCTION)
    return draft


COMPOSE_STAGES: tuple[Stage, ...] = (
    stage_base,
    stage_descriptors,
    stage_free_text,
    stage_render_style,
    stage_source_image,
    stage_edit_command,
    stage_exclusions,
    stage_image_roles,
)


def compose(request: GenerationRequest, stages: Sequence[Stage] = COMPOSE_STAGES) -> str:
    validate(request)
    draft = PromptDraft()
    for stage in stages:
        draft = stage(request, draft)
    return draft.text


def _clean(value: str | None) -> str:
    return str(value or "").strip()
