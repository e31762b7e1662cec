"""Descriptor catalog for rooms, styles, scenes and render modes.

Each selection id maps to the descriptor text spliced into the composed
instruction. Lookups by an unknown or empty id return ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    label: str
    prompt: str


def _index(*entries: CatalogEntry) -> dict[str, CatalogEntry]:
    return {entry.id: entry for entry in entries}


DEFAULT_NEGATIVE_PROMPT = (
    "low quality, low resolution, blurry, distorted, watermark, text, signature, bad composition, "
    "ugly, geometric imperfections, changing background, changing room layout, changing lighting, distortion"
)

DEFAULT_RENDER_STYLE = "photo"

# Plan styles that must convert the source plan without altering its layout.
RIGID_ISOMETRIC_PLAN_STYLES = frozenset({"iso_structure"})

ROOM_TYPES: Mapping[str, CatalogEntry] = _index(
    CatalogEntry(
        "living",
        "Living Room",
        "Interior design of a living room, comfortable sofa arrangement, coffee table, TV wall unit, "
        "ambient lighting, cozy and inviting atmosphere",
    ),
    CatalogEntry(
        "bedroom",
        "Bedroom",
        "Interior design of a master bedroom, king size bed with premium bedding, bedside tables, wardrobe, "
        "soft lighting, relaxing sanctuary vibe",
    ),
    CatalogEntry(
        "kitchen",
        "Kitchen",
        "Interior design of a kitchen, dining area integration, counter bar, refrigerator, built-in cabinets, "
        "clean countertops, functional layout",
    ),
    CatalogEntry(
        "bathroom",
        "Bathroom",
        "Interior design of a bathroom, bathtub, separate shower zone, vanity mirror with lighting, sanitary ware, "
        "clean tiles, hygienic look",
    ),
)

INTERIOR_STYLES: Mapping[str, CatalogEntry] = _index(
    CatalogEntry(
        "modern",
        "Modern",
        "Modern style, sleek design, clean lines, neutral color palette, functional furniture, polished finishes",
    ),
    CatalogEntry(
        "contemporary",
        "Contemporary",
        "Contemporary style, current trends, sophisticated textures, curved lines, mix of materials, artistic touch",
    ),
    CatalogEntry(
        "minimal",
        "Minimal",
        "Minimalist style, simplicity, clutter-free, monochromatic colors, open space, functional design, "
        "zen atmosphere",
    ),
    CatalogEntry(
        "tropical",
        "Tropical",
        "Tropical style, natural materials, wood textures, indoor plants, airy atmosphere, connection to nature, "
        "resort-like feel",
    ),
    CatalogEntry(
        "classic",
        "Classic",
        "Classic luxury style, elegant moldings, rich fabrics, chandelier, symmetrical layout, timeless aesthetic, "
        "sophisticated",
    ),
    CatalogEntry(
        "resort",
        "Resort",
        "Luxury resort style, vacation vibe, spacious, natural light, premium materials, relaxing and calm "
        "environment",
    ),
)

PLAN_STYLES: Mapping[str, CatalogEntry] = _index(
    CatalogEntry(
        "iso_structure",
        "Iso (Strict Layout)",
        "3D Isometric floor plan view. Convert the 2D layout into 3D. Clean architectural model style. "
        "White walls, soft shadows. High angle view showing the layout depth. Strictly preserve wall positions.",
    ),
    CatalogEntry(
        "blueprint",
        "Blueprint",
        "Architectural blueprint style, white technical lines on blue background, precise measurements, "
        "clear lighting direction casting soft shadows to indicate depth",
    ),
    CatalogEntry(
        "neon",
        "Neon",
        "Neon cyberpunk style floor plan, glowing lines on dark background, high contrast, dramatic lighting "
        "effects with distinct cast shadows",
    ),
    CatalogEntry(
        "isometric",
        "Iso Blue",
        "Isometric floor plan, glowing blue structural lines, dark background, bokeh effect (blurred background), "
        "depth of field, high contrast, futuristic architectural style.",
    ),
    CatalogEntry(
        "oblique",
        "Clay 3D",
        "3D clay render style floor plan, isometric oblique view, soft rounded edges, matte finish, cute and "
        "playful miniature diorama aesthetic. Use a monochromatic single-tone color palette (shades of white, "
        "cream, or soft beige) for the entire structure and furniture. No colorful elements. Soft global "
        "illumination, strong ambient occlusion, clean and minimal toy-like appearance.",
    ),
    CatalogEntry(
        "wood_model",
        "Wood Model",
        "Isometric view made of light wood and matte white materials, placed on construction blueprints spread "
        "on a table. Contains miniature furniture details such as kitchen counters, wooden chairs, and gray "
        "sofas. Natural light shines through giving a soft and realistic feel. Shallow depth of field makes the "
        "background and other components slightly blurred to emphasize the focus on the room model.",
    ),
    CatalogEntry(
        "blueprint_grunge",
        "Blueprint Grunge",
        "Architectural floor plan, top-down view, white lines on dark blue grunge paper texture background, "
        "blueprint style, thick walls casting drop shadows for depth, detailed furniture layout including "
        "bedroom kitchen and garage, sketched white outline trees surrounding, high contrast, aesthetic "
        "architectural presentation, 2D graphic design",
    ),
)

EXTERIOR_SCENES: Mapping[str, CatalogEntry] = _index(
    CatalogEntry(
        "pool_villa",
        "Pool Villa",
        "A wide-angle architectural photograph of a luxurious modern minimalist building, viewed from the far "
        "end of its backyard under a bright clear blue sky. Two-story structure, clean white cubic forms, large "
        "glass windows. A long rectangular swimming pool with clear turquoise water runs parallel to the "
        "building. Manicured green lawn, paved walkway, wooden sun loungers. Mature palm trees and tropical "
        "plants, resort-like atmosphere. Bright midday sunlight casting sharp shadows.",
    ),
    CatalogEntry(
        "housing",
        "Housing Estate 1",
        "A vibrant, modern housing estate scene. Features large, majestic transplanted trees with wooden "
        "supports (tree crutches) lining the streets and gardens, characteristic of new luxury developments. "
        "Lush, deep green manicured lawns. The architecture is modern and fresh. Clean, wide concrete or asphalt "
        "roads with no clutter. Bright, sunny atmosphere with blue sky. 8k resolution, highly detailed real "
        "estate photography.",
    ),
    CatalogEntry(
        "housing_2",
        "Modern Housing 2",
        "A realistic Thai housing estate atmosphere in bright daytime sunlight. Strictly preserve the original "
        "camera angle. Features a concrete or asphalt road in the foreground. The house fence is a mix of green "
        "hedges and black iron railings. Includes typical Thai electric poles and power lines along the road. "
        "Shady trees providing a natural and livable look. Authentic Thai suburban style. 8k resolution, "
        "photorealistic.",
    ),
    CatalogEntry(
        "housing_3",
        "Luxury Mansion",
        "A magnificent luxury mansion situated in an ultra-high-end exclusive housing estate. The architecture "
        "is grand and imposing. The property is surrounded by tall, perfectly trimmed manicured hedge fences "
        "providing privacy and elegance. The foreground features a very wide, clean, spacious paved road or "
        "boulevard, emphasizing grandeur. The overall atmosphere is expensive, orderly, prestigious, and "
        "pristine. Bright natural daylight, professional real estate photography, 8k resolution.",
    ),
    CatalogEntry(
        "housing_4",
        "Modern Housing 4",
        "A lively and vibrant modern Thai housing estate. The most prominent feature is the newly planted large "
        "trees with wooden props/crutches supporting them, typical of new landscaping. The lawns are lush green "
        "and perfectly manicured. The village streets are clean and wide. The atmosphere is sunny, fresh, and "
        "inviting. Modern architectural style. 8k resolution, photorealistic.",
    ),
    CatalogEntry(
        "european",
        "Euro Garden",
        "A grand architectural photograph situated in an opulent formal French garden estate. A long, elegant "
        "light-beige cobblestone paved driveway leads centrally towards the structure. Foreground dominated by "
        "perfectly manicured geometric boxwood hedges, low-trimmed garden mazes, and symmetrical cone-shaped "
        "cypress trees. Lush vibrant green lawns. Dramatic sky with textured clouds. Soft diffused natural "
        "daylight. High-end real estate photography.",
    ),
    CatalogEntry(
        "green_walkway",
        "Green Walkway",
        "A photorealistic architectural photograph nestled in a lush, mature woodland garden. A winding "
        "light-grey flagstone pathway leads from the foreground gate towards the building, flanked by manicured "
        "green lawns and rice fields. Bright clear natural sunlight, high contrast, vivid colors, bird's eye "
        "view perspective.",
    ),
    CatalogEntry(
        "rice_paddy",
        "Rice Field",
        "A stunning architectural photograph situated in the middle of vast, vibrant green rice paddy fields. "
        "Background features a majestic layering mountain range under a bright blue sky. A long straight paved "
        "concrete driveway leads from the foreground gate towards the building, flanked by manicured green "
        "lawns and rice fields. Bright clear natural sunlight, high contrast, vivid colors, bird's eye view "
        "perspective.",
    ),
    CatalogEntry(
        "lake_mountain",
        "Lake Mountain",
        "High-angle bird's eye perspective. Bright warm sunlight with sharp shadows. Vibrant blue sky with "
        "fluffy white clouds. Rugged mountainous terrain with snow-capped peaks in the distance, forested "
        "slopes. A large, reflective deep blue lake in the foreground or middle ground. Meticulously landscaped "
        "hillside with green lawns, stone pathways, and a clear blue swimming pool nearby.",
    ),
    CatalogEntry(
        "resort_dusk",
        "Resort Dusk",
        "High-resolution photograph of a resort or residential area at dusk/twilight. Blue-grey sky with wispy "
        "clouds. Meticulously designed gardens, lush greenery, large shade trees, pines, shrubs, and colorful "
        "flowers. Concrete or stone walkways winding through the garden. Water features or swimming pool "
        "reflecting the sky. Asphalt or concrete internal roads with garden lights and warm building lights "
        "creating a cozy atmosphere.",
    ),
    CatalogEntry(
        "hillside",
        "Hillside",
        "Vibrant mountain landscape teeming with lush green forests and expansive meadows under a bright "
        "cloud-dotted sky. A collection of structures arranged across the hillside. Modern tropical elements "
        "with thatch or flat roofs, stone, and wood. Features infinity pools, terraces, wooden walkways, and "
        "pavilions. Diverse vegetation and natural setting.",
    ),
    CatalogEntry(
        "lake_front",
        "Lake Front",
        "8K landscape photograph. Peaceful and fresh waterfront atmosphere. Foreground is a large still lake "
        "acting as a mirror reflecting the sky and landscape. Green manicured lawns along the bank, "
        "interspersed with gravel and natural stone paths. Background of lush rainforest and large mountains. "
        "Soft lighting, scattered clouds. The building sits harmoniously with nature.",
    ),
    CatalogEntry(
        "green_reflection",
        "Green Reflection",
        "High-resolution landscape photograph emphasizing tranquility. Foreground is a fresh green lawn, "
        "manicured and smooth, leading to the edge of a large lake. Still water surface reflecting the "
        "surroundings perfectly. Background of towering mountains covered in dense green rainforest. Big trees "
        "framing the water. Diffused soft morning light. The building is placed harmoniously in this setting.",
    ),
    CatalogEntry(
        "khaoyai_1",
        "Khao Yai 1",
        "Modern two-story house with distinctive design. Exterior walls mix exposed concrete and black "
        "structure with wooden slats. Large floor-to-ceiling glass windows. Located amidst lush natural "
        "landscape. Background is a dense forest mountain range. Foreground features a reflecting pool, wide "
        "smooth lawn, and flower garden. Morning natural sunlight, peaceful and luxurious.",
    ),
    CatalogEntry(
        "khaoyai_2",
        "Khao Yai 2",
        "Modern resort style built of stone and wood, nestled in lush greenery. Tranquil atmosphere. Wide lawn "
        "bordered by white and purple flowering plants. A pool reflecting the building. Large trees including "
        "mango trees providing shade. Forested mountain backdrop. Afternoon sunlight bathing the scene in a "
        "relaxing ambiance.",
    ),
    CatalogEntry(
        "twilight_pool",
        "Twilight Pool",
        "Cinematic, photorealistic architectural landscape at twilight (Blue Hour). Foreground features a sleek "
        "dark-tiled swimming pool with mirror-like reflections. Wooden deck, built-in lounge seating, dining "
        "area. Illuminated by cozy warm golden floor lanterns and interior lights contrasting with the deep "
        "blue sky. Lush green hillside background.",
    ),
)

ARCH_STYLES: Mapping[str, CatalogEntry] = _index(
    CatalogEntry(
        "modern",
        "Modern",
        "Modern architecture, sleek design, clean lines, glass and concrete materials, geometric shapes, "
        "minimalist approach, high-end look",
    ),
    CatalogEntry(
        "contemporary",
        "Contemporary",
        "Contemporary architecture, fluid lines, asymmetry, eco-friendly materials, natural light integration, "
        "innovative design, artistic expression",
    ),
    CatalogEntry(
        "minimal",
        "Minimalist",
        "Minimalist architecture, extreme simplicity, monochromatic palette, open floor plans, absence of "
        "clutter, functional design, zen atmosphere",
    ),
    CatalogEntry(
        "european",
        "European",
        "European classic architecture, elegant proportions, ornamental details, stone textures, steep roofs, "
        "historic charm, grand facade",
    ),
    CatalogEntry(
        "scandi",
        "Scandinavian",
        "Scandinavian architecture, nordic style, light wood timber, white walls, cozy atmosphere (hygge), "
        "functionalism, clean and bright",
    ),
    CatalogEntry(
        "tropical",
        "Tropical",
        "Tropical architecture, lush greenery integration, wooden screens, large overhangs, resort vibe, "
        "natural ventilation, relaxing atmosphere, exotic materials",
    ),
)

RENDER_STYLES: Mapping[str, CatalogEntry] = _index(
    CatalogEntry("photo", "Photorealistic", "photorealistic, 4k, highly detailed, realistic texture"),
    CatalogEntry("anime", "Anime", "anime art style, japanese animation, cel shading, vibrant colors"),
    CatalogEntry("sketch", "Sketch", "pencil sketch, graphite drawing, hand drawn, monochrome, artistic sketch"),
    CatalogEntry("oil", "Oil Paint", "oil painting style, textured brushstrokes, canvas texture, artistic"),
    CatalogEntry("colorpencil", "Color Pencil", "colored pencil drawing, soft textures, hand drawn, artistic"),
    CatalogEntry("magic", "Marker", "magic marker illustration, bold lines, vibrant colors, marker texture"),
)

CATALOGS: Mapping[str, Mapping[str, CatalogEntry]] = {
    "room": ROOM_TYPES,
    "interior_style": INTERIOR_STYLES,
    "plan_style": PLAN_STYLES,
    "scene": EXTERIOR_SCENES,
    "arch_style": ARCH_STYLES,
    "render_style": RENDER_STYLES,
}


def lookup(catalog: Mapping[str, CatalogEntry], entry_id: str | None) -> CatalogEntry | None:
    if not entry_id:
        return None
    return catalog.get(str(entry_id).strip())


def render_style_prompt(style_id: str | None) -> str:
    entry = lookup(RENDER_STYLES, style_id) or RENDER_STYLES[DEFAULT_RENDER_STYLE]
    return entry.prompt
