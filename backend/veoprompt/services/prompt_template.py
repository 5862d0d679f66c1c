"""Fixed instruction template for Veo 3 JSON prompt generation.

The template is versioned and must stay byte-identical between calls:
build_generation_prompt() only appends the analysis text after the
===INPUT=== marker. Bump TEMPLATE_VERSION whenever the text changes.
"""

TEMPLATE_VERSION = "t2v-universal-1.0"

INPUT_MARKER = "===INPUT==="

GENERATION_TEMPLATE = f"""You are a prompt engineer designing video generation prompts. Produce a stable, Veo 3 compatible JSON prompt that satisfies the requirements below.

[PURPOSE]
- From the input (a Gemini description of a video), return a single "stabilized final JSON prompt" that works whatever the subject is: people, animals, vehicles, products, landscapes, natural phenomena, abstract visuals, motion graphics or CG.
- Express every direction in FRAME/SCREEN coordinates (SCREEN-LEFT/SCREEN-RIGHT), never world coordinates.
- One clip is 8 seconds. If the input needs more time, set two_part=true and output Part A and Part B, with Part B using the last frame of Part A as init_image.

[STRICT RULES]
- Camera defaults: locked-off, lens 18-24mm, hyperfocal, wide. Change only when the input clearly calls for handheld, dolly, pan_tilt or virtual-camera movement.
- The key visual change (priority_action) must complete by t=5.2s, followed by a 0.6-1.0s still hold.
- State the main action affirmatively twice (e.g. RISES / CONTINUES TO RISE). Keep negatives minimal (extra elements, additional vehicles, pan-tilt-zoom, unintended text, watermarks).
- Always set allowed_exits and forbid_reentry_after_exit. These apply to any moving agent, not only people.
- Compress audio_cues to 2-5 items. Describe off-screen sounds as directional anchors. Silence or music-led audio is allowed.
- Summarize timeline events into 3-5 items. Move redundant micro-movements into "notes". For non-human subjects use state-change vocabulary.
- Use SCREEN-LEFT / SCREEN-RIGHT / CENTER (and OFF-SCREEN-LEFT / OFF-SCREEN-RIGHT) for directions.
- **Output strict JSON only. Do not wrap it in a code block (```).**

[OUTPUT]
Return exactly one JSON object.

[ACTION VOCABULARY (reference)]
ARRIVE / ENTER FRAME / EXIT / DEPART / PASS / APPROACH / REVEAL / CONCEAL /
RISE / FALL / ROTATE / SPIN / SCALE / MORPH / BLOOM / MELT / EMIT / FLOW /
IGNITE / EXTINGUISH / GLINT / FLICKER / BRIGHTEN / DIM / COALESCE / DISSIPATE /
OPEN / CLOSE / SETTLE / DRIFT / ACCELERATE / DECELERATE

[BASE TEMPLATE (map the input onto it yourself)]
{{
  "version": "{TEMPLATE_VERSION}",
  "engine_hint": "veo-3",
  "meta": {{
    "title": "<short logline, subject-agnostic>",
    "duration": "8s",
    "aspect_ratio": "16:9",
    "fps": 24,
    "language": "en",
    "notes": [
      "Locked-off unless input explicitly requests motion (incl. virtual camera).",
      "Directions use FRAME/SCREEN coordinates: SCREEN-LEFT/SCREEN-RIGHT.",
      "Priority action by 5.2s, then still hold."
    ]
  }},
  "globals": {{
    "style_tags": ["<style_tags from input or defaults>", "neutral-cool", "slightly-desaturated", "photoreal"],
    "visual_mode": "<live_action|macro|time_lapse|mograph|3d_cgi|cel|stop_motion>",
    "safety": {{ "allow_text": false, "allow_logos": false }}
  }},
  "subject": {{
    "agents": [],
    "key_elements": [],
    "phenomena": []
  }},
  "scene": {{
    "environment": "<location/time_of_day or virtual/abstract>",
    "camera": {{
      "shot_type": "wide",
      "position": "describe in plain words (height/distance if available)",
      "lens": "18-24mm (or from input if reliable)",
      "focus": "hyperfocal, deep focus",
      "movement": "locked-off|handheld|dolly|pan_tilt|virtual-camera (from input)",
      "framing": "use SCREEN-LEFT/RIGHT to place main subjects"
    }},
    "lighting": "describe key light qualities or 'neutral'",
    "mood": "<derived or neutral>"
  }},
  "action": {{
    "overall": "ONE continuous shot (8s). Summarize key beats in one sentence using SCREEN coordinates. Avoid anthropomorphic phrasing for non-human subjects."
  }},
  "audio": {{
    "mode": "diegetic|music|silence",
    "ambient": ["distant traffic", "light wind"],
    "cues": []
  }},
  "timeline": {{
    "events": [],
    "notes": []
  }},
  "technical": {{
    "constraints": {{
      "allowed_exits": [],
      "forbid_reentry_after_exit": [],
      "priority_action_by": 5.2
    }},
    "negatives": ["no extra elements", "no unintended text", "no watermarks", "no additional vehicles", "no pan/tilt/zoom/crop"],
    "quality_controls": ["consistent color temperature", "no exposure pumping", "temporal consistency of textures"]
  }}
}}

{INPUT_MARKER}
"""


def build_generation_prompt(analysis_text: str) -> str:
    """Append the trimmed analysis text to the fixed template."""
    return GENERATION_TEMPLATE + analysis_text.strip()
