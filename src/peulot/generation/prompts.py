"""Prompt assembly for peula generation, section regeneration and insights.

Every builder is a pure function of its inputs: the caller loads training
examples and feedback from the store and passes them in, so the exact text
sent to the model is reproducible in tests.
"""

from collections import defaultdict
from dataclasses import dataclass

from peulot.core.templates import CUSTOM_TEMPLATE_ID, get_template_by_id
from peulot.core.types import (
    COMPONENT_COUNT,
    COMPONENT_NAMES,
    Feedback,
    InsightsSummary,
    QuestionnaireResponse,
    SectionContext,
    TrainingExample,
)

# Token budgets per call
PEULA_MAX_TOKENS = 8192
SECTION_MAX_TOKENS = 2048
INSIGHTS_MAX_TOKENS = 2048

MAX_PROMPT_EXAMPLES = 3
PROMPT_EXAMPLE_CHARS = 1000
MAX_INSIGHTS_EXAMPLES = 5
INSIGHTS_EXAMPLE_CHARS = 1500
FEEDBACK_PER_SECTION = 5


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str
    max_tokens: int


PEULA_SYSTEM_PROMPT = (
    "You are an expert Tzofim (Israeli Scouts) activity planner. You create detailed, "
    "high-quality peulot based on elite scout methodology. Always respond with valid JSON."
)

SECTION_SYSTEM_PROMPT = (
    "You are an expert Tzofim activity planner. Generate fresh, specific content for the "
    "requested section. Always respond with valid JSON."
)

INSIGHTS_SYSTEM_PROMPT = (
    "You are an expert instructional designer. Analyze provided peulot and summarize "
    "distinctive style signals. Always respond with valid JSON."
)

METHODOLOGY_GUIDANCE = """\
For each component provide:
- Description: Clear, actionable content
- Best Practices: Tzofim methodology and tips
- Time Structure: Specific time breakdown

Guidelines:
• Write naturally and professionally
• Provide specific activities, not general advice
• Include exact timing that adds up to the total duration
• Use concrete examples and instructions
• Integrate specified materials creatively
• Apply Tzofim principles: experiential learning, active participation, reflection
• Keep language clear and implementation-focused
• Address safety, logistics, and facilitation practically"""

INSIGHTS_GUIDELINE = "• Align with the user's style insights described above"

SECTION_OUTPUT_SHAPE = """\
Return valid JSON:
{
  "description": "Clear, actionable content for this section",
  "bestPractices": "Tzofim methodology and tips",
  "timeStructure": "Specific time breakdown"
}"""

INSIGHTS_OUTPUT_SHAPE = """\
Return strict JSON summarizing their style with this shape:
{
  "voiceAndTone": "One paragraph capturing voice, energy, and pacing.",
  "signatureMoves": ["3-5 bullet points highlighting recurring activity patterns or structures."],
  "facilitationFocus": ["3-5 bullet points describing how they lead or support chanichim."],
  "reflectionPatterns": ["3-4 bullet points on how they process learning or run sicha/debrief."],
  "measurementFocus": ["3-4 bullet points explaining how success or impact shows up in their writing."]
}
Use direct, actionable language."""


def _peula_output_shape() -> str:
    entries = ",\n".join(
        "    {\n"
        f'      "component": "{i + 1}. {name}",\n'
        '      "description": "...",\n'
        '      "bestPractices": "...",\n'
        '      "timeStructure": "..."\n'
        "    }"
        for i, name in enumerate(COMPONENT_NAMES)
    )
    return (
        "Return valid JSON with a \"title\" string and a \"components\" array of exactly "
        f"{COMPONENT_COUNT} objects, in this order:\n"
        "{\n"
        '  "title": "Descriptive peula title",\n'
        '  "components": [\n'
        f"{entries}\n"
        "  ]\n"
        "}"
    )


def _truncate(text: str, limit: int) -> str:
    return f"{text[:limit]}..." if len(text) > limit else text


def _format_materials(materials: list[str] | None) -> str:
    return ", ".join(m.replace("-", " ") for m in materials or [])


def _input_fields(
    topic: str,
    age_group: str,
    duration: str,
    group_size: str,
    goals: str,
    materials: list[str] | None,
    notes: str | None,
    materials_label: str = "Available Materials",
    template: str = "",
) -> list[str]:
    lines = [
        f"Topic: {topic}",
        f"Age: {age_group} years",
        f"Duration: {duration} minutes",
        f"Group Size: {group_size}",
        f"Goals: {goals}",
    ]
    if template:
        lines.append(template)
    if materials:
        lines.append(f"{materials_label}: {_format_materials(materials)}")
    if notes:
        lines.append(f"Notes: {notes}")
    return lines


def template_note(template_id: str | None) -> str:
    """One-line template note, or "" for custom and unknown templates."""
    template = get_template_by_id(template_id or CUSTOM_TEMPLATE_ID)
    if template is None or template.id == CUSTOM_TEMPLATE_ID:
        return ""
    return f"Template Used: {template.name} - {template.description}"


def training_examples_block(examples: list[TrainingExample]) -> str:
    """The first few examples in store order, truncated. "" when there are none."""
    if not examples:
        return ""
    parts = ["Training Examples (Peulot you've written - match this writing style and quality):"]
    for idx, example in enumerate(examples[:MAX_PROMPT_EXAMPLES], 1):
        entry = f"Example {idx}: {example.title}\n{_truncate(example.content, PROMPT_EXAMPLE_CHARS)}"
        if example.notes:
            entry += f"\nNotes: {example.notes}"
        parts.append(entry)
    return "\n\n".join(parts)


def insights_block(summary: InsightsSummary | None) -> str:
    """The cached style profile as prompt text. "" when there is none."""
    if summary is None or summary.insights is None:
        return ""
    insights = summary.insights

    def bullets(items: list[str]) -> str:
        return "\n".join(f"- {item}" for item in items)

    return (
        f"Style Insights from {summary.example_count} uploaded peulot (preserve these hallmarks):\n"
        f"Voice & Tone: {insights.voice_and_tone}\n"
        f"Signature Moves:\n{bullets(insights.signature_moves)}\n"
        f"Facilitation Focus:\n{bullets(insights.facilitation_focus)}\n"
        f"Reflection Patterns:\n{bullets(insights.reflection_patterns)}\n"
        f"Measurement Focus:\n{bullets(insights.measurement_focus)}\n"
        "Maintain these qualities while adapting to the new context."
    )


def group_feedback(feedback: list[Feedback]) -> dict[int, list[Feedback]]:
    """Bucket feedback by section index, keeping store order within a bucket."""
    grouped: dict[int, list[Feedback]] = defaultdict(list)
    for fb in feedback:
        if 0 <= fb.component_index < COMPONENT_COUNT:
            grouped[fb.component_index].append(fb)
    return grouped


def feedback_block(feedback: list[Feedback]) -> str:
    """Most recent comments per section, labeled by section. "" when there are none."""
    grouped = group_feedback(feedback)
    if not grouped:
        return ""
    lines = ["User Feedback from Previous Peulot (Learn from this to improve quality):"]
    for index, name in enumerate(COMPONENT_NAMES):
        entries = grouped.get(index)
        if not entries:
            continue
        lines.append(f"\n{index + 1}. {name}:")
        lines.extend(f"  - {fb.comment}" for fb in entries[-FEEDBACK_PER_SECTION:])
    return "\n".join(lines)


def build_peula_prompt(
    responses: QuestionnaireResponse,
    examples: list[TrainingExample],
    feedback: list[Feedback],
    insights: InsightsSummary | None = None,
) -> PromptPair:
    """Full nine-section generation prompt."""
    sections = [
        "You are an expert Tzofim (Israeli Scouts) educational facilitator creating a detailed "
        "peula (activity plan).",
    ]

    inputs = _input_fields(
        responses.topic, responses.age_group, responses.duration, responses.group_size,
        responses.goals, responses.available_materials, responses.special_considerations,
        template=template_note(responses.template_id),
    )
    sections.append("Input Information:\n" + "\n".join(inputs))

    examples_text = training_examples_block(examples)
    if examples_text:
        sections.append(examples_text)

    insights_text = insights_block(insights)
    if insights_text:
        sections.append(insights_text)

    feedback_text = feedback_block(feedback)
    if feedback_text:
        sections.append(feedback_text)

    sections.append(
        f"Create a professional, actionable peula with these {COMPONENT_COUNT} components. "
        "Be specific, practical, and aligned with Tzofim educational values."
    )
    if examples_text:
        sections.append(
            "IMPORTANT: Study the training examples above and match the writing style, tone, "
            "structure, and level of detail shown in those examples. Create a peula that feels "
            "consistent with the user's own writing."
        )
    if feedback_text:
        sections.append(
            "Also use the feedback provided above to improve the quality of this peula by "
            "addressing common concerns and incorporating successful practices."
        )

    sections.append(METHODOLOGY_GUIDANCE + (f"\n{INSIGHTS_GUIDELINE}" if insights_text else ""))
    sections.append(_peula_output_shape())

    return PromptPair(
        system=PEULA_SYSTEM_PROMPT,
        user="\n\n".join(sections),
        max_tokens=PEULA_MAX_TOKENS,
    )


def build_section_prompt(
    section_index: int,
    section_name: str,
    context: SectionContext,
    feedback: list[Feedback],
) -> PromptPair:
    """Single-section regeneration prompt. Training examples are deliberately absent."""
    sections = ["You are regenerating a specific section of a Tzofim peula."]

    inputs = _input_fields(
        context.topic, context.age_group, context.duration, context.group_size,
        context.goals, context.available_materials, context.special_considerations,
        materials_label="Materials",
    )
    sections.append("Context:\n" + "\n".join(inputs))

    scoped = [fb for fb in feedback if fb.component_index == section_index]
    if scoped:
        sections.append(
            "User Feedback on this Section (Learn from this to improve quality):\n"
            + "\n".join(f"  - {fb.comment}" for fb in scoped[-FEEDBACK_PER_SECTION:])
        )

    sections.append(f"Regenerate ONLY this section: {section_name}")
    sections.append(
        "Provide fresh, creative content for this specific component while staying aligned with "
        "the context above. Be specific, actionable, and professional."
        + (
            " Use the feedback above to improve this section by addressing concerns and "
            "incorporating successful practices."
            if scoped else ""
        )
    )
    sections.append(SECTION_OUTPUT_SHAPE)

    return PromptPair(
        system=SECTION_SYSTEM_PROMPT,
        user="\n\n".join(sections),
        max_tokens=SECTION_MAX_TOKENS,
    )


def build_insights_prompt(examples: list[TrainingExample]) -> PromptPair:
    """Style-profile prompt over the first few training examples."""
    digest = []
    for idx, example in enumerate(examples[:MAX_INSIGHTS_EXAMPLES], 1):
        entry = f"Example {idx}: {example.title}\n{_truncate(example.content, INSIGHTS_EXAMPLE_CHARS)}"
        if example.notes:
            entry += f"\nNotes: {example.notes}"
        digest.append(entry)

    user = (
        f"You are studying {len(examples)} Tzofim (Israeli Scouts) peulot written by a madrich. "
        "Identify what makes the user's approach distinct and useful for future AI generations.\n\n"
        "Peulot Samples:\n" + "\n\n".join(digest) + "\n\n" + INSIGHTS_OUTPUT_SHAPE
    )
    return PromptPair(system=INSIGHTS_SYSTEM_PROMPT, user=user, max_tokens=INSIGHTS_MAX_TOKENS)
