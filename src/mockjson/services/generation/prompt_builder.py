"""Prompt validation and instruction prompt assembly for JSON generation."""

from typing import Any, Optional

DEFAULT_MAX_PROMPT_LENGTH = 4000


def validate_prompt(prompt: str, max_length: int = DEFAULT_MAX_PROMPT_LENGTH) -> str:
    """Validate prompt text for data generation.

    Args:
        prompt: Text prompt from the user
        max_length: Maximum accepted length in characters

    Returns:
        Validated prompt with surrounding whitespace removed

    Raises:
        ValueError: If prompt is empty, None, or exceeds max_length characters
    """
    if not isinstance(prompt, str):
        raise ValueError(f"Prompt must be a string, got {type(prompt).__name__}")

    prompt = prompt.strip()
    if not prompt:
        raise ValueError("Prompt cannot be empty or None")

    if len(prompt) > max_length:
        raise ValueError(
            f"Prompt exceeds maximum length of {max_length} characters (got {len(prompt)})"
        )

    return prompt


def describe_fields(fields: Optional[list[dict[str, Any]]]) -> str:
    """Render a field schema as "label: type" pairs, e.g. "name: string, price: number"."""
    if not fields:
        return ""
    parts = []
    for field in fields:
        label = str(field.get("label", "")).strip()
        if not label:
            continue
        field_type = str(field.get("type", "string")).strip() or "string"
        parts.append(f"{label}: {field_type}")
    return ", ".join(parts)


def build_instruction_prompt(
    prompt: str,
    objects_count: int,
    metadata: Optional[dict[str, Any]] = None,
) -> str:
    """Wrap the user's prompt in the generation rules sent to every provider.

    The result is self-contained: it carries the requested count, the id rule
    and the "JSON array only" rule, plus the target field list when the job
    metadata names one.

    Args:
        prompt: Validated user prompt
        objects_count: Number of records to generate
        metadata: Optional job metadata ({resource_type, resource_name, fields})

    Returns:
        Full instruction prompt
    """
    metadata = metadata or {}
    sections = [prompt]

    fields_list = describe_fields(metadata.get("fields"))
    if fields_list:
        sections.append(f"Each object must contain these fields: {fields_list}.")
    resource_type = metadata.get("resource_type")
    if resource_type:
        sections.append(f"The objects describe: {resource_type}.")

    rules = "\n".join(
        [
            "CRITICAL RULES:",
            f"1. Generate EXACTLY {objects_count} objects",
            "2. Each object MUST have a unique numeric 'id' field starting from 1",
            "3. Follow the field specifications exactly as described",
            "4. Keep descriptions concise and realistic",
            "5. Return ONLY a valid JSON array with no markdown, no explanations",
            '6. Format: [{"id":1,...},{"id":2,...}]',
        ]
    )
    sections.append(rules)
    sections.append(f"Generate the {objects_count} objects now:")
    return "\n\n".join(sections)
