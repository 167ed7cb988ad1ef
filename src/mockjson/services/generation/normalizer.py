"""Response normalization: turn raw model text into a validated record array.

Models wrap JSON in markdown fences, add prose around it, and drop or garble
the ``id`` field. normalize_response() strips the wrapping, parses the array
and repairs ids so every record carries a unique numeric ``id``.
"""

import copy
import json
import math
from typing import Any

from mockjson.services.exceptions import MalformedOutput

GeneratedRecord = dict[str, Any]


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _extract_array_text(raw_text: str) -> str:
    # Fences and prose lie outside the outermost brackets
    start = raw_text.find("[")
    end = raw_text.rfind("]")
    if start == -1 or end == -1 or end < start:
        raise MalformedOutput("No valid JSON array found in response")
    return raw_text[start : end + 1]


def normalize_response(raw_text: str) -> list[GeneratedRecord]:
    """Parse and repair provider output.

    Args:
        raw_text: Text returned by a generation provider

    Returns:
        Non-empty list of records, each with a unique numeric ``id``

    Raises:
        MalformedOutput: If no JSON array can be parsed, the array is empty,
            or an element is not an object
    """
    if not raw_text or not raw_text.strip():
        raise MalformedOutput("Response is empty")

    array_text = _extract_array_text(raw_text)
    try:
        parsed = json.loads(array_text)
    except json.JSONDecodeError as e:
        raise MalformedOutput(f"Failed to process response: {e.msg}") from e

    if not isinstance(parsed, list):
        raise MalformedOutput("Response is not an array")
    if not parsed:
        raise MalformedOutput("Generated array is empty")

    records: list[GeneratedRecord] = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise MalformedOutput(f"Item at index {index} is not an object")
        if not _is_numeric(item.get("id")):
            item["id"] = index + 1
        records.append(item)

    ids = [record["id"] for record in records]
    if len(set(ids)) != len(ids):
        for index, record in enumerate(records):
            record["id"] = index + 1

    return records


def fit_to_count(records: list[GeneratedRecord], count: int) -> list[GeneratedRecord]:
    """Pad or truncate normalized records to exactly ``count`` items.

    Padding clones the first record and gives each clone the next sequential id.
    """
    if count < 1:
        raise ValueError("count must be >= 1")
    if not records:
        raise ValueError("records must not be empty")

    if len(records) >= count:
        return records[:count]

    fitted = list(records)
    next_id = max(int(record["id"]) for record in records) + 1
    while len(fitted) < count:
        clone = copy.deepcopy(records[0])
        clone["id"] = next_id
        next_id += 1
        fitted.append(clone)
    return fitted
