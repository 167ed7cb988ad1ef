"""Tests for response normalization and the pad/truncate policy."""

import json

import pytest

from mockjson.services.exceptions import MalformedOutput
from mockjson.services.generation.normalizer import fit_to_count, normalize_response


def test_clean_input_is_returned_unchanged():
    records = [{"id": 1, "name": "Apple"}, {"id": 2, "name": "Banana"}, {"id": 7, "price": 1.5}]
    assert normalize_response(json.dumps(records)) == records


def test_fenced_output_gets_sequential_ids():
    raw = '```json\n[{"name":"a"},{"name":"b"}]\n```'
    assert normalize_response(raw) == [{"name": "a", "id": 1}, {"name": "b", "id": 2}]


def test_backticks_inside_string_values_are_preserved():
    records = [
        {"id": 1, "snippet": "wrap in ```json fences```"},
        {"id": 2, "snippet": "```"},
    ]
    assert normalize_response(json.dumps(records)) == records


def test_fenced_output_keeps_backticks_inside_values():
    raw = '```json\n[{"id": 1, "md": "use ``` for code"}]\n```'
    assert normalize_response(raw) == [{"id": 1, "md": "use ``` for code"}]


def test_prose_around_array_is_ignored():
    raw = 'Sure! Here is your data:\n[{"id": 1, "city": "Oslo"}]\nLet me know if you need more.'
    assert normalize_response(raw) == [{"id": 1, "city": "Oslo"}]


def test_plain_text_is_rejected():
    with pytest.raises(MalformedOutput):
        normalize_response("not json at all")


@pytest.mark.parametrize("raw", ["", "   ", "[]", "```json\n[]\n```"])
def test_empty_output_is_rejected(raw):
    with pytest.raises(MalformedOutput):
        normalize_response(raw)


def test_broken_json_is_rejected():
    with pytest.raises(MalformedOutput):
        normalize_response('[{"id": 1, "name": "Apple"},, ]')


def test_non_object_element_is_rejected():
    with pytest.raises(MalformedOutput, match="index 1"):
        normalize_response('[{"id": 1}, "banana"]')


def test_non_numeric_id_is_replaced():
    raw = '[{"id": "a1", "n": 1}, {"id": true, "n": 2}, {"id": null, "n": 3}]'
    assert [record["id"] for record in normalize_response(raw)] == [1, 2, 3]


def test_colliding_ids_are_renumbered():
    raw = '[{"id": 1, "n": "a"}, {"id": 1, "n": "b"}, {"id": 2, "n": "c"}]'
    records = normalize_response(raw)
    assert [record["id"] for record in records] == [1, 2, 3]
    assert [record["n"] for record in records] == ["a", "b", "c"]


def test_repaired_id_colliding_with_existing_is_renumbered():
    # Missing id at index 0 becomes 1, which collides with the second record
    records = normalize_response('[{"n": "a"}, {"id": 1, "n": "b"}]')
    assert [record["id"] for record in records] == [1, 2]


def test_length_may_differ_from_requested():
    records = normalize_response('[{"id": 1}]')
    assert len(records) == 1


def test_fit_to_count_pads_by_cloning_first_record():
    records = [{"id": 1, "name": "Apple"}, {"id": 2, "name": "Banana"}]
    fitted = fit_to_count(records, 4)

    assert [record["id"] for record in fitted] == [1, 2, 3, 4]
    assert fitted[2]["name"] == "Apple"
    assert fitted[3]["name"] == "Apple"
    assert records[0]["id"] == 1


def test_fit_to_count_truncates():
    records = [{"id": i} for i in range(1, 6)]
    assert fit_to_count(records, 3) == [{"id": 1}, {"id": 2}, {"id": 3}]


def test_fit_to_count_rejects_empty_input():
    with pytest.raises(ValueError):
        fit_to_count([], 3)
