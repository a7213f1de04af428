"""
Tests for folding response items into the nested response object.
"""

import itertools
import json

import pytest

from tsam.core.errors import ResponseShapeError, SerializationError
from tsam.core.shaper import fold_response_items, reduce_to_map, serialize_response


ITEMS = {
    "aws_s3_bucket.first_bucket.property": "some value",
    "aws_s3_bucket.first_bucket.other_property": "some value",
    "aws_s3_bucket.second_bucket.property": "some value",
    "aws_s3_bucket.second_bucket.other_property": "some value",
    "output_name": "output value",
}


def test_fold_merges_siblings():
    result = fold_response_items(ITEMS.items())

    assert result == {
        "aws_s3_bucket": {
            "first_bucket": {"property": "some value", "other_property": "some value"},
            "second_bucket": {"property": "some value", "other_property": "some value"},
        },
        "output_name": "output value",
    }


def test_fold_returns_plain_dicts():
    result = fold_response_items(ITEMS.items())
    assert type(result) is dict
    assert type(result["aws_s3_bucket"]) is dict
    assert type(result["aws_s3_bucket"]["first_bucket"]) is dict


def test_fold_is_order_independent():
    expected = fold_response_items(ITEMS.items())
    for permutation in itertools.permutations(ITEMS.items()):
        assert fold_response_items(permutation) == expected


def test_duplicate_key_last_write_wins():
    result = fold_response_items([("a.b", 1), ("a.b", 2)])
    assert result == {"a": {"b": 2}}


def test_reduce_to_map_returns_accumulator():
    into = {}
    assert reduce_to_map("a.b.c", "v", into) is into
    assert into == {"a": {"b": {"c": "v"}}}


def test_dict_valued_leaf_is_kept_opaque():
    """An output whose value is an object is a leaf, not a branch."""
    result = fold_response_items([("tags", {"team": "platform"})])
    assert result == {"tags": {"team": "platform"}}

    with pytest.raises(ResponseShapeError):
        fold_response_items([("tags", {"team": "platform"}), ("tags.owner", "x")])


def test_leaf_then_branch_collision():
    with pytest.raises(ResponseShapeError) as exc:
        fold_response_items([("a.b", 1), ("a.b.c", 2)])
    assert "a.b.c" in str(exc.value)


def test_branch_then_leaf_collision():
    with pytest.raises(ResponseShapeError):
        fold_response_items([("a.b.c", 2), ("a.b", 1)])


def test_null_leaf_collision():
    with pytest.raises(ResponseShapeError):
        fold_response_items([("a", None), ("a.b", 1)])


def test_serialize_is_compact_and_sorted():
    data = fold_response_items([
        ("bucket_backups", "tsam.backups"),
        ("aws_s3_bucket.backups.bucket_domain_name", "tsam.backups.s3.amazonaws.com"),
    ])
    assert serialize_response(data) == (
        '{"aws_s3_bucket":{"backups":{"bucket_domain_name":"tsam.backups.s3.amazonaws.com"}},'
        '"bucket_backups":"tsam.backups"}'
    )


def test_serialize_preserves_json_types():
    data = {"n": 3, "f": 1.5, "b": True, "l": [1, "2"], "o": {"k": None}}
    assert json.loads(serialize_response(data)) == data


def test_serialize_rejects_nan():
    with pytest.raises(SerializationError) as exc:
        serialize_response({"x": float("nan")})
    assert str(exc.value).startswith("Error while serializing response data.")
