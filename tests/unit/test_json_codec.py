from __future__ import annotations

import pytest

from entity_rest.errors import ShapeError, ValidationError
from entity_rest.infrastructure import JsonCodec


def test_encode_is_compact_and_keeps_unicode():
    codec = JsonCodec()

    assert codec.encode({"f0": "Pão", "id": "1"}) == '{"f0":"Pão","id":"1"}'


def test_encode_can_escape_unicode():
    assert JsonCodec(ensure_ascii=True).encode(["é"]) == '["\\u00e9"]'


def test_decode_record_list():
    text = '[{"type":"book","id":"1"},{"type":"book","id":2}]'

    records = JsonCodec().decode(text, JsonCodec.RECORD_LIST)

    assert records == [{"type": "book", "id": "1"}, {"type": "book", "id": 2}]


def test_decode_string_list_accepts_strings_and_numbers():
    assert JsonCodec().decode('["3",4]', JsonCodec.STRING_LIST) == ["3", 4]


def test_decode_reports_malformed_json_as_validation_error():
    with pytest.raises(ValidationError, match="malformed JSON") as excinfo:
        JsonCodec().decode("[{", JsonCodec.RECORD_LIST)

    assert excinfo.value.cause is not None


@pytest.mark.parametrize(
    "text, shape",
    [
        ('{"type":"book"}', JsonCodec.RECORD_LIST),
        ('[1,2]', JsonCodec.RECORD_LIST),
        ('["a"]', JsonCodec.STRING_MAP),
        ('[{"a":1}]', JsonCodec.STRING_LIST),
    ],
)
def test_decode_reports_wrong_structure_as_shape_error(text, shape):
    with pytest.raises(ShapeError, match="unexpected JSON shape"):
        JsonCodec().decode(text, shape)
