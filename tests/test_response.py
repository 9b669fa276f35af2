from snowboard_doctor.response import (
    FALLBACK_REPLY,
    EmbeddedDocument,
    Structured,
    Unrecognized,
    classify_response,
    extract_reply,
)


def test_structured_object():
    shape = classify_response('{"output": "hi there"}')
    assert shape == Structured(output="hi there")
    assert extract_reply(shape) == "hi there"


def test_structured_item_list():
    shape = classify_response(b'[{"output": "Use a softer flex for park."}]')
    assert shape == Structured(output="Use a softer flex for park.")


def test_embedded_document_srcdoc_is_decoded():
    body = ('<iframe class="reply" srcdoc="Wax your base &amp; check the edges &quot;daily&quot;" '
            'sandbox></iframe>')
    shape = classify_response(body)
    assert isinstance(shape, EmbeddedDocument)
    assert shape.srcdoc == 'Wax your base & check the edges "daily"'
    assert extract_reply(shape) == 'Wax your base & check the edges "daily"'


def test_embedded_document_without_quoted_attribute_falls_back():
    shape = classify_response("<iframe srcdoc=''></iframe>")
    assert isinstance(shape, EmbeddedDocument)
    assert shape.srcdoc is None
    assert extract_reply(shape) == FALLBACK_REPLY


def test_unknown_shapes_fall_back():
    for body in ["", "ok", '{"text": "hello"}', '{"output": 42}', "[]", "<p>hello</p>"]:
        shape = classify_response(body)
        assert isinstance(shape, Unrecognized), body
        assert extract_reply(shape) == FALLBACK_REPLY


def test_blank_output_falls_back():
    assert extract_reply(classify_response('{"output": "   "}')) == FALLBACK_REPLY
    assert extract_reply(classify_response('{"output": ""}'), fallback="custom") == "custom"


def test_undecodable_bytes_are_tolerated():
    shape = classify_response(b"\xff\xfe not json")
    assert isinstance(shape, Unrecognized)
