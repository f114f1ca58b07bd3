from autoapply.core.extraction import (
    extract_json,
    extract_plain_answer,
    repair_json_escapes,
    trim_to_limit,
)


class TestExtractJson:
    def test_object_inside_prose(self):
        assert extract_json('Here is the data: {"a":1,"b":"x"} thanks') == {"a": 1, "b": "x"}

    def test_markdown_fence(self):
        text = '```json\n{"score": 80, "pros": ["Python"]}\n```'
        assert extract_json(text) == {"score": 80, "pros": ["Python"]}

    def test_invalid_escape_is_repaired_or_none(self):
        result = extract_json('{"note":"line1\\invalidescape"}')
        assert result is None or result == {"note": "line1\\invalidescape"}

    def test_latex_escape_repaired(self):
        result = extract_json('{"points": ["\\item Built APIs"]}')
        assert result == {"points": ["\\item Built APIs"]}

    def test_valid_escapes_untouched(self):
        assert extract_json('{"a": "x\\ny"}') == {"a": "x\ny"}

    def test_no_braces(self):
        assert extract_json("no json here") is None

    def test_unrepairable_returns_none(self):
        assert extract_json("{not: valid, json") is None
        assert extract_json("{this is } not json") is None

    def test_empty(self):
        assert extract_json("") is None
        assert extract_json(None) is None


def test_repair_json_escapes_doubles_stray_backslashes():
    assert repair_json_escapes('"\\section"') == '"\\\\section"'
    assert repair_json_escapes('"a\\nb"') == '"a\\nb"'


class TestExtractPlainAnswer:
    def test_trims_whitespace(self):
        assert extract_plain_answer("  Yes \n") == "Yes"

    def test_strips_one_layer_of_matching_quotes(self):
        assert extract_plain_answer('"Yes"') == "Yes"
        assert extract_plain_answer("'No'") == "No"
        assert extract_plain_answer("\"'Yes'\"") == "'Yes'"

    def test_mismatched_quotes_kept(self):
        assert extract_plain_answer("\"Yes'") == "\"Yes'"

    def test_empty(self):
        assert extract_plain_answer(None) == ""
        assert extract_plain_answer("   ") == ""


class TestTrimToLimit:
    def test_short_text_unchanged(self):
        assert trim_to_limit("Hello world", 50) == "Hello world"

    def test_cuts_at_word_boundary(self):
        assert trim_to_limit("one two three four", 10) == "one two"

    def test_never_exceeds_limit(self):
        text = "word " * 100
        assert len(trim_to_limit(text, 37)) <= 37

    def test_zero_limit(self):
        assert trim_to_limit("anything", 0) == ""
