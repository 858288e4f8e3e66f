import pytest

from anatomy_quiz.entities.errors import ResponseFormatError
from anatomy_quiz.utils.json_response import parse_json_object, parse_json_response


class TestParseJsonResponse:
    def test_plain_json(self) -> None:
        assert parse_json_response('{"questions": []}') == {"questions": []}

    def test_markdown_fence_is_removed(self) -> None:
        text = '```json\n{"is_valid": true}\n```'

        assert parse_json_response(text) == {"is_valid": True}

    def test_surrounding_prose_is_ignored(self) -> None:
        text = 'Here is the result:\n{"analysis": "ok"}\nHope this helps!'

        assert parse_json_response(text) == {"analysis": "ok"}

    def test_trailing_commas_are_repaired(self) -> None:
        text = '{"roadmap": ["a", "b",],}'

        assert parse_json_response(text) == {"roadmap": ["a", "b"]}

    def test_top_level_array(self) -> None:
        assert parse_json_response('noise [1, 2] noise') == [1, 2]

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_text_raises(self, text: str | None) -> None:
        with pytest.raises(ResponseFormatError, match="Empty"):
            parse_json_response(text)

    def test_garbage_raises_with_raw_text(self) -> None:
        with pytest.raises(ResponseFormatError) as exc_info:
            parse_json_response('{"questions": [ {"question": "cut off')

        assert exc_info.value.raw_text.startswith('{"questions"')


class TestParseJsonObject:
    def test_required_keys_present(self) -> None:
        data = parse_json_object('{"is_valid": false}', required_keys=("is_valid",))

        assert data == {"is_valid": False}

    def test_missing_key_raises(self) -> None:
        with pytest.raises(ResponseFormatError, match="questions"):
            parse_json_object('{"other": 1}', required_keys=("questions",))

    def test_non_object_raises(self) -> None:
        with pytest.raises(ResponseFormatError, match="list"):
            parse_json_object("[1, 2, 3]")
