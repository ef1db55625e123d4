import pytest

from quizcraft.core.exceptions import JSONParseError
from quizcraft.core.parsers import QuizOutputParser

VALID = '{"question": "Q?", "options": ["a", "b", "c", "d"], "correctAnswer": 2, "explanation": "e"}'


def parse(text):
    return QuizOutputParser().parse(text)


def test_parses_plain_json():
    questions = parse('{"questions": [%s]}' % VALID)

    assert len(questions) == 1
    assert questions[0].id == "q1"
    assert questions[0].correctAnswer == 2
    assert questions[0].explanation == "e"


def test_parses_markdown_fenced_json():
    text = "Sure!\n```json\n{\"questions\": [%s, %s]}\n```" % (VALID, VALID)
    assert len(parse(text)) == 2


def test_parses_json_surrounded_by_prose_with_trailing_commas():
    text = 'Here is the quiz: {"questions": [%s,],} Enjoy' % VALID
    assert len(parse(text)) == 1


def test_accepts_bare_list():
    assert len(parse("[%s]" % VALID)) == 1


def test_strips_byte_order_mark():
    assert len(parse("\ufeff" + '{"questions": [%s]}' % VALID)) == 1


def test_invalid_questions_are_skipped_and_ids_stay_sequential():
    bad_options = '{"question": "Bad?", "options": ["a", "b"], "correctAnswer": 0}'
    bad_answer = '{"question": "Bad?", "options": ["a", "b", "c", "d"], "correctAnswer": 4}'
    text = '{"questions": [%s, %s, "oops", %s, %s]}' % (bad_options, VALID, bad_answer, VALID)

    questions = parse(text)

    assert [q.id for q in questions] == ["q1", "q2"]


@pytest.mark.parametrize("text", [
    "",
    "   ",
    "no json here",
    '{"items": []}',
    '{"questions": [{"question": "x"}]}',
])
def test_unusable_output_raises(text):
    with pytest.raises(JSONParseError):
        parse(text)


def test_parse_error_keeps_raw_text():
    with pytest.raises(JSONParseError) as exc_info:
        parse("{not json}")
    assert exc_info.value.raw_text == "{not json}"


def test_format_instructions_describe_schema():
    instructions = QuizOutputParser().get_format_instructions()
    assert '"questions"' in instructions
    assert "correctAnswer" in instructions


@pytest.mark.parametrize("answer", ["1.7", "true", '"one"', "null", "[1]"])
def test_non_integer_correct_answer_is_skipped(answer):
    bad = '{"question": "Bad?", "options": ["a", "b", "c", "d"], "correctAnswer": %s}' % answer
    questions = parse('{"questions": [%s, %s]}' % (bad, VALID))

    assert len(questions) == 1
    assert questions[0].question == "Q?"


def test_digit_string_correct_answer_is_accepted():
    text = '{"questions": [{"question": "Q?", "options": ["a", "b", "c", "d"], "correctAnswer": "3"}]}'
    assert parse(text)[0].correctAnswer == 3
