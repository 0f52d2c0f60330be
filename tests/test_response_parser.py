import pytest

from text2sql_rag.models import ResponseState
from text2sql_rag.online.response_parser import ResponseParser


@pytest.fixture
def parser():
    return ResponseParser()


def test_query_marker(parser):
    parsed = parser.parse("<@query@>SELECT 1")

    assert parsed.state is ResponseState.QUERY_FOUND
    assert parsed.payload == "SELECT 1"


def test_explanation_marker(parser):
    parsed = parser.parse("<@explanation@>missing table")

    assert parsed.state is ResponseState.EXPLANATION_FOUND
    assert parsed.payload == "missing table"


def test_no_marker_is_malformed(parser):
    parsed = parser.parse("no markers here")

    assert parsed.state is ResponseState.MALFORMED
    assert parsed.raw_text == "no markers here"


def test_query_payload_is_trimmed_and_unfenced(parser):
    parsed = parser.parse('<@query@>\n```sql\nSELECT "id" FROM "lead"\n```\n')

    assert parsed.state is ResponseState.QUERY_FOUND
    assert parsed.payload == 'SELECT "id" FROM "lead"'


def test_text_before_marker_is_ignored(parser):
    parsed = parser.parse("Sure, here it is: <@query@> SELECT 2 ")

    assert parsed.payload == "SELECT 2"


def test_query_marker_wins_over_explanation(parser):
    parsed = parser.parse("<@explanation@>not sure <@query@>SELECT 3")

    assert parsed.state is ResponseState.QUERY_FOUND
    assert parsed.payload == "SELECT 3"


def test_empty_query_payload_is_malformed(parser):
    parsed = parser.parse("<@query@>   ")

    assert parsed.state is ResponseState.MALFORMED
