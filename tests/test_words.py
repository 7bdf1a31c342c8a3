import pytest

from crashd.words import word_split


@pytest.mark.parametrize(
    "text, expected",
    [
        ("aaa bbb ccc ddd", ["aaa", "bbb", "ccc", "ddd"]),
        ('"aaa" "bbb" "ccc" "ddd"', ["aaa", "bbb", "ccc", "ddd"]),
        ('aaa "bbb" "ccc ddd"', ["aaa", "bbb", "ccc ddd"]),
        ('"aaa" "bbb ccc" ddd', ["aaa", "bbb ccc", "ddd"]),
        ('aaa"bbb ccc" ddd', ['aaa"bbb ccc"', "ddd"]),
        ('aaa "bbb ccc"ddd', ["aaa", "bbb ccc", "ddd"]),
        ("aaa \"'bbb' ccc\" ddd", ["aaa", "'bbb' ccc", "ddd"]),
        ("'aaa' '\"bbb ccc\"' ddd", ["aaa", '"bbb ccc"', "ddd"]),
        ("aaa'\"bbb ccc\"' ddd", ["aaa'\"bbb ccc\"'", "ddd"]),
    ],
    ids=[
        "no quotes",
        "all quotes",
        "mix unquoted quoted",
        "mix quoted unquoted",
        "front quote runin",
        "back quote runin",
        "embedded single quotes",
        "embedded double quotes",
        "embedded quoted runins",
    ],
)
def test_word_split(text, expected):
    assert word_split(text) == expected


def test_empty_string_has_no_words():
    assert word_split("") == []


def test_only_blanks_has_no_words():
    assert word_split("  \t  ") == []


def test_empty_quoted_word_is_kept():
    assert word_split('""') == [""]


def test_unquoted_words_match_str_split():
    text = "one two\tthree   four"
    assert word_split(text) == text.split()