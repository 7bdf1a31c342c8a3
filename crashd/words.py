"""Splitting of space separated text into words, honouring quotes."""

_QUOTES = "\"'"
# str.isspace() also accepts the ASCII separators below, which are not
# treated as blanks by the script format.
_NOT_BLANK = "\x1c\x1d\x1e\x1f"


def _is_space(ch: str) -> bool:
    return ch.isspace() and ch not in _NOT_BLANK


def word_split(val: str) -> list[str]:
    """Split ``val`` into words, keeping quoted runs together.

    ``aaa "bbb ccc"`` yields ``aaa`` and ``bbb ccc``. A quote that starts
    inside an unquoted word is kept verbatim: ``aaa"bbb ccc"`` is one word,
    quotes included. A closing quote ends the word, so ``"aaa"bbb`` yields
    two words.
    """
    words: list[str] = []
    word: list[str] = []
    start_quote = ""
    in_word = in_quote = squashed = False

    for ch in val:
        if ch in _QUOTES:
            if not in_word:
                in_word = in_quote = True
                start_quote = ch
                continue
            if not in_quote:
                # unquoted text runs into a quote: abc"defg"
                in_quote = squashed = True
                start_quote = ch
                word.append(ch)
                continue
            if ch != start_quote:
                # embedded quote of the other kind, e.g. "'aa'"
                word.append(ch)
                continue
            if squashed:
                word.append(ch)
            in_word = in_quote = squashed = False
            words.append("".join(word))
            word.clear()
        elif _is_space(ch):
            if not in_word:
                continue
            if in_quote:
                word.append(ch)
                continue
            in_word = False
            words.append("".join(word))
            word.clear()
        else:
            in_word = True
            word.append(ch)

    if word:
        words.append("".join(word))
    return words