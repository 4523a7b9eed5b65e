"""Tests for the escape-sequence scanner."""

from ascii_gen.rendering import ansi


def kinds(text):
    return list(ansi.scan(text))


class TestScan:

    def test_plain_text(self):
        assert kinds("ab") == [("text", "a"), ("text", "b")]

    def test_color_and_reset(self):
        assert kinds(ansi.paint("x", 1, 2, 3)) == [
            ("color", (1, 2, 3)),
            ("text", "x"),
            ("reset", None),
        ]

    def test_truncated_sequence_is_text(self):
        tokens = kinds("a\x1b[38;2;1;2")
        assert tokens[0] == ("text", "a")
        assert tokens[1] == ("text", "\x1b")
        assert "".join(v for k, v in tokens if k == "text") == "a\x1b[38;2;1;2"

    def test_sequence_does_not_cross_newline(self):
        tokens = kinds("\x1b[38;2\nm")
        assert all(kind == "text" for kind, _ in tokens)
        assert len(tokens) == 8

    def test_unknown_sequence_is_text(self):
        tokens = kinds("\x1b[1mZ")
        assert all(kind == "text" for kind, _ in tokens)
        assert "".join(v for _, v in tokens) == "\x1b[1mZ"

    def test_out_of_range_component(self):
        assert all(kind == "text" for kind, _ in kinds("\x1b[38;2;300;0;0m"))

    def test_non_ascii_digits_are_text(self):
        tokens = kinds("\x1b[38;2;\u00b2;0;0mX")
        assert all(kind == "text" for kind, _ in tokens)
        assert tokens[-1] == ("text", "X")

    def test_recognized_after_unknown(self):
        tokens = kinds("\x1b[5m\x1b[0m")
        assert tokens[-1] == ("reset", None)


class TestStrip:

    def test_removes_recognized_only(self):
        assert ansi.strip(ansi.paint("a", 9, 9, 9) + "b") == "ab"
        assert ansi.strip("\x1b[1mq") == "\x1b[1mq"
