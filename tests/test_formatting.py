"""Tests for text replies and message splitting."""

from tubelink.formatting import format_text_message, split_message


class TestTextMessage:
    def test_labeled_lines(self, sample_metadata):
        lines = format_text_message(sample_metadata).split("\n")
        assert [line.split(":\t", 1)[0] for line in lines] == [
            "Title", "Channel", "Published", "Views", "Description", "Tags",
        ]
        assert lines[3] == "Views:\t1,234,567"


class TestSplitMessage:
    """Chunking for platform length limits."""

    def test_short(self):
        assert split_message("hello", 10) == ["hello"]

    def test_exact_limit(self):
        assert split_message("x" * 10, 10) == ["x" * 10]

    def test_empty(self):
        assert split_message("", 10) == [""]

    def test_splits_on_newline(self):
        assert split_message("aaaa\nbbbb", 6) == ["aaaa", "bbbb"]

    def test_newline_preferred_over_space(self):
        assert split_message("aa bb\ncc dd", 8) == ["aa bb", "cc dd"]

    def test_splits_on_space(self):
        assert split_message("aaa bbb ccc", 7) == ["aaa", "bbb ccc"]

    def test_hard_cut(self):
        assert split_message("x" * 10, 4) == ["xxxx", "xxxx", "xx"]

    def test_newline_at_start_falls_back_to_hard_cut(self):
        """A break at index 0 would give an empty chunk; cut at the limit instead."""
        assert split_message("\nxxxxxx", 4) == ["\nxxx", "xxx"]

    def test_space_at_start_falls_back_to_hard_cut(self):
        assert split_message(" xxxxxx", 4) == [" xxx", "xxx"]

    def test_telegram_default_limit(self):
        chunks = split_message("a" * 5000)
        assert [len(c) for c in chunks] == [4096, 904]

    def test_chunks_respect_limit_and_keep_words(self):
        text = " ".join(f"word{i}" for i in range(200))
        chunks = split_message(text, 50)
        assert all(0 < len(c) <= 50 for c in chunks)
        assert " ".join(chunks).split() == text.split()
