"""Tests for candidate extraction and text pre-processing."""

from ed2k_purifier.extraction import (
    Candidate,
    extract_candidates,
    merge_candidate,
    preprocess_text,
)

HASH = "0123456789ABCDEF0123456789ABCDEF"
LINK_A = f"ed2k://|file|a.mp4|123|{HASH}|/"
LINK_B = f"ed2k://|file|b.mkv|456|{HASH}|h=SGUUNYPRBZOXKLXA5TVUI7HLEKMKSYHK|/"


class TestExtractCandidates:
    """Test extract_candidates pattern matching."""

    def test_extracts_standard_link(self):
        assert extract_candidates(LINK_A) == [LINK_A]

    def test_extracts_link_from_surrounding_text(self):
        assert extract_candidates(f"download: {LINK_A} (mirror)") == [LINK_A]

    def test_extracts_multiple_links_in_order(self):
        assert extract_candidates(f"{LINK_A} {LINK_B}") == [LINK_A, LINK_B]

    def test_keeps_html_wrapper_as_one_candidate(self):
        line = f"<p>{LINK_A}</p>"
        assert extract_candidates(line) == [line]

    def test_extracts_percent_encoded_protocol(self):
        line = f"ed2k:%2F%2F%7Cfile%7Ca.mp4%7C123%7C{HASH}%7C%2F"
        assert extract_candidates(line) == [line]

    def test_extracts_noise_inside_protocol(self):
        line = f"ed删2k://|file|a.mp4|123|{HASH}|/"
        assert extract_candidates(line) == [line]

    def test_extracts_noise_after_protocol(self):
        line = f"ed2k删除://|file|a.mp4|123|{HASH}|/"
        assert extract_candidates(line) == [line]

    def test_extracts_spaces_after_separator(self):
        line = f"e删除d2k://  |file|a.mp4|123|{HASH}|/"
        assert extract_candidates(line) == [line]

    def test_extracts_marker_first_link(self):
        line = f"ed2k:|file|a.mp4|123|{HASH}|/"
        assert extract_candidates(line) == [line]

    def test_extracts_marker_only_link(self):
        line = f"broken |file|a.mp4|123|{HASH}|/ end"
        assert extract_candidates(line) == [f"|file|a.mp4|123|{HASH}|/"]

    def test_merges_link_with_spaces_in_filename(self):
        line = f"ed2k://|file|My Movie.mp4|123|{HASH}|/"
        assert extract_candidates(line) == [line]

    def test_returns_empty_without_links(self):
        assert extract_candidates("nothing to see here") == []

    def test_returns_empty_for_plain_urls(self):
        assert extract_candidates("https://example.com/page") == []


class TestMergeCandidate:
    """Test the longest-span merge rule."""

    def test_appends_first_match(self):
        candidates = []
        merge_candidate(candidates, "abc", Candidate(0, 3, "abc"))
        assert [c.text for c in candidates] == ["abc"]

    def test_drops_substring(self):
        line = "abcdef"
        candidates = [Candidate(0, 6, "abcdef")]
        merge_candidate(candidates, line, Candidate(1, 4, "bcd"))
        assert [c.text for c in candidates] == ["abcdef"]

    def test_replaces_with_superstring(self):
        line = "abcdef"
        candidates = [Candidate(1, 4, "bcd")]
        merge_candidate(candidates, line, Candidate(0, 6, "abcdef"))
        assert [c.text for c in candidates] == ["abcdef"]

    def test_superstring_absorbs_several_candidates(self):
        line = "ab cd ef"
        candidates = [Candidate(0, 2, "ab"), Candidate(3, 5, "cd"), Candidate(6, 8, "ef")]
        merge_candidate(candidates, line, Candidate(0, 5, "ab cd"))
        assert [c.text for c in candidates] == ["ab cd", "ef"]

    def test_unions_partial_overlap(self):
        line = "abcdef"
        candidates = [Candidate(0, 4, "abcd")]
        merge_candidate(candidates, line, Candidate(2, 6, "cdef"))
        assert [(c.start, c.end, c.text) for c in candidates] == [(0, 6, "abcdef")]

    def test_unions_every_overlapped_candidate(self):
        line = "abcdefghijklmnopqrstuvwxyz0123"
        candidates = [Candidate(0, 10, line[0:10]), Candidate(20, 30, line[20:30])]
        merge_candidate(candidates, line, Candidate(5, 25, line[5:25]))
        assert [(c.start, c.end, c.text) for c in candidates] == [(0, 30, line)]

    def test_appends_disjoint_match(self):
        line = "abc xyz"
        candidates = [Candidate(0, 3, "abc")]
        merge_candidate(candidates, line, Candidate(4, 7, "xyz"))
        assert [c.text for c in candidates] == ["abc", "xyz"]


class TestPreprocessText:
    """Test pre-processing of raw multi-line text."""

    def test_splits_links_joined_after_end_marker(self):
        assert preprocess_text(LINK_A + LINK_B) == f"{LINK_A}\n{LINK_B}"

    def test_splits_links_joined_after_bare_separator(self):
        first = f"ed2k://|file|a.mp4|123|{HASH}|"
        assert preprocess_text(first + LINK_B) == f"{first}\n{LINK_B}"

    def test_splits_percent_encoded_end_marker(self):
        first = f"ed2k://%7Cfile%7Ca.mp4%7C123%7C{HASH}%7C/"
        assert preprocess_text(first + LINK_B) == f"{first}\n{LINK_B}"

    def test_splits_before_noisy_protocol_after_end_marker(self):
        dirty = f"ed删2k://|file|b.mkv|456|{HASH}|/"
        assert preprocess_text(LINK_A + dirty) == f"{LINK_A}\n{dirty}"

    def test_splits_before_noisy_protocol_after_bare_separator(self):
        first = f"ed2k://|file|a.mp4|123|{HASH}|"
        dirty = f"e删除d2k删://|file|b.mkv|456|{HASH}|/"
        assert preprocess_text(first + dirty) == f"{first}\n{dirty}"

    def test_does_not_split_filename_starting_with_protocol(self):
        link = f"ed2k://|file|ed2k_guide.pdf|123|{HASH}|/"
        assert preprocess_text(link) == link

    def test_joins_protocol_split_by_newline(self):
        assert preprocess_text("ed2\nk://|file|x") == "ed2k://|file|x"

    def test_joins_protocol_split_by_crlf_and_spaces(self):
        assert preprocess_text("e d\r\n2k://|file|x") == "ed2k://|file|x"

    def test_leaves_inline_spaced_protocol(self):
        assert preprocess_text("e d 2 k://|file|x") == "e d 2 k://|file|x"

    def test_leaves_clean_text_unchanged(self):
        text = f"line one\n{LINK_A}\nline three"
        assert preprocess_text(text) == text
