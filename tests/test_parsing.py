"""Tests for the model-output normalizer."""

import unicodedata

import pytest

from snapdeck.models import DeckType, QAEntry, VocabularyEntry
from snapdeck.utils.parsing import TextParser, parse_qa, parse_vocabulary


# ═══════════════════════════════════════════════════════════════════════════════
# VOCABULARY
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("line, original, translated, base_form", [
    ("gemeinsam (gemeinsamen);common", "gemeinsamen", "common", "gemeinsam"),
    ("gehen (ging);to go", "ging", "to go", "gehen"),
    ("Haus;house", "Haus", "house", None),
    ("  laufen  ;  to run  ", "laufen", "to run", None),
])
def test_vocabulary_line_forms(line, original, translated, base_form):
    [entry] = parse_vocabulary(line)
    assert entry == VocabularyEntry(original=original, translated=translated, base_form=base_form)
    assert entry.selected is True
    assert entry.kind is DeckType.VOCABULARY


def test_lines_without_separator_are_dropped():
    entries = parse_vocabulary("a;b\ncccc\nd;e")
    assert [(e.original, e.translated) for e in entries] == [("a", "b"), ("d", "e")]


def test_only_first_semicolon_separates():
    [entry] = parse_vocabulary("Haus;house; home;building")
    assert entry.original == "Haus"
    assert entry.translated == "house; home;building"


def test_order_and_duplicates_preserved():
    entries = parse_vocabulary("b;2\n\n  \na;1\nb;2\n")
    assert [e.original for e in entries] == ["b", "a", "b"]


def test_half_empty_lines_are_dropped():
    assert parse_vocabulary(";house\nHaus;\n ; \nBaum;tree") == [
        VocabularyEntry(original="Baum", translated="tree")
    ]


def test_empty_parentheses_mean_no_inflected_form():
    [entry] = parse_vocabulary("Haus ();house")
    assert entry.original == "Haus"
    assert entry.base_form is None


def test_vocabulary_input_is_nfc_normalized():
    decomposed = unicodedata.normalize("NFD", "schön;beautiful")
    [entry] = parse_vocabulary(decomposed)
    assert entry.original == "schön"
    assert unicodedata.is_normalized("NFC", entry.original)


def test_empty_vocabulary_output():
    assert parse_vocabulary("") == []
    assert parse_vocabulary("Sorry, I could not find any words.") == []


# ═══════════════════════════════════════════════════════════════════════════════
# Q&A
# ═══════════════════════════════════════════════════════════════════════════════

def test_qa_markers_are_stripped():
    assert parse_qa("F: Q (Qt)\nA: Ans (At)") == [QAEntry(question="Q (Qt)", answer="Ans (At)")]


def test_qa_multiple_blocks():
    text = (
        "F: Wo liegt Paris? (Where is Paris?)\nA: In Frankreich (In France)\n"
        "\n"
        "F: Wer schrieb Faust? (Who wrote Faust?)\nA: Goethe (Goethe)\n"
    )
    entries = parse_qa(text)
    assert [e.question for e in entries] == [
        "Wo liegt Paris? (Where is Paris?)",
        "Wer schrieb Faust? (Who wrote Faust?)",
    ]
    assert entries[1].answer == "Goethe (Goethe)"
    assert all(e.kind is DeckType.QA for e in entries)


def test_qa_whitespace_only_separator_and_crlf():
    text = "F: One\r\nA: 1\r\n   \r\nF: Two\r\nA: 2"
    assert [(e.question, e.answer) for e in parse_qa(text)] == [("One", "1"), ("Two", "2")]


def test_qa_malformed_blocks_are_dropped():
    text = (
        "F: Lonely question\n"
        "\n"
        "F: Three\nA: lines\nA: here\n"
        "\n"
        "F: Good\nA: block\n"
        "\n"
        "F:\nA: no question"
    )
    assert parse_qa(text) == [QAEntry(question="Good", answer="block")]


def test_qa_lines_without_markers_are_kept_verbatim():
    assert parse_qa("What is 2+2?\n4") == [QAEntry(question="What is 2+2?", answer="4")]


def test_qa_marker_only_removed_at_start():
    [entry] = parse_qa("F: Is A: a letter?\nA: Yes, like F:")
    assert entry.question == "Is A: a letter?"
    assert entry.answer == "Yes, like F:"


# ═══════════════════════════════════════════════════════════════════════════════
# TEXT HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def test_truncate_short_text_untouched():
    assert TextParser.truncate("kurz", 500) == "kurz"


def test_truncate_limits_length():
    assert TextParser.truncate("x" * 600, 500) == "x" * 500


def test_truncate_keeps_combining_marks_with_their_base():
    # q + combining dot above has no precomposed form, so NFC keeps two code points
    text = "ab" + "q\u0307" + "rest"
    cut = TextParser.truncate(text, 3)
    assert cut == "ab"


def test_truncate_does_not_split_joiner_sequence():
    family = "\U0001F468\u200d\U0001F469\u200d\U0001F467"
    text = "ok " + family
    assert TextParser.truncate(text, 5) == "ok "


def test_truncate_does_not_split_flag_pairs():
    flags = "\U0001F1E9\U0001F1EA\U0001F1EB\U0001F1F7"  # DE FR
    assert TextParser.truncate("x" + flags, 2) == "x"
    assert TextParser.truncate("x" + flags, 4) == "x" + flags[:2]
    assert TextParser.truncate("x" + flags, 3) == "x" + flags[:2]


def test_truncate_keeps_skin_tone_with_its_emoji():
    waving = "\U0001F44B\U0001F3FD"
    assert TextParser.truncate("hi " + waving, 4) == "hi "


def test_truncate_zero_limit():
    assert TextParser.truncate("abc", 0) == ""


@pytest.mark.parametrize("raw, expected", [
    ("Deutsch Grundwortschatz\n", "Deutsch Grundwortschatz"),
    ('"Reise nach Paris"', "Reise nach Paris"),
    ("**Küche & Kochen**\nSome explanation", "Küche & Kochen"),
    ("\n\n  Tiere  ", "Tiere"),
    ("", ""),
])
def test_clean_deck_name(raw, expected):
    assert TextParser.clean_deck_name(raw) == expected
