"""Parsing of model output into flashcard entries."""

import re
import unicodedata
from typing import List

from ..models import QAEntry, VocabularyEntry


class TextParser:
    """
    Centralized text parsing utilities.

    Single source of truth for line splitting, Unicode normalization and
    prompt-safe truncation of user content.
    """

    # "base (orig)" or plain "base"
    LEMMA_PATTERN = re.compile(r'^(.*?)(?:\s*\((.*?)\))?$')

    # Q&A blocks are separated by a blank (or whitespace-only) line
    BLOCK_PATTERN = re.compile(r'\n[ \t\r]*\n')

    QUESTION_MARKER = re.compile(r'^F:\s*')
    ANSWER_MARKER = re.compile(r'^A:\s*')

    # Quotes and markdown emphasis a model likes to wrap short answers in
    WRAPPING_CHARS = '"\'“”„«»*`_ '

    ZERO_WIDTH_JOINER = '\u200d'
    REGIONAL_INDICATORS = range(0x1F1E6, 0x1F200)
    SKIN_TONE_MODIFIERS = range(0x1F3FB, 0x1F400)

    @classmethod
    def normalize_unicode(cls, text: str) -> str:
        """
        Normalize text to NFC form for consistent Unicode handling.

        Prevents issues with characters like é being represented as
        either a single codepoint (NFC) or base + combining accent (NFD).
        """
        if not text:
            return ""
        return unicodedata.normalize('NFC', str(text))

    @classmethod
    def split_lines(cls, text: str) -> List[str]:
        """Split text into stripped, non-empty lines."""
        text = cls.normalize_unicode(text)
        return [line.strip() for line in text.split('\n') if line.strip()]

    @classmethod
    def truncate(cls, text: str, limit: int) -> str:
        """
        Cut text to at most `limit` characters without splitting a character
        from its combining marks or breaking a joiner sequence.

        Args:
            text: Text to shorten
            limit: Maximum number of code points to keep

        Returns:
            The (possibly shorter) prefix of the normalized text
        """
        text = cls.normalize_unicode(text)
        if limit <= 0:
            return ""
        if len(text) <= limit:
            return text

        cut = limit
        while cut > 0 and cls._continues_cluster(text, cut):
            cut -= 1
        return text[:cut]

    @classmethod
    def _continues_cluster(cls, text: str, index: int) -> bool:
        """True if the character at `index` belongs to the cluster before it."""
        char = text[index]
        previous = text[index - 1]
        if ord(char) in cls.REGIONAL_INDICATORS:
            # Flags are indicator pairs: an odd run before `index` means char closes a pair
            run = 0
            while index - run - 1 >= 0 and ord(text[index - run - 1]) in cls.REGIONAL_INDICATORS:
                run += 1
            return run % 2 == 1
        return (
            unicodedata.combining(char) != 0
            or char == cls.ZERO_WIDTH_JOINER
            or previous == cls.ZERO_WIDTH_JOINER
            or unicodedata.category(char) == 'Mn'
            or 0xFE00 <= ord(char) <= 0xFE0F  # variation selectors
            or ord(char) in cls.SKIN_TONE_MODIFIERS
        )

    @classmethod
    def clean_deck_name(cls, text: str) -> str:
        """First non-empty line of a suggested deck name, without wrapping quotes."""
        for line in cls.split_lines(text):
            name = line.strip(cls.WRAPPING_CHARS)
            if name:
                return name
        return ""


def parse_vocabulary(model_output: str) -> List[VocabularyEntry]:
    """
    Parse "base (original);translation" lines into vocabulary entries.

    Lines without a ``;`` are dropped. Only the first ``;`` separates the two
    sides, later ones stay part of the translation. When the left side has a
    parenthesized form, that form becomes ``original`` and the part before it
    is kept as ``base_form``.

    Args:
        model_output: Raw text returned by the model

    Returns:
        Entries in input order, duplicates preserved
    """
    entries: List[VocabularyEntry] = []

    for line in TextParser.split_lines(model_output):
        lhs, sep, rhs = line.partition(';')
        if not sep:
            continue

        match = TextParser.LEMMA_PATTERN.match(lhs.strip())
        base, surface = match.group(1).strip(), (match.group(2) or "").strip()
        translated = rhs.strip()

        if surface:
            entry = VocabularyEntry(original=surface, translated=translated, base_form=base or None)
        else:
            entry = VocabularyEntry(original=base, translated=translated)

        if entry.original and entry.translated:
            entries.append(entry)

    return entries


def parse_qa(model_output: str) -> List[QAEntry]:
    """
    Parse blank-line separated "F: question" / "A: answer" blocks.

    Blocks that do not consist of exactly two lines, or whose question or
    answer is empty once the markers are removed, are dropped.
    """
    text = TextParser.normalize_unicode(model_output).replace('\r\n', '\n')
    entries: List[QAEntry] = []

    for block in TextParser.BLOCK_PATTERN.split(text):
        lines = [line.strip() for line in block.split('\n') if line.strip()]
        if len(lines) != 2:
            continue

        question = TextParser.QUESTION_MARKER.sub('', lines[0], count=1).strip()
        answer = TextParser.ANSWER_MARKER.sub('', lines[1], count=1).strip()
        if question and answer:
            entries.append(QAEntry(question=question, answer=answer))

    return entries
