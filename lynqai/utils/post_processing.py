"""
Normalization of raw model output before it is shown or stored.

The model is prompted to answer as a named speaker and to stop at a word
budget, but it routinely echoes the speaker tag, overruns the budget and stops
mid-sentence. ``post_process`` undoes all three.
"""

import re
from typing import NamedTuple

SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")
SENTENCE_END_RE = re.compile(r"[.!?](?=\s|$)")


class ProcessedText(NamedTuple):
    text: str
    is_complete: bool


def strip_speaker_prefix(text: str, speaker: str) -> str:
    """Keep only what follows the first ``"<speaker>:"`` marker, if anything does."""
    marker = f"{speaker}:"
    index = text.find(marker)
    if index == -1:
        return text
    remainder = text[index + len(marker):].strip()
    return remainder or text


def complete_sentences(text: str) -> str:
    """Drop a trailing fragment that has no terminal punctuation."""
    sentences = [s.strip() for s in SENTENCE_RE.findall(text)]
    sentences = [s for s in sentences if s]
    if not sentences:
        return text
    return " ".join(sentences)


def limit_to_word_count(text: str, limit: int) -> str:
    return " ".join(text.split()[:limit])


def trim_to_last_sentence(text: str) -> str:
    boundaries = list(SENTENCE_END_RE.finditer(text))
    if not boundaries:
        return text
    return text[: boundaries[-1].end()].strip()


def post_process(raw: str, word_count: int, speaker: str = "Sam") -> ProcessedText:
    text = strip_speaker_prefix(raw.strip(), speaker)
    text = complete_sentences(text)
    text = limit_to_word_count(text, word_count)
    text = trim_to_last_sentence(text)
    return ProcessedText(text=text, is_complete=len(text.split()) >= word_count)
