import pytest

from lynqai.utils.post_processing import (
    complete_sentences,
    limit_to_word_count,
    post_process,
    strip_speaker_prefix,
    trim_to_last_sentence,
)

RAW_OUTPUTS = [
    "Sam: Great idea! Try posting at 9am. It boosts",
    "Post consistently. Engage with comments! Use visuals? Yes.",
    "no punctuation at all in this reply",
    "Sam:",
    "...",
    "Short one.",
    "Here is a long answer " + "word " * 80 + "end.",
    "  Sam:   Lead with a question. Then share a statistic. Close with a call to action",
]


def test_scenario_prefix_and_trailing_fragment():
    result = post_process("Sam: Great idea! Try posting at 9am. It boosts", 10)
    assert result.text == "Great idea! Try posting at 9am."
    assert result.is_complete is False


def test_strip_speaker_prefix_uses_first_marker():
    assert strip_speaker_prefix("intro Sam: hello Sam: again", "Sam") == "hello Sam: again"


def test_strip_speaker_prefix_without_marker():
    assert strip_speaker_prefix("Just advice.", "Sam") == "Just advice."


def test_strip_speaker_prefix_keeps_text_when_nothing_follows():
    assert strip_speaker_prefix("Sam:", "Sam") == "Sam:"


def test_complete_sentences_drops_trailing_fragment():
    assert complete_sentences("One. Two! Three") == "One. Two!"


def test_complete_sentences_passes_through_without_boundary():
    assert complete_sentences("no boundary here") == "no boundary here"


def test_limit_to_word_count_normalises_whitespace():
    assert limit_to_word_count("a  b\n c\td e", 3) == "a b c"


def test_trim_to_last_sentence():
    assert trim_to_last_sentence("First one. Second one is cut") == "First one."
    assert trim_to_last_sentence("No boundary") == "No boundary"


def test_word_limit_then_trim_never_ends_mid_sentence():
    raw = "Post often. Reply to every comment within an hour of posting."
    result = post_process(raw, 5)
    assert result.text == "Post often."
    assert result.is_complete is False


def test_complete_when_word_count_reached():
    raw = "Share your story. Ask a question. Tag a colleague."
    result = post_process(raw, 6)
    assert result.text == "Share your story. Ask a question."
    assert result.is_complete is True


def test_custom_speaker():
    result = post_process("Alex: Use hashtags.", 50, speaker="Alex")
    assert result.text == "Use hashtags."


@pytest.mark.parametrize("raw", RAW_OUTPUTS)
@pytest.mark.parametrize("word_count", [1, 5, 10, 50])
def test_output_properties(raw, word_count):
    result = post_process(raw, word_count)
    tokens = result.text.split()

    assert result.text
    assert len(tokens) <= word_count
    assert result.is_complete == (len(tokens) >= word_count)
