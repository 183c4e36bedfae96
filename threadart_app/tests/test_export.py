# threadart_app/tests/test_export.py

import pytest

from threadart_app.export import sequence_from_text, sequence_to_text


def test_sequence_to_text_is_one_pin_per_line():
    assert sequence_to_text([1, 57, 113, 9]) == "1\n57\n113\n9"
    assert sequence_to_text([1]) == "1"


def test_sequence_from_text_reads_exported_files():
    text = "1\n57\r\n 113 \n\n9\n"
    assert sequence_from_text(text, pin_count=200) == [1, 57, 113, 9]
    assert sequence_from_text(sequence_to_text([1, 4, 1, 4])) == [1, 4, 1, 4]


@pytest.mark.parametrize("text", ["1\nx\n3", "1\n0", "1\n201"])
def test_sequence_from_text_rejects_bad_lines(text):
    with pytest.raises(ValueError):
        sequence_from_text(text, pin_count=200)
