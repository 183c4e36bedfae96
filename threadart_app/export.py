# threadart_app/export.py
#
# Plain-text sequence format: one 1-based pin number per line,
# in the order the thread visits them.
#

from typing import Iterable, List, Optional


def sequence_to_text(sequence: Iterable[int]) -> str:
    return "\n".join(str(int(pin)) for pin in sequence)


def sequence_from_text(text: str, pin_count: Optional[int] = None) -> List[int]:
    """
    Parse the text format back into a list of 1-based pin numbers.
    Blank lines are ignored. With `pin_count`, every pin must lie in
    [1, pin_count].
    """
    sequence = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        try:
            pin = int(line)
        except ValueError:
            raise ValueError(f"Line {lineno}: '{line}' is not a pin number") from None
        if pin < 1 or (pin_count is not None and pin > pin_count):
            upper = pin_count if pin_count is not None else "inf"
            raise ValueError(f"Line {lineno}: pin {pin} outside [1, {upper}]")
        sequence.append(pin)
    return sequence
