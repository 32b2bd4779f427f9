"""
Letter Formatting
=================
"""

import re
from typing import AsyncIterator, Awaitable, Callable

_NUMBERED = re.compile(r"^\d+\.\s*(.*)$")


def to_markdown(letter: str) -> str:
    """Bold the salutation, rule off the sign-off and bullet numbered lines."""
    lines = []
    for line in letter.split("\n"):
        if line.startswith("Dear "):
            lines.append(f"**{line}**\n")
        elif line.startswith("Sincerely,"):
            lines.append(f"\n---\n\n*{line}*")
        else:
            numbered = _NUMBERED.match(line)
            lines.append(f"- {numbered.group(1)}" if numbered else line)
    return "\n".join(lines)


async def stream_words(
    text: str, delay: float, sleep: Callable[[float], Awaitable[None]]
) -> AsyncIterator[str]:
    """Yield ``text`` word by word, each followed by a space."""
    for word in text.split(" "):
        yield word + " "
        if delay:
            await sleep(delay)
