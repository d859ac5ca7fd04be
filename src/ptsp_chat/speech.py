"""
Optional voice dictation capability.

Nothing here records audio: a front end that can dictate passes an object
satisfying SpeechInput to the controller; without one, dictation is simply
unavailable and callers must check ``ChatController.speech_available``.
"""

from typing import Protocol


class SpeechInput(Protocol):
    async def listen(self) -> str:
        """Record one utterance and return its transcript ("" if nothing was heard)."""
        ...
