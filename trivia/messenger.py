# trivia/messenger.py - Channel messaging interface used by the round controller

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, List, Optional


@dataclass
class MessageContent:
    """What to show in the channel: text, embeds and the answer buttons"""
    text: Optional[str] = None
    embeds: List[Any] = field(default_factory=list)
    choices: List[str] = field(default_factory=list)


@dataclass
class AnswerEvent:
    """A player clicking one of the answer buttons"""
    player_id: str
    answer: str
    received_at: float  # epoch seconds
    display_name: Optional[str] = None
    interaction: Any = field(default=None, repr=False, compare=False)

    @property
    def name(self) -> str:
        return self.display_name or self.player_id


class ChannelMessenger(ABC):
    """Publishes round messages and turns player clicks into AnswerEvents"""

    @abstractmethod
    async def publish(self, content: MessageContent) -> Any:
        """Send a message and return a handle to it"""
        pass

    @abstractmethod
    async def edit(self, handle: Any, content: MessageContent) -> None:
        pass

    @abstractmethod
    def collect_interactions(self, handle: Any, window: float) -> AsyncIterator[AnswerEvent]:
        """
        Lazily yield answer events for `handle`, ending once `window`
        seconds have elapsed.
        """
        pass

    @abstractmethod
    async def acknowledge(self, event: AnswerEvent, content: str) -> None:
        """Reply privately to the player behind `event`"""
        pass
