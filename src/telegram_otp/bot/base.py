"""Base command — abstract interface every bot command must implement."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from telegram_otp.models.records import TelegramUser


@dataclass
class BotReply:
    """Value object returned by a command after processing a message."""

    text: str
    parse_mode: str | None = None


class BaseCommand(ABC):
    """Abstract base class for all bot commands.

    Every command receives the sender's identity and returns a ``BotReply``
    containing the message to send back to the chat.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Command name without the leading slash (used in routing)."""

    @abstractmethod
    async def handle(self, user: TelegramUser) -> BotReply:
        """Process the command for *user* and return a reply."""
