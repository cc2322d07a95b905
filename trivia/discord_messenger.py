# trivia/discord_messenger.py - ChannelMessenger backed by a Discord text channel

import asyncio
import logging
import time
from typing import AsyncIterator, Dict, Set

import discord

from trivia.collector import CLOSED_MESSAGE
from trivia.messenger import AnswerEvent, ChannelMessenger, MessageContent

logger = logging.getLogger(__name__)


async def reply_closed(interaction: discord.Interaction, answer: str) -> None:
    try:
        await interaction.edit_original_response(content=CLOSED_MESSAGE.format(answer=answer))
    except discord.HTTPException as e:
        logger.warning(f"Could not tell {interaction.user.name} the round is closed: {e}")


class AnswerButton(discord.ui.Button):
    def __init__(self, answer: str, queue: asyncio.Queue):
        super().__init__(label=answer[:80], custom_id=answer[:100], style=discord.ButtonStyle.primary)
        self.answer = answer
        self.queue = queue

    async def callback(self, interaction: discord.Interaction):
        received_at = time.time()
        try:
            await interaction.response.defer(ephemeral=True, thinking=True)
        except discord.HTTPException as e:
            logger.warning(f"Could not defer answer from {interaction.user.name}: {e}")

        display_name = getattr(interaction.user, "nick", None) or interaction.user.display_name
        if self.view is None or self.view.is_finished():
            # The round stopped while this click was being deferred
            await reply_closed(interaction, self.answer)
            return

        logger.debug(f"{display_name} answered the trivia game with: {self.answer}")
        self.queue.put_nowait(AnswerEvent(
            player_id=str(interaction.user.id),
            answer=self.answer,
            received_at=received_at,
            display_name=display_name,
            interaction=interaction,
        ))


class AnswerView(discord.ui.View):
    """One button per candidate; clicks are forwarded to a queue"""

    def __init__(self, choices, queue: asyncio.Queue):
        super().__init__(timeout=None)
        for choice in choices:
            self.add_item(AnswerButton(choice, queue))


class DiscordChannelMessenger(ChannelMessenger):
    def __init__(self, channel: discord.abc.Messageable):
        self.channel = channel
        self._queues: Dict[int, asyncio.Queue] = {}
        self._views: Dict[int, AnswerView] = {}
        self._late_replies: Set[asyncio.Task] = set()

    async def publish(self, content: MessageContent) -> discord.Message:
        queue: asyncio.Queue = asyncio.Queue()
        view = AnswerView(content.choices, queue) if content.choices else None

        kwargs = {"content": content.text, "embeds": content.embeds}
        if view is not None:
            kwargs["view"] = view
        message = await self.channel.send(**kwargs)

        if view is not None:
            self._queues[message.id] = queue
            self._views[message.id] = view
        logger.debug(f"Published message {message.id} to channel {getattr(self.channel, 'id', '?')}")
        return message

    async def edit(self, handle: discord.Message, content: MessageContent) -> None:
        view = None
        if content.choices:
            view = self._views.get(handle.id)
        await handle.edit(content=content.text, embeds=content.embeds, view=view)

    async def collect_interactions(self, handle: discord.Message, window: float) -> AsyncIterator[AnswerEvent]:
        queue = self._queues.get(handle.id)
        if queue is None:
            return

        loop = asyncio.get_running_loop()
        deadline = loop.time() + window
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=remaining)
                except asyncio.TimeoutError:
                    break
                yield event
        finally:
            view = self._views.pop(handle.id, None)
            if view is not None:
                view.stop()
            queue = self._queues.pop(handle.id, None)
            while queue is not None and not queue.empty():
                event = queue.get_nowait()
                task = asyncio.create_task(reply_closed(event.interaction, event.answer))
                self._late_replies.add(task)
                task.add_done_callback(self._late_replies.discard)

    async def acknowledge(self, event: AnswerEvent, content: str) -> None:
        if event.interaction is None:
            return
        await event.interaction.edit_original_response(content=content)
