# trivia/trivia.py - Discord cog running tank trivia rounds

import asyncio
import logging
import time
from typing import Dict, Optional, Set
from zoneinfo import ZoneInfo

import discord
from discord import app_commands
from discord.ext import commands, tasks

from trivia.catalog import CandidateCatalog
from trivia.controller import RoundController
from trivia.discord_messenger import DiscordChannelMessenger
from trivia.embeds import leaderboard_embed, rules_embed, stats_embed
from trivia.errors import InsufficientCandidates, RatingStoreError, UpstreamUnavailable
from trivia.models import RoundResult
from trivia.providers.tankopedia import DEFAULT_API_URL, TankopediaProvider
from trivia.random_source import SystemRandomSource
from trivia.rating_store import JsonRatingStore, month_key
from trivia.scoring import ScoringEngine
from services.trivia_reminder import parse_times, setup_trivia_reminder, stop_trivia_reminder

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "enabled": True,
    "channel_ids": [],
    "application_id": "",
    "api_url": DEFAULT_API_URL,
    "page_limit": 100,
    "candidate_count": 4,
    "answer_window": 300,
    "response_time_limit": 10,
    "schedule": [],
    "reminder_time": "20:00",
    "timezone": "UTC",
    "data_directory": "data",
}


def load_trivia_settings() -> Dict:
    """TRIVIA_CONFIG from the config module layered over the defaults"""
    settings = dict(DEFAULT_SETTINGS)
    try:
        import config
        settings.update(getattr(config, "TRIVIA_CONFIG", {}))
    except ImportError as e:
        logger.warning(f"Could not load config, using default trivia settings: {e}")
    return settings


def _error_embed(description: str) -> discord.Embed:
    return discord.Embed(title="❌ Trivia Error", description=description, color=discord.Color.red())


class TriviaCog(commands.Cog):
    def __init__(self, bot, settings: Optional[Dict] = None):
        self.bot = bot
        self.settings = settings if settings is not None else load_trivia_settings()
        self.timezone = ZoneInfo(self.settings["timezone"])

        self.provider = TankopediaProvider(self.settings["application_id"], self.settings["api_url"])
        self.catalog = CandidateCatalog(self.provider)
        self.store = JsonRatingStore(self.settings["data_directory"])
        self.random_source = SystemRandomSource()
        self.scoring = ScoringEngine(self.settings["response_time_limit"])
        self.page_limit = self.settings["page_limit"]

        # One controller per channel; a channel never runs two rounds at once
        self.controllers: Dict[int, RoundController] = {}
        self.round_tasks: Dict[int, asyncio.Task] = {}
        self._background_tasks: Set[asyncio.Task] = set()
        logger.info("TriviaCog initialized")

    async def cog_load(self):
        """Called when the cog is loaded"""
        await self.provider.initialize()

        if not self.settings["enabled"]:
            logger.warning("Trivia feature disabled, if it's normal, don't mind this message!")
            return

        schedule = self.settings.get("schedule") or []
        if schedule:
            self.scheduled_rounds.change_interval(time=parse_times(schedule, self.timezone))
            self.scheduled_rounds.start()
            logger.info(f"Trivia rounds scheduled at {', '.join(schedule)} ({self.timezone})")

        setup_trivia_reminder(self.bot, self.settings)

    async def cog_unload(self):
        """Called when the cog is unloaded"""
        self.scheduled_rounds.cancel()
        stop_trivia_reminder()

        # Close every open window early; what was collected is still scored
        for controller in self.controllers.values():
            controller.cancel()
        # Watchers log their own failures
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

        await self.provider.cleanup()
        try:
            await self.store.backup()
        except RatingStoreError as e:
            logger.error(f"Could not back up trivia statistics: {e}")
        logger.info("TriviaCog cleaned up")

    def _set_page_limit(self, page_limit: int):
        self.page_limit = page_limit
        for controller in self.controllers.values():
            controller.page_limit = page_limit

    def get_controller(self, channel: discord.abc.Messageable) -> RoundController:
        controller = self.controllers.get(channel.id)
        if controller is None:
            controller = RoundController(
                catalog=self.catalog,
                messenger=DiscordChannelMessenger(channel),
                store=self.store,
                random_source=self.random_source,
                scoring=self.scoring,
                page_limit=self.page_limit,
                candidate_count=self.settings["candidate_count"],
                answer_window=self.settings["answer_window"],
                timezone=self.timezone,
                on_page_limit_change=self._set_page_limit,
            )
            self.controllers[channel.id] = controller
        return controller

    def is_playing(self, channel_id: int) -> bool:
        return channel_id in self.round_tasks

    def start_round(self, channel: discord.abc.Messageable) -> asyncio.Task:
        """Launch a round in `channel` and mark the channel busy before returning"""
        controller = self.get_controller(channel)
        task = asyncio.create_task(controller.run_round(), name=f"trivia_round_{channel.id}")
        self.round_tasks[channel.id] = task

        watcher = asyncio.create_task(self._finish_round(channel.id, task))
        self._background_tasks.add(watcher)
        watcher.add_done_callback(self._background_tasks.discard)
        return watcher

    async def _finish_round(self, channel_id: int, task: asyncio.Task) -> Optional[RoundResult]:
        try:
            return await task
        except (UpstreamUnavailable, InsufficientCandidates) as e:
            logger.error(f"Trivia round aborted in channel {channel_id}: {e}")
        except RatingStoreError as e:
            logger.error(f"Trivia statistics not saved for channel {channel_id}: {e}")
        except Exception as e:
            logger.exception(f"Trivia round failed in channel {channel_id}: {e}")
        finally:
            if self.round_tasks.get(channel_id) is task:
                del self.round_tasks[channel_id]
        return None

    async def run_round(self, channel: discord.abc.Messageable) -> Optional[RoundResult]:
        """Play a round in `channel`. Failures are logged, never shown in the channel."""
        if self.is_playing(channel.id):
            logger.info(f"Trivia round already running in channel {channel.id}, skipping")
            return None
        return await self.start_round(channel)

    @tasks.loop(time=parse_times(["12:00"], ZoneInfo("UTC")))
    async def scheduled_rounds(self):
        """Start a round in every trivia channel that is not already playing"""
        for channel_id in self.settings["channel_ids"]:
            channel = self.bot.get_channel(channel_id)
            if channel is None:
                logger.warning(f"Trivia channel {channel_id} not found")
                continue
            if self.is_playing(channel_id):
                logger.info(f"Trivia round already running in channel {channel_id}, skipping")
                continue
            self.start_round(channel)

    @scheduled_rounds.before_loop
    async def _before_scheduled_rounds(self):
        await self.bot.wait_until_ready()

    def _display_name(self, guild: Optional[discord.Guild], player_id: str) -> str:
        member = guild.get_member(int(player_id)) if guild else None
        if member:
            return member.display_name
        user = self.bot.get_user(int(player_id))
        return user.name if user else player_id

    @app_commands.command(name="trivia_start", description="Start a trivia round in this channel now")
    @app_commands.default_permissions(administrator=True)
    async def trivia_start(self, interaction: discord.Interaction):
        channel = interaction.channel
        if self.is_playing(channel.id):
            current = self.get_controller(channel).current_round
            remaining = max(0, current.deadline - time.time()) if current and current.deadline else 0
            embed = discord.Embed(
                title="🚫 Trivia In Progress",
                description=f"A round is already running in this channel.\n\n"
                            f"⏱️ Time remaining: **{remaining:.0f}** seconds",
                color=discord.Color.orange()
            )
            await interaction.response.send_message(embed=embed, ephemeral=True)
            return

        # Register the round before the first await so two quick invocations cannot both start one
        self.start_round(channel)
        logger.info(f"{interaction.user.name} started a trivia round in channel {channel.id}")
        await interaction.response.send_message("🚀 Starting a trivia round!", ephemeral=True)

    @app_commands.command(name="trivia_stats", description="View your trivia statistics for this month")
    @app_commands.describe(user="Player to look up (defaults to you)")
    async def trivia_stats(self, interaction: discord.Interaction, user: Optional[discord.Member] = None):
        await interaction.response.defer()

        target_user = user or interaction.user
        month = month_key(tz=self.timezone)
        try:
            stat = await self.store.read(str(target_user.id), month)
        except RatingStoreError as e:
            logger.error(f"Could not read trivia stats: {e}")
            await interaction.followup.send(embed=_error_embed("Statistics are unavailable right now."))
            return

        await interaction.followup.send(embed=stats_embed(target_user.display_name, month, stat))

    @app_commands.command(name="trivia_leaderboard", description="View this month's trivia leaderboard")
    async def trivia_leaderboard(self, interaction: discord.Interaction):
        await interaction.response.defer()

        month = month_key(tz=self.timezone)
        try:
            leaderboard = await self.store.leaderboard(month, 10)
        except RatingStoreError as e:
            logger.error(f"Could not read trivia leaderboard: {e}")
            await interaction.followup.send(embed=_error_embed("The leaderboard is unavailable right now."))
            return

        names = {player_id: self._display_name(interaction.guild, player_id) for player_id, _ in leaderboard}
        await interaction.followup.send(embed=leaderboard_embed(month, leaderboard, names))

    @app_commands.command(name="trivia_rules", description="How the trivia game and its elo work")
    async def trivia_rules(self, interaction: discord.Interaction):
        embed = rules_embed(
            self.settings["candidate_count"],
            self.settings["answer_window"],
            self.settings["response_time_limit"],
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)
