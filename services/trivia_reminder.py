"""
Trivia reminder - a daily nudge in every trivia channel.

Posts once a day at the configured reminder time so players who have not
answered a round yet remember to.
"""

import datetime
import logging
from typing import List, Optional
from zoneinfo import ZoneInfo

import discord
from discord.ext import tasks

from trivia.embeds import reminder_embed

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_TIME = "20:00"

bot_instance = None
channel_ids: List[int] = []


def parse_times(values, timezone: Optional[datetime.tzinfo] = None) -> List[datetime.time]:
    """Turn 'HH:MM' strings into timezone-aware times for task scheduling"""
    times = []
    for value in values:
        hour, minute = (int(part) for part in value.split(":"))
        times.append(datetime.time(hour=hour, minute=minute, tzinfo=timezone))
    return times


def _load_settings():
    try:
        import config
        return getattr(config, 'TRIVIA_CONFIG', {})
    except ImportError:
        return {}


@tasks.loop(time=parse_times([DEFAULT_REMINDER_TIME], ZoneInfo("UTC")))
async def send_trivia_reminder():
    """Daily reminder in each configured trivia channel"""
    if bot_instance is None:
        return

    for channel_id in channel_ids:
        channel = bot_instance.get_channel(channel_id)
        if channel is None:
            logger.warning(f"[Trivia Reminder] Channel {channel_id} not found")
            continue

        try:
            await channel.send(embed=reminder_embed())
            logger.info(f"[Trivia Reminder] Reminder sent to channel {channel_id}")
        except discord.HTTPException as e:
            logger.error(f"[Trivia Reminder] Error sending reminder to {channel_id}: {e}")


@send_trivia_reminder.before_loop
async def _wait_until_ready():
    await bot_instance.wait_until_ready()


def setup_trivia_reminder(bot, settings: Optional[dict] = None) -> bool:
    """Start the reminder loop. Returns False when the trivia feature is off."""
    global bot_instance, channel_ids
    settings = settings if settings is not None else _load_settings()

    if not settings.get("enabled", False):
        logger.warning("[Trivia Reminder] Trivia feature disabled, if it's normal, don't mind this message!")
        return False

    bot_instance = bot
    channel_ids = list(settings.get("channel_ids", []))
    timezone = ZoneInfo(settings.get("timezone", "UTC"))
    reminder_time = settings.get("reminder_time", DEFAULT_REMINDER_TIME)

    send_trivia_reminder.change_interval(time=parse_times([reminder_time], timezone))
    if not send_trivia_reminder.is_running():
        send_trivia_reminder.start()
    logger.info(f"[Trivia Reminder] Reminder scheduled daily at {reminder_time} ({timezone})")
    return True


def stop_trivia_reminder():
    if send_trivia_reminder.is_running():
        send_trivia_reminder.cancel()
        logger.info("[Trivia Reminder] Reminder stopped")
