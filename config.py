# config.py - Bot settings, read from the environment
import logging
import os


def _int_list(value: str):
    return [int(v) for v in value.split(",") if v.strip()]


DISCORD_TOKEN = os.environ.get("DISCORD_TOKEN", "")
BOT_VERSION = "1.0.0"
DEBUG = os.environ.get("DEBUG", "").lower() in ("1", "true", "yes")

# Sync slash commands to these guilds instead of globally (faster while testing)
GUILD_IDS_TEST = _int_list(os.environ.get("GUILD_IDS_TEST", ""))

# Logging
LOG_LEVEL = logging.DEBUG if DEBUG else logging.INFO
LOGS_DIR = os.environ.get("LOGS_DIR", "logs")
LOG_FILE = os.environ.get("LOG_FILE", "bot.log")
MAX_LOG_SIZE = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# Startup
MAX_STARTUP_RETRIES = 3
STARTUP_RETRY_DELAY = 5

TRIVIA_CONFIG = {
    "enabled": os.environ.get("TRIVIA_ENABLED", "true").lower() in ("1", "true", "yes"),
    "channel_ids": _int_list(os.environ.get("TRIVIA_CHANNEL_IDS", "")),
    "application_id": os.environ.get("WOT_APPLICATION_ID", ""),
    "api_url": os.environ.get(
        "TRIVIA_API_URL",
        "https://api.worldoftanks.eu/wot/encyclopedia/vehicles/"
        "?application_id={application_id}&tier=10&limit=1&page_no=pageNumber"
        "&fields=tank_id,name,images.big_icon,default_profile.ammo",
    ),
    "page_limit": int(os.environ.get("TRIVIA_PAGE_LIMIT", "100")),
    "candidate_count": 4,
    "answer_window": 5 * 60,  # seconds
    "response_time_limit": 10,  # seconds, speed bonus window
    "schedule": ["12:00", "18:00"],
    "reminder_time": "20:00",
    "timezone": os.environ.get("TRIVIA_TIMEZONE", "Europe/Paris"),
    "data_directory": os.environ.get("TRIVIA_DATA_DIR", "data"),
}
