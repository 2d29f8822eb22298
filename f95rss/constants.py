import os

DATA_DIR = os.environ.get("F95_RSS_DATA_DIR", os.path.join(os.getcwd(), "data"))
DB_FILE = os.path.join(DATA_DIR, "f95rss.db")
ID_FILE = os.path.join(DATA_DIR, "id.txt")

SOURCE_URL = "https://f95zone.to/sam/latest_alpha/latest_data.php?cmd=rss&cat=games"
THREAD_BASE_URL = "https://f95zone.to/threads"

USER_AGENT = "f95rss/0.3 (+https://github.com/K0ng2/f95-rss)"

CHANNEL_TITLE = "F95zone Latest Updates"
CHANNEL_LINK = "https://f95zone.com/latest"
CHANNEL_DESCRIPTION = "F95zone Adult Games - Latest Updates RSS Feed"

RSS_CONTENT_TYPE = "application/rss+xml; charset=utf-8"

INGEST_JOB_ID = "update_games"

# Only the first attribution of an entry is stored, the rest are dropped
CREATOR_POLICY = "first"

DEFAULT_SETTINGS = {
    "source": {
        "url": SOURCE_URL,
        "timeout": 60,
        "max_entries": 500,
    },
    "store": {
        "path": DB_FILE,
    },
    "feed": {
        "id_file": ID_FILE,
        "base_url": THREAD_BASE_URL,
        "title": CHANNEL_TITLE,
        "link": CHANNEL_LINK,
        "description": CHANNEL_DESCRIPTION,
    },
    "schedule": {
        "cron": "*/30 * * * *",
        "run_on_start": False,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 8080,
    },
}

# Environment overrides: variable -> (section, key, cast)
ENV_OVERRIDES = {
    "F95_RSS_DB": ("store", "path", str),
    "F95_RSS_ID_FILE": ("feed", "id_file", str),
    "F95_RSS_CRON": ("schedule", "cron", str),
    "F95_RSS_SOURCE_URL": ("source", "url", str),
    "F95_RSS_TIMEOUT": ("source", "timeout", float),
    "F95_RSS_HOST": ("server", "host", str),
    "F95_RSS_PORT": ("server", "port", int),
}
