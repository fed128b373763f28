"""Configuration module."""

import os
from pathlib import Path

import yaml

PROJECT_NAME = "stacsearch"

_RESOURCES_DIR = Path(__file__).resolve().parent / "resources"
DEFAULT_SETTINGS_PATH = str(_RESOURCES_DIR / "sample_settings.yaml")

SETTINGS_PATH = os.getenv("STACSEARCH_SETTINGS_PATH", None)
if SETTINGS_PATH is None or not os.path.exists(SETTINGS_PATH):
    SETTINGS_PATH = DEFAULT_SETTINGS_PATH

with open(SETTINGS_PATH, "r", encoding="utf-8") as f:
    settings = yaml.safe_load(f) or {}


def _section(name):
    return settings.get(name) or {}


def _env_or(env_var, value):
    env_value = os.getenv(env_var)
    return value if env_value is None or env_value == "" else env_value


######################
#   Log Settings     #
######################

_log_settings = _section("log")
LOG_FILE_PATH = _log_settings.get("log_path", "default")
if LOG_FILE_PATH == "default":
    LOG_FILE_PATH = f"{PROJECT_NAME}.log"
# Possible values below are the typical python logging levels, or 'disable'.
LOG_FILE_LEVEL = str(_env_or("LOG_FILE_LEVEL", _log_settings.get("log_file_level", "disable"))).upper()
LOG_STREAM_LEVEL = str(_env_or("LOG_STREAM_LEVEL", _log_settings.get("log_stream_level", "error"))).upper()

######################
#   DB Settings      #
######################

_db_settings = _section("db")
DB_BACKEND = str(_env_or("DB_BACKEND", _db_settings.get("backend", "memory"))).lower()
BACKEND_TIMEOUT_MS = int(_env_or("BACKEND_TIMEOUT_MS", _db_settings.get("timeout_ms", 5000)))

_mongo_settings = _section("mongodb")
MONGO_URI = _env_or("MONGO_URI", _mongo_settings.get("uri", None))
MONGO_HOST = _env_or("MONGO_HOST", _mongo_settings.get("host", "localhost"))
MONGO_PORT = int(_env_or("MONGO_PORT", _mongo_settings.get("port", 27017)))
MONGO_DB = _env_or("MONGO_DB", _mongo_settings.get("db", PROJECT_NAME))
MONGO_ITEMS_COLLECTION = _mongo_settings.get("items_collection", "items")
MONGO_COLLECTIONS_COLLECTION = _mongo_settings.get("collections_collection", "collections")
MONGO_CREATE_INDEX = bool(_mongo_settings.get("create_index", True))

MEMORY_FIXTURES_PATH = _env_or("MEMORY_FIXTURES_PATH", _section("memory").get("fixtures_path", None))

######################
#  Search Settings   #
######################

_search_settings = _section("search")
SEARCH_DEFAULT_LIMIT = int(_search_settings.get("default_limit", 10))
SEARCH_MAX_LIMIT = int(_search_settings.get("max_limit", 10000))
SEARCH_SORTABLE_FIELDS = list(_search_settings.get("sortable_fields") or [])

######################
#   STAC Settings    #
######################

_stac_settings = _section("stac")
STAC_VERSION = str(_stac_settings.get("version", "1.0.0"))
STAC_API_ID = _stac_settings.get("id", "stac-server")
STAC_API_TITLE = _stac_settings.get("title", "STAC API")
STAC_API_DESCRIPTION = _stac_settings.get("description", "A STAC API catalog search service")
STAC_API_URL = _env_or("STAC_API_URL", _stac_settings.get("api_url", None))

######################
#   Hook Settings    #
######################

_hook_settings = _section("hooks")
PRE_HOOK = _env_or("PRE_HOOK", _hook_settings.get("pre_hook", None))
POST_HOOK = _env_or("POST_HOOK", _hook_settings.get("post_hook", None))

######################
#  Web Server        #
######################

_webserver_settings = _section("web_server")
WEBSERVER_HOST = _webserver_settings.get("host", "0.0.0.0")
WEBSERVER_PORT = int(_webserver_settings.get("port", 5000))
