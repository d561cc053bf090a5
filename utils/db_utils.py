import os
import pymongo
import logging

from azure.identity import DefaultAzureCredential
from azure.keyvault.secrets import SecretClient

# Global cache for the MongoDB client to enable connection pooling across invocations
_CLIENT_CACHE = None

# Simple in-process cache for secrets
_SECRET_CACHE: dict[str, str] = {}

DEFAULT_DB_NAME = "Sleep_Leaderboard"

# List of keys to check in order
CONNECTION_STRING_KEYS = [
    "MongoDb-Connection-String",
    "MONGODB_CONNECTION_STRING",
    "CUSTOMCONNSTR_MongoDb-Connection-String",
    "MongoDbConnectionString",
    "DB_CONNECTION_STRING",
]


def get_secret(name: str, default: str | None = None) -> str | None:
    """
    Return secret value from environment if present; otherwise fetch from Azure Key Vault.
    Falls back to `default` if neither source is available. Values are cached per-process.
    Azure KV secret names cannot contain underscores, so a hyphenated variant is tried too.
    """
    if os.getenv(name):
        return os.environ[name]

    if name in _SECRET_CACHE:
        return _SECRET_CACHE[name]

    vault_url = os.getenv("KEY_VAULT_URL")
    if not vault_url:
        return default

    lookup_names = [name]
    if "_" in name:
        lookup_names.append(name.replace("_", "-"))

    try:
        client = SecretClient(vault_url=vault_url, credential=DefaultAzureCredential())
        for kv_name in lookup_names:
            try:
                secret = client.get_secret(kv_name)
            except Exception as e:
                logging.debug("Secrets: '%s' not found in Key Vault: %s", kv_name, e)
                continue
            if isinstance(secret.value, str):
                _SECRET_CACHE[name] = secret.value
                return secret.value
    except Exception as e:
        logging.warning("Secrets: failed to fetch '%s' from Key Vault: %s", name, e)

    return default


def get_connection_string() -> str:
    for key in CONNECTION_STRING_KEYS:
        val = os.getenv(key)
        if val:
            return val

    val = get_secret("MONGODB_CONNECTION_STRING")
    if val:
        return val

    # CRITICAL: Prevent fallback to localhost:27017
    error_msg = f"MongoDB Connection String not found in environment variables. Checked: {CONNECTION_STRING_KEYS}"
    logging.critical(error_msg)
    raise RuntimeError(error_msg)


def get_db_client(**kwargs):
    """
    Returns a PyMongo client using the connection string from environment variables.
    Uses a global cache to reuse the client across Azure Function invocations.
    """
    global _CLIENT_CACHE

    if _CLIENT_CACHE:
        return _CLIENT_CACHE

    uri = get_connection_string()
    try:
        # tz_aware so stored midnight-UTC dates come back as aware datetimes
        client = pymongo.MongoClient(uri, tz_aware=True, **kwargs)
        _CLIENT_CACHE = client
        return client
    except Exception as e:
        logging.critical(f"Failed to create MongoClient: {e}")
        raise


def get_db(db_name_env="SLEEP_DB_NAME", default_db=DEFAULT_DB_NAME):
    """
    Returns the database object.
    """
    client = get_db_client()
    db_name = os.getenv(db_name_env, os.getenv("DB_NAME", default_db))
    return client[db_name]
