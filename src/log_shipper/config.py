"""
Configuration loader for the log shipper.

Supports INI file and environment variable overrides.
Defaults favour bounded memory over delivery.
"""
import os
import configparser
from dataclasses import dataclass, field
from typing import NamedTuple, Optional
import structlog

from .errors import ConfigError
from .transmission.auth import (
    AuthStrategy,
    BasicAuthentication,
    HmacSignatureAuthentication,
    TokenAuthentication,
)
from .transmission.proxy import DEFAULT_PROXY_PORT

logger = structlog.get_logger()

ENV_PREFIX = "LOG_SHIPPER_"

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_MAX_QUEUE_SIZE = 100 * 1024 * 1024
MIN_FLUSH_INTERVAL_S = 0.01


class HttpRequestHeader(NamedTuple):
    name: str
    value: str


@dataclass
class Settings:
    """Shipper configuration with safe defaults."""

    # Ingestion endpoint
    url: str = ""
    connect_timeout_s: float = DEFAULT_TIMEOUT_S
    read_timeout_s: float = DEFAULT_TIMEOUT_S
    headers: list[HttpRequestHeader] = field(default_factory=list)
    authentication: Optional[AuthStrategy] = None

    # Buffering
    max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE  # characters
    flush_interval_s: float = 0.25
    clear_on_connection_failure: bool = True

    # Proxy
    proxy_host: str = ""
    proxy_port: int = DEFAULT_PROXY_PORT
    proxy_username: str = ""
    proxy_password: str = ""

    # Record formatting
    index: str = "logs-%Y.%m.%d"
    include_caller_data: bool = False


def parse_headers(text: str) -> list[HttpRequestHeader]:
    """
    Parse "Name: Value" lines into headers, keeping order and duplicates.

    Raises:
        ConfigError: If a non-blank line has no colon or an empty name
    """
    headers = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        name, sep, value = line.partition(':')
        if not sep or not name.strip():
            raise ConfigError(f"Invalid header line: {line!r}")
        headers.append(HttpRequestHeader(name.strip(), value.strip()))
    return headers


def build_authentication(scheme: str, options: dict[str, str]) -> Optional[AuthStrategy]:
    """
    Create an authentication strategy from its scheme name.

    Args:
        scheme: basic, token, hmac (empty or "none" disables authentication)
        options: Scheme fields (username/password, token/token_scheme/header,
            key_id/secret/header)

    Raises:
        ConfigError: On unknown scheme or missing fields
    """
    scheme = (scheme or "").strip().lower()
    try:
        if scheme in ("", "none"):
            return None
        if scheme == "basic":
            return BasicAuthentication(options['username'], options.get('password', ''))
        if scheme == "token":
            return TokenAuthentication(
                options['token'],
                scheme=options.get('token_scheme', 'Bearer'),
                header=options.get('header', 'Authorization')
            )
        if scheme == "hmac":
            return HmacSignatureAuthentication(
                options['key_id'],
                options['secret'],
                header=options.get('header', 'X-Signature')
            )
    except KeyError as e:
        raise ConfigError(f"Authentication scheme {scheme!r} requires {e.args[0]!r}") from e

    raise ConfigError(f"Unknown authentication scheme: {scheme!r}")


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ConfigError(f"Not a boolean: {value!r}")


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from INI file and environment variables.

    Priority:
    1. Environment variables (highest)
    2. INI file
    3. Defaults (lowest)

    Environment variable format: LOG_SHIPPER_<SETTING_NAME>
    Example: LOG_SHIPPER_URL, LOG_SHIPPER_PROXY_HOST
    """
    config = Settings()
    auth_scheme = ""
    auth_options: dict[str, str] = {}

    if config_path and os.path.exists(config_path):
        parser = configparser.ConfigParser(interpolation=None)
        parser.read(config_path)

        try:
            if parser.has_section('endpoint'):
                config.url = parser.get('endpoint', 'url', fallback=config.url)
                config.connect_timeout_s = parser.getfloat('endpoint', 'connect_timeout_s', fallback=config.connect_timeout_s)
                config.read_timeout_s = parser.getfloat('endpoint', 'read_timeout_s', fallback=config.read_timeout_s)
                config.headers = parse_headers(parser.get('endpoint', 'headers', fallback=''))

            if parser.has_section('buffer'):
                config.max_queue_size = parser.getint('buffer', 'max_queue_size', fallback=config.max_queue_size)
                config.flush_interval_s = parser.getfloat('buffer', 'flush_interval_s', fallback=config.flush_interval_s)
                config.clear_on_connection_failure = parser.getboolean('buffer', 'clear_on_connection_failure', fallback=config.clear_on_connection_failure)

            if parser.has_section('proxy'):
                config.proxy_host = parser.get('proxy', 'host', fallback=config.proxy_host)
                config.proxy_port = parser.getint('proxy', 'port', fallback=config.proxy_port)
                config.proxy_username = parser.get('proxy', 'username', fallback=config.proxy_username)
                config.proxy_password = parser.get('proxy', 'password', fallback=config.proxy_password)

            if parser.has_section('format'):
                config.index = parser.get('format', 'index', fallback=config.index)
                config.include_caller_data = parser.getboolean('format', 'include_caller_data', fallback=config.include_caller_data)

            if parser.has_section('auth'):
                auth_options = dict(parser.items('auth'))
                auth_scheme = auth_options.pop('scheme', '')
        except ValueError as e:
            raise ConfigError(f"Invalid value in {config_path}: {e}") from e

        logger.info("config_loaded_from_file", path=config_path)

    # Override with environment variables (highest priority)
    env_mappings = {
        'URL': ('url', str),
        'CONNECT_TIMEOUT_S': ('connect_timeout_s', float),
        'READ_TIMEOUT_S': ('read_timeout_s', float),
        'HEADERS': ('headers', parse_headers),
        'MAX_QUEUE_SIZE': ('max_queue_size', int),
        'FLUSH_INTERVAL_S': ('flush_interval_s', float),
        'CLEAR_ON_CONNECTION_FAILURE': ('clear_on_connection_failure', _parse_bool),
        'PROXY_HOST': ('proxy_host', str),
        'PROXY_PORT': ('proxy_port', int),
        'PROXY_USERNAME': ('proxy_username', str),
        'PROXY_PASSWORD': ('proxy_password', str),
        'INDEX': ('index', str),
        'INCLUDE_CALLER_DATA': ('include_caller_data', _parse_bool),
    }

    for name, (attr, type_fn) in env_mappings.items():
        env_var = ENV_PREFIX + name
        value = os.environ.get(env_var)
        if value is not None:
            try:
                setattr(config, attr, type_fn(value))
            except ValueError as e:
                raise ConfigError(f"Invalid value for {env_var}: {e}") from e
            logger.debug("config_override_from_env", var=env_var)

    auth_env = {
        key[len(ENV_PREFIX + 'AUTH_'):].lower(): value
        for key, value in os.environ.items()
        if key.startswith(ENV_PREFIX + 'AUTH_')
    }
    if auth_env:
        auth_scheme = auth_env.pop('scheme', auth_scheme)
        auth_options.update(auth_env)

    config.authentication = build_authentication(auth_scheme, auth_options)

    # Enforce sane limits
    if config.max_queue_size <= 0:
        logger.warning("max_queue_size_reset", requested=config.max_queue_size, default=DEFAULT_MAX_QUEUE_SIZE)
        config.max_queue_size = DEFAULT_MAX_QUEUE_SIZE

    for attr in ('connect_timeout_s', 'read_timeout_s'):
        if getattr(config, attr) <= 0:
            logger.warning("timeout_reset", setting=attr, requested=getattr(config, attr), default=DEFAULT_TIMEOUT_S)
            setattr(config, attr, DEFAULT_TIMEOUT_S)

    if config.flush_interval_s < MIN_FLUSH_INTERVAL_S:
        logger.warning("flush_interval_increased", requested=config.flush_interval_s, minimum=MIN_FLUSH_INTERVAL_S)
        config.flush_interval_s = MIN_FLUSH_INTERVAL_S

    return config
