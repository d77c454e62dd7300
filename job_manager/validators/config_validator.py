"""
Configuration Validator
Validates environment variables at service and consumer startup
Fails fast if any configuration is missing or invalid

NOTE: This module uses print() for validation messages because it runs BEFORE
logger initialization. The logger reads the validated values at import time.
"""

import json
import os
import sys
from datetime import datetime
from urllib.parse import urlparse

from job_manager.core.config import SUPPORTED_SERVICES


def _log(message: str):
    """Print log message with timestamp in consistent format"""
    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    print(f"[{timestamp}] INFO - {message}")


def is_valid_url(url: str) -> bool:
    """Validates a URL format"""
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except ValueError:
        return False


def is_valid_mongodb_uri(uri: str) -> bool:
    return uri.startswith(("mongodb://", "mongodb+srv://")) and is_valid_url(uri)


def is_valid_port(port: str) -> bool:
    """Validates a port number"""
    try:
        port_num = int(port)
        return 0 < port_num <= 65535
    except (ValueError, TypeError):
        return False


def is_positive_int(value: str) -> bool:
    return value.isdigit() and int(value) > 0


def is_positive_float(value: str) -> bool:
    try:
        return float(value) > 0
    except ValueError:
        return False


def is_valid_log_level(level: str) -> bool:
    """Validates log level"""
    valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    return level.upper() in valid_levels


def is_valid_environment(env: str) -> bool:
    """Validates ENVIRONMENT"""
    valid_envs = ['development', 'production', 'test', 'staging']
    return env.lower() in valid_envs


def is_valid_boolean(value: str) -> bool:
    """Validates boolean string"""
    return value.lower() in ['true', 'false']


def is_valid_bootstrap_servers(value: str) -> bool:
    """host:port[,host:port...]"""
    servers = [server.strip() for server in value.split(',') if server.strip()]
    if not servers:
        return False
    for server in servers:
        host, _, port = server.rpartition(':')
        if not host or not is_valid_port(port):
            return False
    return True


def is_valid_shard_uri_map(value: str) -> bool:
    try:
        parsed = json.loads(value)
    except ValueError:
        return False
    return isinstance(parsed, dict) and all(
        isinstance(uri, str) and is_valid_mongodb_uri(uri) for uri in parsed.values()
    )


# Configuration validation rules
VALIDATION_RULES = {
    # Service Configuration
    'ENVIRONMENT': {
        'required': False,
        'validator': is_valid_environment,
        'error_message': 'ENVIRONMENT must be one of: development, production, test, staging',
        'default': 'development',
    },
    'SERVICE_NAME': {
        'required': True,
        'validator': lambda v: v in SUPPORTED_SERVICES,
        'error_message': f"SERVICE_NAME must be one of: {', '.join(SUPPORTED_SERVICES)}",
    },
    'SERVICE_VERSION': {
        'required': False,
        'validator': lambda v: v and len(v.split('.')) == 3,
        'error_message': 'SERVICE_VERSION must be in semantic version format (e.g., 1.0.0)',
        'default': '1.0.0',
    },
    'PORT': {
        'required': False,
        'validator': is_valid_port,
        'error_message': 'PORT must be a valid port number (1-65535)',
        'default': '8000',
    },

    # Database Configuration
    'MONGODB_URI': {
        'required': True,
        'validator': is_valid_mongodb_uri,
        'error_message': 'MONGODB_URI must be a mongodb:// or mongodb+srv:// URI',
    },
    'DATABASE_NAME': {
        'required': False,
        'validator': lambda v: not v or len(v) > 0,
        'error_message': 'DATABASE_NAME must be a non-empty string',
        'default': 'job_manager',
    },
    'AUTH_SHARD_URIS': {
        'required': False,
        'validator': is_valid_shard_uri_map,
        'error_message': 'AUTH_SHARD_URIS must be a JSON object mapping shard keys to MongoDB URIs',
    },

    # Kafka Configuration
    'KAFKA_BOOTSTRAP_SERVERS': {
        'required': True,
        'validator': is_valid_bootstrap_servers,
        'error_message': 'KAFKA_BOOTSTRAP_SERVERS must be a comma-separated list of host:port',
    },
    'KAFKA_SEND_TIMEOUT_SECONDS': {
        'required': False,
        'validator': is_positive_float,
        'error_message': 'KAFKA_SEND_TIMEOUT_SECONDS must be a positive number',
        'default': '10',
    },
    'PUBLISH_MAX_ATTEMPTS': {
        'required': False,
        'validator': is_positive_int,
        'error_message': 'PUBLISH_MAX_ATTEMPTS must be a positive integer',
        'default': '5',
    },
    'PUBLISH_INITIAL_BACKOFF_SECONDS': {
        'required': False,
        'validator': is_positive_float,
        'error_message': 'PUBLISH_INITIAL_BACKOFF_SECONDS must be a positive number',
    },
    'PUBLISH_MAX_BACKOFF_SECONDS': {
        'required': False,
        'validator': is_positive_float,
        'error_message': 'PUBLISH_MAX_BACKOFF_SECONDS must be a positive number',
    },
    'CONSUMER_MAX_ATTEMPTS': {
        'required': False,
        'validator': is_positive_int,
        'error_message': 'CONSUMER_MAX_ATTEMPTS must be a positive integer',
        'default': '5',
    },
    'CONSUMER_INITIAL_BACKOFF_SECONDS': {
        'required': False,
        'validator': is_positive_float,
        'error_message': 'CONSUMER_INITIAL_BACKOFF_SECONDS must be a positive number',
    },
    'CONSUMER_MAX_BACKOFF_SECONDS': {
        'required': False,
        'validator': is_positive_float,
        'error_message': 'CONSUMER_MAX_BACKOFF_SECONDS must be a positive number',
    },

    # Auth
    'ACTIVATION_TOKEN_TTL_HOURS': {
        'required': False,
        'validator': is_positive_int,
        'error_message': 'ACTIVATION_TOKEN_TTL_HOURS must be a positive integer',
        'default': '24',
    },

    # Downstream services
    'SUBSCRIPTION_SERVICE_URL': {
        'required': False,
        'validator': is_valid_url,
        'error_message': 'SUBSCRIPTION_SERVICE_URL must be a valid URL',
    },

    # Logging Configuration
    'LOG_LEVEL': {
        'required': False,
        'validator': is_valid_log_level,
        'error_message': 'LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL',
        'default': 'INFO',
    },
    'LOG_FORMAT': {
        'required': False,
        'validator': lambda v: not v or v.lower() in ['json', 'console'],
        'error_message': 'LOG_FORMAT must be either json or console',
    },
    'LOG_TO_CONSOLE': {
        'required': False,
        'validator': is_valid_boolean,
        'error_message': 'LOG_TO_CONSOLE must be true or false',
        'default': 'true',
    },
    'LOG_TO_FILE': {
        'required': False,
        'validator': is_valid_boolean,
        'error_message': 'LOG_TO_FILE must be true or false',
        'default': 'false',
    },
}


def collect_config_errors():
    """
    Check every rule against the environment.

    Returns (errors, warnings). Unset optional variables that carry a default
    are written back to os.environ.
    """
    errors = []
    warnings = []

    for key, rule in VALIDATION_RULES.items():
        value = os.getenv(key)

        if rule['required'] and not value:
            errors.append(f"{key} is required but not set")
            continue

        if not value:
            if 'default' in rule:
                warnings.append(f"{key} not set, using default: {rule['default']}")
                os.environ[key] = rule['default']
            continue

        if rule['validator'] and not rule['validator'](value):
            errors.append(f"{key}: {rule['error_message']}")
            if len(value) > 100:
                errors.append(f"   Current value: {value[:100]}...")
            else:
                errors.append(f"   Current value: {value}")

    return errors, warnings


def validate_config():
    """
    Validates all environment variables according to the rules
    Raises SystemExit if any required variable is missing or invalid
    """
    _log('[CONFIG] Validating environment configuration...')

    errors, warnings = collect_config_errors()

    for warning in warnings:
        _log(warning)

    if errors:
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        print(f'[{timestamp}] ERROR - [CONFIG] Configuration validation failed:', file=sys.stderr)
        for error in errors:
            print(f'[{timestamp}] ERROR - {error}', file=sys.stderr)
        print(f'[{timestamp}] ERROR - Please check your .env file and ensure all required variables are set correctly.',
              file=sys.stderr)
        sys.exit(1)

    _log('[CONFIG] All required environment variables are valid')
