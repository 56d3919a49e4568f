"""wp-config.php rewriting.

Only `define( 'NAME', ... );` statements are touched; the rest of the file is
left as WordPress ships it.
"""

import logging
import re
import secrets
import shutil
from pathlib import Path

from .schema import WpConfigValues

logger = logging.getLogger(__name__)

SALT_CHARSET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789!@#$%^&*()-_=+[]{}|;:,.<>?/"
SALT_LENGTH = 64
EMPTY_SALT = "put your unique phrase here"
SALT_CONSTANTS = [
    "AUTH_KEY",
    "SECURE_AUTH_KEY",
    "LOGGED_IN_KEY",
    "NONCE_KEY",
    "AUTH_SALT",
    "SECURE_AUTH_SALT",
    "LOGGED_IN_SALT",
    "NONCE_SALT",
]
STRING_CONSTANTS = ["DB_NAME", "DB_USER", "DB_PASSWORD", "DB_HOST", "DB_CHARSET", "DB_COLLATE"]


def _php_quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def replace_db_constant(config_content: str, constant_name: str, value: str) -> str:
    """Replace the string value of define('constant_name', '...')."""
    pattern = re.compile(rf"define\(\s*'{re.escape(constant_name)}'\s*,\s*'[^']*'\s*\);")
    replacement = f"define( '{constant_name}', '{_php_quote(value)}' );"
    return pattern.sub(lambda _match: replacement, config_content, count=1)


def replace_db_constant_bool(config_content: str, constant_name: str, value: bool) -> str:
    """Replace a boolean define('constant_name', true|false)."""
    pattern = re.compile(rf"define\(\s*'{re.escape(constant_name)}'\s*,\s*[^'\)]*\s*\);")
    replacement = f"define( '{constant_name}', {'true' if value else 'false'} );"
    return pattern.sub(lambda _match: replacement, config_content, count=1)


def replace_table_prefix(config_content: str, prefix: str) -> str:
    pattern = re.compile(r"\$table_prefix\s*=\s*'[^']*'\s*;")
    replacement = f"$table_prefix = '{_php_quote(prefix)}';"
    return pattern.sub(lambda _match: replacement, config_content, count=1)


def generate_salt() -> str:
    return "".join(secrets.choice(SALT_CHARSET) for _ in range(SALT_LENGTH))


def replace_empty_salts(config_content: str) -> str:
    """Fill every salt still set to the sample placeholder with a random value."""
    for constant in SALT_CONSTANTS:
        pattern = re.compile(rf"define\(\s*'{constant}'\s*,\s*'{EMPTY_SALT}'\s*\);")
        replacement = f"define( '{constant}', '{_php_quote(generate_salt())}' );"
        config_content = pattern.sub(lambda _match: replacement, config_content, count=1)
    return config_content


def render_wp_config(config_content: str, values: WpConfigValues) -> str:
    """Apply user values and fresh salts to wp-config content."""
    for constant in STRING_CONSTANTS:
        config_content = replace_db_constant(config_content, constant, getattr(values, constant))
    config_content = replace_db_constant_bool(config_content, "WP_DEBUG", values.WP_DEBUG)
    config_content = replace_table_prefix(config_content, values.table_prefix)
    return replace_empty_salts(config_content)


def setup_wp_config(base_folder: Path, values: WpConfigValues) -> Path:
    """
    Create or update wp-config.php in a WordPress folder.

    Copies wp-config-sample.php when no wp-config.php exists yet.

    Args:
        base_folder: WordPress root folder
        values: Values to write

    Returns:
        Path to wp-config.php

    Raises:
        FileNotFoundError: If neither wp-config.php nor the sample exist
    """
    config_path = base_folder / "wp-config.php"

    if config_path.exists():
        logger.info("WordPress configuration already set up. Updating...")
    else:
        sample_path = base_folder / "wp-config-sample.php"
        if not sample_path.exists():
            raise FileNotFoundError(f"wp-config-sample.php not found in {base_folder}")
        shutil.copyfile(sample_path, config_path)

    content = config_path.read_text(encoding="utf-8")
    config_path.write_text(render_wp_config(content, values), encoding="utf-8")

    logger.info(f"WordPress configuration written to {config_path}")
    return config_path
