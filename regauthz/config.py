"""Component configuration.

Each component (``registry``, ``logging``) reads an INI file installed in
/etc/regauthz or /usr/etc/regauthz, with overrides from snippets in
``<component>.conf.d`` directories applied in lexical order. A
``REGAUTHZ_<COMPONENT>_CONFIG`` environment variable names a file replacing
all of them.

Single options are overridden by environment variables named
``REGAUTHZ_<COMPONENT>[_<SECTION>]_<OPTION>``, the section being omitted for
the section named after the component.
"""

import ast
import logging
import os
import os.path
from configparser import RawConfigParser
from typing import Any, Dict, List, Optional

logging.basicConfig(level=logging.INFO)
base_logger = logging.getLogger("regauthz.config")


def environ_bool(env_name: str, default: bool) -> bool:
    val = os.getenv(env_name, "default").lower()
    if val in ["on", "true", "1"]:
        return True
    if val in ["off", "false", "0"]:
        return False
    if val == "default":
        return default
    raise ValueError(
        f"Environment variable {env_name} set to invalid value {val} (use either on/true/1 or off/false/0)"
    )


DEFAULT_CONFIG_DIR = "/etc/regauthz"
CONFIG_DIR = os.getenv("REGAUTHZ_CONFIG_DIR", DEFAULT_CONFIG_DIR)

# Rule-definition file of the attribute-based strategy
ABAC_RULES_PATH = os.getenv("REGAUTHZ_ABAC_RULES", os.path.join(CONFIG_DIR, "abac_rules.json"))

COMPONENTS = ["registry", "logging"]

# Candidate base files, the first one found is used
CONFIG_FILES = {c: [f"/etc/regauthz/{c}.conf", f"/usr/etc/regauthz/{c}.conf"] for c in COMPONENTS}

# Snippet directories, applied in this order
CONFIG_SNIPPETS_DIRS = {c: [f"/usr/etc/regauthz/{c}.conf.d", f"/etc/regauthz/{c}.conf.d"] for c in COMPONENTS}

CONFIG_ENV = {c: os.environ.get(f"REGAUTHZ_{c.upper()}_CONFIG", "") for c in COMPONENTS}

_config: Optional[Dict[str, RawConfigParser]] = None


def _report_unread(component: str, paths: List[str], read: List[str]) -> None:
    """Log the files in ``paths`` which exist but were not read."""
    for path in paths:
        if not os.path.exists(path) or path in read:
            continue

        if not os.access(path, os.R_OK):
            base_logger.error("Config file %s exists but is not readable by the %s service", path, component)
        else:
            base_logger.error(
                "Config file %s exists but failed to parse, check the [%s] section for duplicate options",
                path,
                component,
            )


def _snippets(directory: str) -> List[str]:
    return sorted(
        os.path.join(directory, f) for f in os.listdir(directory) if os.path.isfile(os.path.join(directory, f))
    )


def _load(component: str, parser: RawConfigParser) -> None:
    if not isinstance(CONFIG_ENV, dict):
        raise Exception("Invalid CONFIG_ENV")
    if component not in CONFIG_ENV:
        raise Exception(f"Invalid component '{component}'")

    env_file = CONFIG_ENV[component]
    if env_file:
        if os.path.isfile(env_file):
            base_logger.info("Reading configuration from %s", parser.read(env_file))
            return
        base_logger.info(
            "Configuration file %s for %s set through environment variable not found, using installed configuration",
            env_file,
            component,
        )

    if not isinstance(CONFIG_FILES, dict) or component not in CONFIG_FILES:
        raise Exception(f"Invalid CONFIG_FILES for component '{component}'")

    base_file = next((f for f in CONFIG_FILES[component] if os.path.exists(f)), None)
    if base_file is None:
        base_logger.warning("Config file not found in %s. Using default values", CONFIG_FILES[component])
        return

    read = parser.read(base_file)
    _report_unread(component, [base_file], read)
    if not read:
        return
    base_logger.info("Reading configuration from %s", read)

    if not isinstance(CONFIG_SNIPPETS_DIRS, dict):
        raise Exception("Invalid CONFIG_SNIPPETS_DIRS")

    for directory in CONFIG_SNIPPETS_DIRS.get(component) or []:
        if not os.path.isdir(directory):
            continue
        snippets = _snippets(directory)
        applied = parser.read(snippets)
        _report_unread(component, snippets, applied)
        if applied:
            base_logger.info("Applied configuration snippets from %s", directory)


def get_config(component: str) -> RawConfigParser:
    """Return the configuration of ``component``, read on first use.

    Raises:
        Exception: If ``component`` is not a known component
    """
    global _config

    if not component:
        raise Exception("No component provided to get_config")

    if _config is None:
        _config = {}

    if component not in _config:
        # RawConfigParser, so that the logging sections are read verbatim
        parser = RawConfigParser()
        _load(component, parser)
        _config[component] = parser

    return _config[component]


def _get_env(component: str, option: str, section: Optional[str]) -> Optional[str]:
    opt_section = f"_{section.upper()}" if section else ""
    env_name = f"REGAUTHZ_{component.upper()}{opt_section}_{option.upper()}"
    env_value = os.environ.get(env_name)
    if env_value is not None:
        where = f"section {section} of {component}.conf" if section else f"{component}.conf"
        base_logger.info('option "%s" in %s was overridden by environment variable %s', option, where, env_name)

    return env_value


def _raw(component: str, option: str, section: Optional[str]) -> Optional[str]:
    """Return the unparsed value of an option, None if it is not set."""
    env_value = _get_env(component, option, section)
    if env_value is not None:
        return env_value

    return get_config(component).get(section or component, option, fallback=None)


def _unquote(value: str) -> str:
    return value.strip('" ')


def get(component: str, option: str, section: Optional[str] = None, fallback: str = "") -> str:
    value = _raw(component, option, section)
    return fallback if value is None else _unquote(value)


def getint(component: str, option: str, section: Optional[str] = None, fallback: int = -1) -> int:
    value = _raw(component, option, section)
    return fallback if value is None else int(_unquote(value))


def getfloat(component: str, option: str, section: Optional[str] = None, fallback: float = -1.0) -> float:
    value = _raw(component, option, section)
    return fallback if value is None else float(_unquote(value))


def getboolean(component: str, option: str, section: Optional[str] = None, fallback: bool = False) -> bool:
    value = _raw(component, option, section)
    if value is None:
        return fallback
    return RawConfigParser.BOOLEAN_STATES.get(_unquote(value).lower(), fallback)


def getlist(
    component: str, option: str, section: Optional[str] = None, fallback: Optional[List[Any]] = None
) -> List[Any]:
    """Return an option holding a Python list literal, such as ``['a', 'b']``.

    Raises:
        Exception: If the value is not a list literal, or the option is not
            set and no fallback is given
    """
    read = _unquote(_raw(component, option, section) or "")

    if not read:
        if fallback is not None:
            return fallback
        raise Exception(
            f"Could not find option '{option}' in section '{section or component}' of component '{component}'"
        )

    try:
        value = ast.literal_eval(read)
    except (ValueError, SyntaxError) as e:
        raise Exception(f"Failed to get list from config for component '{component}', option '{option}'") from e

    if not isinstance(value, list):
        raise Exception(f"Config option '{option}' of component {component} should be a list")

    return [i.strip() if isinstance(i, str) else i for i in value]


def has_option(component: str, option: str, section: Optional[str] = None) -> bool:
    return _raw(component, option, section) is not None
