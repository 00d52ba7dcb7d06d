"""
Where a DAV credential comes from when a script, rather than a workflow
host, runs the nodes.

Sources, first match wins:

1. Explicit keyword arguments (url=, username=, password=)
2. Environment variables DAV_URL, DAV_USERNAME, DAV_PASSWORD
3. A config file: DAV_CONFIG_FILE, or one of the default locations under
   ~/.config/davnodes/

The config file is JSON (or YAML, if pyyaml is installed) with one
section per server::

    {
        "default": {"dav_url": "https://dav.example.com/remote.php/dav",
                    "dav_user": "alice", "dav_pass": "secret"},
        "work": {"inherits": "default", "dav_user": "alice.work"}
    }
"""
import json
import logging
import os
from typing import Any
from typing import Dict
from typing import Optional

from davnodes.credentials import Credential

log = logging.getLogger("davnodes")

## config file keys mapping to Credential fields
CONFIG_KEYS = {
    "dav_url": "base_url",
    "dav_user": "username",
    "dav_pass": "password",
}

ENVIRONMENT_KEYS = {
    "DAV_URL": "base_url",
    "DAV_USERNAME": "username",
    "DAV_PASSWORD": "password",
}


def config_section(config: Dict[str, Any], section: str = "default") -> Dict[str, Any]:
    """
    The keys of section, including those inherited (recursively) through
    the "inherits" keyword.  Keys in the section itself win.
    """
    seen = set()
    chain = []
    while section in config and section not in seen:
        seen.add(section)
        chain.append(config[section])
        section = config[section].get("inherits")
    ret: Dict[str, Any] = {}
    for part in reversed(chain):
        ret.update(part)
    ret.pop("inherits", None)
    return ret


def read_config(fn: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Load a config file.  Without a file name, the default locations are
    tried in turn.  Returns None if nothing could be loaded.
    """
    if not fn:
        cfgdir = os.path.join(os.environ.get("HOME", "/"), ".config")
        for config_file in (
            os.path.join(cfgdir, "davnodes", "config.json"),
            os.path.join(cfgdir, "davnodes", "config.yaml"),
            os.path.join(cfgdir, "davnodes", "config"),
            "/etc/davnodes/config.json",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return None

    try:
        with open(fn, "rb") as config_file:
            raw = config_file.read()
    except FileNotFoundError:
        log.debug("no config file %s", fn)
        return None

    try:
        return json.loads(raw)
    except ValueError:
        pass

    ## yaml is optional, and not included in the requirements
    try:
        import yaml
    except ImportError:
        log.error("config file %s is not valid json, and pyyaml is not installed", fn)
        return None
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        log.error("config file %s is neither valid json nor yaml.  Check the syntax.", fn)
        return None


def get_credential(
    check_config_file: bool = True,
    config_file: Optional[str] = None,
    config_section_name: Optional[str] = None,
    environment: bool = True,
    **explicit,
) -> Optional[Credential]:
    """
    Find a credential in the sources listed in the module docstring.

    Args:
        check_config_file: look for a config file at all
        config_file: path of the config file, overrides DAV_CONFIG_FILE
        config_section_name: section of the config file, defaults to
            DAV_CONFIG_SECTION or "default"
        environment: read the DAV_* environment variables
        explicit: url, username and password

    Returns:
        A Credential, or None if no source provides a URL.
    """
    url = explicit.get("url") or explicit.get("base_url")
    if url:
        return Credential(
            base_url=url,
            username=explicit.get("username") or "",
            password=explicit.get("password") or "",
        )

    if environment and os.environ.get("DAV_URL"):
        fields = {
            key: os.environ[name]
            for name, key in ENVIRONMENT_KEYS.items()
            if name in os.environ
        }
        log.debug("credential for %s read from the environment", fields["base_url"])
        return Credential(**fields)

    if not check_config_file:
        return None
    if environment:
        config_file = config_file or os.environ.get("DAV_CONFIG_FILE")
        config_section_name = config_section_name or os.environ.get("DAV_CONFIG_SECTION")
    cfg = read_config(config_file)
    if not cfg:
        return None
    section = config_section(cfg, config_section_name or "default")
    fields = {key: section[name] for name, key in CONFIG_KEYS.items() if name in section}
    if not fields.get("base_url"):
        log.info("config section %s has no dav_url", config_section_name or "default")
        return None
    return Credential(**fields)
