"""Write /etc/nixos/configuration.nix into the target root.

Exactly one of two strategies runs:

    fetch     config_url is set: download it and write it verbatim. Transport
              or HTTP errors abort the run; there is no retry.
    template  otherwise: render the packaged starter configuration with the
              hostname, username and timezone filled in.

Values are substituted through a jinja2 filter that escapes them for Nix
string literals, so a stray quote or "${" cannot change the configuration.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import jinja2
import requests

from nixos_bootstrap.domain.models import BootstrapConfig
from nixos_bootstrap.logging import operation_context
from nixos_bootstrap.storage.exceptions import ConfigurationFetchError


TEMPLATE_NAME = "configuration.nix.j2"
FETCH_TIMEOUT_SECONDS = 30


class ConfigSource(Enum):
    FETCHED = "fetched"
    TEMPLATED = "templated"


@dataclass(frozen=True)
class TemplateFields:
    hostname: str
    username: str
    timezone: str


def escape_nix_string(value: str) -> str:
    """Escape ``value`` for use inside a double-quoted Nix string."""
    return (
        str(value)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("${", "\\${")
    )


def _build_environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.PackageLoader("nixos_bootstrap", "templates"),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.filters["nix_string"] = escape_nix_string
    return env


JINJA_ENV = _build_environment()


def render_configuration(fields: TemplateFields) -> str:
    return JINJA_ENV.get_template(TEMPLATE_NAME).render(**asdict(fields))


def fetch_configuration(url: str, timeout: float = FETCH_TIMEOUT_SECONDS) -> bytes:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as error:
        raise ConfigurationFetchError(url, str(error)) from error
    return response.content


def write_configuration(
    config: BootstrapConfig, target: Optional[Path] = None
) -> ConfigSource:
    """Materialize configuration.nix for ``config``.

    Returns:
        Which strategy produced the file.
    """
    target = target or config.config_path
    with operation_context("configuration", path=str(target)) as log:
        target.parent.mkdir(parents=True, exist_ok=True)
        if config.config_url:
            log.info(f"Pulling configuration.nix from: {config.config_url}")
            target.write_bytes(fetch_configuration(config.config_url))
            return ConfigSource.FETCHED

        log.warning("No config_url set, writing starter configuration.nix")
        fields = TemplateFields(
            hostname=config.hostname,
            username=config.username,
            timezone=config.timezone,
        )
        target.write_text(render_configuration(fields), encoding="utf-8")
        return ConfigSource.TEMPLATED
