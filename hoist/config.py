import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hoist.errors import ConfigError
from hoist.ignore import IgnoreRules


class HeaderSchema(BaseModel):

    key: str
    value: str


class HeaderRuleSchema(BaseModel):

    source: str
    headers: list[HeaderSchema] = []


class RedirectSchema(BaseModel):

    source: str
    destination: str
    type: int = 301


class HostingSchema(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    site: str | None = None
    public: str
    ignore: list[str] = []
    clean_urls: bool = Field(False, alias="cleanUrls")
    trailing_slash: bool = Field(False, alias="trailingSlash")
    headers: list[HeaderRuleSchema] = []
    redirects: list[RedirectSchema] = []


class ConfigSchema(BaseModel):

    hosting: HostingSchema


class Config:
    """
    Hosting config file parser (firebase.json).

    ".json" files are read as JSON; anything else (e.g. hosting.yaml) as YAML.
    """

    def __init__(self, config_path: Path, site: str | None = None):
        self.config_path = Path(config_path).expanduser().resolve()
        try:
            with open(self.config_path) as fh:
                if self.config_path.suffix == ".json":
                    raw = json.loads(fh.read())
                else:
                    raw = yaml.safe_load(fh.read())
        except OSError as e:
            raise ConfigError(f"cannot read {config_path}: {e.strerror}") from e
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot parse {config_path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path} does not contain a mapping")
        try:
            self.config_data = ConfigSchema(**raw)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise ConfigError(f"{config_path}: {location}: {first['msg']}") from e
        self.hosting = self.config_data.hosting

        # Command-line site wins over the file
        self.site = site or self.hosting.site
        if not self.site:
            raise ConfigError(f"{config_path}: no hosting site given")

        # Public root is relative to the config file
        self.public_path = (
            self.config_path.parent / Path(self.hosting.public).expanduser()
        ).resolve()
        self.ignore_rules = IgnoreRules(self.hosting.ignore)

    def serving_config(self) -> dict[str, Any]:
        """
        Maps the hosting section onto the service's version config payload
        """
        result: dict[str, Any] = {"cleanUrls": self.hosting.clean_urls}
        if self.hosting.trailing_slash:
            result["trailingSlashBehavior"] = "ADD"
        if self.hosting.headers:
            result["headers"] = [
                {
                    "glob": rule.source,
                    "headers": {header.key: header.value for header in rule.headers},
                }
                for rule in self.hosting.headers
            ]
        if self.hosting.redirects:
            result["redirects"] = [
                {
                    "glob": redirect.source,
                    "location": redirect.destination,
                    "statusCode": redirect.type,
                }
                for redirect in self.hosting.redirects
            ]
        return result
