"""Connection properties and the override cascade that resolves them.

A key is resolved from, in this order:

1. a value set explicitly through :meth:`ConfigResolver.override`,
2. the properties file (``sqlfixture.properties`` by default) found on
   ``sys.path``,
3. the built-in default.

Reading the properties file is best-effort: a missing or unreadable file
simply means "use the defaults".
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict
from sqlalchemy.engine import URL, make_url

from sqlfixture.config.settings import FixtureSettings
from sqlfixture.exceptions import ResourceNotFound, UnknownConfigKey

if TYPE_CHECKING:
    from sqlfixture.resource_locator import ResourceLocator

logger = logging.getLogger(__name__)


class ConnectionKey(StrEnum):
    DRIVER = "sqlfixture.driver"
    URL = "sqlfixture.url"
    USERNAME = "sqlfixture.username"
    PASSWORD = "sqlfixture.password"


DEFAULT_DRIVER = "sqlite+pysqlite"
# mode=rw makes opening a missing database fail instead of silently creating an empty one
DEFAULT_URL = "sqlite:///file:testData/testDB.sqlite?mode=rw&uri=true"
DEFAULT_USERNAME = ""
DEFAULT_PASSWORD = ""

DEFAULTS: dict[ConnectionKey, str] = {
    ConnectionKey.DRIVER: DEFAULT_DRIVER,
    ConnectionKey.URL: DEFAULT_URL,
    ConnectionKey.USERNAME: DEFAULT_USERNAME,
    ConnectionKey.PASSWORD: DEFAULT_PASSWORD,
}


def _to_key(key: ConnectionKey | str) -> ConnectionKey:
    try:
        return ConnectionKey(key)
    except ValueError:
        supported = ", ".join(k.value for k in ConnectionKey)
        raise UnknownConfigKey(f"The property '{key}' is not known. The supported properties are: {supported}") from None


class ConnectionProperties(BaseModel):
    """Fully resolved, immutable connection configuration."""

    model_config = ConfigDict(frozen=True)

    driver: str
    url: str
    username: str
    password: str

    def sqlalchemy_url(self) -> URL:
        """Combine the URL with the driver name and the (non-empty) credentials.

        The driver only replaces the URL's driver name when both name the
        same backend, e.g. ``sqlite+pysqlite`` for a ``sqlite:///`` URL.
        """
        url = make_url(self.url)
        backend = self.driver.split("+", 1)[0]
        if backend == url.get_backend_name():
            url = url.set(drivername=self.driver)
        else:
            logger.warning(
                "Driver '%s' does not match the backend of the URL '%s', keeping the URL's driver",
                self.driver,
                url.render_as_string(hide_password=True),
            )
        if self.username:
            url = url.set(username=self.username)
        if self.password:
            url = url.set(password=self.password)
        return url

    def masked_url(self) -> str:
        """Return the URL with the password hidden, suitable for logs and error messages."""
        return self.sqlalchemy_url().render_as_string(hide_password=True)


class ConfigResolver:
    """Resolve connection properties: override → properties file → defaults."""

    def __init__(
        self,
        config_file: str | None = None,
        *,
        locator: ResourceLocator | None = None,
        settings: FixtureSettings | None = None,
    ) -> None:
        self._settings = settings or FixtureSettings()
        self.config_file = config_file or self._settings.config_file
        if locator is None:
            # imported here: the locator itself depends on the config package
            from sqlfixture.resource_locator import ResourceLocator

            locator = ResourceLocator(settings=self._settings)
        self._locator = locator
        self._overrides: dict[ConnectionKey, str] = {}
        self._loaded: dict[str, str] = self._load_config_file()

    def _load_config_file(self) -> dict[str, str]:
        try:
            path = self._locator.find(self.config_file, search_path_only=True)
        except ResourceNotFound:
            logger.debug("No %s found on sys.path, using the default connection properties", self.config_file)
            return {}

        logger.info("Loading test DB configuration from %s", path)
        try:
            with path.open(encoding="utf-8") as stream:
                values = dotenv_values(stream=stream, interpolate=False)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read DB configuration from %s: %s", path, exc)
            return {}
        return {key: value for key, value in values.items() if value is not None}

    @property
    def loaded_values(self) -> dict[str, str]:
        """Raw key/value pairs read from the properties file (possibly empty)."""
        return dict(self._loaded)

    def override(self, key: ConnectionKey | str, value: str) -> str | None:
        """Set a value explicitly and return the one it shadows, if any."""
        resolved_key = _to_key(key)
        previous = self._overrides.get(resolved_key, self._loaded.get(resolved_key.value))
        self._overrides[resolved_key] = value
        return previous

    def resolve(self, key: ConnectionKey | str) -> str:
        resolved_key = _to_key(key)
        if resolved_key in self._overrides:
            return self._overrides[resolved_key]
        if resolved_key.value in self._loaded:
            return self._loaded[resolved_key.value]
        return DEFAULTS[resolved_key]

    def properties(self) -> ConnectionProperties:
        """Snapshot the current resolution of every key."""
        return ConnectionProperties(
            driver=self.resolve(ConnectionKey.DRIVER),
            url=self.resolve(ConnectionKey.URL),
            username=self.resolve(ConnectionKey.USERNAME),
            password=self.resolve(ConnectionKey.PASSWORD),
        )
