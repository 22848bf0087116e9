from collections import namedtuple
from collections.abc import Mapping
import urllib.parse

from .exceptions import ConfigError

# Alternate spellings accepted in settings files, mapped to field names
ALIASES = {
    "basePath": "base_path",
    "insecureSkipVerify": "insecure_skip_verify",
    "endpointUrl": "url",
}

_ConfigTuple = namedtuple(
    "_ConfigTuple",
    ["url", "base_path", "username", "password", "insecure_skip_verify"],
)


class StorageConfig(_ConfigTuple):
    """Settings for a WebDAV storage backend

    Instances are immutable. Every field is checked on construction and a
    ConfigError listing all the problems is raised if any check fails.

    url: the WebDAV endpoint, e.g. https://dav.example.com/remote.php/dav
    base_path: the directory on the server that holds our files. Every
        path we touch on the server lives under it.
    username, password: optional basic auth credentials. Download links
        built by WebdavStorage, including the redirects sent by express(),
        carry them in the URL as user:password@host, so every HTTP client
        that is redirected can read them.
    insecure_skip_verify: accept any TLS certificate from the server. This
        turns off protection against man-in-the-middle attacks, so it is
        off unless explicitly requested.
    """
    __slots__ = ()

    def __new__(cls, url=None, base_path=None, username=None, password=None,
                insecure_skip_verify=False):
        errors = []

        if url is None:
            errors.append(("url", "This field is required"))
        elif not isinstance(url, str):
            errors.append(("url", "Expected a string"))
        else:
            parsed = urllib.parse.urlsplit(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append(("url", "Expected an absolute http or https URL"))

        if base_path is None:
            errors.append(("base_path", "This field is required"))
        elif not isinstance(base_path, str):
            errors.append(("base_path", "Expected a string"))
        elif not base_path.strip():
            errors.append(("base_path", "May not be empty"))

        for name, value in (("username", username), ("password", password)):
            if value is not None and not isinstance(value, str):
                errors.append((name, "Expected a string"))

        if not isinstance(insecure_skip_verify, bool):
            errors.append(("insecure_skip_verify", "Expected true or false"))

        if errors:
            raise ConfigError(errors)

        return super().__new__(
            cls,
            url,
            normalize_base_path(base_path),
            username,
            password,
            insecure_skip_verify,
        )

    @classmethod
    def from_dict(cls, data):
        """Builds a config from a mapping, such as one loaded from JSON

        Unknown keys, and a setting given under both its name and an alias,
        are reported along with any other validation errors
        """
        if not isinstance(data, Mapping):
            raise ConfigError([("settings", "Expected a mapping of settings")])

        kwargs = {}
        given = {}
        problems = []
        for key, value in data.items():
            name = ALIASES.get(key, key)
            if name not in cls._fields:
                problems.append((key, "Unknown setting"))
            elif name in given:
                problems.append((key, "Duplicates {}".format(given[name])))
            else:
                given[name] = key
                kwargs[name] = value

        try:
            config = cls(**kwargs)
        except ConfigError as e:
            if not problems:
                raise
            raise ConfigError(problems + e.errors) from None
        if problems:
            raise ConfigError(problems)
        return config

    def get_params(self):
        """Returns a dict that from_dict() accepts to rebuild this config"""
        return {
            name: value for name, value in self._asdict().items()
            if value is not None
        }

    def __repr__(self):
        # Keep the password out of logs and tracebacks
        return "StorageConfig(url={!r}, base_path={!r}, username={!r})".format(
            self.url, self.base_path, self.username,
        )


def normalize_base_path(base_path):
    """Returns the base path with exactly one leading slash and no trailing
    slash, e.g. "backups/" becomes "/backups"
    """
    stripped = base_path.strip().strip("/")
    return "/" + stripped
