import functools
import logging
import os
import os.path
import pathlib
import posixpath
import shutil
from collections import namedtuple
from collections.abc import Mapping

from django.conf import settings
from django.http import FileResponse, Http404, HttpResponseRedirect
from django.core.signals import setting_changed

from .config import StorageConfig
from .exceptions import ConfigError, RemoteIOError
from .manifest import ContentManifest, get_hash

# One entry of a directory listing. path is the full path in the storage
# namespace, basename its last component. size may be None if the backend
# didn't report one.
RemoteEntry = namedtuple("RemoteEntry", ["path", "basename", "is_dir", "size"])

# What a call to express() served. bytes is 0 when the transfer happens
# somewhere we can't see it.
TransferStats = namedtuple("TransferStats", ["bytes", "hits"])


class ProgressIndicator:
    """Receives progress callbacks from StorageBase.gc()"""
    def list_progress(self):
        """Called for each directory listed"""
        pass

    def delete_progress(self, s):
        """Called for each file deleted, with its size if known or 0"""
        pass

    def close(self):
        pass


class StorageBase:
    """Base class defining the storage interface

    Files in a storage backend are content-addressed: their names are the
    hash of their contents, optionally inside directories used for sharding.
    Directories carry no meaning of their own.

    All paths passed to the public methods are relative to the backend's base
    path. Subclasses set self.base_path and implement the primitives below;
    the traversal used by get_missing_files() and gc() is shared.

    :param logger: The logger to report to. Defaults to the
        davstore.storage logger.
    """
    base_path = None

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger("davstore.storage")

    def get_params(self):
        """Returns the parameters to initialize this class

        This is essentially used to serialize the instance
        """
        raise NotImplementedError()

    def init(self):
        """Creates the base path if it doesn't exist

        Safe to call any number of times.
        """
        raise NotImplementedError()

    def write_file(self, path, content):
        """Writes a file, replacing it if it exists

        :param path: The file name, relative to the base path
        :param content: The bytes to write
        """
        raise NotImplementedError()

    def exists(self, path):
        raise NotImplementedError()

    def get_absolute_path(self, path):
        """Returns a link that retrieves the file directly

        This does not check that the file exists.
        """
        raise NotImplementedError()

    def express(self, hash_path, request):
        """Serves a file in response to an HTTP request

        :param hash_path: Path of the file relative to the base path, usually
            just its hash
        :param request: The django HttpRequest being answered
        :returns: (HttpResponse, TransferStats)
        """
        raise NotImplementedError()

    def _list_directory(self, path):
        """Returns a list of RemoteEntry for the children of path"""
        raise NotImplementedError()

    def _delete_file(self, path):
        raise NotImplementedError()

    def _join(self, path):
        joined = posixpath.normpath(
            posixpath.join(self.base_path, path.lstrip("/"))
        )
        if joined != self.base_path and not joined.startswith(
                self.base_path.rstrip("/") + "/"):
            raise ValueError("Path {!r} is outside the storage base "
                             "path".format(path))
        return joined

    def _walk_files(self, progress):
        """Iterates over every file below the base path

        Directories are kept on an explicit stack rather than recursed into,
        so deep trees don't hit the recursion limit. Sibling order is
        whatever the backend returns. Each directory is listed once.
        """
        stack = [self.base_path]
        seen = set()
        while stack:
            directory = stack.pop()
            if directory in seen:
                continue
            seen.add(directory)

            entries = self._list_directory(directory)
            progress.list_progress()
            for entry in entries:
                if entry.is_dir:
                    stack.append(entry.path)
                else:
                    yield entry

    def get_missing_files(self, entries):
        """Returns the entries whose content isn't in storage

        :param entries: An iterable of manifest entries. See
            davstore.manifest.get_hash() for what's accepted.
        :returns: A list of the given entries whose hash doesn't name any
            file below the base path. Order is not meaningful.

        This walks the entire tree on every call.
        """
        manifest = ContentManifest(entries)
        for entry in self._walk_files(ProgressIndicator()):
            manifest.discard(entry.basename)
        return manifest.remaining()

    def gc(self, entries, progress=None):
        """Deletes every file whose hash isn't in the given entries

        Directories are left alone, even if they end up empty. Files are
        deleted one at a time as the walk finds them. If any call fails the
        exception propagates and files deleted so far stay deleted.

        A file uploaded while this runs survives if its directory was already
        listed. Otherwise it is only safe if its hash is in entries.

        :type progress: ProgressIndicator
        """
        retain = {get_hash(entry) for entry in entries}
        progress = progress or ProgressIndicator()

        try:
            for entry in self._walk_files(progress):
                if entry.basename in retain:
                    continue
                self.logger.info("Deleting expired file {}".format(entry.path))
                self._delete_file(entry.path)
                progress.delete_progress(entry.size or 0)
        finally:
            progress.close()


class WebdavStorage(StorageBase):
    """Storage on a WebDAV server

    :param config: A StorageConfig, or a mapping of settings which is
        validated with StorageConfig.from_dict()
    :param client: The client to use. By default one is built from config.
    :type client: davstore.webdav.WebdavClient

    Building an instance never contacts the server.
    """
    def __init__(self, config, client=None, logger=None):
        super().__init__(logger)
        if not isinstance(config, StorageConfig):
            config = StorageConfig.from_dict(config)
        self.config = config
        self.base_path = config.base_path

        if client is None:
            from .webdav import WebdavClient
            client = WebdavClient(
                config.url,
                username=config.username,
                password=config.password,
                verify=not config.insecure_skip_verify,
            )
        self.client = client

    def get_params(self):
        return self.config.get_params()

    def init(self):
        if not self.client.exists(self.base_path):
            self.logger.info("Creating base path {}".format(self.base_path))
            self.client.create_directory(self.base_path, recursive=True)

    def write_file(self, path, content):
        path = self._join(path)
        parent = posixpath.dirname(path)
        if parent != self.base_path and not self.client.exists(parent):
            self.client.create_directory(parent, recursive=True)
        self.client.put_file_contents(path, content)

    def exists(self, path):
        return self.client.exists(self._join(path))

    def get_absolute_path(self, path):
        return self.client.get_file_download_link(self._join(path))

    def express(self, hash_path, request):
        """Redirects to the file on the WebDAV server

        The Location header is the direct download link. If credentials are
        configured it embeds them as user:password@host, so whoever receives
        the redirect can read them.
        """
        link = self.client.get_file_download_link(self._join(hash_path))
        # The client downloads from the WebDAV server directly, so we never
        # see how many bytes went out. Only the hit is counted.
        return HttpResponseRedirect(link), TransferStats(bytes=0, hits=1)

    def _list_directory(self, path):
        return self.client.get_directory_contents(path)

    def _delete_file(self, path):
        self.client.delete_file(path)


def _os_error_wrap(cb):
    """Re-raises OSErrors from local file operations as RemoteIOError"""

    @functools.wraps(cb)
    def _inner(*args, **kwargs):
        try:
            return cb(*args, **kwargs)
        except OSError as e:
            raise RemoteIOError(
                "{}: {}".format(e.__class__.__name__, e)
            ) from e

    return _inner


class FilesystemStorage(StorageBase):
    """A filesystem storage class with an api compatible with WebdavStorage"""

    def __init__(self, base_dir, logger=None):
        super().__init__(logger)
        self.base_dir = pathlib.Path(os.path.abspath(base_dir))
        self.base_path = str(self.base_dir)

    def get_params(self):
        return {
            'base_dir': self.base_path
        }

    def _join(self, path):
        joined = os.path.normpath(os.path.join(self.base_path, path.lstrip("/")))
        if os.path.commonpath([joined, self.base_path]) != self.base_path:
            raise ValueError("Path {!r} is outside the storage base "
                             "path".format(path))
        return joined

    @_os_error_wrap
    def init(self):
        if not self.base_dir.is_dir():
            self.logger.info("Creating base path {}".format(self.base_path))
            os.makedirs(self.base_path, exist_ok=True)

    @_os_error_wrap
    def write_file(self, path, content):
        path = self._join(path)

        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, mode="wb") as fileout:
            if hasattr(content, "read"):
                shutil.copyfileobj(content, fileout)
            else:
                fileout.write(content)

    def exists(self, path):
        return os.path.exists(self._join(path))

    def get_absolute_path(self, path):
        return pathlib.Path(self._join(path)).as_uri()

    def express(self, hash_path, request):
        path = self._join(hash_path)
        if not os.path.isfile(path):
            raise Http404("No such object")
        size = os.path.getsize(path)
        return FileResponse(open(path, "rb")), TransferStats(bytes=size, hits=1)

    @_os_error_wrap
    def _list_directory(self, path):
        entries = []
        with os.scandir(path) as it:
            for entry in it:
                # Symlinked directories are neither walked nor deleted
                if entry.is_symlink() and entry.is_dir():
                    continue
                is_dir = entry.is_dir(follow_symlinks=False)
                entries.append(RemoteEntry(
                    path=entry.path,
                    basename=entry.name,
                    is_dir=is_dir,
                    size=None if is_dir else entry.stat(follow_symlinks=False).st_size,
                ))
        return entries

    @_os_error_wrap
    def _delete_file(self, path):
        os.unlink(path)


def get_storage(data, logger=None):
    """Builds a storage backend from its settings

    :param data: A mapping of the form {"class": name, "settings": {...}}
        where name is "webdav" or "local"

    Raises ConfigError if the settings are invalid
    """
    if not isinstance(data, Mapping) or "class" not in data:
        raise ConfigError([("class", "This field is required")])

    cls_name = data["class"]
    storage_settings = data.get("settings", {})

    if cls_name == "local":
        if not isinstance(storage_settings, Mapping) or \
                not isinstance(storage_settings.get("base_dir"), str):
            raise ConfigError([("base_dir", "This field is required")])
        unknown = [
            (key, "Unknown setting") for key in storage_settings
            if key != "base_dir"
        ]
        if unknown:
            raise ConfigError(unknown)
        return FilesystemStorage(storage_settings["base_dir"], logger=logger)
    elif cls_name == "webdav":
        return WebdavStorage(storage_settings, logger=logger)

    raise ConfigError([("class", "Unknown storage class {}".format(cls_name))])


@functools.lru_cache(maxsize=None)
def get_default_storage():
    """Returns the backend configured by the DAVSTORE_STORAGE setting"""
    data = getattr(settings, "DAVSTORE_STORAGE", None)
    if data is None:
        raise ConfigError([("DAVSTORE_STORAGE", "No storage is configured")])
    return get_storage(data)


def _reset_default_storage(setting, **kwargs):
    if setting == "DAVSTORE_STORAGE":
        get_default_storage.cache_clear()


setting_changed.connect(_reset_default_storage)
