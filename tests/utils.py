"""
This module holds utilities to support the unit tests
"""
import posixpath

from davstore.exceptions import RemoteIOError
from davstore.storage import RemoteEntry


class MemoryDavClient:
    """Stands in for davstore.webdav.WebdavClient, keeping the tree in memory

    Every call is recorded in self.calls as a (method name, path) tuple.
    Add a (method name, path) tuple to self.failures to make that call raise
    RemoteIOError.
    """
    def __init__(self):
        self.dirs = {"/"}
        self.files = {}
        self.calls = []
        self.failures = set()

    def _call(self, method, path):
        path = "/" + path.strip("/")
        self.calls.append((method, path))
        if (method, path) in self.failures:
            raise RemoteIOError("{} {} failed".format(method, path), 500)
        return path

    def calls_to(self, method):
        return [path for name, path in self.calls if name == method]

    def add_file(self, path, data=b""):
        """Puts a file in the tree directly, creating parents as needed"""
        self.add_dir(posixpath.dirname(path))
        self.files[path] = data

    def add_dir(self, path):
        while path not in self.dirs:
            self.dirs.add(path)
            path = posixpath.dirname(path)

    def exists(self, path):
        path = self._call("exists", path)
        return path in self.dirs or path in self.files

    def create_directory(self, path, recursive=False):
        path = self._call("create_directory", path)
        parent = posixpath.dirname(path)
        if parent not in self.dirs and not recursive:
            raise RemoteIOError("MKCOL {} returned 409".format(path), 409)
        while path not in self.dirs:
            self.dirs.add(path)
            path = posixpath.dirname(path)

    def get_directory_contents(self, path):
        path = self._call("get_directory_contents", path)
        if path not in self.dirs:
            raise RemoteIOError("PROPFIND {} returned 404".format(path), 404)
        entries = [
            RemoteEntry(d, posixpath.basename(d), True, None)
            for d in self.dirs if d != path and posixpath.dirname(d) == path
        ]
        entries.extend(
            RemoteEntry(f, posixpath.basename(f), False, len(data))
            for f, data in self.files.items() if posixpath.dirname(f) == path
        )
        return entries

    def put_file_contents(self, path, data):
        path = self._call("put_file_contents", path)
        if posixpath.dirname(path) not in self.dirs:
            raise RemoteIOError("PUT {} returned 409".format(path), 409)
        if hasattr(data, "read"):
            data = data.read()
        self.files[path] = bytes(data)

    def get_file_contents(self, path):
        path = self._call("get_file_contents", path)
        try:
            return self.files[path]
        except KeyError:
            raise RemoteIOError("GET {} returned 404".format(path), 404)

    def delete_file(self, path):
        path = self._call("delete_file", path)
        if path not in self.files:
            raise RemoteIOError("DELETE {} returned 404".format(path), 404)
        del self.files[path]

    def get_file_download_link(self, path):
        path = self._call("get_file_download_link", path)
        return "https://dav.example.com/dav" + path


class RecordingProgress:
    """A ProgressIndicator that counts its callbacks"""
    def __init__(self):
        self.listed = 0
        self.deleted = []
        self.closed = False

    def list_progress(self):
        self.listed += 1

    def delete_progress(self, s):
        self.deleted.append(s)

    def close(self):
        self.closed = True
