"""
This is a small WebDAV client covering just the calls our storage backend
needs: existence checks, creating directories, listing directories, and
reading, writing and deleting files.

Paths given to the client are absolute paths on the server relative to the
endpoint URL, e.g. with an endpoint of https://dav.example.com/dav the path
"/backups/ab/abcd" names https://dav.example.com/dav/backups/ab/abcd

Nothing in here retries. A failed call raises RemoteIOError and it's up to
the caller to decide whether to try again.

Listing a directory is a single PROPFIND with Depth: 1, so walking a tree
costs one request per directory. Servers that refuse Depth: infinity (most
of them) are fine with this.
"""
import posixpath
import threading
import urllib.parse
from logging import getLogger
from xml.etree import ElementTree

import requests
import requests.exceptions

from .exceptions import RemoteIOError
from .storage import RemoteEntry

logger = getLogger("davstore.webdav")

extra_headers = {
    'User-Agent': 'davstore/Python3',
}

# Timeout used in HTTP calls
TIMEOUT = 30

DAV = "{DAV:}"

# Only ask for the properties we read. Some servers are slow to compute the
# full allprop set (quotas in particular).
PROPFIND_BODY = (
    b'<?xml version="1.0" encoding="utf-8"?>'
    b'<d:propfind xmlns:d="DAV:">'
    b'<d:prop><d:resourcetype/><d:getcontentlength/></d:prop>'
    b'</d:propfind>'
)


class WebdavClient:
    """A connection to a WebDAV endpoint

    This object should be thread safe, as it keeps a thread-local
    requests.Session object for API calls.

    :param url: The endpoint URL
    :param username: Basic auth username, or None for no authentication
    :param password: Basic auth password
    :param verify: Whether to verify the server's TLS certificate. Passing
        False accepts any certificate.
    """
    def __init__(self, url, username=None, password=None, verify=True):
        self.url = url.rstrip("/")
        self.username = username
        self.password = password
        self.verify = verify
        self.root_path = urllib.parse.unquote(
            urllib.parse.urlsplit(self.url).path
        ).rstrip("/")

        self._local = threading.local()

        if not verify:
            logger.warning("TLS certificate verification is disabled for "
                           "{}".format(self.url))

    @property
    def session(self):
        try:
            return self._local.session
        except AttributeError:
            logger.debug("Initializing session for thread id {}".format(
                threading.get_ident()
            ))
            session = requests.Session()
            session.headers.update(extra_headers)
            session.verify = self.verify
            if self.username is not None:
                session.auth = (self.username, self.password or "")
            self._local.session = session
            return session

    def _url(self, path):
        return self.url + urllib.parse.quote("/" + path.lstrip("/"))

    def _request(self, method, path, expected, **kwargs):
        """Issues one request and checks the response status

        Raises RemoteIOError if the request fails or returns a status code
        not in expected
        """
        if "timeout" not in kwargs:
            kwargs['timeout'] = TIMEOUT

        try:
            response = self.session.request(method, self._url(path), **kwargs)
        except requests.exceptions.RequestException as e:
            raise RemoteIOError("{} {} failed: {}".format(method, path, e)) from e

        logger.debug("{} {} {} {:.2f}s".format(
            method,
            path,
            response.status_code,
            response.elapsed.total_seconds(),
        ))

        if response.status_code not in expected:
            raise RemoteIOError(
                "{} {} returned {} {}".format(
                    method, path, response.status_code, response.reason or "",
                ).rstrip(),
                status_code=response.status_code,
            )
        return response

    def _propfind(self, path, depth, expected):
        return self._request(
            "PROPFIND",
            path,
            expected,
            headers={
                'Depth': str(depth),
                'Content-Type': 'application/xml; charset="utf-8"',
            },
            data=PROPFIND_BODY,
        )

    def exists(self, path):
        """Returns whether a file or directory exists at the given path"""
        response = self._propfind(path, 0, expected=(200, 207, 404))
        return response.status_code != 404

    def create_directory(self, path, recursive=False):
        """Creates a directory

        With recursive=True, any missing parent directories are created
        first and a directory that already exists is not an error.
        Otherwise the parent must already exist.
        """
        if not recursive:
            self._request("MKCOL", path, expected=(201,))
            return

        current = ""
        for segment in path.strip("/").split("/"):
            if not segment:
                continue
            current += "/" + segment
            if not self.exists(current):
                # 405 means another client created it since the check
                self._request("MKCOL", current, expected=(201, 405))

    def get_directory_contents(self, path):
        """Lists the direct children of the given directory

        :returns: a list of RemoteEntry tuples. The directory itself is not
            included.
        """
        response = self._propfind(path, 1, expected=(207,))

        try:
            root = ElementTree.fromstring(response.content)
        except ElementTree.ParseError as e:
            raise RemoteIOError(
                "Invalid PROPFIND response for {}: {}".format(path, e)
            ) from e

        own_path = "/" + path.strip("/")
        if own_path != "/":
            own_path = own_path.rstrip("/")

        entries = []
        for item in root.iter(DAV + "response"):
            href = item.findtext(DAV + "href")
            if not href:
                continue
            entry_path = self._href_to_path(href)
            if entry_path == own_path:
                continue

            is_dir = False
            size = None
            for prop in item.iter(DAV + "prop"):
                if prop.find(DAV + "resourcetype/" + DAV + "collection") is not None:
                    is_dir = True
                length = prop.findtext(DAV + "getcontentlength")
                if length:
                    try:
                        size = int(length)
                    except ValueError:
                        pass

            entries.append(RemoteEntry(
                path=entry_path,
                basename=posixpath.basename(entry_path),
                is_dir=is_dir,
                size=size,
            ))
        return entries

    def _href_to_path(self, href):
        """Turns an href from a multistatus response into a client path

        Servers may send either full URLs or absolute paths, percent-encoded,
        and collections usually carry a trailing slash.
        """
        path = urllib.parse.unquote(urllib.parse.urlsplit(href).path)
        path = path.rstrip("/")
        if self.root_path and (
                path == self.root_path or path.startswith(self.root_path + "/")
        ):
            path = path[len(self.root_path):]
        return path or "/"

    def put_file_contents(self, path, data):
        """Uploads data to the given path, replacing any existing file

        :param data: bytes, or a file-like object open for reading in
            binary mode
        """
        self._request("PUT", path, expected=(200, 201, 204), data=data)

    def get_file_contents(self, path):
        """Downloads a file and returns its contents as bytes"""
        response = self._request("GET", path, expected=(200,))
        return response.content

    def delete_file(self, path):
        self._request("DELETE", path, expected=(200, 204))

    def get_file_download_link(self, path):
        """Returns a URL that downloads the file directly

        If credentials are configured they are embedded in the URL, so treat
        the result as a secret.
        """
        parts = urllib.parse.urlsplit(self._url(path))
        if self.username is not None:
            netloc = "{}:{}@{}".format(
                urllib.parse.quote(self.username, safe=""),
                urllib.parse.quote(self.password or "", safe=""),
                parts.netloc.rpartition("@")[2],
            )
            parts = parts._replace(netloc=netloc)
        return urllib.parse.urlunsplit(parts)
