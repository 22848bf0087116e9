import json
from collections import namedtuple
from collections.abc import Mapping

ContentEntry = namedtuple("ContentEntry", ["path", "hash", "size"])
ContentEntry.__new__.__defaults__ = (None,)
ContentEntry.__doc__ = """One piece of content a caller wants stored

path is the logical path the caller knows the content by. It is not used
remotely: files in the storage backend are named by hash. size is only
informational.
"""


def get_hash(entry):
    """Returns the content hash of a manifest entry

    Entries can be ContentEntry instances, anything else with a hash
    attribute, or mappings with a "hash" key.
    """
    if isinstance(entry, Mapping):
        return entry["hash"]
    return entry.hash


class ContentManifest:
    """The set of content that should exist, keyed by hash

    This is built fresh for each reconciliation call and thrown away after.
    If two entries share a hash, the later one wins.
    """

    def __init__(self, entries=()):
        self._entries = {}
        for entry in entries:
            self._entries[get_hash(entry)] = entry

    def __contains__(self, content_hash):
        return content_hash in self._entries

    def __len__(self):
        return len(self._entries)

    def discard(self, content_hash):
        """Removes the entry for the given hash, if there is one"""
        self._entries.pop(content_hash, None)

    def remaining(self):
        """Returns a list of the entries that haven't been discarded"""
        return list(self._entries.values())


def read_manifest(fileobj):
    """Reads a manifest file

    The file is a JSON list of objects, each with "hash" and "path" keys and
    an optional "size". Returns a list of ContentEntry instances.

    Raises ValueError if the file isn't in this format
    """
    data = json.load(fileobj)
    if not isinstance(data, list):
        raise ValueError("Manifest must be a JSON list")

    entries = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError("Manifest entry {} is not an object".format(i))
        content_hash = item.get("hash")
        if not isinstance(content_hash, str) or not content_hash:
            raise ValueError("Manifest entry {} has no hash".format(i))
        size = item.get("size")
        if size is not None and (not isinstance(size, int) or size < 0):
            raise ValueError("Manifest entry {} has an invalid size".format(i))
        entries.append(ContentEntry(
            path=item.get("path", content_hash),
            hash=content_hash,
            size=size,
        ))
    return entries
