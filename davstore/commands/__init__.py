import abc
import json
from argparse import ArgumentTypeError
import os.path
import logging

from ..exceptions import ConfigError


class CommandError(Exception):
    pass


class CommandBase(metaclass=abc.ABCMeta):

    help = ""
    logger = logging.getLogger("davstore.cmd")

    def __init__(self):
        pass

    def add_arguments(self, parser):
        pass

    @abc.abstractmethod
    def handle(self, args):
        pass

    def print(self, s):
        self.logger.info(s)

def _storage_type(filename):
    if not os.path.exists(filename):
        raise ArgumentTypeError("Storage settings file {} does not "
                                "exist".format(filename))
    try:
        with open(filename, encoding="utf-8") as f:
            data = json.load(f)
    except ValueError as e:
        raise ArgumentTypeError("Invalid JSON in {}: {}".format(filename, e))

    from davstore.storage import get_storage
    try:
        return get_storage(data)
    except ConfigError as e:
        raise ArgumentTypeError(str(e))

def _manifest_type(filename):
    from davstore.manifest import read_manifest
    try:
        with open(filename, encoding="utf-8") as f:
            return read_manifest(f)
    except OSError as e:
        raise ArgumentTypeError("Can't read manifest {}: {}".format(filename, e))
    except ValueError as e:
        raise ArgumentTypeError("Invalid manifest {}: {}".format(filename, e))


class StorageCommand(CommandBase):

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument("storage", type=_storage_type,
                            help="Storage settings file")


class ManifestCommand(StorageCommand):

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument("manifest", type=_manifest_type,
                            help="JSON manifest of the content to keep")


def input_yn(prompt, default=None):
    if default is None:
        prompt += " [y/n]: "
    elif default:
        prompt += " [Y/n]: "
    else:
        prompt += " [y/N]: "

    while True:
        response = input(prompt)

        if not response and default is not None:
            return default

        response = response.lower()
        if response not in ("y", "n"):
            print("Please type 'y' or 'n'")
        else:
            return response == 'y'
