import hashlib
import pathlib

from django.template.defaultfilters import filesizeformat

from . import CommandError, StorageCommand


class Command(StorageCommand):
    help = "Upload files to the storage backend, named by their sha256 hash"

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument("files", nargs="+", metavar="file")

    def handle(self, args):
        storage = args.storage

        for filename in args.files:
            path = pathlib.Path(filename)
            if not path.is_file():
                raise CommandError("Not a file: {}".format(filename))

            contents = path.read_bytes()
            content_hash = hashlib.sha256(contents).hexdigest()

            if storage.exists(content_hash):
                self.print("{} is already stored".format(filename))
            else:
                storage.write_file(content_hash, contents)
                self.print("Uploaded {} ({})".format(
                    filename, filesizeformat(len(contents))
                ))
            print("{}  {}".format(content_hash, filename))
