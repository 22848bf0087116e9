import sys

from . import ManifestCommand


class Command(ManifestCommand):
    help = "List manifest entries whose content is not in storage"

    def handle(self, args):
        missing = args.storage.get_missing_files(args.manifest)

        for entry in sorted(missing, key=lambda e: e.path):
            print("{}  {}".format(entry.hash, entry.path))

        if missing:
            self.print("{} of {} entries missing".format(
                len(missing), len(args.manifest)
            ))
            sys.exit(1)
