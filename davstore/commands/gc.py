import tqdm
from django.template.defaultfilters import filesizeformat

from . import ManifestCommand, input_yn
from .. import storage


class Command(ManifestCommand):
    help = "Delete stored files that aren't in the manifest"

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument("--yes", action="store_true",
                            help="Don't ask for confirmation")

    def handle(self, args):
        if not args.yes and not input_yn(
                "Delete every stored file not among the {} manifest "
                "entries?".format(len(args.manifest)),
                default=False):
            print("Canceled")
            return

        list_progress = tqdm.tqdm(
            desc="Listing directories", unit=" dirs", position=None
        )
        delete_progress = tqdm.tqdm(
            desc="Deleting garbage", unit=" files", position=None
        )
        num_deleted = 0
        size_recovered = 0

        class ProgressIndicator(storage.ProgressIndicator):
            def list_progress(self):
                list_progress.update(1)

            def delete_progress(self, s):
                nonlocal num_deleted, size_recovered
                num_deleted += 1
                size_recovered += s
                delete_progress.update(1)

            def close(self):
                list_progress.close()
                delete_progress.close()

        args.storage.gc(args.manifest, progress=ProgressIndicator())

        print()
        print("Deleted {} files of garbage".format(num_deleted))
        print("Recovered {} of storage space".format(filesizeformat(size_recovered)))
