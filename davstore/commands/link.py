from . import CommandError, StorageCommand


class Command(StorageCommand):
    help = "Print a direct download link for a stored file"

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument("path", help="Path relative to the base path")

    def handle(self, args):
        try:
            print(args.storage.get_absolute_path(args.path))
        except ValueError as e:
            raise CommandError(str(e))
