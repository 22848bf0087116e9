from . import StorageCommand


class Command(StorageCommand):
    help = "Create the base path in the storage backend if it's missing"

    def handle(self, args):
        args.storage.init()
        print("Storage initialized")
