from davstore import main

main.setup()
