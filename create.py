# create.py
import argparse
from radiocalico import create_app
from radiocalico.services.migration import copy_ratings
from radiocalico.stores import EmbeddedRatingStore


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Create the rating schema on the configured store "
                    "and optionally copy ratings in from an SQLite file."
    )
    parser.add_argument("--copy-from", metavar="SQLITE_FILE",
                        help="existing radiocalico.db to copy ratings from")
    args = parser.parse_args(argv)

    # create_app builds the store from DATABASE_TYPE and creates its schema
    app = create_app()
    store = app.extensions["rating_store"]
    print(f"Rating schema ready ({store.backend}).")

    if args.copy_from:
        source = EmbeddedRatingStore(args.copy_from)
        try:
            stats = copy_ratings(source, store)
        finally:
            source.close()
        print(f"Copied {stats['migrated']} of {stats['total']} ratings from {args.copy_from}.")

    store.close()

if __name__ == "__main__":
    main()
