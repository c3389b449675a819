import argparse
import dataclasses
import sys

from .config import Config, parse_truthy
from .importer import run
from .logging import configure_logging


def positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"{value} is not a positive integer")
    return n


parser = argparse.ArgumentParser(description="Neo4j graph bulk importer")
parser.add_argument(
    "--endpoint",
    dest="neo4j_url",
    type=str,
    help="Bolt URL of the database. Can be overridden by NEO4J_BOLT_URL",
)
parser.add_argument("--user", dest="neo4j_user", type=str)
parser.add_argument("--password", dest="neo4j_password", type=str)
parser.add_argument("--database", dest="neo4j_database", type=str)
parser.add_argument(
    "--collection", dest="collection_name", type=str, help="The label to import into"
)
parser.add_argument(
    "--partition-key-field",
    type=str,
    help="The store field used as the partition key of every vertex",
)
parser.add_argument(
    "--records",
    "-n",
    dest="number_of_documents_to_import",
    type=int,
    help="The number of stores to generate",
)
parser.add_argument(
    "--batch-size", type=positive_int, help="Rows per write statement"
)
parser.add_argument(
    "--cleanup-on-start",
    dest="should_cleanup_on_start",
    action="store",
    help="If true, delete and recreate the collection before importing",
)
parser.add_argument(
    "--cleanup-on-finish",
    dest="should_cleanup_on_finish",
    action="store",
    help="If true, delete the collection after importing",
)
parser.add_argument(
    "--output-dir", type=str, help="Where rejected documents and statistics go"
)
parser.add_argument(
    "--statistics",
    default=False,
    action="store",
    help="Produce import statistics, writing the output to `statistics.json`",
)
parser.add_argument("--seed", type=int, help="Seed for the store generator")
parser.add_argument("--log-level", type=str)

BOOLEAN_OVERRIDES = ("should_cleanup_on_start", "should_cleanup_on_finish")


def config_from_args(args: argparse.Namespace, config: Config) -> Config:
    """
    Override `config` with every setting given on the command line.
    """
    overrides = {}
    for f in dataclasses.fields(config):
        value = getattr(args, f.name, None)
        if value is None:
            continue
        overrides[f.name] = parse_truthy(value) if f.name in BOOLEAN_OVERRIDES else value
    return dataclasses.replace(config, **overrides)


def main(argv=None) -> int:
    args = parser.parse_args(argv)
    config = config_from_args(args, Config())

    configure_logging(args.log_level, config=config)

    summary = run(
        config=config, statistics=parse_truthy(args.statistics), seed=args.seed
    )
    return 0 if summary is not None else 1


if __name__ == "__main__":
    sys.exit(main())
