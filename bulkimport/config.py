import os
from dataclasses import dataclass

from graphext import Config as CoreConfig


def parse_truthy(maybe) -> bool:
    if isinstance(maybe, str):
        return maybe.lower().strip() in ("1", "true", "yes", "y", "t")
    try:
        return bool(maybe)
    except Exception:
        return False


@dataclass(frozen=True)
class Config(CoreConfig):
    collection_name: str = os.environ.get("COLLECTION_NAME", "Stores")
    partition_key_field: str = os.environ.get("PARTITION_KEY_FIELD", "state_code")
    number_of_documents_to_import: int = int(
        os.environ.get("NUMBER_OF_DOCUMENTS_TO_IMPORT", 1000)
    )
    batch_size: int = int(os.environ.get("BATCH_SIZE", 500))
    should_cleanup_on_start: bool = parse_truthy(
        os.environ.get("SHOULD_CLEANUP_ON_START", "false")
    )
    should_cleanup_on_finish: bool = parse_truthy(
        os.environ.get("SHOULD_CLEANUP_ON_FINISH", "false")
    )
    output_dir: str = os.environ.get("OUTPUT_DIR", ".")
