# flake8: noqa
from .config import Config
from .db import Database
from .executor import (
    BulkExecutor,
    BulkImportResponse,
    CancellationToken,
    GraphBulkExecutor,
)
from .importer import ImportSummary, run
