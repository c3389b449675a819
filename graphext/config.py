import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    neo4j_url: str = os.environ.get("NEO4J_BOLT_URL", "bolt://localhost:7687")
    neo4j_user: str = os.environ.get("NEO4J_BOLT_USER", "neo4j")
    neo4j_password: str = os.environ.get("NEO4J_BOLT_PASSWORD", "blackandwhite")
    neo4j_max_connection_lifetime: int = int(
        os.environ.get("NEO4J_MAX_CONNECTION_LIFETIME", 300)
    )
    neo4j_database: str = os.environ.get("NEO4J_DATABASE", "neo4j")
    log_level = os.environ.get("LOG_LEVEL")
    environment = os.environ.get("ENVIRONMENT", "dev")
    service_name = os.environ.get("SERVICE_NAME", "graph-bulk-import")
