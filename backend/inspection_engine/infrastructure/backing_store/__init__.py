from .http_client import BackingStoreClient, expect_record, parse_field_errors, unwrap_list
from .inspection_repository import HttpInspectionRepository
from .reference_repositories import HttpBroadcasterRepository, HttpProgramRepository

__all__ = [
    "BackingStoreClient",
    "expect_record",
    "parse_field_errors",
    "unwrap_list",
    "HttpInspectionRepository",
    "HttpBroadcasterRepository",
    "HttpProgramRepository",
]
