"""DTO (Data Transfer Object) types for the AI relay API.

This package organizes DTOs by resource type:
- board: cards and the AI relay request/response payloads
"""

from api_specs.dtos.board import (
    # Board
    Card,
    # Generate clusters
    BatchInfoPayload,
    GenerateClustersRequest,
    ClusterCardPayload,
    ClusterPayload,
    GenerateClustersResponse,
    # Check duplicates
    CheckDuplicatesRequest,
    DuplicatePayload,
    CheckDuplicatesResponse,
)

__all__ = [
    "Card",
    "BatchInfoPayload",
    "GenerateClustersRequest",
    "ClusterCardPayload",
    "ClusterPayload",
    "GenerateClustersResponse",
    "CheckDuplicatesRequest",
    "DuplicatePayload",
    "CheckDuplicatesResponse",
]
