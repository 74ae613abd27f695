"""Shared fixtures for core tests."""

from __future__ import annotations

import pytest
from infracanvas.graph import Edge, GraphSnapshot, Node
from infracanvas.schema import SchemaStore


@pytest.fixture(scope="session")
def store() -> SchemaStore:
    return SchemaStore()


@pytest.fixture
def web_db_snapshot() -> GraphSnapshot:
    """An AWS web server that talks to a Postgres database."""
    return GraphSnapshot(
        provider="aws",
        nodes=[
            Node(id="web", service_id="ec2", display_name="Web Server", user_config={"instance_type": "t3.small"}),
            Node(
                id="db",
                service_id="rds",
                display_name="Orders DB",
                user_config={"engine": "postgres", "db_name": "orders"},
            ),
        ],
        edges=[Edge(source_id="db", target_id="web", relationship_label="reads")],
    )


@pytest.fixture
def gcp_storage_compute() -> GraphSnapshot:
    """One bucket and one VM on GCP; the VM depends on the bucket."""
    return GraphSnapshot(
        provider="gcp",
        nodes=[
            Node(id="bucket", service_id="storage", display_name="Assets"),
            Node(id="vm", service_id="compute", display_name="App Server"),
        ],
        edges=[Edge(source_id="bucket", target_id="vm")],
    )


@pytest.fixture
def serverless_snapshot() -> GraphSnapshot:
    """An AWS Lambda fed by an S3 bucket, wired twice."""
    return GraphSnapshot(
        provider="aws",
        nodes=[
            Node(id="logs", service_id="s3", display_name="Logs"),
            Node(id="fn", service_id="lambda", display_name="Processor", user_config={"runtime": "python3.11"}),
        ],
        edges=[
            Edge(source_id="logs", target_id="fn", relationship_label="triggers"),
            Edge(source_id="logs", target_id="fn", relationship_label="reads"),
        ],
    )
