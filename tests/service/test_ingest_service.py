"""
Service-level test for the ingestion pipeline.

Runs whole uploads through the pipeline against a real Neo4j (Testcontainers)
and checks the observable outcome: nodes and relationships in the graph, files
in permanent storage, and an emptied upload directory.
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

pytest.importorskip("testcontainers.neo4j", reason="testcontainers is required for service tests")

from testcontainers.neo4j import Neo4jContainer

from conftest import paper_descriptor, write_upload
from librarian.ingest.pipeline import IngestPipeline
from librarian.utils.neo4j_client import Neo4jClient

pytestmark = pytest.mark.service


@pytest.fixture(scope="module")
def neo4j_client():
    with Neo4jContainer("neo4j:5.14-community") as neo4j:
        client = Neo4jClient(
            uri=neo4j.get_connection_url(),
            user=neo4j.username,
            password=neo4j.password,
        )
        client.ensure_schema()
        yield client
        client.close()


@pytest.fixture(autouse=True)
def empty_graph(neo4j_client):
    with neo4j_client.session() as session:
        session.run("MATCH (n) DETACH DELETE n").consume()


def count(client, label):
    with client.session() as session:
        return session.run(f"MATCH (n:{label}) RETURN count(n) AS c").single()["c"]


def test_paper_upload_is_recorded_and_stored(settings, neo4j_client):
    path = write_upload(settings.input_dir / "paper-50", paper_descriptor())

    result = IngestPipeline(settings, neo4j_client).ingest(path)

    assert result is not None
    with neo4j_client.session() as session:
        record = session.run(
            """
            MATCH (b:Build)-[:BUILD_OF]->(v:Version)-[:IN_GROUP]->(g:VersionGroup)-[:PART_OF]->(p:Project)
            RETURN p, g, v, b
            """
        ).single()

    assert record is not None, "Build hierarchy was not created"
    assert record["p"]["name"] == "paper"
    assert record["p"]["friendlyName"] == "Paper"
    assert record["g"]["name"] == "1.19"
    assert record["v"]["name"] == "1.19.4"
    assert record["b"]["number"] == 50
    assert record["b"]["promoted"] is False
    assert record["b"]["channel"] == "DEFAULT"
    assert record["b"]["id"] == result.build.id
    assert json.loads(record["b"]["downloads"]) == {"server": {"name": "paper-50.jar", "checksum": "abc"}}

    assert (settings.storage_dir / "paper" / "1.19.4" / "50" / "paper-50.jar").exists()
    assert not (settings.input_dir / "paper-50").exists()


def test_reingest_and_second_version(settings, neo4j_client):
    pipeline = IngestPipeline(settings, neo4j_client)

    pipeline.ingest(write_upload(settings.input_dir / "a", paper_descriptor()))
    pipeline.ingest(write_upload(settings.input_dir / "b", paper_descriptor()))
    pipeline.ingest(write_upload(settings.input_dir / "c", paper_descriptor(version="1.19.3", number=12)))

    assert count(neo4j_client, "Project") == 1
    assert count(neo4j_client, "VersionGroup") == 1
    assert count(neo4j_client, "Version") == 2
    assert count(neo4j_client, "Build") == 3


def test_missing_download_leaves_no_build(settings, neo4j_client):
    descriptor = paper_descriptor(downloads={"server": {"name": "missing.jar", "checksum": "abc"}})
    path = write_upload(settings.input_dir / "broken", descriptor, artifacts=[])

    assert IngestPipeline(settings, neo4j_client).ingest(path) is None

    assert count(neo4j_client, "Build") == 0
    assert path.exists()


def test_concurrent_uploads_share_one_hierarchy(settings, neo4j_client):
    uploads = 8
    pipeline = IngestPipeline(settings, neo4j_client)
    paths = [
        write_upload(settings.input_dir / f"copy-{i}", paper_descriptor())
        for i in range(uploads)
    ]

    with ThreadPoolExecutor(max_workers=uploads) as executor:
        results = list(executor.map(pipeline.ingest, paths))

    assert all(result is not None for result in results)
    assert count(neo4j_client, "Project") == 1
    assert count(neo4j_client, "VersionGroup") == 1
    assert count(neo4j_client, "Version") == 1
    assert count(neo4j_client, "Build") == uploads
    assert len({result.hierarchy.version.id for result in results}) == 1
