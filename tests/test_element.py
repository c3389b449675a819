from graphext import GremlinEdge, GremlinVertex, GremlinVertexProperty


def test_vertex_properties():
    vertex = GremlinVertex(id="1", label="Store")
    vertex.add_property("partitionKey", "TX")
    vertex.add_property("tag", "a")
    vertex.add_property("tag", "b")

    assert vertex.partition_key == "TX"
    assert [p.value for p in vertex.get_vertex_properties("tag")] == ["a", "b"]
    assert len(list(vertex.get_vertex_properties())) == 3
    assert list(vertex.get_vertex_properties("missing")) == []


def test_vertex_without_partition_key():
    assert GremlinVertex(id="1", label="Store").partition_key is None


def test_vertex_serialization():
    vertex = GremlinVertex(
        id="1",
        label="Store",
        properties=[GremlinVertexProperty(key="partitionKey", value="TX")],
    )
    assert vertex.to_dict() == {
        "id": "1",
        "label": "Store",
        "properties": [{"key": "partitionKey", "value": "TX"}],
    }
    assert GremlinVertex.schema().load(vertex.to_dict()) == vertex


def test_edge_serialization():
    edge = GremlinEdge(
        id="e1",
        label="next",
        out_vertex_id="1",
        out_vertex_label="Store",
        in_vertex_id="2",
        in_vertex_label="Store",
        out_vertex_partition_key="TX",
        in_vertex_partition_key="OK",
    )
    edge.add_property("order", 0)

    assert edge.partition_key == "TX"
    assert str(edge) == "(1)-[next]->(2)"
    assert edge.to_dict() == {
        "id": "e1",
        "label": "next",
        "outVertexId": "1",
        "outVertexLabel": "Store",
        "inVertexId": "2",
        "inVertexLabel": "Store",
        "outVertexPartitionKey": "TX",
        "inVertexPartitionKey": "OK",
        "properties": {"order": 0},
    }
    assert GremlinEdge.schema().load(edge.to_dict()) == edge
