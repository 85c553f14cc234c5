"""Tests for JSON:API flattening."""

import copy
import logging

import pytest

from conftest import wire_page, wire_resource
from osf_client.adapter import next_link, transform_document, transform_list, transform_single


class TestTransformSingle:
    """Tests for flattening a single resource."""

    def test_flattens_attributes(self):
        result = transform_single(wire_resource("abc12", title="My Project", public=False))

        assert result["id"] == "abc12"
        assert result["type"] == "nodes"
        assert result["title"] == "My Project"
        assert result["public"] is False
        assert "attributes" not in result

    def test_keeps_relationships_and_links(self):
        resource = wire_resource("abc12", title="My Project")
        result = transform_single(resource)

        assert result["relationships"] == resource["relationships"]
        assert result["links"] == {"self": "https://api.osf.io/v2/nodes/abc12/"}

    def test_absent_members_not_materialized(self):
        result = transform_single({"id": "abc12", "type": "nodes", "attributes": {"title": "T"}})

        assert result == {"id": "abc12", "type": "nodes", "title": "T"}
        assert "relationships" not in result
        assert "links" not in result

    def test_missing_attributes(self):
        assert transform_single({"id": "u1", "type": "users"}) == {"id": "u1", "type": "users"}

    def test_id_and_type_come_first(self):
        result = transform_single(wire_resource("abc12", title="T", category="project"))
        assert list(result)[:4] == ["id", "type", "title", "category"]

    def test_does_not_mutate_input(self):
        resource = wire_resource("abc12", title="T", tags=["a", "b"])
        original = copy.deepcopy(resource)

        transform_single(resource)

        assert resource == original

    def test_reserved_attribute_collision(self, caplog):
        resource = {"id": "abc12", "type": "nodes", "attributes": {"id": "other", "type": "x"}}

        with caplog.at_level(logging.WARNING, logger="osf_client.adapter"):
            result = transform_single(resource)

        assert result["id"] == "abc12"
        assert result["type"] == "nodes"
        assert "collides" in caplog.text

    def test_links_attribute_replaced_by_wire_links(self, caplog):
        resource = {
            "id": "f1",
            "type": "files",
            "attributes": {"links": "attribute-value"},
            "links": {"upload": "https://files.osf.io/v1/x"},
        }

        with caplog.at_level(logging.WARNING, logger="osf_client.adapter"):
            result = transform_single(resource)

        assert result["links"] == {"upload": "https://files.osf.io/v1/x"}
        assert "replaced" in caplog.text

    def test_attribute_kept_when_wire_member_absent(self):
        resource = {"id": "f1", "type": "files", "attributes": {"links": "attribute-value"}}
        assert transform_single(resource)["links"] == "attribute-value"


class TestTransformList:
    """Tests for flattening list documents."""

    def test_two_items_with_meta(self):
        result = transform_list(wire_page(["n1", "n2"], total=2))

        assert [item["id"] for item in result["data"]] == ["n1", "n2"]
        assert result["meta"]["total"] == 2
        assert all("relationships" in item for item in result["data"])

    def test_preserves_order(self):
        ids = [f"n{i}" for i in range(10)]
        result = transform_list(wire_page(ids))
        assert [item["id"] for item in result["data"]] == ids

    def test_passes_links_through(self):
        result = transform_list(wire_page(["n1"], next_url="https://api.osf.io/v2/nodes/?page=2"))
        assert result["links"]["next"] == "https://api.osf.io/v2/nodes/?page=2"

    def test_meta_and_links_only_when_present(self):
        result = transform_list({"data": [wire_resource("n1")]})
        assert set(result) == {"data"}

    def test_empty_list(self):
        assert transform_list({"data": []}) == {"data": []}


class TestTransformDocument:
    def test_single(self):
        result = transform_document({"data": wire_resource("abc12", title="T")})
        assert result["id"] == "abc12"

    def test_list(self):
        result = transform_document(wire_page(["n1", "n2"]))
        assert len(result["data"]) == 2


class TestNextLink:
    @pytest.mark.parametrize(
        "page,expected",
        [
            ({"data": []}, None),
            ({"data": [], "links": {}}, None),
            ({"data": [], "links": {"next": None}}, None),
            ({"data": [], "links": {"next": ""}}, None),
            ({"data": [], "links": {"next": "https://api.osf.io/v2/nodes/?page=2"}}, "https://api.osf.io/v2/nodes/?page=2"),
        ],
    )
    def test_next_link(self, page, expected):
        assert next_link(page) == expected
