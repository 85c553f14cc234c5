"""Flatten JSON:API documents into plain dictionaries.

A wire resource looks like:

    {"id": "abc12", "type": "nodes",
     "attributes": {"title": "My Project", ...},
     "relationships": {...}, "links": {...}}

and is transformed into:

    {"id": "abc12", "type": "nodes", "title": "My Project", ...,
     "relationships": {...}, "links": {...}}

relationships and links are only present in the output if present on the
wire. Lists keep their order and pass meta and pagination links through.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)

TransformedResource = dict[str, Any]
TransformedList = dict[str, Any]

RESERVED_KEYS = ("id", "type")
OPTIONAL_MEMBERS = ("relationships", "links")


def transform_single(resource: dict[str, Any]) -> TransformedResource:
    """Transform a single JSON:API resource object.

    id and type always come from the resource itself. relationships and
    links from the wire replace attributes of the same name; each replaced
    attribute is logged.

    Args:
        resource: The resource object (the "data" member of a document)

    Returns:
        Flattened resource. The input is not modified.
    """
    attributes: dict[str, Any] = resource.get("attributes") or {}

    transformed: TransformedResource = dict(attributes)

    for key in RESERVED_KEYS:
        if key in attributes:
            logger.warning(
                f"Attribute {key!r} on {resource.get('type')}/{resource.get('id')} "
                f"collides with the resource {key} and was ignored"
            )
        transformed[key] = resource.get(key)

    for key in OPTIONAL_MEMBERS:
        if key not in resource:
            continue
        if key in attributes:
            logger.warning(
                f"Attribute {key!r} on {resource.get('type')}/{resource.get('id')} "
                f"was replaced by the resource {key}"
            )
        transformed[key] = resource[key]

    # id and type first, then attributes in wire order
    return {
        "id": transformed.pop("id"),
        "type": transformed.pop("type"),
        **transformed,
    }


def transform_list(document: dict[str, Any]) -> TransformedList:
    """Transform a JSON:API list document.

    Args:
        document: Document whose "data" member is a list of resources

    Returns:
        {"data": [...], "meta"?: ..., "links"?: ...} with each resource
        transformed in order
    """
    result: TransformedList = {
        "data": [transform_single(item) for item in document.get("data") or []],
    }

    if "meta" in document:
        result["meta"] = document["meta"]

    if "links" in document:
        result["links"] = document["links"]

    return result


def transform_document(document: dict[str, Any]) -> TransformedResource | TransformedList:
    """Transform a document holding either one resource or a list."""
    if isinstance(document.get("data"), list):
        return transform_list(document)
    return transform_single(document["data"])


def next_link(page: TransformedList) -> str | None:
    """Return the next-page URL of a transformed list, if any."""
    links = page.get("links") or {}
    next_url = links.get("next")
    return next_url or None
