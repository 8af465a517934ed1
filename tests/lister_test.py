"""Test listing repositories and tags."""

import re

import pytest
from support.registry import FakeRegistry

from registry_images.exceptions import (
    CatalogUnavailableError,
    TagListUnavailableError,
)
from registry_images.factory import Factory


def test_list_images(factory: Factory) -> None:
    """Digest-form tags are hidden unless asked for."""
    images = factory.create_image_lister().list_images()
    assert [x.to_dict() for x in images] == [
        {"name": "demo", "tags": ["a", "b", "c"]},
        {"name": "team/app", "tags": ["v1"]},
    ]


def test_list_images_include_digests(factory: Factory) -> None:
    lister = factory.create_image_lister()
    images = lister.list_images("app", include_digests=True)
    assert len(images) == 1
    assert images[0].tags == ["v1", "sha256-abcdef"]


def test_list_images_filter(factory: Factory, registry: FakeRegistry) -> None:
    images = factory.create_image_lister().list_images("^demo$")
    assert [x.name for x in images] == ["demo"]
    assert registry.calls("GET") == [
        "/v2/_catalog",
        "/v2/demo/tags/list",
    ]


def test_list_images_filter_stripped(
    factory: Factory, registry: FakeRegistry
) -> None:
    """Leading slashes are stripped before matching and tag listing."""
    registry.catalog_prefix = "/"
    images = factory.create_image_lister().list_images("^team/app")
    assert [x.name for x in images] == ["team/app"]
    assert registry.calls("GET", "/v2/team/app/tags/list") == [
        "/v2/team/app/tags/list"
    ]


def test_list_images_no_match(factory: Factory) -> None:
    assert factory.create_image_lister().list_images("nothing-here") == []


def test_list_images_bad_filter(
    factory: Factory, registry: FakeRegistry
) -> None:
    with pytest.raises(re.error):
        factory.create_image_lister().list_images("[unclosed")
    assert registry.requests == []


def test_list_images_catalog_error(
    factory: Factory, registry: FakeRegistry
) -> None:
    registry.catalog_status = 503
    with pytest.raises(CatalogUnavailableError) as excinfo:
        factory.create_image_lister().list_images()
    assert excinfo.value.status == 503
    assert excinfo.value.status_text == "Service Unavailable"


def test_list_images_tags_error(
    factory: Factory, registry: FakeRegistry
) -> None:
    """Listing has no partial success: one bad repository fails it all."""
    registry.tags_status = 500
    with pytest.raises(TagListUnavailableError, match="demo"):
        factory.create_image_lister().list_images()
    assert len(registry.calls("GET")) == 2
