import pytest

from gallery_index.core.errors import MetadataLoaderError
from gallery_index.ingest import DefaultMetadataLoader, resolve_metadata_loader

from fakes import FakeLoader


def test_default_loader(make_config) -> None:
    config = make_config()
    assert isinstance(resolve_metadata_loader(config), DefaultMetadataLoader)


@pytest.mark.parametrize("target", ["fakes:FakeLoader", "fakes:fake_loader_factory"])
def test_override_is_built_with_config(make_config, target: str) -> None:
    config = make_config(metadata_loader=target)
    loader = resolve_metadata_loader(config)
    assert isinstance(loader, FakeLoader)
    assert loader.config is config


@pytest.mark.parametrize(
    "target", ["fakes", "fakes:missing", "no_such_module_here:Loader", "fakes:not_a_loader"]
)
def test_invalid_override_raises(make_config, target: str) -> None:
    with pytest.raises(MetadataLoaderError):
        resolve_metadata_loader(make_config(metadata_loader=target))
