"""Unit tests for importer path resolution."""

import sys
import types

import pytest

from sqlmodel_importer.exceptions import ConfigurationError
from sqlmodel_importer.utils.registry import load_importer
from tests.fixtures.models import CustomerImporter


class TestLoadImporter:
    """Test load_importer"""

    def test_loads_importer_class(self):
        assert load_importer("tests.fixtures.models:CustomerImporter") is CustomerImporter

    def test_loads_from_registered_module(self, monkeypatch):
        module = types.ModuleType("shop_importers")
        module.Customers = CustomerImporter
        monkeypatch.setitem(sys.modules, "shop_importers", module)

        assert load_importer("shop_importers:Customers") is CustomerImporter

    @pytest.mark.parametrize("path", ["tests.fixtures.models", "tests.fixtures.models:", ":CustomerImporter"])
    def test_malformed_paths(self, path):
        with pytest.raises(ConfigurationError, match="package.module:ClassName"):
            load_importer(path)

    def test_missing_module(self):
        with pytest.raises(ConfigurationError, match="Could not import"):
            load_importer("tests.fixtures.no_such_module:Importer")

    def test_attribute_is_not_an_importer(self):
        with pytest.raises(ConfigurationError, match="not a BaseImporter subclass"):
            load_importer("tests.fixtures.models:Customer")

    def test_missing_attribute(self):
        with pytest.raises(ConfigurationError):
            load_importer("tests.fixtures.models:Nothing")
