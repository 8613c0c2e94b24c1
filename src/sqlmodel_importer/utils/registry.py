"""Resolve importer classes from "package.module:ClassName" paths."""

import importlib
import logging

from sqlmodel_importer.base.loaders.importer import BaseImporter
from sqlmodel_importer.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def load_importer(path: str) -> type[BaseImporter]:
    """Import and return the importer class named by path.

    Args:
        path: "package.module:ClassName"

    Returns:
        BaseImporter subclass

    Raises:
        ConfigurationError: If the path is malformed, the module cannot be
            imported, or the attribute is not an importer class
    """
    module_name, sep, class_name = path.partition(":")
    if not sep or not module_name or not class_name:
        raise ConfigurationError(f"Importer path must look like 'package.module:ClassName', got '{path}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Could not import {module_name}: {e}") from e

    importer_class = getattr(module, class_name, None)
    if not (isinstance(importer_class, type) and issubclass(importer_class, BaseImporter)):
        raise ConfigurationError(f"{path} is not a BaseImporter subclass")

    logger.debug(f"Loaded importer {path}")
    return importer_class
