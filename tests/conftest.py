"""Pytest configuration and shared fixtures."""
import pytest

import graphmapper.config as config_module
from graphmapper import clear_type_cache, mapping_scope, reset_configuration


@pytest.fixture(autouse=True)
def reset_mapper_state():
    """Give every test a default configuration, empty caches and its own scope."""
    original_configuration = config_module.get_configuration()
    reset_configuration()

    with mapping_scope() as scope:
        yield scope

    config_module.set_configuration(original_configuration)
    clear_type_cache()


@pytest.fixture
def scope(reset_mapper_state):
    """The scope bound to the current context for this test."""
    return reset_mapper_state


@pytest.fixture
def configuration():
    """The (fresh) process-wide configuration."""
    return config_module.get_configuration()
