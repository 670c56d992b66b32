"""
Shared fixtures for the RowModel test suite.
"""

import pytest

from rowmodel import ApplicationConfig, Environment, MemoryRepo, get_memory_persistence, set_config

from sample_entities import Country, Invoice, Name, Payment, seed_categories


@pytest.fixture(autouse=True)
def testing_config():
    """Fresh testing configuration and an empty shared repository for every test"""
    config = ApplicationConfig.for_environment(Environment.TESTING)
    set_config(config)
    get_memory_persistence().clear()
    yield config
    set_config(None)
    get_memory_persistence().clear()


@pytest.fixture
def repo():
    return MemoryRepo()


@pytest.fixture
def payment(repo):
    return Payment(backend=repo)


@pytest.fixture
def country(repo):
    return Country(backend=repo)


@pytest.fixture
def invoice(repo):
    return Invoice(backend=repo)


@pytest.fixture
def name(repo):
    """Name entity with categories {1: "Visa", 2: "MasterCard"} and no links"""
    entity = Name(backend=repo)
    seed_categories(entity)
    return entity
