import pytest

from config.settings import Settings
from services.halacious import Halacious


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def halacious(settings):
    return Halacious(settings)


@pytest.fixture
def factory(halacious):
    return halacious.factory()


@pytest.fixture
def mycompany(halacious):
    namespace = halacious.add_namespace({"name": "mycompany", "prefix": "mco"})
    halacious.add_rel("mycompany", "boss")
    return namespace
