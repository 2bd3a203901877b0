import pytest

from chessgraph.repertoire import RepertoireStore
from chessgraph.tests import FakePersister


@pytest.fixture()
def store():
    return RepertoireStore.create("Test Repertoire", side="white")


@pytest.fixture()
def persister():
    return FakePersister()


@pytest.fixture()
def persisted_store(persister):
    store = RepertoireStore.create("Persisted", side="black", persister=persister)
    persister.stored[store.root_node_id] = store.root
    return store
