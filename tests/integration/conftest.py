import pytest

from enhancer.storage import InMemoryDocumentStore

from tests.integration.stubs import make_document


@pytest.fixture
def store():
    return InMemoryDocumentStore([make_document()])
