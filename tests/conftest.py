import pytest


@pytest.fixture
def sample_records():
    return [
        {"Name": "John Doe", "Email": "john@e.com"},
        {"Name": "Jane", "Email": "jane@e.com"},
        {"Name": "John Doe", "Email": "john@e.com"},
        {"Name": "Bob", "Email": "bob@e.com"},
        {"Name": "Jane", "Email": "jane@e.com"},
    ]
