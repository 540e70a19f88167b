"""
Pytest fixtures and configuration for Factory Bay backend tests

Unit tests run against a MagicMock Neo4j session. Each queued result is
what one session.run() call returns, in call order; fetch_all/fetch_one
read .data() and execute() calls .consume().

Author: TM3
Date: 2025-10-17
"""
import os
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv

# Load environment variables for tests
load_dotenv()


def make_result(rows):
    result = MagicMock()
    result.data.return_value = rows
    return result


@pytest.fixture
def mock_session():
    """
    Neo4j session double

    Every query returns no rows unless results are queued with queue_results.
    """
    session = MagicMock()
    session.run.return_value = make_result([])
    return session


@pytest.fixture
def queue_results(mock_session):
    """
    Queue the rows returned by consecutive session.run() calls

    Usage:
        session = queue_results([{"count": 1}], [])
    """
    def _queue(*row_lists):
        mock_session.run.side_effect = [make_result(rows) for rows in row_lists]
        return mock_session

    return _queue


@pytest.fixture
def run_call(mock_session):
    """(query, params) of the Nth session.run() call"""
    def _call(index):
        args = mock_session.run.call_args_list[index][0]
        return args[0], args[1]

    return _call


@pytest.fixture
def filter_node():
    """Factory for CustomFilter node properties as stored in the graph"""
    def _node(filter_id, name, level=0, **extra):
        node = {
            "id": filter_id,
            "name": name,
            "slug": name.lower().replace(" ", "-"),
            "level": level,
            "isActive": True,
            "isFeatured": False,
            "createdAt": 1729123200000,
            "updatedAt": 1729123200000,
        }
        node.update(extra)
        return node

    return _node


@pytest.fixture
def sample_product_data():
    """Product node properties as stored in the graph"""
    return {
        "id": "prod-1",
        "name": "Classic Oxford Shirt",
        "description": "Slim fit cotton oxford shirt",
        "brand": "Hugo Boss",
        "category": "SHIRT",
        "gender": "MEN",
        "stockPrice": 49.99,
        "retailPrice": 89.99,
        "sku": "HB-OX-001",
        "createdAt": "2025-10-17T10:00:00+00:00",
        "updatedAt": "2025-10-17T10:00:00+00:00",
    }


@pytest.fixture
def sample_variant_data():
    return {
        "id": "var-1",
        "productId": "prod-1",
        "size": "M",
        "color": "White",
        "stockQuantity": 5,
        "images": ["http://localhost:9000/product-images/1-shirt.webp"],
    }


@pytest.fixture
def sample_shipping_address():
    return {
        "fullName": "Jane Doe",
        "addressLine1": "12 Harbour Road",
        "city": "Cape Town",
        "state": "Western Cape",
        "postalCode": "8001",
        "country": "ZA",
        "phone": "+27 21 555 0100",
    }


@pytest.fixture(scope="session")
def integration_enabled():
    """Integration tests need a live Neo4j; opt in with RUN_INTEGRATION=1"""
    if os.getenv("RUN_INTEGRATION") != "1":
        pytest.skip("RUN_INTEGRATION not set")
    return True
