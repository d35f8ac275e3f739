import logging
import sys

import pytest
import pytest_asyncio

from org_directory.core.graph_client import GraphClient

# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)
logger.info("Test logging configured: level=DEBUG")

GRAPH_TEST_ROOT = "https://graph.test/v1.0"


async def static_token():
    return "test-token"


@pytest_asyncio.fixture
async def graph_client():
    """指向 mock 域名的 GraphClient，固定返回测试 token"""
    client = GraphClient(base_url=GRAPH_TEST_ROOT, token_provider=static_token)
    yield client
    await client.close()


@pytest.fixture(autouse=True)
def log_test_start(request):
    """Log test start and end for each test."""
    logger.info("=" * 80)
    logger.info("Starting test: %s", request.node.name)
    yield
    logger.info("Completed test: %s", request.node.name)
    logger.info("=" * 80)
