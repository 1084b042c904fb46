# ============================================================================
# neuraltree test fixtures
# ============================================================================
# Shared pytest fixtures and constants for the tree test suite.
# ============================================================================

import sys
from pathlib import Path

import pytest
import torch

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from neuraltree.builder import build_binary_tree  # noqa: E402

INPUT_SIZE = 4
HIDDEN_SIZE = 8
CLASS_COUNT = 3
TEST_SEED = 42


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Every test starts from the same RNG state."""
    torch.manual_seed(TEST_SEED)
    yield


@pytest.fixture
def sample_input() -> torch.Tensor:
    return torch.tensor([0.1, -0.2, 0.3, 0.05])


@pytest.fixture
def binary_tree():
    """Depth-2 binary tree: 3 branch nodes, 4 leaves."""
    return build_binary_tree(2, INPUT_SIZE, HIDDEN_SIZE, CLASS_COUNT)


@pytest.fixture
def leaf_tree():
    return build_binary_tree(0, INPUT_SIZE, HIDDEN_SIZE, CLASS_COUNT)
