import pytest
import torch

from neuraltree.builder import build_binary_tree, build_tree
from neuraltree.model import DenseScoringNetwork
from conftest import CLASS_COUNT, HIDDEN_SIZE, INPUT_SIZE


def _walk(node):
    yield node
    for child in node.child_nodes:
        yield from _walk(child)


@pytest.mark.parametrize("depth,branching,expected", [
    (0, 2, 1), (1, 2, 3), (2, 2, 7), (3, 2, 15), (2, 3, 13), (3, 1, 4),
])
def test_node_count(depth, branching, expected):
    tree = build_tree(depth, INPUT_SIZE, HIDDEN_SIZE, CLASS_COUNT, branching=branching)
    assert tree.num_nodes() == expected
    assert tree.depth() == depth


def test_network_widths():
    tree = build_binary_tree(2, INPUT_SIZE, HIDDEN_SIZE, CLASS_COUNT)
    for node in _walk(tree):
        assert isinstance(node.network, DenseScoringNetwork)
        assert node.network.input_size == INPUT_SIZE
        assert node.network.hidden_size == HIDDEN_SIZE
        if node.is_leaf():
            assert node.network.output_size == CLASS_COUNT
        else:
            assert node.network.output_size == 2
            assert len(node.child_nodes) == 2


def test_nodes_are_initialized_independently():
    tree = build_binary_tree(1, INPUT_SIZE, HIDDEN_SIZE, CLASS_COUNT)
    left, right = tree.child_nodes
    assert left.network is not right.network
    assert not torch.equal(left.network.model[0].weight, right.network.model[0].weight)


def test_randomize_resets_weights():
    net = DenseScoringNetwork(INPUT_SIZE, HIDDEN_SIZE, CLASS_COUNT)
    before = net.model[0].weight.detach().clone()
    net.randomize()
    assert not torch.equal(before, net.model[0].weight)


@pytest.mark.parametrize("kwargs", [{"depth": -1}, {"depth": 1, "branching": 0}])
def test_invalid_arguments(kwargs):
    args = {"input_size": INPUT_SIZE, "hidden_size": HIDDEN_SIZE, "class_count": CLASS_COUNT, **kwargs}
    with pytest.raises(ValueError):
        build_tree(**args)
