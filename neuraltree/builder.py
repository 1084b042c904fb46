import logging

from neuraltree.model import DenseScoringNetwork
from neuraltree.tree_node import TreeNode

logger = logging.getLogger(__name__)


def build_tree(depth: int, input_size: int, hidden_size: int, class_count: int,
               branching: int = 2) -> TreeNode:
    """Balanced tree with ``depth`` branch layers; ``depth == 0`` is a single leaf.

    Every node gets its own freshly randomized :class:`DenseScoringNetwork`.
    """
    if depth < 0:
        raise ValueError(f"depth must be >= 0, got {depth}")
    if branching < 1:
        raise ValueError(f"branching must be >= 1, got {branching}")

    if depth == 0:
        net = DenseScoringNetwork(input_size, hidden_size, class_count)
        net.randomize()
        return TreeNode(net)

    net = DenseScoringNetwork(input_size, hidden_size, branching)
    net.randomize()
    child_nodes = [
        build_tree(depth - 1, input_size, hidden_size, class_count, branching)
        for _ in range(branching)
    ]
    return TreeNode(net, child_nodes)


def build_binary_tree(depth: int, input_size: int, hidden_size: int, class_count: int) -> TreeNode:
    tree = build_tree(depth, input_size, hidden_size, class_count, branching=2)
    logger.debug("built binary tree: depth=%d nodes=%d", depth, tree.num_nodes())
    return tree
