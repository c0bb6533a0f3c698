"""
Node Integration Layer.

Provides abstracted access to node queries and transaction submission.
"""

from wedeploy.node.interface import NodeInterface
from wedeploy.node.rest import RestNodeAdapter

__all__ = [
    "NodeInterface",
    "RestNodeAdapter",
]
