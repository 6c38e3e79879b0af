"""Traversal of control flow edges between basic blocks."""

from __future__ import annotations

from typing import Iterator

from codespy.ir.basic_block import BasicBlock
from codespy.ir.instruction import Instruction


def predecessors(block: BasicBlock) -> Iterator[BasicBlock]:
    """Yield the block of every instruction that uses *block*, once per use."""
    for user in block.users():
        if isinstance(user, Instruction):
            yield user.parent


def successors(block: BasicBlock) -> Iterator[BasicBlock]:
    """Yield the successors of *block* in terminator order."""
    for index in range(block.successor_count()):
        yield block.successor(index)