"""
Inclusion watching for the Flashbot SDK.

Decides whether a bundle landed on-chain by inspecting new blocks, with a
deadline expressed as a block height.
"""
from .block_source import BlockCallback, BlockSource, Web3BlockSource
from .inclusion import InclusionWatcher

__all__ = ['BlockCallback', 'BlockSource', 'Web3BlockSource', 'InclusionWatcher']
