"""
Agora Auction Module.

This module provides:
- Open English auctions with refund-on-outbid
- The registry that creates and lists them
"""

from agora.core.auction.auction import Auction, AuctionState
from agora.core.auction.registry import AuctionRegistry

__all__ = [
    "Auction",
    "AuctionState",
    "AuctionRegistry",
]
