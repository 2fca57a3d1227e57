"""Deployment orchestration: wiring, address book, time control and scenarios"""
from agora.deploy.book import DeploymentBook, BOOK_FILENAME
from agora.deploy.deployer import (
    Deployment,
    AuctionReport,
    ElectionReport,
    advance_past,
    log_event,
    run_auction_scenario,
    run_election_scenario,
)

__all__ = [
    "DeploymentBook",
    "BOOK_FILENAME",
    "Deployment",
    "AuctionReport",
    "ElectionReport",
    "advance_past",
    "log_event",
    "run_auction_scenario",
    "run_election_scenario",
]
