"""
Agora CLI - Command Line Interface for the auction and election demos

Main entry point for all CLI commands.
"""

import click
from pathlib import Path

from agora.core.config import load_config
from agora.utils.logger import setup_logging

VERSION = "0.1.0"


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (overrides AGORA_DATA_DIR)")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Load settings from a .env file")
@click.version_option(version=VERSION)
@click.pass_context
def cli(ctx, debug, data_dir, env_file):
    """Agora - auctions and elections on a value ledger"""
    import logging

    try:
        config = load_config(env_file)
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    if data_dir:
        config.data_dir = Path(data_dir).expanduser()

    level = logging.DEBUG if debug else config.log_level_value
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["data_dir"] = config.data_dir
    ctx.obj["data_dir"].mkdir(parents=True, exist_ok=True)


def _deployment(ctx, realtime: bool):
    from agora.core.clock import ManualClock, SystemClock
    from agora.deploy import Deployment, DeploymentBook

    config = ctx.obj["config"]
    clock = SystemClock() if realtime else ManualClock()
    book = DeploymentBook.in_dir(ctx.obj["data_dir"])
    return Deployment(environment=config.environment, clock=clock, book=book)


# =============================================================================
# Demo Commands
# =============================================================================


@cli.group()
def demo():
    """Run end-to-end scenarios"""
    pass


@demo.command("auction")
@click.option("--item", default="Exclusive Painting", help="Item for sale")
@click.option("--min-price", default="1.0", help="Minimum price (whole units)")
@click.option("--bid", "bids", multiple=True, help="Bid amount, in order (repeatable)")
@click.option("--duration", default=None, type=int, help="Bidding window in seconds")
@click.option("--realtime", is_flag=True, help="Wait on the wall clock instead of advancing time")
@click.pass_context
def demo_auction(ctx, item, min_price, bids, duration, realtime):
    """Create an auction, bid, wait for the end and settle"""
    from agora.core.errors import AgoraError
    from agora.deploy import run_auction_scenario
    from agora.utils.units import format_value

    config = ctx.obj["config"]
    bids = bids or ("1.1", "1.21")
    duration = duration if duration is not None else config.auction_duration

    click.echo("=" * 60)
    click.echo("  AGORA - AUCTION DEMO")
    click.echo("=" * 60)
    click.echo()

    try:
        deployment = _deployment(ctx, realtime)
        report = run_auction_scenario(
            deployment,
            item=item,
            min_price=min_price,
            bids=bids,
            duration=duration,
        )
    except (AgoraError, ValueError) as e:
        click.echo(f"❌ Auction failed: {e}")
        ctx.exit(1)

    click.echo()
    click.echo(f"🔨 Auction {report.auction}")
    click.echo(f"  Item: {report.item}")
    for amount, kind in report.rejected_bids:
        click.echo(f"  ✗ Bid {amount} rejected ({kind})")
    if report.highest_bidder is None:
        click.echo("  No bids were placed")
    else:
        click.echo(f"  ✓ Highest bid: {format_value(report.highest_bid)} by {report.highest_bidder}")
    click.echo(f"  ✓ Seller received: {format_value(report.seller_received)}")
    click.echo()
    click.echo("✅ Demo complete!")


@demo.command("election")
@click.option("--candidate", "candidates", multiple=True, help="Candidate label (repeatable)")
@click.option("--vote", "votes", multiple=True, type=int, help="Candidate index for one voter (repeatable)")
@click.option("--delay", default=None, type=int, help="Seconds before voting opens")
@click.option("--period", default=None, type=int, help="Voting window in seconds")
@click.option("--realtime", is_flag=True, help="Wait on the wall clock instead of advancing time")
@click.pass_context
def demo_election(ctx, candidates, votes, delay, period, realtime):
    """Register voters, vote during the window and tally"""
    from agora.core.errors import AgoraError
    from agora.deploy import run_election_scenario

    config = ctx.obj["config"]
    candidates = candidates or ("Alice", "Bob", "Carol")
    votes = votes or (0, 1, 0)

    click.echo("=" * 60)
    click.echo("  AGORA - ELECTION DEMO")
    click.echo("=" * 60)
    click.echo()

    try:
        deployment = _deployment(ctx, realtime)
        report = run_election_scenario(
            deployment,
            candidates=candidates,
            choices=votes,
            delay=delay if delay is not None else config.voting_delay,
            period=period if period is not None else config.voting_period,
        )
    except (AgoraError, ValueError) as e:
        click.echo(f"❌ Election failed: {e}")
        ctx.exit(1)

    click.echo()
    click.echo(f"🗳️  Election {report.election}")
    for label, count in report.results.items():
        click.echo(f"  {label}: {count}")
    click.echo(f"  ✓ Winner(s): {', '.join(report.winners)}")
    click.echo()
    click.echo("✅ Demo complete!")


# =============================================================================
# Deployment Book Commands
# =============================================================================


@cli.group()
def deployments():
    """Deployment book commands"""
    pass


@deployments.command("list")
@click.option("--env", "environment", default=None, help="Only show one environment")
@click.pass_context
def deployments_list(ctx, environment):
    """List recorded component addresses"""
    from agora.deploy import DeploymentBook

    try:
        book = DeploymentBook.in_dir(ctx.obj["data_dir"])
    except ValueError as e:
        raise click.ClickException(f"Cannot read deployment book: {e}")
    envs = [environment] if environment else sorted(book.entries)
    if not any(book.environment(env) for env in envs):
        click.echo("No deployments found.")
        return

    for env in envs:
        components = book.environment(env)
        if not components:
            continue
        click.echo(f"{env}:")
        for name, address in sorted(components.items()):
            click.echo(f"  {name}: {address}")


# =============================================================================
# Stats Command
# =============================================================================


@cli.command("stats")
@click.pass_context
def stats(ctx):
    """Show system information"""
    config = ctx.obj["config"]
    click.echo("Agora System Information")
    click.echo("-" * 40)
    click.echo(f"  Version: {VERSION}")
    click.echo("  Modules: Auction, AuctionRegistry, Election, EligibilityRegistry, Ledger")
    click.echo(f"  Environment: {config.environment}")
    click.echo(f"  Data dir: {config.data_dir}")


if __name__ == "__main__":
    cli()
