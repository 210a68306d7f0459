#!/usr/bin/env python3
"""
Kittens Scoreboard Management CLI

This script provides command-line management functionality for the Kittens Scoreboard.
"""

import json
import logging

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app import create_app, db
from app.models import Game, GameRecordError, Player
from app.services.leaderboard_service import LeaderboardService, PlayerNotFoundError
from app.utils.periods import PRESETS, resolve_period
from app.utils.scoring import ActionKind
from app.utils.scoring_rules import ScoringRulesError, describe_weights, weights_from_config

app = create_app()

ACTION_CHOICES = [kind.value for kind in ActionKind]


def period_options(f):
    """Shared --start/--end/--preset options"""
    f = click.option(
        "--preset",
        type=click.Choice(PRESETS),
        help="Named period (default: current month)",
    )(f)
    f = click.option(
        "--end",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        help="Period end date, excluded (YYYY-MM-DD)",
    )(f)
    f = click.option(
        "--start",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        help="Period start date, included (YYYY-MM-DD)",
    )(f)
    return f


def _resolve_period(start, end, preset):
    if (start is None) != (end is None):
        raise click.UsageError("--start and --end must be given together")
    try:
        return resolve_period(start=start, end=end, preset=preset)
    except ValueError as e:
        raise click.UsageError(str(e))


def _find_player(name_or_id):
    """Look a player up by exact name, then by id"""
    name_or_id = str(name_or_id).strip()
    player = Player.query.filter_by(name=name_or_id).first()
    if player is None and name_or_id.isdigit():
        player = db.session.get(Player, int(name_or_id))
    return player


def _collect_submission(players, actions):
    """
    Resolve --player/--action values to ids.

    Echoes the problem and returns None when a value cannot be resolved.
    """
    participant_ids = []
    for name in players:
        target = _find_player(name)
        if not target:
            click.echo(f"❌ Player '{name}' not found!")
            return None
        participant_ids.append(target.id)

    parsed_actions = []
    for item in actions:
        kind, sep, name = item.partition("=")
        if not sep:
            click.echo(f"❌ Expected kind=player, got '{item}'")
            return None
        target = _find_player(name)
        if not target:
            click.echo(f"❌ Player '{name}' not found!")
            return None
        parsed_actions.append((target.id, kind.strip()))

    return participant_ids, parsed_actions


def _service():
    try:
        return LeaderboardService.from_config(current_app.config)
    except ScoringRulesError as e:
        raise click.ClickException(f"Invalid scoring configuration: {e}")


@click.group()
def cli():
    """Kittens Scoreboard Management CLI"""
    pass


# Player Management Commands
@cli.group()
def player():
    """Player management commands"""
    pass


@player.command("add")
@click.argument("name")
@click.option("--color", help="Hex color used on charts, e.g. #FF6B35")
@with_appcontext
def add_player(name, color):
    """Add a new player"""
    try:
        new_player = Player.create(name, color)
        db.session.commit()
        click.echo(f"✅ Added player '{new_player.name}' (id {new_player.id})")
    except ValueError as e:
        click.echo(f"❌ {e}")
    except IntegrityError as e:
        db.session.rollback()
        click.echo(f"❌ Player '{name.strip()}' already exists!")
        logging.error(f"Player creation failed - integrity error: {e}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error adding player: {str(e)}")
        logging.error(f"Player creation failed - SQL error: {e}")


@player.command("seed")
@click.argument("names", nargs=-1, required=True)
@with_appcontext
def seed_players(names):
    """Add several players at once, skipping names that already exist"""
    existing = {p.name for p in Player.get_all()}
    added = 0

    try:
        for name in names:
            name = name.strip()
            if not name or name in existing:
                click.echo(f"  - Skipped '{name}'")
                continue
            Player.create(name)
            existing.add(name)
            added += 1
            click.echo(f"  ✓ Added player: {name}")
        db.session.commit()
        click.echo(f"✅ Seeded {added} players")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error seeding players: {str(e)}")
        logging.error(f"Player seeding failed - SQL error: {e}")


@player.command("list")
@with_appcontext
def list_players():
    """List all players"""
    players = Player.get_all()

    if not players:
        click.echo("No players found.")
        return

    click.echo("Players:")
    for p in players:
        click.echo(f"  {p.id}: {p.name} ({p.color})")


@player.command("edit")
@click.argument("name_or_id")
@click.option("--name", "new_name", help="New player name")
@click.option("--color", help="New hex color, e.g. #FF6B35")
@with_appcontext
def edit_player(name_or_id, new_name, color):
    """Rename or recolor a player"""
    if new_name is None and color is None:
        raise click.UsageError("Nothing to change: give --name and/or --color")

    target = _find_player(name_or_id)
    if not target:
        click.echo(f"❌ Player '{name_or_id}' not found!")
        return

    try:
        target.update(name=new_name, color=color)
        db.session.commit()
        click.echo(f"✅ Updated player '{target.name}' ({target.color})")
    except ValueError as e:
        db.session.rollback()
        click.echo(f"❌ {e}")
    except IntegrityError as e:
        db.session.rollback()
        click.echo(f"❌ Player '{new_name.strip()}' already exists!")
        logging.error(f"Player update failed - integrity error: {e}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error updating player: {str(e)}")
        logging.error(f"Player update failed - SQL error: {e}")


@player.command("remove")
@click.argument("name_or_id")
@with_appcontext
def remove_player(name_or_id):
    """Remove a player and their recorded actions"""
    target = _find_player(name_or_id)
    if not target:
        click.echo(f"❌ Player '{name_or_id}' not found!")
        return

    try:
        db.session.delete(target)
        db.session.commit()
        click.echo(f"✅ Removed player '{target.name}'")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error removing player: {str(e)}")
        logging.error(f"Player removal failed - SQL error: {e}")


@player.command("stats")
@click.argument("name_or_id")
@period_options
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@with_appcontext
def player_stats(name_or_id, start, end, preset, as_json):
    """Show a player's statistics for a period"""
    target = _find_player(name_or_id)
    if not target:
        click.echo(f"❌ Player '{name_or_id}' not found!")
        return

    period = _resolve_period(start, end, preset)

    try:
        stats = _service().get_player_stats(target.id, period)
    except PlayerNotFoundError as e:
        click.echo(f"❌ {e}")
        return
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error loading player stats: {str(e)}")
        logging.error(f"Player stats failed - SQL error: {e}")
        return

    if as_json:
        click.echo(json.dumps(stats, indent=2))
        return

    click.echo(f"🐱 {target.name}: {period.start} to {period.end} (end excluded)")
    click.echo("=" * 40)
    click.echo(f"Points: {stats['points']:.2f}")
    click.echo(
        f"Games played: {stats['games_played']}/{stats['total_games']} "
        f"(absence {stats['absence_rate']:.1f}%)"
    )
    for kind, count in stats["action_counts"].items():
        click.echo(f"  {kind}: {count}")

    if stats["game_breakdown"]:
        click.echo("\nGames:")
        for entry in stats["game_breakdown"]:
            actions = ", ".join(
                f"{a['action_type']} ({a['points']:+d})" for a in entry["actions"]
            )
            click.echo(f"  {entry['game_date']} #{entry['game_id']}: {actions or '-'}")


# Game Management Commands
@cli.group()
def game():
    """Game management commands"""
    pass


def submission_options(f):
    """Shared --player/--action options for recording and editing games"""
    f = click.option(
        "--action",
        "-a",
        "actions",
        multiple=True,
        help=f"kind=player, kind one of: {', '.join(ACTION_CHOICES)}",
    )(f)
    f = click.option(
        "--player",
        "-p",
        "players",
        multiple=True,
        required=True,
        help="Participant name or id (repeat for each player)",
    )(f)
    return f


@game.command("record")
@click.option(
    "--date",
    "game_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Game date (default: today)",
)
@submission_options
@with_appcontext
def record_game(game_date, players, actions):
    """Record a game with its participants and actions"""
    from app.utils.timezone_utils import today_in_app_timezone

    submission = _collect_submission(players, actions)
    if submission is None:
        return
    participant_ids, parsed_actions = submission

    day = game_date.date() if game_date else today_in_app_timezone()

    try:
        new_game = Game.record(day, participant_ids, parsed_actions)
        db.session.commit()
        click.echo(
            f"✅ Recorded game #{new_game.id} on {day} with {len(participant_ids)} players"
        )
    except GameRecordError as e:
        db.session.rollback()
        click.echo(f"❌ {e}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error recording game: {str(e)}")
        logging.error(f"Game recording failed - SQL error: {e}")


@game.command("edit")
@click.argument("game_id", type=int)
@click.option(
    "--date",
    "game_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="New game date (default: keep the current one)",
)
@submission_options
@with_appcontext
def edit_game(game_id, game_date, players, actions):
    """Replace a game's date, participants and actions"""
    target = db.session.get(Game, game_id)
    if not target:
        click.echo(f"❌ Game #{game_id} not found!")
        return

    submission = _collect_submission(players, actions)
    if submission is None:
        return
    participant_ids, parsed_actions = submission

    day = game_date.date() if game_date else target.game_date

    try:
        target.update(day, participant_ids, parsed_actions)
        db.session.commit()
        click.echo(
            f"✅ Updated game #{game_id} on {day} with {len(participant_ids)} players"
        )
    except GameRecordError as e:
        db.session.rollback()
        click.echo(f"❌ {e}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error updating game: {str(e)}")
        logging.error(f"Game update failed - SQL error: {e}")


@game.command("list")
@period_options
@with_appcontext
def list_games(start, end, preset):
    """List games in a period"""
    period = _resolve_period(start, end, preset)
    games = Game.get_for_period(period)

    if not games:
        click.echo("No games found.")
        return

    click.echo(f"Games from {period.start} to {period.end}:")
    for g in games:
        data = g.to_dict()
        names = ", ".join(p["name"] for p in data["participants"])
        actions = ", ".join(
            f"{a['action_type']}={a['player_name']}" for a in data["actions"]
        )
        click.echo(f"  #{g.id} {data['game_date']}: {names}")
        if actions:
            click.echo(f"      {actions}")


@game.command("delete")
@click.argument("game_id", type=int)
@with_appcontext
def delete_game(game_id):
    """Delete a game with its participants and actions"""
    target = db.session.get(Game, game_id)
    if not target:
        click.echo(f"❌ Game #{game_id} not found!")
        return

    try:
        db.session.delete(target)
        db.session.commit()
        click.echo(f"✅ Deleted game #{game_id}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error deleting game: {str(e)}")
        logging.error(f"Game deletion failed - SQL error: {e}")


@game.command("delete-all")
@with_appcontext
def delete_all_games():
    """⚠️  DANGER: Delete every recorded game (players are kept)"""
    if not click.confirm("This will DELETE ALL GAMES. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        games = Game.query.all()
        for g in games:
            db.session.delete(g)
        db.session.commit()
        click.echo(f"✅ Deleted {len(games)} games")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error deleting games: {str(e)}")
        logging.error(f"Game deletion failed - SQL error: {e}")


# Leaderboard Commands
@cli.command()
@period_options
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@with_appcontext
def leaderboard(start, end, preset, as_json):
    """Show the weighted leaderboard for a period"""
    period = _resolve_period(start, end, preset)
    result = _service().get_leaderboard(period)

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    click.echo(f"🏆 Leaderboard {period.start} to {period.end} (end excluded)")
    click.echo(f"Total games: {result['total_games']}")
    click.echo("=" * 40)

    if not result["leaderboard"]:
        click.echo("No players found.")
        return

    for rank, entry in enumerate(result["leaderboard"], start=1):
        click.echo(
            f"{rank:>3}. {entry['player_name']:<20} {entry['points']:>8.2f} pts  "
            f"{entry['games_played']}/{entry['total_games']} games "
            f"({entry['absence_rate']:.1f}% absent)"
        )


@cli.group()
def rules():
    """Scoring rules commands"""
    pass


@rules.command("show")
@with_appcontext
def show_rules():
    """Show the active point weight table"""
    try:
        weights = weights_from_config(current_app.config)
    except ScoringRulesError as e:
        click.echo(f"❌ Invalid scoring configuration: {e}")
        return

    click.echo(f"Scoring rules '{current_app.config.get('SCORING_RULES')}':")
    for kind, points in describe_weights(weights).items():
        click.echo(f"  {kind:<16} {points:+d}")


# Database Commands
@cli.group()
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command()
@with_appcontext
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error initializing database: {str(e)}")


@db_cmd.command()
@with_appcontext
def reset():
    """⚠️  DANGER: Drop and recreate all tables"""
    if not click.confirm("This will DELETE ALL DATA. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        db.drop_all()
        db.create_all()
        click.echo("✅ Database reset successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error resetting database: {str(e)}")


@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🐱 Kittens Scoreboard Status")
    click.echo("=" * 40)

    # Database connection
    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    click.echo(f"🎲 Scoring rules: {current_app.config.get('SCORING_RULES')}")
    click.echo(f"👥 Players: {Player.query.count()}")
    click.echo(f"🃏 Games: {Game.query.count()}")


if __name__ == "__main__":
    with app.app_context():
        cli()
