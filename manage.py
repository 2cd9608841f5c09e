#!/usr/bin/env python3
"""
F1 Pick'em Management CLI

This script provides command-line management functionality for the F1 Pick'em application.
"""

import logging
import os

import click
from flask.cli import with_appcontext
from flask_migrate import downgrade, migrate, upgrade
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app import create_app, db
from app.models import Driver, Event, Prediction, User
from app.services.scoring_service import ScoringPassError, delete_user, reset_season, run_scoring_pass
from app.utils.scoring import SESSION_LABELS
from app.utils.cache_utils import get_cache_stats
from app.utils.seed_data import seed_calendar, seed_drivers


@click.group()
def cli():
    """F1 Pick'em Management CLI"""
    pass


# Calendar Commands
@cli.group()
def calendar():
    """Calendar and driver catalogue commands"""
    pass


@calendar.command()
@with_appcontext
def seed():
    """Load the season's drivers and events (existing events are kept)"""
    try:
        drivers_created, drivers_updated = seed_drivers()
        events_created, events_skipped = seed_calendar()
        db.session.commit()

        click.echo(f"✅ Drivers: {drivers_created} created, {drivers_updated} updated")
        click.echo(f"✅ Events: {events_created} created, {events_skipped} already present")

    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error seeding calendar: {str(e)}")
        logging.error(f"Calendar seed failed - SQL error: {e}")


@calendar.command(name="list")
@with_appcontext
def list_events():
    """List all events with their session state"""
    events = Event.query.order_by(Event.id).all()

    if not events:
        click.echo("No events found. Run: python manage.py calendar seed")
        return

    click.echo("Calendar:")
    for event in events:
        sprint = " (sprint)" if event.is_sprint else ""
        click.echo(f"  {event.id:>2}. {event.name}{sprint} - {event.date_label} [{event.status}]")
        for session in event.sessions:
            state = "🟢 open" if event.is_session_open(session) else "🔴 closed"
            scored = " ✅ scored" if event.is_scored(session) else ""
            click.echo(f"        {SESSION_LABELS[session]}: {state}{scored}")


@calendar.command()
@click.argument("event_id", type=int)
@with_appcontext
def activate(event_id):
    """Make an event the open one"""
    try:
        event = db.session.get(Event, event_id)
        if not event:
            click.echo(f"❌ Event {event_id} not found!")
            return

        _, message = event.activate()
        db.session.commit()
        click.echo(f"✅ {message}")

    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error activating event: {str(e)}")
        logging.error(f"Event activation failed - SQL error: {e}")


# Scoring Commands
@cli.group()
def score():
    """Scoring pass commands"""
    pass


@score.command()
@click.option("--event-id", type=int, help="Event whose results triggered the pass")
@with_appcontext
def run(event_id):
    """Recompute points and ranks for every user"""
    if event_id is not None:
        event = db.session.get(Event, event_id)
        if not event:
            click.echo(f"❌ Event {event_id} not found!")
            return
        if not event.is_scored():
            click.echo(f"❌ No official results recorded for {event.name}")
            return

    try:
        leaderboard = run_scoring_pass(event_id=event_id)
    except ScoringPassError as e:
        click.echo(f"❌ {str(e)}")
        return

    click.echo(f"✅ Scoring pass complete ({len(leaderboard)} users ranked)")
    for entry in leaderboard[:10]:
        click.echo(f"  {entry['rank']:>3}. {entry['display_name']} - {entry['points']} pts")


@score.command(name="reset")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@with_appcontext
def reset_scores(yes):
    """⚠️  DANGER: Delete all predictions and zero all points"""
    if not yes and not click.confirm("This will DELETE ALL PREDICTIONS. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        deleted = reset_season()
    except ScoringPassError as e:
        click.echo(f"❌ {str(e)}")
        return

    click.echo(f"✅ Season reset ({deleted} predictions deleted)")


# User Management Commands
@cli.group()
def user():
    """User management commands"""
    pass


@user.command()
@click.argument("username")
@click.argument("email")
@click.argument("password")
@click.option("--display-name", help="Name shown on the leaderboard")
@with_appcontext
def create_admin(username, email, password, display_name=None):
    """Create an admin user"""
    try:
        # Check if user exists
        existing = User.query.filter(
            (User.username == username) | (User.email == email)
        ).first()

        if existing:
            click.echo(
                f"❌ User with username '{username}' or email '{email}' already exists!"
            )
            return

        user = User(
            username=username,
            email=email,
            is_active=True,
            is_admin=True,
            rank=User.next_rank(),
            rank_history=[],
        )
        user.set_display_name(display_name or username)
        user.set_password(password)

        db.session.add(user)
        db.session.commit()

        click.echo(f"✅ Created admin user '{username}' ({email})")

    except IntegrityError as e:
        db.session.rollback()
        click.echo(f"❌ User '{username}' already exists!")
        logging.error(f"Admin creation failed - integrity error: {e}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error creating user: {str(e)}")
        logging.error(f"Admin creation failed - SQL error: {e}")


@user.command(name="list")
@with_appcontext
def list_users():
    """List all users with their standing"""
    users = User.query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("Users:")
    for u in users:
        status = "🟢" if u.is_active else "🔴"
        role = "👑" if u.is_admin else ("👤" if u.is_guest else "🏁")
        standing = "guest" if u.is_guest else f"#{u.rank} - {u.points} pts"
        click.echo(f"  {status} {role} {u.username} ({u.full_name}) {standing}")


@user.command(name="delete")
@click.argument("username")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@with_appcontext
def delete(username, yes):
    """Delete a user and all of their predictions"""
    target = User.query.filter_by(username=username).first()
    if not target:
        click.echo(f"❌ User '{username}' not found!")
        return

    if not yes and not click.confirm(f"Delete {username} and all predictions?"):
        click.echo("Cancelled.")
        return

    try:
        deleted = delete_user(target)
    except ScoringPassError as e:
        click.echo(f"❌ {str(e)}")
        return

    click.echo(f"✅ Deleted user '{username}' ({deleted} predictions removed)")


# Database Commands
@cli.group()
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command(name="init")
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


# Database Migration Commands
@cli.group()
def db_migrate():
    """Database migration commands"""
    pass


@db_migrate.command()
@with_appcontext
def init_migrations():
    """Initialize migrations repository"""
    if os.path.exists("migrations"):
        click.echo("❌ Migrations directory already exists!")
        return

    from flask_migrate import init as flask_migrate_init

    flask_migrate_init()
    click.echo("✅ Migrations repository initialized!")


@db_migrate.command()
@click.option("-m", "--message", required=True, help="Migration message")
@with_appcontext
def create_migration(message):
    """Create a new migration"""
    migrate(message=message)
    click.echo(f"✅ Migration created: {message}")


@db_migrate.command()
@click.option("--revision", default="head", help="Revision to upgrade to")
@with_appcontext
def apply_migrations(revision):
    """Apply migrations to database"""
    upgrade(revision=revision)
    click.echo(f"✅ Migrations applied to {revision}")


@db_migrate.command()
@click.option("--revision", required=True, help="Revision to downgrade to")
@with_appcontext
def rollback_migration(revision):
    """Rollback migrations to specific revision"""
    downgrade(revision=revision)
    click.echo(f"✅ Rolled back to {revision}")


# Info Commands
@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🏎️  F1 Pick'em Application Status")
    click.echo("=" * 40)

    # Database connection
    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    active = Event.get_active_event()
    if active:
        click.echo(f"✅ Active Event: {active.name} [{active.status}]")
    else:
        click.echo("⚠️  Active Event: None (calendar is empty)")

    scored = len([event for event in Event.query.all() if event.is_scored()])
    click.echo(f"🏁 Events scored: {scored}/{Event.query.count()}")
    click.echo(f"🏎️  Drivers: {Driver.query.count()}")
    click.echo(f"👥 Ranked users: {User.query.filter_by(is_guest=False).count()}")
    click.echo(f"📝 Predictions: {Prediction.query.count()}")
    click.echo(f"🗄️  Cache: {get_cache_stats()['type']}")


def main():
    app = create_app()
    with app.app_context():
        cli()


if __name__ == "__main__":
    main()
