"""
fuelcoach CLI

Command-line front end for the sports-nutrition companion.

Usage:
    fuelcoach login you@example.com
    fuelcoach profile create --age 30 --weight 70 --height 175 ...
    fuelcoach training add --date 2025-03-14 --start 18:00 --duration 60
"""

import asyncio
import logging
import sys
from datetime import date, datetime
from typing import Optional

import click

from fuelcoach import __version__
from fuelcoach.app import App, build_app
from fuelcoach.config import settings
from fuelcoach.services.accounts import describe_api_error
from fuelcoach.services.clients import APIError
from fuelcoach.schemas.profile import (
    ActivityLevel,
    CaffeineTolerance,
    Gender,
    PrimaryGoal,
    SweatLevel,
    TrainingFrequency,
)
from fuelcoach.states.gate import ProfileStatus, Route
from fuelcoach.utils.formatters import format_fire_time

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def _choices(enum_cls) -> click.Choice:
    return click.Choice([member.value for member in enum_cls])


async def _echo_redirect(target: str):
    click.echo(click.style("-> ", fg="blue") + f"redirected to {target}")


def _error(message: str):
    click.echo(click.style("Error: ", fg="red") + message)


def run(action, route: Optional[str] = None):
    """
    Run `action(app)` with a restored session.

    When `route` is given the gate guards it while the session is restored;
    a redirect aborts the command with exit code 1. Commands without a route
    are never redirected.
    """

    async def _main() -> int:
        app = build_app(navigator=_echo_redirect, initial_route=route)
        try:
            await app.start()
            if route is not None and app.gate.current_route != route:
                return 1
            return await action(app) or 0
        except APIError as e:
            _error(describe_api_error(e, "Request failed"))
            return 1
        finally:
            await app.close()

    code = asyncio.run(_main())
    if code:
        sys.exit(code)


@click.group()
@click.version_option(version=__version__, prog_name="fuelcoach")
@click.option("--log-level", default=settings.log_level, help="Logging level")
def main(log_level):
    """fuelcoach: sports-nutrition companion client."""
    setup_logging(log_level)


# =============================================================================
# Session
# =============================================================================

@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
def login(email, password):
    """Sign in with EMAIL."""

    async def action(app: App):
        result = await app.accounts.sign_in(email, password)
        if not result.ok:
            _error(result.message)
            return 1
        click.echo(f"Signed in as {app.gate.session.user.username}")
        if result.profile_status is ProfileStatus.ABSENT:
            click.echo("No profile yet: run 'fuelcoach profile create'")

    run(action, Route.LOGIN)


@main.command()
@click.argument("username")
@click.argument("email")
@click.password_option()
def register(username, email, password):
    """Create an account and sign in."""

    async def action(app: App):
        result = await app.accounts.sign_up(username, email, password)
        if not result.ok:
            _error(result.message)
            return 1
        click.echo(f"Welcome, {username}! Next: 'fuelcoach profile create'")

    run(action, Route.REGISTER)


@main.command()
def logout():
    """Sign out and forget the stored session."""

    async def action(app: App):
        await app.accounts.sign_out()
        click.echo("Signed out")

    run(action)


@main.command()
def status():
    """Show the session and profile state."""

    async def action(app: App):
        snapshot = app.gate.snapshot
        click.echo(f"State:   {snapshot.state.value}")
        if snapshot.session:
            user = snapshot.session.user
            click.echo(f"User:    {user.username} <{user.email}> (id {user.id})")
        click.echo(f"Profile: {snapshot.profile_status.value}")

    run(action)


@main.command(name="open")
@click.argument("route")
def open_route(route):
    """Check whether ROUTE is reachable in the current state."""

    async def action(app: App):
        if await app.gate.on_route_change(route) is not None:
            return 1
        click.echo(f"{route}: allowed")

    run(action)


# =============================================================================
# Profile
# =============================================================================

@main.group()
def profile():
    """Nutrition/training profile."""


@profile.command(name="create")
@click.option("--age", type=int, required=True)
@click.option("--weight", type=int, required=True, help="kg")
@click.option("--height", type=int, required=True, help="cm")
@click.option("--gender", type=_choices(Gender), required=True)
@click.option("--activity-level", type=_choices(ActivityLevel), required=True)
@click.option("--training-frequency", type=_choices(TrainingFrequency), required=True)
@click.option("--goal", "primary_goal", type=_choices(PrimaryGoal), required=True)
@click.option("--sweat-level", type=_choices(SweatLevel), default="medium")
@click.option("--caffeine-tolerance", type=_choices(CaffeineTolerance), default="medium")
@click.option("--restriction", "dietary_restrictions", multiple=True, help="Repeatable")
def create_profile(**fields):
    """Create your profile."""
    fields["dietary_restrictions"] = list(fields["dietary_restrictions"])

    async def action(app: App):
        result = await app.accounts.save_profile(fields)
        if not result.ok:
            _error(result.message)
            return 1
        click.echo("Profile saved")

    run(action, Route.CREATE_PROFILE)


# =============================================================================
# Training
# =============================================================================

@main.group()
def training():
    """Training log."""


@training.command(name="add")
@click.option("--date", "session_date", default=lambda: date.today().isoformat(), help="YYYY-MM-DD")
@click.option("--start", "start_time", default=settings.default_start_time, help="HH:MM")
@click.option("--duration", "duration_min", type=int, required=True, help="Minutes")
@click.option("--intensity", default="media")
@click.option("--type", "type_", default="cardio")
@click.option("--sport-type", default=None)
@click.option("--weather", default=None)
@click.option("--notes", default=None)
def add_training(session_date, start_time, duration_min, intensity, type_, sport_type, weather, notes):
    """Log a training session and schedule consumption reminders."""
    data = {
        "session_date": session_date,
        "start_time": start_time,
        "duration_min": duration_min,
        "intensity": intensity,
        "type": type_,
        "sport_type": sport_type,
        "weather": weather,
        "notes": notes,
    }

    async def action(app: App):
        click.echo("Waiting for recommendations...")
        result = await app.training.log_session(data)
        if not result.ok:
            _error(result.message)
            return 1
        click.echo(f"Training session {result.session.session_id} added")
        if result.message:
            click.echo(result.message)

        now = datetime.now()
        for notification in await app.notifications.list_scheduled():
            fire_at = format_fire_time(notification.next_fire_time(now))
            click.echo(f"  {fire_at}  {notification.content.body}")

    run(action, Route.TRAINING)


@training.command(name="list")
def list_training():
    """List your training sessions."""

    async def action(app: App):
        sessions = await app.training.list_sessions()
        if not sessions:
            click.echo("No training sessions yet")
            return
        for s in sessions:
            click.echo(
                f"{s.get('session_id'):>5}  {str(s.get('session_date', ''))[:10]}  "
                f"{s.get('start_time') or '--:--'}  {s.get('type', '')}  "
                f"{s.get('duration_min', '?')} min"
            )

    run(action, Route.TRAINING)


@training.command(name="delete")
@click.argument("session_id", type=int)
def delete_training(session_id):
    """Delete training session SESSION_ID and its pending reminders."""

    async def action(app: App):
        if not await app.training.delete_session(session_id):
            _error(f"Could not delete training session {session_id}")
            return 1
        click.echo(f"Training session {session_id} deleted")

    run(action, Route.TRAINING)


# =============================================================================
# Products and recommendations
# =============================================================================

@main.group()
def products():
    """Product catalog."""


@products.command(name="categories")
def list_categories():
    """List product categories."""

    async def action(app: App):
        categories = await app.api.products.get_categories()
        if not categories:
            click.echo("No categories")
            return
        for c in categories:
            click.echo(f"{c.get('category_id'):>5}  {c.get('name') or c.get('category_name', '')}")

    run(action, Route.PRODUCTS)


@products.command(name="list")
@click.argument("category_id", type=int)
def list_products(category_id):
    """List the products of CATEGORY_ID."""

    async def action(app: App):
        items = await app.api.products.get_by_category(category_id)
        if not items:
            click.echo("No products in this category")
            return
        for p in items:
            click.echo(f"{p.get('product_id'):>5}  {p['product_name']}  {p['price']}")

    run(action, Route.PRODUCTS)


@products.command(name="show")
@click.argument("product_id", type=int)
def show_product(product_id):
    """Details, nutrition, flavors and attributes of PRODUCT_ID."""

    async def action(app: App):
        details = await app.api.products.get_details(product_id)
        nutrition = await app.api.products.get_nutrition(product_id)
        flavors = await app.api.products.get_flavors(product_id)
        attributes = await app.api.products.get_attributes(product_id)

        click.echo(details.get("product_name") or details.get("name") or f"Product {product_id}")
        if details.get("product_description") or details.get("description"):
            click.echo(details.get("product_description") or details.get("description"))
        for key, value in nutrition.items():
            click.echo(f"  {key}: {value}")
        if flavors:
            click.echo("Flavors: " + ", ".join(str(f.get("name", f)) for f in flavors))
        if attributes:
            click.echo("Attributes: " + ", ".join(
                str(a.get("attribute") or a.get("name", a)) for a in attributes
            ))

    run(action, Route.PRODUCTS)


@products.command(name="consume")
@click.argument("product_id", type=int)
@click.option("--quantity", type=click.IntRange(min=1), default=1)
def consume_product(product_id, quantity):
    """Log that you consumed PRODUCT_ID."""

    async def action(app: App):
        await app.api.products.add_consumption(app.gate.session.user_id, product_id, quantity)
        click.echo(f"Logged {quantity} x product {product_id}")

    run(action, Route.PRODUCTS)


@main.command()
@click.option("--saved", is_flag=True, help="Show saved recommendations")
@click.option("--training", "training_id", type=int, default=None,
              help="Generate recommendations for a training session")
def recommendations(saved, training_id):
    """Your product recommendations."""

    async def action(app: App):
        user_id = app.gate.session.user_id
        if training_id is not None:
            items = await app.api.recommendations.for_training(training_id, user_id)
        elif saved:
            items = await app.api.recommendations.saved(user_id)
        else:
            items = await app.api.recommendations.for_user(user_id)

        if not items:
            click.echo("No recommendations yet")
            return
        for item in items:
            name = item.get("product_name") or item.get("name") or f"Product {item.get('product_id')}"
            timing = item.get("consumption_timing") or ""
            click.echo(f"  {name}  {timing}".rstrip())

    run(action, Route.RECOMMENDATIONS)


# =============================================================================
# Notifications
# =============================================================================

@main.command()
@click.option("--reminders/--no-reminders", default=None,
              help="Turn consumption reminders on or off")
def notifications(reminders):
    """Show or change notification preferences."""

    async def action(app: App):
        user_id = app.gate.session.user_id
        if reminders is not None:
            if not await app.api.notifications.update_preferences(
                user_id, consumption_reminders=reminders
            ):
                _error("Could not update notification preferences")
                return 1
        prefs = await app.api.notifications.get_preferences(user_id)
        click.echo(f"Consumption reminders: {'on' if prefs.get('consumption_reminders') else 'off'}")

    run(action, Route.PROFILE)


@main.command()
@click.argument("at")
def alert(at):
    """Schedule a daily training alert at AT (HH:MM)."""

    async def action(app: App):
        try:
            notification_id = await app.reminders.schedule_training_alert(at)
        except ValueError:
            _error(f"Invalid time: {at}")
            return 1
        if notification_id is None:
            _error("Could not schedule the alert")
            return 1
        click.echo(f"Daily training alert set for {at}")

    run(action, Route.PROFILE)


if __name__ == "__main__":
    main()
