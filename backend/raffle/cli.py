# Overview: Flask CLI command groups for bootstrap, sellers and the draw.

# backend/raffle/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to raffle (PowerShell: $env:FLASK_APP="raffle").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-name "Admin" --admin-username admin --admin-password "..."]
#   Idempotent bootstrap: creates tables, default prizes and optionally an admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Sellers:
# - python -m flask sellers create --name "Maria" --username maria --password "Secreto123" --role seller
# - python -m flask sellers list
# - python -m flask sellers logout 3
#   Clear a seller's session (their device must log in again).
#
# Prizes / draw:
# - python -m flask prizes list
# - python -m flask prizes set-winner 1 417
# - python -m flask prizes set-winner 1 none

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Seller, Ticket
from .permissions import ROLES, ROLE_ADMIN, ROLE_SELLER
from .services import auth_service, prize_service, session_service
from .services.auth_service import PasswordValidationError
from .services.prize_service import PrizeError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-name', default=None, help='Display name of an admin to create')
@click.option('--admin-username', default=None, help='Username of the admin')
@click.option('--admin-password', default=None, help='Password of the admin')
@with_appcontext
def init_system(admin_name, admin_username, admin_password):
    """Create tables, seed default prizes and optionally an admin seller."""
    click.echo("START Initializing raffle...")

    db.create_all()
    click.echo("PASS Tables ready")

    prizes = prize_service.list_prizes()
    click.echo(f"PASS {len(prizes)} prizes configured")

    if admin_username:
        existing = db.session.query(Seller).filter_by(username=admin_username).first()
        if existing:
            click.echo(f"PASS Admin already exists: {existing.username} (ID: {existing.id})")
        else:
            if not admin_password:
                raise click.UsageError("--admin-password is required with --admin-username")
            try:
                admin = auth_service.create_seller(
                    name=admin_name or admin_username,
                    username=admin_username,
                    password=admin_password,
                    role=ROLE_ADMIN,
                )
            except (PasswordValidationError, ValueError) as exc:
                raise click.ClickException(str(exc))
            click.echo(f"PASS Created admin: {admin.username} (ID: {admin.id})")

    click.echo("DONE Raffle initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        raise click.UsageError("Refusing to reset without --yes")

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('sellers')
def sellers_group():
    """Seller management commands."""


@sellers_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--username', prompt=True, help='Login username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES), default=ROLE_SELLER, show_default=True)
@with_appcontext
def create_seller_cmd(name, username, password, role):
    """Create a seller (or admin)."""
    try:
        seller = auth_service.create_seller(name=name, username=username, password=password, role=role)
    except (PasswordValidationError, ValueError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"PASS Created {seller.role}: {seller.name} / {seller.username} (ID: {seller.id})")


@sellers_group.command('list')
@with_appcontext
def list_sellers_cmd():
    """List sellers with role, session state and tickets sold."""
    sellers = auth_service.list_sellers()
    if not sellers:
        click.echo("No sellers")
        return

    for seller in sellers:
        sold = db.session.query(Ticket).filter_by(seller_id=seller.id).count()
        state = "logged-in" if session_service.has_active_session(seller.id) else "logged-out"
        click.echo(f"{seller.id:>4}  {seller.name:<24} {seller.username:<16} {seller.role:<7} {state:<10} {sold} tickets")


@sellers_group.command('logout')
@click.argument('seller_id', type=int)
@with_appcontext
def logout_seller_cmd(seller_id):
    """Clear a seller's session."""
    if not db.session.get(Seller, seller_id):
        raise click.ClickException(f"Seller {seller_id} not found")

    if auth_service.logout(seller_id):
        click.echo(f"PASS Seller {seller_id} logged out")
    else:
        click.echo(f"Seller {seller_id} had no active session")


@click.group('prizes')
def prizes_group():
    """Prize and draw commands."""


@prizes_group.command('list')
@with_appcontext
def list_prizes_cmd():
    """List prizes with their winner status."""
    for resolution in prize_service.list_winners():
        prize = resolution.prize
        line = f"{prize.prize_order}. {prize.title} [{resolution.status}]"
        if prize.winning_number is not None:
            line += f" number={prize.winning_number}"
        if resolution.ticket is not None:
            line += f" ticket={resolution.ticket.id} buyer={resolution.ticket.buyer_name}"
        click.echo(line)


@prizes_group.command('set-winner')
@click.argument('prize_id', type=int)
@click.argument('number')
@with_appcontext
def set_winner_cmd(prize_id, number):
    """Set a prize's winning number ("none" clears it)."""
    if number.lower() == "none":
        value = None
    else:
        try:
            value = int(number)
        except ValueError:
            raise click.BadParameter("must be an integer or 'none'", param_hint="NUMBER")

    try:
        prize_service.set_winning_number(prize_id, value)
        resolution = prize_service.resolve_winner(prize_id)
    except PrizeError as exc:
        raise click.ClickException(str(exc))

    click.echo(f"PASS Prize {prize_id} winning number set to {value} ({resolution.status})")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(sellers_group)
    app.cli.add_command(prizes_group)
