import click
from flask import current_app
from flask.cli import with_appcontext

from . import list_routes
from .supabase_client import get_supabase, first


@click.command("create-admin")
@click.argument("email")
@with_appcontext
def create_admin(email):
    """Promote an existing profile to the admin role."""
    db = get_supabase()
    profile = first(db.table("profiles").select("id,full_name,role").eq("email", email).limit(1).execute())
    if not profile:
        click.echo(f"No profile registered with {email}. Register the account first.")
        return
    if profile.get("role") == "admin":
        click.echo(f"{email} is already an admin.")
        return
    db.table("profiles").update({"role": "admin", "status": "active"}).eq("id", profile["id"]).execute()
    click.echo(f"{profile.get('full_name') or email} is now an admin.")


@click.command("list-routes")
@with_appcontext
def list_routes_command():
    """Print every URL rule of the portal."""
    for line in list_routes(current_app):
        click.echo(line)


def register_cli(app):
    app.cli.add_command(create_admin)
    app.cli.add_command(list_routes_command)
