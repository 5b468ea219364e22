"""Flask CLI commands."""

import json
import time

import click
from firebase_admin import firestore
from flask import current_app
from flask.cli import with_appcontext

from rauxa.hub.reconciler import MembershipReconciler


@click.command("watch-hub")
@click.argument("uid")
@with_appcontext
def watch_hub_command(uid):
    """Print the live hub membership view for UID until interrupted."""

    def show(view):
        click.echo(json.dumps(view, indent=2, sort_keys=True, default=str))

    with MembershipReconciler(firestore.client(), uid, on_change=show):
        current_app.logger.info(f"Watching hub for {uid}. Press Ctrl+C to stop.")
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            click.echo("Stopped.")


def init_app(app):
    """Register the CLI commands with the app."""
    app.cli.add_command(watch_hub_command)
