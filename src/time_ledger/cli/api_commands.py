"""CLI commands for the REST API server and its tokens."""

import sys
from datetime import timedelta
from typing import Optional

import click

from time_ledger.api.auth import create_token_for_user
from time_ledger.api.server import run_server
from time_ledger.cli.config_commands import get_config


@click.command()
@click.option("--host", default=None, help="Host address (default: from config)")
@click.option("--port", type=int, default=None, help="Port number (default: from config)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Start the API server.

    Examples:
        time-ledger serve
        time-ledger serve --host 0.0.0.0 --port 8080
        time-ledger --config ./config.yml serve --reload
    """
    config = get_config(ctx)
    config.ensure_api_secret_key()

    final_host = host or config.get("api.host", "localhost")
    final_port = port or config.get("api.port", 8000)

    click.echo("🚀 Starting Time Ledger API server...")
    click.echo(f"   URL: http://{final_host}:{final_port}")
    click.echo(f"   Docs: http://{final_host}:{final_port}/docs")
    if reload:
        click.echo("   Mode: Development (auto-reload enabled)")
    click.echo()

    try:
        run_server(config=config, host=final_host, port=final_port, reload=reload)
    except KeyboardInterrupt:
        click.echo("\n\n👋 Shutting down API server...")
    except Exception as e:
        click.echo(click.style(f"❌ Error starting server: {e}", fg="red"), err=True)
        sys.exit(1)


@click.command()
@click.option("--expires", type=int, help="Token expiry time in hours (default: from config)")
@click.pass_context
def token(ctx: click.Context, expires: Optional[int]) -> None:
    """Create an API token for the selected user.

    Examples:
        time-ledger token
        time-ledger --user 2 token --expires 48
    """
    config = get_config(ctx)
    obj = ctx.find_root().obj or {}
    user_id = obj.get("user") or config.get("defaults.user_id", 1)

    if expires is None:
        expires = config.get("api.authentication.token_expiry_hours", 24)

    token_data = create_token_for_user(
        config, user_id=int(user_id), expires_delta=timedelta(hours=expires)
    )

    click.echo("✅ Token created successfully!")
    click.echo()
    click.echo(f"Token: {token_data['access_token']}")
    click.echo(f"User: {user_id}")
    click.echo(f"Expires in: {expires} hours")
    click.echo()
    click.echo("Use this token in API requests:")
    click.echo(f"  Authorization: Bearer {token_data['access_token']}")
