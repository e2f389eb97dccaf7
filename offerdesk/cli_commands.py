"""
Flask CLI commands.

Commands:
- flask init-db: Create the database tables
- flask check-schema: Report missing tables
- flask issue-token: Print a bearer token for a business owner
"""

import click

from offerdesk.database import create_schema, verify_schema
from offerdesk.services.tenant_service import issue_token


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all missing tables."""
        try:
            create_schema()
        except Exception as e:
            click.echo(click.style(f'❌ Could not create tables: {e}', fg='red'))
            raise SystemExit(1)
        click.echo(click.style('✅ Database tables created.', fg='green', bold=True))

    @app.cli.command('check-schema')
    def check_schema_command():
        """Exit non-zero when mapped tables are missing."""
        missing = verify_schema()
        if missing:
            click.echo(click.style(f'❌ Missing tables: {", ".join(missing)}', fg='red'))
            click.echo('💡 Run: flask init-db')
            raise SystemExit(1)
        click.echo(click.style('✅ Schema is up to date.', fg='green'))

    @app.cli.command('issue-token')
    @click.option('--owner-id', type=int, required=True, help='Business owner (tenant) id')
    @click.option('--business-name', default=None, help='Business name embedded in the token')
    @click.option('--email', default=None, help='Owner email embedded in the token')
    def issue_token_command(owner_id, business_name, email):
        """Print a bearer token for a business owner."""
        click.echo(issue_token(owner_id, business_name=business_name, email=email))
