import click
from flask import current_app

from stockcanon.services.locations import normalize_stored_locations


def register_cli(app):
    @app.cli.command("normalize-locations")
    @click.option(
        "--dry-run",
        is_flag=True,
        help="Report what would change without writing to the database.",
    )
    def normalize_locations(dry_run: bool) -> None:
        """Rewrite stored location codes to the canonical A1/1 form."""
        summary = normalize_stored_locations(
            dry_run=dry_run,
            batch_size=current_app.config.get("LOCATION_NORMALIZE_BATCH_SIZE", 500),
        )

        for old_code, new_code in summary.changed:
            click.echo(f"{old_code} -> {new_code}")
        for old_code, new_code in summary.conflicts:
            click.echo(f"CONFLICT {old_code} -> {new_code} (already exists)")
        for code in summary.invalid:
            click.echo(f"INVALID {code}")

        click.echo(
            f"{len(summary.changed)} changed, {summary.unchanged} unchanged, "
            f"{len(summary.invalid)} invalid, {len(summary.conflicts)} conflicts"
            + (" (dry run)" if dry_run else "")
        )
