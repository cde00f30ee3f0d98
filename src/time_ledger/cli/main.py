"""Main CLI application."""

import json
import sys
from datetime import date, datetime
from typing import Any, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from time_ledger import __version__
from time_ledger.analysis.reports import ReportRenderer
from time_ledger.cli.api_commands import serve, token
from time_ledger.cli.config_commands import config, get_config
from time_ledger.core.durations import breaks_total_ms, duration_ms, format_duration, net_work_ms
from time_ledger.core.entries import BreakDraft
from time_ledger.core.errors import Result, TimeLedgerError
from time_ledger.core.logs import setup_logging
from time_ledger.core.models import Entry, ReportType, SessionState
from time_ledger.core.timezone import local_date, to_local
from time_ledger.service import TimeLedgerService

console = Console()
error_console = Console(stderr=True)

BOOL_SETTINGS = {
    "auto_detect_breaks",
    "enable_notifications",
    "enable_email_notifications",
    "allow_sharing",
}
INT_SETTINGS = {"working_hours", "share_duration_days"}


def get_service(ctx: click.Context) -> TimeLedgerService:
    """Open the ledger service for this invocation.

    A service placed in ``ctx.obj["service"]`` by the caller is used as is.
    """
    service: Optional[TimeLedgerService] = ctx.obj.get("service")
    if service is None:
        cfg = get_config(ctx)
        setup_logging(cfg)
        service = TimeLedgerService.from_config(cfg)
        ctx.obj["service"] = service
        ctx.call_on_close(service.close)
    if not service.storage.is_open:
        try:
            service.open()
        except TimeLedgerError as e:
            error_console.print(f"[red]Error:[/red] {e.message}")
            sys.exit(1)
    return service


def get_user(ctx: click.Context) -> int:
    """User selected with ``--user``, falling back to ``defaults.user_id``."""
    user: Optional[int] = ctx.obj.get("user")
    if user is None:
        user = get_config(ctx).get("defaults.user_id", 1)
    return int(user)  # type: ignore[arg-type]


def unwrap(result: Result) -> Any:
    """Return the data of a successful result or exit with its error."""
    if not result.success:
        error_console.print(f"[red]Error:[/red] {result.error}")
        sys.exit(1)
    return result.data


def user_timezone(service: TimeLedgerService, user_id: int) -> str:
    settings = unwrap(service.get_settings(user_id))
    tz_name: str = settings.timezone
    return tz_name


def format_datetime(dt: datetime, tz_name: str) -> str:
    """Format datetime for display in the user's timezone."""
    return to_local(dt, tz_name).strftime("%Y-%m-%d %H:%M")


def parse_time(value: str, base_date: date) -> datetime:
    """Parse 'YYYY-MM-DD HH:MM' or 'HH:MM' (on ``base_date``) as a naive local time."""
    try:
        return datetime.strptime(value, "%Y-%m-%d %H:%M")
    except ValueError:
        pass

    try:
        time_part = datetime.strptime(value, "%H:%M").time()
        return datetime.combine(base_date, time_part)
    except ValueError:
        raise click.BadParameter(f"Invalid time format: {value}. Use 'HH:MM' or 'YYYY-MM-DD HH:MM'")


def parse_date(value: Optional[str], option: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Invalid date format for {option}. Use YYYY-MM-DD")


def entry_figures(entry: Entry, now: datetime) -> tuple[int, int, int]:
    """Duration, breaks and net work of an entry; running entries count until now."""
    total = max(0, duration_ms(entry.start_time, entry.end_time, now))
    on_break = breaks_total_ms(entry.breaks, now)
    return total, on_break, net_work_ms(total, on_break)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", help="Path to config file", type=click.Path())
@click.option("--user", "user", type=int, help="User id (default: defaults.user_id)")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], user: Optional[int], no_color: bool) -> None:
    """Time Ledger - track work sessions, breaks and reports.

    Clock in and out, take breaks, fix entries by hand and share reports.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if user is not None:
        ctx.obj["user"] = user

    if no_color:
        console.no_color = True


cli.add_command(config)
cli.add_command(serve)
cli.add_command(token)


# Work session


@cli.command()
@click.pass_context
def start(ctx: click.Context) -> None:
    """Clock in and start a work session.

    Example:
        time-ledger start
    """
    service = get_service(ctx)
    user_id = get_user(ctx)
    entry = unwrap(service.start(user_id))
    tz_name = user_timezone(service, user_id)

    console.print("[green]✓[/green] Work session started")
    console.print(f"  Started: {format_datetime(entry.start_time, tz_name)}")
    console.print(f"  Entry ID: {entry.id}")


@cli.command("break")
@click.pass_context
def break_(ctx: click.Context) -> None:
    """Start a break in the running session.

    Example:
        time-ledger break
    """
    service = get_service(ctx)
    user_id = get_user(ctx)
    item = unwrap(service.start_break(user_id))
    tz_name = user_timezone(service, user_id)

    console.print("[yellow]⏸[/yellow]  Break started")
    console.print(f"  Since: {format_datetime(item.start_time, tz_name)}")


@cli.command()
@click.pass_context
def resume(ctx: click.Context) -> None:
    """End the current break and get back to work.

    Example:
        time-ledger resume
    """
    service = get_service(ctx)
    item = unwrap(service.end_break(get_user(ctx)))

    console.print("[green]▶[/green]  Back to work")
    console.print(f"  Break: {format_duration(duration_ms(item.start_time, item.end_time))}")


@cli.command()
@click.pass_context
def end(ctx: click.Context) -> None:
    """Clock out. A running break is closed at the same time.

    Example:
        time-ledger end
    """
    service = get_service(ctx)
    entry = unwrap(service.end(get_user(ctx)))
    total, on_break, worked = entry_figures(entry, entry.end_time)

    console.print("[green]✓[/green] Work session completed")
    console.print(f"  Duration: {format_duration(total)}")
    console.print(f"  Breaks: {format_duration(on_break)}")
    console.print(f"  Net work: {format_duration(worked)}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show the current session with live totals.

    Example:
        time-ledger status
    """
    service = get_service(ctx)
    user_id = get_user(ctx)
    state = unwrap(service.get_active_state(user_id))

    if as_json:
        print(json.dumps(state.to_dict(), indent=2))
        return

    if state.state is SessionState.IDLE:
        console.print("[yellow]Not clocked in[/yellow]")
        console.print("\nStart a session with: [cyan]time-ledger start[/cyan]")
        return

    tz_name = user_timezone(service, user_id)
    content = f"""[bold]{'On break' if state.state is SessionState.BREAK else 'Working'}[/bold]

[dim]Started:[/dim] {format_datetime(state.entry.start_time, tz_name)}
[dim]Elapsed:[/dim] {format_duration(state.elapsed_ms)}
[dim]Breaks:[/dim] {format_duration(state.break_ms)}
[dim]Worked:[/dim] {format_duration(state.worked_ms)}"""

    if state.open_break:
        content += f"\n[dim]Break since:[/dim] {format_datetime(state.open_break.start_time, tz_name)}"
    content += f"\n[dim]Entry ID:[/dim] {state.entry.id}"

    border = "yellow" if state.state is SessionState.BREAK else "green"
    console.print(Panel(content, title="Current Session", border_style=border))


# Manual entries


@cli.command()
@click.option("--start", required=True, help="Start time (YYYY-MM-DD HH:MM or HH:MM)")
@click.option("--end", help="End time (YYYY-MM-DD HH:MM or HH:MM); omit for a running entry")
@click.option("-d", "--date", "on_date", help="Day for HH:MM times (YYYY-MM-DD, default today)")
@click.option(
    "-b",
    "--break",
    "breaks",
    nargs=2,
    multiple=True,
    metavar="START END",
    help="Break within the entry; repeat for more breaks",
)
@click.pass_context
def add(
    ctx: click.Context,
    start: str,
    end: Optional[str],
    on_date: Optional[str],
    breaks: tuple[tuple[str, str], ...],
) -> None:
    """Add a time entry by hand.

    Example:
        time-ledger add --start 09:00 --end 17:00 -b 12:00 13:00
        time-ledger add --start "2025-11-16 14:00" --end "2025-11-16 18:30"
    """
    service = get_service(ctx)
    user_id = get_user(ctx)
    base = parse_date(on_date, "--date") or unwrap(service.today(user_id))

    drafts = [BreakDraft(parse_time(s, base), parse_time(e, base)) for s, e in breaks]
    entry = unwrap(
        service.create_entry(
            user_id, parse_time(start, base), parse_time(end, base) if end else None, drafts
        )
    )
    tz_name = user_timezone(service, user_id)

    console.print(f"[green]✓[/green] Added entry {entry.id}")
    end_label = format_datetime(entry.end_time, tz_name) if entry.end_time else "running"
    console.print(f"  Time: {format_datetime(entry.start_time, tz_name)} → {end_label}")
    if entry.end_time:
        _, _, worked = entry_figures(entry, entry.end_time)
        console.print(f"  Net work: {format_duration(worked)}")


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--start", help="New start time (YYYY-MM-DD HH:MM or HH:MM)")
@click.option("--end", help="New end time (YYYY-MM-DD HH:MM or HH:MM)")
@click.option(
    "-b",
    "--break",
    "new_breaks",
    nargs=2,
    multiple=True,
    metavar="START END",
    help="Add a break",
)
@click.option(
    "--set-break",
    "changed_breaks",
    type=(int, str, str),
    multiple=True,
    metavar="ID START END",
    help="Change the times of an existing break",
)
@click.option("--remove-break", "removed_breaks", type=int, multiple=True, help="Remove a break")
@click.pass_context
def edit(
    ctx: click.Context,
    entry_id: int,
    start: Optional[str],
    end: Optional[str],
    new_breaks: tuple[tuple[str, str], ...],
    changed_breaks: tuple[tuple[int, str, str], ...],
    removed_breaks: tuple[int, ...],
) -> None:
    """Edit a completed entry and its breaks.

    HH:MM times are taken on the entry's day.

    Example:
        time-ledger edit 12 --end 17:30 --remove-break 4 -b 12:30 13:00
    """
    service = get_service(ctx)
    user_id = get_user(ctx)
    current = unwrap(service.get_entry(user_id, entry_id))
    tz_name = user_timezone(service, user_id)
    base = local_date(current.start_time, tz_name)

    drafts = [BreakDraft(None, id=b, is_new=False, is_deleted=True) for b in removed_breaks]
    drafts += [
        BreakDraft(parse_time(s, base), parse_time(e, base), id=b, is_new=False)
        for b, s, e in changed_breaks
    ]
    drafts += [BreakDraft(parse_time(s, base), parse_time(e, base)) for s, e in new_breaks]

    entry = unwrap(
        service.update_entry(
            user_id,
            entry_id,
            parse_time(start, base) if start else current.start_time,
            parse_time(end, base) if end else current.end_time,
            drafts,
        )
    )

    console.print(f"[green]✓[/green] Updated entry {entry.id}")
    if entry.end_time:
        total, on_break, worked = entry_figures(entry, entry.end_time)
        console.print(f"  Duration: {format_duration(total)}")
        console.print(f"  Breaks: {len(entry.breaks)} ({format_duration(on_break)})")
        console.print(f"  Net work: {format_duration(worked)}")


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx: click.Context, entry_id: int, yes: bool) -> None:
    """Delete an entry and its breaks.

    Example:
        time-ledger delete 12 --yes
    """
    service = get_service(ctx)
    if not yes and not click.confirm(f"Delete entry {entry_id}?"):
        console.print("Cancelled")
        return

    unwrap(service.delete_entry(get_user(ctx), entry_id))
    console.print(f"[green]✓[/green] Deleted entry {entry_id}")


@cli.command()
@click.option("-n", "--count", default=10, help="Number of entries to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def log(ctx: click.Context, count: int, as_json: bool) -> None:
    """List recent entries, newest first.

    Example:
        time-ledger log
        time-ledger log -n 20
    """
    service = get_service(ctx)
    user_id = get_user(ctx)
    entries = unwrap(service.recent_entries(user_id, count))

    if not entries:
        console.print("[yellow]No entries found[/yellow]")
        return

    if as_json:
        print(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    tz_name = user_timezone(service, user_id)
    now = service.clock.now()

    table = Table(title=f"Time Entries (showing {len(entries)})")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Duration", style="magenta", justify="right")
    table.add_column("Breaks", style="yellow", justify="right")
    table.add_column("Net Work", style="green", justify="right")

    for entry in entries:
        total, on_break, worked = entry_figures(entry, now)
        table.add_row(
            str(entry.id),
            format_datetime(entry.start_time, tz_name),
            format_datetime(entry.end_time, tz_name) if entry.end_time else "▶ running",
            format_duration(total),
            format_duration(on_break),
            format_duration(worked),
        )

    console.print(table)


# Reports


@cli.command()
@click.argument(
    "report_type", type=click.Choice([t.value for t in ReportType]), default=ReportType.DAILY.value
)
@click.option("--from", "from_date", help="Start date (YYYY-MM-DD)")
@click.option("--to", "to_date", help="End date (YYYY-MM-DD)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def report(
    ctx: click.Context,
    report_type: str,
    from_date: Optional[str],
    to_date: Optional[str],
    as_json: bool,
) -> None:
    """Summarize completed entries over a period.

    Without dates, daily covers today, weekly this week (Mon-Sun) and
    monthly this month.

    Examples:
        time-ledger report
        time-ledger report weekly
        time-ledger report monthly --from 2025-11-01 --to 2025-11-30
    """
    service = get_service(ctx)
    data = unwrap(
        service.generate_report(
            get_user(ctx),
            report_type,
            parse_date(from_date, "--from"),
            parse_date(to_date, "--to"),
        )
    )

    if as_json:
        print(json.dumps(data.to_dict(), indent=2))
        return

    ReportRenderer(console).render(data)


# Sharing


@cli.group()
def share() -> None:
    """Share reports through read-only tokens."""
    pass


@share.command("create")
@click.argument(
    "report_type", type=click.Choice([t.value for t in ReportType]), default=ReportType.WEEKLY.value
)
@click.option("--from", "from_date", help="Start date (YYYY-MM-DD)")
@click.option("--to", "to_date", help="End date (YYYY-MM-DD)")
@click.option(
    "--expires",
    "expires_in_days",
    type=int,
    help="Days until the link expires; 0 never expires (default: from settings)",
)
@click.pass_context
def share_create(
    ctx: click.Context,
    report_type: str,
    from_date: Optional[str],
    to_date: Optional[str],
    expires_in_days: Optional[int],
) -> None:
    """Create a share token for a report.

    Example:
        time-ledger share create weekly --expires 7
        time-ledger share create monthly --expires 0
    """
    service = get_service(ctx)
    shared = unwrap(
        service.share_report(
            get_user(ctx),
            report_type,
            parse_date(from_date, "--from"),
            parse_date(to_date, "--to"),
            expires_in_days,
        )
    )

    console.print("[green]✓[/green] Report shared")
    console.print(f"  Token: {shared.share_token}")
    console.print(f"  Period: {shared.start_date.isoformat()} → {shared.end_date.isoformat()}")
    expires = shared.expires_at.strftime("%Y-%m-%d %H:%M UTC") if shared.expires_at else "never"
    console.print(f"  Expires: {expires}")


@share.command("show")
@click.argument("share_token")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def share_show(ctx: click.Context, share_token: str, as_json: bool) -> None:
    """Show the report behind a share token.

    Example:
        time-ledger share show 3f9a0c12d4e5b678
    """
    service = get_service(ctx)
    view = unwrap(service.resolve_share(share_token))

    if as_json:
        print(json.dumps(view.to_dict(), indent=2))
        return

    ReportRenderer(console).render(view.data, title=f"Shared {view.report.report_type.value} report")


@share.command("list")
@click.pass_context
def share_list(ctx: click.Context) -> None:
    """List your shared reports.

    Example:
        time-ledger share list
    """
    service = get_service(ctx)
    shares = unwrap(service.list_shares(get_user(ctx)))

    if not shares:
        console.print("[yellow]No shared reports[/yellow]")
        return

    now = service.clock.now()
    table = Table(title="Shared Reports")
    table.add_column("Token", style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Period", style="cyan")
    table.add_column("Expires", style="magenta")

    for shared in shares:
        if shared.expires_at is None:
            expires = "never"
        elif shared.is_expired(now):
            expires = "[red]expired[/red]"
        else:
            expires = shared.expires_at.strftime("%Y-%m-%d %H:%M UTC")
        table.add_row(
            shared.share_token,
            shared.report_type.value,
            f"{shared.start_date.isoformat()} → {shared.end_date.isoformat()}",
            expires,
        )

    console.print(table)


@share.command("revoke")
@click.argument("share_token")
@click.pass_context
def share_revoke(ctx: click.Context, share_token: str) -> None:
    """Revoke a share token immediately.

    Example:
        time-ledger share revoke 3f9a0c12d4e5b678
    """
    service = get_service(ctx)
    unwrap(service.revoke_share(get_user(ctx), share_token))
    console.print(f"[green]✓[/green] Revoked {share_token}")


# Settings


@cli.group()
def settings() -> None:
    """Show and change your user settings."""
    pass


@settings.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def settings_show(ctx: click.Context, as_json: bool) -> None:
    """Show your settings.

    Example:
        time-ledger settings show
    """
    service = get_service(ctx)
    current = unwrap(service.get_settings(get_user(ctx)))
    data = current.to_dict()

    if as_json:
        print(json.dumps(data, indent=2))
        return

    table = Table(title="User Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in data.items():
        if key != "user_id":
            table.add_row(key, str(value))
    console.print(table)


@settings.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def settings_set(ctx: click.Context, key: str, value: str) -> None:
    """Change one setting.

    Example:
        time-ledger settings set timezone America/Sao_Paulo
        time-ledger settings set share_duration_days 30
    """
    converted: Any = value
    if key in BOOL_SETTINGS:
        if value.lower() not in ("true", "yes", "1", "false", "no", "0"):
            error_console.print(f"[red]Error:[/red] {key} expects true or false")
            sys.exit(1)
        converted = value.lower() in ("true", "yes", "1")
    elif key in INT_SETTINGS:
        try:
            converted = int(value)
        except ValueError:
            error_console.print(f"[red]Error:[/red] {key} expects a whole number")
            sys.exit(1)

    service = get_service(ctx)
    unwrap(service.update_settings(get_user(ctx), {key: converted}))
    console.print(f"[green]✓[/green] Set {key} = {converted}")


if __name__ == "__main__":
    cli(obj={})
