"""Command-line interface for devsync (the ``j`` command)."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Optional

import click
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer.core import TyperGroup

from .config import Settings
from .errors import ConfigError, DevsyncError, UnknownPackage
from .filesystem import default_copier
from .gitsync import GitSync
from .install import Installer
from .journal import DEFAULT_PLAN_COUNT, Journal, is_valid_date, today_string
from .logger import setup_logging
from .models import Direction, ExportSummary, SyncResult
from .nvim import PluginManager
from .project import ProjectTools
from .registry import Registry
from .remotes import RemoteShell, RemoteStore
from .runner import CommandRunner
from .sync import SyncEngine

USAGE = """\
j - dev environment sync tool

Usage: j [--force] <import|export|install> <package|--all>
       j config <load|save> [message]
       j nvim <install|list|update|remove> [plugin-url|plugin-name] [custom-name]
       j project [search [pattern] [dir]|files [dir]|explore|plan <topic>]
       j plan [view|list [n]|save|YYYY-MM-DD]
       j til <topic|list [--public]|search <pattern>|export <topic>>
       j remote <add <name> <host> [user]|list|ssh <name>|pull <name>|live>

Config Commands:
  import <package>  Copy config from system location to repo
  export <package>  Copy config from repo to system location
  export --all      Export all available packages to system
  install           Install j command to /usr/local/bin

Options:
  --force           Skip timestamp checks and prompts
  --verbose         Show debug logging on stderr
"""

console = Console(soft_wrap=True)


def _print_usage() -> None:
    console.print(USAGE, markup=False, highlight=False)
    try:
        settings = _settings()
        registry = Registry.default()
    except DevsyncError:
        return
    console.print("Available packages:", markup=False)
    for package in registry.all():
        console.print(
            f"  {package.name}: {package.repo_source(settings.repo_root)} <-> {package.system_path}",
            markup=False,
            highlight=False,
        )


def _usage_error(message: str | None = None) -> None:
    if message:
        console.print(f"Error: {message}", markup=False, highlight=False)
    _print_usage()
    raise typer.Exit(code=1)


class UsageGroup(TyperGroup):
    """Reports unknown verbs and bad argument counts with the usage text and exit code 1."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            _usage_error(exc.format_message())
            raise

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except click.UsageError as exc:
            _usage_error(exc.format_message())
            raise


app = typer.Typer(
    cls=UsageGroup,
    help="Sync dev environment configuration between this repository and the system",
    invoke_without_command=True,
    no_args_is_help=False,
    add_completion=False,
)


def _sub_app(help_text: str) -> typer.Typer:
    sub = typer.Typer(cls=UsageGroup, help=help_text, invoke_without_command=True, no_args_is_help=False)

    @sub.callback(invoke_without_command=True)
    def _require_subcommand(ctx: typer.Context) -> None:
        if ctx.invoked_subcommand is None:
            _usage_error(f"Missing {ctx.info_name} command")

    return sub


config_app = _sub_app("Pull or push the configuration repository")
nvim_app = _sub_app("Manage Neovim plugins as git submodules")
remote_app = _sub_app("Manage remote machines reachable over SSH")
app.add_typer(config_app, name="config")
app.add_typer(nvim_app, name="nvim")
app.add_typer(remote_app, name="remote")


# ----------------------------------------------------------------------
# Component factories


def _settings() -> Settings:
    return Settings.from_env()


def _runner() -> CommandRunner:
    return CommandRunner()


def _current_executable() -> Path:
    return Path(sys.argv[0])


def _confirm(question: str) -> bool:
    return typer.confirm(question, default=False)


def _load_engine() -> SyncEngine:
    runner = _runner()
    return SyncEngine(
        _settings(),
        Registry.default(),
        default_copier(runner),
        runner,
        confirm=_confirm,
    )


def _load_remote_store(settings: Settings) -> RemoteStore:
    return RemoteStore.load(settings.remotes_path, legacy_path=settings.legacy_remotes_path)


def _load_remote_shell() -> RemoteShell:
    settings = _settings()
    return RemoteShell(settings, _runner(), _load_remote_store(settings))


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, PermissionError):
        console.print("[red]Permission denied.[/red] Re-run the command with elevated privileges (e.g. `sudo`).")
        raise typer.Exit(code=1)
    if isinstance(exc, ConfigError):
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    if isinstance(exc, UnknownPackage):
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        console.print("Run 'j' for available packages")
        raise typer.Exit(code=1)
    if isinstance(exc, DevsyncError):
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        lowered = str(exc).lower()
        if "permission denied" in lowered:
            console.print(
                "[yellow]Tip: try rerunning with `sudo` or grant write access to the target directories.[/yellow]"
            )
        raise typer.Exit(code=1)
    raise exc


def _force(ctx: typer.Context, local: bool) -> bool:
    return local or bool((ctx.obj or {}).get("force"))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Skip timestamp checks and prompts"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Sync dev environment configuration between this repository and the system."""

    setup_logging(verbose)
    ctx.obj = {"force": force}
    if ctx.invoked_subcommand is None:
        _usage_error()

    warning = Installer(_settings(), _runner()).stale_install_warning(_current_executable())
    if warning:
        console.print(f"[yellow]{escape(warning)}[/yellow]")


# ----------------------------------------------------------------------
# Package sync


def _describe(result: SyncResult) -> None:
    if result.replaced_conflict:
        console.print(f"Replaced conflicting destination: {result.destination}", markup=False)
    if result.backup is not None:
        console.print(f"Previous copy kept at {result.backup}", markup=False)


def _format_summary(summary: ExportSummary) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Package")
    table.add_column("Result")
    table.add_column("Details", overflow="fold")

    for name in summary.succeeded:
        table.add_row(name, "[green]exported[/green]", "")
    for name in summary.skipped:
        table.add_row(name, "[yellow]skipped[/yellow]", escape(summary.errors.get(name, "")))
    for name in summary.failed:
        table.add_row(name, "[red]failed[/red]", escape(summary.errors.get(name, "")))

    console.print(table)
    console.print(f"Export complete: {summary.successful_count}/{summary.total} packages successful")
    if summary.unsuccessful:
        console.print(f"Failed packages: {', '.join(summary.unsuccessful)}", markup=False)


@app.command("export")
def export_command(
    ctx: typer.Context,
    package: Optional[str] = typer.Argument(None, help="Package to export"),
    all_packages: bool = typer.Option(False, "--all", help="Export every registered package"),
    force: bool = typer.Option(False, "--force", help="Skip timestamp checks and prompts"),
) -> None:
    """Copy config from the repository to its system location."""

    if all_packages == (package is not None):
        _usage_error("export takes either a package name or --all")

    try:
        engine = _load_engine()
        if all_packages:
            console.print("Exporting all packages to system locations...")
            summary = engine.export_all()
            _format_summary(summary)
            if not summary.ok:
                raise typer.Exit(code=1)
            return

        target = engine.resolve(package)
        source, destination = engine.endpoints(target, Direction.EXPORT)
        console.print(f"Exporting {target.name}: {source} -> {destination}", markup=False)
        result = engine.sync(target, Direction.EXPORT, force=_force(ctx, force))
        _describe(result)
        console.print(f"[green]Exported {target.name} successfully[/green]")
        if result.shell_reloaded:
            console.print("Fish config reloaded")
        elif result.shell_reloaded is False:
            console.print("[yellow]Could not reload fish config; open a new shell to pick it up.[/yellow]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command("import")
def import_command(
    ctx: typer.Context,
    package: str = typer.Argument(..., help="Package to import"),
    force: bool = typer.Option(False, "--force", help="Skip timestamp checks and prompts"),
) -> None:
    """Copy config from its system location back into the repository."""

    try:
        engine = _load_engine()
        target = engine.resolve(package)
        source, destination = engine.endpoints(target, Direction.IMPORT)
        console.print(f"Importing {target.name}: {source} -> {destination}", markup=False)
        result = engine.sync(target, Direction.IMPORT, force=_force(ctx, force))
        if result.cancelled:
            console.print("Import cancelled.")
            return
        _describe(result)
        console.print(f"[green]Imported {target.name} successfully[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command("install")
def install_command() -> None:
    """Install the j command to /usr/local/bin."""

    try:
        installer = Installer(_settings(), _runner())
        console.print(f"Installing j to {installer.install_location}", markup=False)
        result = installer.install(_current_executable())
        if result.backup is not None:
            console.print(f"Backed up existing j to {result.backup}", markup=False)
        console.print(f"[green]Successfully installed j to {escape(str(result.destination))}[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


# ----------------------------------------------------------------------
# Repository load/save


@config_app.command("load")
def config_load() -> None:
    """Pull the repository and update all submodules."""

    try:
        console.print("Loading config from remote repository...")
        if not GitSync(_settings(), _runner()).load():
            console.print("[yellow]Warning: some submodules may not have updated correctly[/yellow]")
        console.print("[green]Successfully loaded config from remote[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@config_app.command("save")
def config_save(message: Optional[str] = typer.Argument(None, help="Commit message")) -> None:
    """Commit and push the repository and its owned submodules."""

    try:
        console.print("Saving config to remote repository...")
        report = GitSync(_settings(), _runner()).save(message)
        for name in report.pushed_submodules:
            console.print(f"Pushed {name}")
        for name in report.failed_submodules:
            console.print(f"[yellow]Warning: failed to push {name}[/yellow]")
        if not report.committed:
            console.print("No changes to commit in main repository")
        console.print("[green]Successfully saved config to remote[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


# ----------------------------------------------------------------------
# Plans and TIL


@app.command("plan")
def plan_command(args: Optional[list[str]] = typer.Argument(None, help="view | list [n] | save | YYYY-MM-DD")) -> None:
    """Edit, view, list or save daily plans."""

    args = args or []
    try:
        journal = Journal(_settings(), _runner())
        if not args:
            _report_created(journal.edit_plan(today_string()), "plan")
        elif args == ["view"]:
            journal.view_plan(today_string())
        elif args[0] == "list" and len(args) <= 2:
            count = DEFAULT_PLAN_COUNT
            if len(args) == 2:
                if not args[1].isdigit():
                    _usage_error("Invalid number for list count")
                count = int(args[1])
            _print_plans(journal.list_plans(count), count)
        elif args == ["save"]:
            if journal.save_logs():
                console.print(f"[green]Successfully saved logs for {today_string()}[/green]")
            else:
                console.print("No changes to commit")
        elif len(args) == 1 and is_valid_date(args[0]):
            _report_created(journal.edit_plan(args[0]), "plan")
        else:
            _usage_error("Invalid plan command")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


def _print_plans(plans: Iterable[tuple[str, Path]], count: int) -> None:
    console.print(f"Recent plans (last {count} days):\n")
    for day, path in plans:
        console.print(f"  {day} - {path}", markup=False)


def _report_created(outcome: tuple[Path, bool], label: str) -> None:
    path, created = outcome
    if created:
        console.print(f"Created new {label}: {path}", markup=False)


@app.command("til")
def til_command(
    args: Optional[list[str]] = typer.Argument(None, help="<topic> | list | search <pattern> | export <topic>"),
    public: bool = typer.Option(False, "--public", help="List published TILs"),
) -> None:
    """Edit, list, search or publish TIL notes."""

    args = args or []
    try:
        journal = Journal(_settings(), _runner())
        if args == ["list"]:
            label = "Public TIL topics" if public else "TIL topics"
            console.print(f"{label}:\n")
            for topic in journal.list_tils(public=public):
                console.print(f"  {topic}", markup=False)
        elif len(args) == 2 and args[0] == "search":
            console.print(f"Searching TILs for: {args[1]}\n", markup=False)
            if not journal.search_tils(args[1]):
                console.print("No matches found")
        elif len(args) == 2 and args[0] == "export":
            console.print("Opening TIL for polishing...")
            public_path = journal.export_til(args[1])
            console.print(f"Exported '{args[1]}' to public repo at {public_path}", markup=False)
            console.print("Don't forget to commit and push public_logs!")
        elif len(args) == 1 and args[0] not in ("list", "search", "export") and not public:
            _report_created(journal.edit_til(args[0]), f"TIL for {args[0]}")
        else:
            _usage_error("Invalid til command")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


# ----------------------------------------------------------------------
# Neovim plugins


@nvim_app.command("install")
def nvim_install(
    url: str = typer.Argument(..., help="Plugin git URL"),
    name: Optional[str] = typer.Argument(None, help="Override the plugin directory name"),
) -> None:
    """Install a plugin from a git URL as a submodule."""

    try:
        console.print(f"Installing nvim plugin from {url}", markup=False)
        path = PluginManager(_settings(), _runner()).install(url, name)
        console.print(f"[green]Successfully installed plugin '{escape(path.name)}'[/green]")
        console.print(f"  Location: {path}", markup=False)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@nvim_app.command("list")
def nvim_list() -> None:
    """List installed plugins."""

    try:
        manager = PluginManager(_settings(), _runner())
        plugins = manager.list_plugins()
        if not plugins:
            console.print("No nvim plugins installed")
            return
        console.print(f"Installed nvim plugins in {manager.settings.plugins_path}:", markup=False)
        for name in plugins:
            console.print(f"  {name}", markup=False)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@nvim_app.command("update")
def nvim_update(name: str = typer.Argument(..., help="Plugin name")) -> None:
    """Update a plugin to its latest upstream version."""

    try:
        PluginManager(_settings(), _runner()).update(name)
        console.print(f"[green]Successfully updated plugin '{escape(name)}' to latest version[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@nvim_app.command("remove")
def nvim_remove(name: str = typer.Argument(..., help="Plugin name")) -> None:
    """Remove a plugin submodule."""

    try:
        if not PluginManager(_settings(), _runner()).remove(name):
            console.print("[yellow]Warning: some cleanup commands failed, but the plugin was removed[/yellow]")
        console.print(f"[green]Successfully removed plugin '{escape(name)}'[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


# ----------------------------------------------------------------------
# Project helpers


@app.command("project")
def project_command(
    args: Optional[list[str]] = typer.Argument(None, help="search [pattern] [dir] | files [dir] | explore | plan <topic>"),
) -> None:
    """Search, browse and plan within the current project."""

    args = args or []
    try:
        tools = ProjectTools(_settings(), _runner())
        if not args or args[0] == "search" and len(args) <= 3:
            pattern = args[1] if len(args) > 1 else None
            directory = args[2] if len(args) > 2 else "."
            ok = tools.search(pattern, directory)
        elif args[0] == "files" and len(args) <= 2:
            ok = tools.files(args[1] if len(args) == 2 else ".")
        elif args == ["explore"]:
            ok = tools.explore()
            if not ok:
                console.print("[yellow]Failed to launch file explorer[/yellow]")
            return
        elif args[0] == "plan" and len(args) == 2:
            _report_created(tools.plan(args[1]), "project plan")
            return
        else:
            _usage_error("Invalid project command")
            return
        if not ok:
            console.print("[yellow]Search failed or cancelled[/yellow]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


# ----------------------------------------------------------------------
# Remotes


@remote_app.command("add")
def remote_add(
    name: str = typer.Argument(..., help="Remote name"),
    host: str = typer.Argument(..., help="Host name or address"),
    user: str = typer.Argument("root", help="SSH user"),
) -> None:
    """Register a remote machine."""

    try:
        store = _load_remote_store(_settings())
        remote = store.add(name, host, user)
        store.save()
        console.print(f"[green]Added remote '{escape(remote.name)}' ({escape(remote.target)})[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@remote_app.command("list")
def remote_list() -> None:
    """List registered remotes."""

    try:
        remotes = list(_load_remote_store(_settings()).remotes())
        if not remotes:
            console.print("No remotes configured. Use 'j remote add <name> <host> [user]' to add one.", markup=False)
            return
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Name")
        table.add_column("User")
        table.add_column("Host")
        for remote in remotes:
            table.add_row(escape(remote.name), escape(remote.user), escape(remote.host))
        console.print(table)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@remote_app.command("ssh")
def remote_ssh(name: str = typer.Argument(..., help="Remote name")) -> None:
    """Open an interactive SSH session."""

    try:
        shell = _load_remote_shell()
        console.print(f"Connecting to {shell.store.require(name).target}...", markup=False)
        exit_code = shell.connect(name)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)
        return
    raise typer.Exit(code=exit_code)


@remote_app.command("pull")
def remote_pull(name: str = typer.Argument(..., help="Remote name")) -> None:
    """Copy a remote's NixOS configuration into the configs repository."""

    try:
        shell = _load_remote_shell()
        console.print(f"Pulling NixOS configuration from {shell.store.require(name).target}...", markup=False)
        destination = shell.pull(name)
        console.print(f"[green]Successfully pulled configuration to {escape(str(destination))}[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@remote_app.command("live")
def remote_live(exclude: Optional[str] = typer.Option(None, "--exclude", help="Remote to skip")) -> None:
    """Print the first remote that answers over SSH."""

    try:
        remote = _load_remote_shell().find_live(exclude)
        if remote is None:
            console.print("[red]No reachable remotes[/red]")
            raise typer.Exit(code=1)
        console.print(f"{remote.name}: {remote.target}", markup=False)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


def run() -> None:
    """Entry point used for console_script bindings."""

    app()
