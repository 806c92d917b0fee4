"""Command-line interface for interacting with OceanStor arrays."""
from __future__ import annotations

import json
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import typer

try:  # pragma: no cover - exercised in runtime environments
    from rich import box
    from rich.console import Console
    from rich.table import Table
except ImportError as exc:  # pragma: no cover - optional dependency guard
    raise RuntimeError(
        "The CLI requires Rich for table rendering. Install the CLI extras via "
        "'pip install oceanstor-client[cli]' to enable this command."
    ) from exc

from . import OceanStorClient
from .auth.static import StaticSecretProvider
from .cli_schema import CLI_TABLE_VIEWS, TableView
from .exceptions import CertificateError, OceanStorError
from .tls import TLSConfig, load_ca_pem

app = typer.Typer(help="OceanStor storage management CLI.", no_args_is_help=True)

system_app = typer.Typer(help="System inventory operations.")
filesystems_app = typer.Typer(help="Filesystem operations.")
luns_app = typer.Typer(help="LUN operations.")
performance_app = typer.Typer(help="Performance statistics.")
app.add_typer(system_app, name="system")
app.add_typer(filesystems_app, name="filesystems")
app.add_typer(luns_app, name="luns")
app.add_typer(performance_app, name="performance")

CLI_SECRET_NAME = "cli-credentials"
CLI_SECRET_NAMESPACE = "cli"


def _split_urls(urls: str) -> list[str]:
    return [url.strip() for url in urls.split(",") if url.strip()]


def _build_client(
    urls: str,
    username: str | None,
    password: str | None,
    scope: str,
    verify_ssl: bool,
    cert_path: Path | None,
    timeout: float,
    max_concurrency: int,
) -> OceanStorClient:
    candidates = _split_urls(urls)
    if not candidates:
        raise typer.BadParameter("--urls must list at least one array URL.")
    if not username or not password:
        raise typer.BadParameter("--username and --password are required.")
    if scope not in {"0", "1"}:
        raise typer.BadParameter("--scope must be 0 (local) or 1 (LDAP).")

    tls: TLSConfig
    if cert_path:
        expanded_cert = cert_path.expanduser()
        if not expanded_cert.exists():
            raise typer.BadParameter("Certificate file not found for --cert option.")
        if not verify_ssl:
            raise typer.BadParameter("Cannot combine --cert with --no-verify.")
        try:
            tls = TLSConfig(verify=True, ca_pem=load_ca_pem(expanded_cert.read_bytes(), source=str(expanded_cert)))
        except CertificateError as exc:
            raise typer.BadParameter(str(exc)) from exc
    else:
        tls = TLSConfig(verify=verify_ssl)

    secrets = StaticSecretProvider.for_password(
        password, name=CLI_SECRET_NAME, namespace=CLI_SECRET_NAMESPACE, scope=scope
    )
    return OceanStorClient(
        urls=candidates,
        user=username,
        secrets=secrets,
        secret_name=CLI_SECRET_NAME,
        secret_namespace=CLI_SECRET_NAMESPACE,
        tls=tls,
        timeout=timeout,
        max_concurrency=max_concurrency,
    )


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


console = Console(force_terminal=False, color_system=None)


def _render_rich_table(view: TableView, rows: Sequence[Mapping[str, Any]]) -> None:
    table = Table(
        title=view.title,
        box=box.SIMPLE,
        show_lines=False,
        header_style="bold cyan",
    )
    for column in view.columns:
        table.add_column(column.header, justify=column.justify)
    ordered_rows = list(rows)
    if view.sort_key:
        ordered_rows.sort(key=view.sort_key)
    for row in ordered_rows:
        table.add_row(*(column.render(row) for column in view.columns))
    console.print(table)


def _present_output(payload: Any, *, view_id: str | None, json_output: bool) -> None:
    if json_output or view_id is None:
        _echo_json(payload)
        return
    view = CLI_TABLE_VIEWS.get(view_id)
    if not view:
        _echo_json(payload)
        return
    if not isinstance(payload, Sequence) or isinstance(payload, (str, bytes)):
        _echo_json(payload)
        return
    rows = [item for item in payload if isinstance(item, Mapping)]
    if not rows:
        _echo_json(payload)
        return
    _render_rich_table(view, rows)


def _handle_error(exc: OceanStorError) -> None:
    if exc.status_code is not None:
        message = f"Request failed (code {exc.status_code}): {exc}"
    else:
        message = f"Request failed: {exc}"
    if exc.details and exc.details != exc.status_code:
        message += f"\nDetails: {exc.details}"
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _shared_options() -> dict[str, Any]:  # pragma: no cover - helper indirection
    # Respect OCEANSTOR_VERIFY_SSL when present (1/0, true/false, yes/no).
    env_verify = os.getenv("OCEANSTOR_VERIFY_SSL")
    if env_verify is None:
        default_verify = True
    else:
        default_verify = env_verify.strip().lower() not in {"0", "false", "no", "off"}

    return {
        "urls": typer.Option(
            ...,
            "--urls",
            envvar="OCEANSTOR_URLS",
            help="Comma-separated array management URLs, tried in order.",
        ),
        "username": typer.Option(
            None,
            "--username",
            "-u",
            envvar="OCEANSTOR_USERNAME",
            help="Array username.",
        ),
        "password": typer.Option(
            None,
            "--password",
            "-p",
            envvar="OCEANSTOR_PASSWORD",
            help="Array password.",
            hide_input=True,
        ),
        "scope": typer.Option(
            "0",
            "--scope",
            envvar="OCEANSTOR_SCOPE",
            help="Authentication scope: 0 for local users, 1 for LDAP users.",
            show_default=True,
        ),
        "verify_ssl": typer.Option(
            default_verify,
            "--verify/--no-verify",
            envvar="OCEANSTOR_VERIFY_SSL",
            help="Enable or disable TLS certificate verification.",
            show_default=True,
        ),
        "cert_path": typer.Option(
            None,
            "--cert",
            envvar="OCEANSTOR_CA_CERT",
            help="Path to a PEM CA certificate for TLS verification.",
        ),
        "timeout": typer.Option(60.0, help="Request timeout (seconds).", show_default=True),
        "max_concurrency": typer.Option(
            30,
            "--max-concurrency",
            envvar="OCEANSTOR_MAX_CONCURRENCY",
            help="Maximum number of requests in flight.",
            show_default=True,
        ),
        "output_json": typer.Option(
            False,
            "--json",
            "-j",
            help="Return raw JSON instead of rendering a table.",
        ),
    }


_SHARED_OPTIONS = _shared_options()


@system_app.command("info")
def system_info(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
) -> None:
    """Display the array system information."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            info = client.system.info()
        except OceanStorError as exc:
            _handle_error(exc)
            return

    _echo_json(info)


@system_app.command("pools")
def system_pools(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List storage pools."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            pools = client.system.storage_pools()
        except OceanStorError as exc:
            _handle_error(exc)
            return

    _present_output(pools, view_id="system.pools", json_output=output_json)


@system_app.command("controllers")
def system_controllers(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List controllers with their load and health."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            controllers = client.system.controllers()
        except OceanStorError as exc:
            _handle_error(exc)
            return

    _present_output(controllers, view_id="system.controllers", json_output=output_json)


@filesystems_app.command("list")
def filesystems_list(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
    start: int = typer.Option(0, "--start", help="First row of the page.", show_default=True),
    end: int = typer.Option(100, "--end", help="Row after the last one of the page.", show_default=True),
) -> None:
    """List one page of filesystems."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            filesystems = client.filesystems.page(start, end)
        except OceanStorError as exc:
            _handle_error(exc)
            return
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc

    _present_output(filesystems, view_id="filesystems.list", json_output=output_json)


@filesystems_app.command("count")
def filesystems_count(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
) -> None:
    """Print the number of filesystems."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            count = client.filesystems.count()
        except OceanStorError as exc:
            _handle_error(exc)
            return

    typer.echo(str(count))


@filesystems_app.command("show")
def filesystems_show(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
    name: str = typer.Option(..., "--name", help="Filesystem name."),
) -> None:
    """Show a filesystem by name."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            filesystem = client.filesystems.get_by_name(name)
        except OceanStorError as exc:
            _handle_error(exc)
            return

    if filesystem is None:
        typer.secho(f"Filesystem '{name}' was not found on the array.", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    _echo_json(filesystem)


@luns_app.command("list")
def luns_list(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
    start: int = typer.Option(0, "--start", help="First row of the page.", show_default=True),
    end: int = typer.Option(100, "--end", help="Row after the last one of the page.", show_default=True),
) -> None:
    """List one page of LUNs."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            luns = client.luns.page(start, end)
        except OceanStorError as exc:
            _handle_error(exc)
            return
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc

    _present_output(luns, view_id="luns.list", json_output=output_json)


@luns_app.command("count")
def luns_count(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
) -> None:
    """Print the number of LUNs."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            count = client.luns.count()
        except OceanStorError as exc:
            _handle_error(exc)
            return

    typer.echo(str(count))


@luns_app.command("show")
def luns_show(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
    name: str = typer.Option(..., "--name", help="LUN name."),
) -> None:
    """Show a LUN by name."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            lun = client.luns.get_by_name(name)
        except OceanStorError as exc:
            _handle_error(exc)
            return

    if lun is None:
        typer.secho(f"LUN '{name}' was not found on the array.", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    _echo_json(lun)


@performance_app.command("query")
def performance_query(
    urls: str = _SHARED_OPTIONS["urls"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    scope: str = _SHARED_OPTIONS["scope"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    max_concurrency: int = _SHARED_OPTIONS["max_concurrency"],
    object_type: int = typer.Option(..., "--object-type", help="Numeric object type (e.g. 11 for LUN)."),
    indicators: list[int] = typer.Option(
        ...,
        "--indicator",
        "-i",
        help="Indicator id; repeat for several indicators.",
    ),
    use_post: bool = typer.Option(
        False,
        "--post/--get",
        help="Send the query as a POST body instead of query parameters.",
        show_default=True,
    ),
) -> None:
    """Query real-time performance indicators."""

    with _build_client(
        urls=urls,
        username=username,
        password=password,
        scope=scope,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        max_concurrency=max_concurrency,
    ) as client:
        try:
            client.login()
            if use_post:
                data = client.performance.query_by_post(object_type, indicators)
            else:
                data = client.performance.query(object_type, indicators)
        except OceanStorError as exc:
            _handle_error(exc)
            return

    _echo_json(data)


def main() -> None:  # pragma: no cover - console entrypoint
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
