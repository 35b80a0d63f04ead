"""CLI entry point for LinkBeam."""

from pathlib import Path

import click

from linkbeam import __version__
from linkbeam.config import load_config
from linkbeam.logging import setup_logging


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file.",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None) -> None:
    """LinkBeam - Send links from your phone to this computer."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config)
    ctx.obj["logger"] = setup_logging(ctx.obj["config"])


def _default_server(ctx: click.Context, server: str | None) -> str:
    if server:
        return server
    return f"http://127.0.0.1:{ctx.obj['config'].port}"


@main.command()
@click.option("--host", default=None, help="Address to bind to.")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on.")
@click.option("--base-url", default=None, help="Public URL used in QR codes.")
@click.pass_context
def serve(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    base_url: str | None,
) -> None:
    """Run the relay server."""
    import asyncio

    from linkbeam.server import RelayServer

    config = ctx.obj["config"]
    if base_url:
        config.base_url = base_url
    host = host or config.bind_address
    port = port if port is not None else config.port

    async def _serve():
        server = RelayServer(config)
        try:
            await server.start(host, port)
            click.echo(f"Relay server listening on {host}:{server.get_port()}")
            click.echo(f"Submission links use {config.base_url}")
            click.echo("Press Ctrl+C to stop")
            while True:
                await asyncio.sleep(3600)
        finally:
            await server.close()

    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        click.echo("\nShutting down...")


@main.command()
@click.option("--server", "-s", default=None, help="Relay server URL.")
@click.option("--no-open", is_flag=True, help="Print the link instead of opening it.")
@click.option("--browser", "-b", is_flag=True, help="Open QR code in browser.")
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=None,
    help="Save QR code to file.",
)
@click.pass_context
def receive(
    ctx: click.Context,
    server: str | None,
    no_open: bool,
    browser: bool,
    output: str | None,
) -> None:
    """Show a QR code and wait for a link from your phone."""
    import asyncio

    async def _receive() -> int:
        import tempfile
        import webbrowser

        import aiohttp

        from linkbeam.client import RelayClient
        from linkbeam.errors import RelayClientError
        from linkbeam.formatting import format_time_remaining
        from linkbeam.qr_generator import QrGenerator

        base_url = _default_server(ctx, server)

        try:
            async with RelayClient(base_url) as client:
                # 1. Create session
                try:
                    session = await client.create_session()
                except aiohttp.ClientConnectorError:
                    click.echo("Error: Cannot connect to relay server. Is it running?", err=True)
                    click.echo("Start it with: linkbeam serve", err=True)
                    return 1

                session_id = session["sessionId"]
                qr_gen = QrGenerator(session["url"], expires_at_ms=session["expiresAt"])

                # 2. Display QR code
                if browser:
                    html = qr_gen.to_html()
                    with tempfile.NamedTemporaryFile(suffix=".html", delete=False, mode="w") as f:
                        f.write(html)
                        webbrowser.open(f"file://{f.name}")
                    click.echo("QR code opened in browser")
                elif output:
                    qr_gen.to_png(output)
                    click.echo(f"QR code saved to: {output}")
                else:
                    click.echo(qr_gen.to_terminal())
                    click.echo("Scan this QR code with your phone")

                click.echo(f"Or visit: {session['url']}")
                click.echo(f"Expires in: {format_time_remaining(session['expiresAt'])}")

                # 3. Wait for the link
                click.echo("\nWaiting for link...")
                async for event in client.listen(session_id):
                    kind = event.get("type")

                    if kind == "link":
                        link = event["link"]
                        click.echo(f"\nLink received: {link}")
                        if not no_open:
                            webbrowser.open(link, new=2)
                        return 0
                    elif kind == "timeout":
                        click.echo("\nSession expired. Run the command again for a new code.", err=True)
                        return 1
                    elif kind == "error":
                        click.echo(f"\nError: {event.get('message', 'An error occurred')}", err=True)
                        return 1
                    # connected - keep waiting

                click.echo("\nConnection lost. Run the command again for a new code.", err=True)
                return 1

        except RelayClientError as e:
            click.echo(f"Error: {e}", err=True)
            return 1

    try:
        exit_code = asyncio.run(_receive())
    except KeyboardInterrupt:
        click.echo("\nCancelled")
        exit_code = 1

    if exit_code:
        raise SystemExit(exit_code)


@main.command()
@click.argument("target")
@click.argument("link")
@click.option("--server", "-s", default=None, help="Relay server URL.")
@click.pass_context
def send(ctx: click.Context, target: str, link: str, server: str | None) -> None:
    """Send LINK to a waiting desktop.

    TARGET is a session ID or the full URL from the QR code.
    """
    import asyncio

    import aiohttp

    from linkbeam.client import RelayClient, parse_session_target
    from linkbeam.errors import RelayClientError

    session_id = parse_session_target(target)
    if "://" in target and "/submit/" in target and server is None:
        # The submission URL already names the server
        server = target.strip().rsplit("/submit/", 1)[0]

    async def _send() -> str:
        async with RelayClient(_default_server(ctx, server)) as client:
            return await client.submit_link(session_id, link)

    try:
        message = asyncio.run(_send())
    except aiohttp.ClientConnectorError:
        click.echo("Error: Cannot connect to relay server. Is it running?", err=True)
        raise SystemExit(1)
    except RelayClientError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(message)


@main.command()
def version() -> None:
    """Show version."""
    click.echo(f"linkbeam version {__version__}")
