"""Serve command - Run the HTTP API"""

import click


@click.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", "-p", default=8080, type=int, help="Port to listen on")
@click.option("--reload", is_flag=True, help="Reload on code changes (development)")
def serve_cmd(host: str, port: int, reload: bool):
    """Start the Story Reel Builder API server"""
    import uvicorn

    uvicorn.run(
        "server.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )
