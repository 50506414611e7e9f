"""
ASGI entry point with logging configured from settings
"""

import uvicorn

from . import create_app
from ..config import get_config
from ..logging_config import setup_logging


config = get_config()
setup_logging(level=config.log_level, log_format=config.log_format, log_file=config.log_file)

app = create_app()


def run_server(host: str = "0.0.0.0", port: int = 8090, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "troop_cookies.api.server:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
