"""Local launcher for the InfoCard admin panel."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from werkzeug.serving import make_server

from infocard import create_app


def run_server() -> None:
    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = create_app()
    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", "5000"))

    server = make_server(host, port, app)
    app.logger.info("Serving InfoCard admin on http://%s:%s", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    run_server()
