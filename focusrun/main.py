"""
Serve the FocusRun engine to the widget page on localhost.

The page polls GET /session (or listens on /session/ws) for snapshots and
media directives, and pushes visibility and media reports to /telemetry.

    python -m focusrun.main [--host H] [--port P] [--log-level debug]
"""

import argparse

import uvicorn

from .config import config


def main(argv=None):
    parser = argparse.ArgumentParser(description="FocusRun session engine")
    parser.add_argument("--host", default=config.api_host)
    parser.add_argument("--port", type=int, default=config.api_port)
    parser.add_argument("--log-level", default="info",
                        choices=["critical", "error", "warning", "info", "debug"])
    args = parser.parse_args(argv)

    # a single worker: the engine's timers live on one event loop
    uvicorn.run(
        "focusrun.api.app:app",
        host=args.host,
        port=args.port,
        workers=1,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
