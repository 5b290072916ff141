"""WSGI entry point for the financial projection engine."""

import argparse
import os

from finance_engine import create_app

app = create_app()


def main() -> None:
    """Run the development server for the projection API."""
    parser = argparse.ArgumentParser(description="Financial projection API")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", 5000)),
        help="Port to listen on (defaults to $PORT or 5000)",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    args = parser.parse_args()

    app.run(debug=app.config["DEBUG"], host=args.host, port=args.port)


if __name__ == "__main__":
    main()
