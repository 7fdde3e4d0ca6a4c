"""Command-line entrypoint that serves the API locally."""

import os


def main() -> None:
    import uvicorn

    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("delivery_tracker.api.asgi:app", host=host, port=port)


if __name__ == "__main__":
    main()
