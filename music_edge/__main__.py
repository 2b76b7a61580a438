"""Launch the proxy with uvicorn: ``python -m music_edge``."""
import uvicorn

from music_edge.vars import HOST, PORT


def main() -> None:
    uvicorn.run("music_edge.server:app", host=HOST, port=PORT)


if __name__ == "__main__":
    main()
