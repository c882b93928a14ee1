"""Run the dashboard with uvicorn: `python -m web`."""
import uvicorn

from core.config import load_config


def main() -> None:
    config = load_config()
    uvicorn.run(
        "web.main:app",
        host=config.web.host,
        port=config.web.port,
        log_level=config.log_level.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
