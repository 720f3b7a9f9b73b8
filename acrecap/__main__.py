import uvicorn

from acrecap.core.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("acrecap.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
