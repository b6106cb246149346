"""
FileVault file storage service
"""

import argparse
import asyncio
import inspect
import logging
from pathlib import Path

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from filevault.config import ENV_PREFIX, get_settings
from filevault.connections import filevault_connections
from filevault.thumbnails.worker import run_thumbnail_worker


async def _check_connections():
    settings = get_settings()
    async with filevault_connections(settings):
        logging.info(f"Connected to elasticsearch {settings.elastic_host} and redis {settings.redis_url}")


def run(args):
    port = int(args.port or get_settings().port)
    logging.info(f"Starting server at port {port}, debug={not args.nodebug}")
    logging.info(
        "To change server config, create an .env file and/or set environment parameters,\n"
        f"{' ' * 26}see filevault/config.py for more information.\n"
        f"{' ' * 26}You can also run `python -m filevault config` to see the current settings\n"
    )

    asyncio.run(_check_connections())
    log_config = "logging.yml" if Path("logging.yml").exists() else LOGGING_CONFIG
    uvicorn.run("filevault.api:app", host="0.0.0.0", reload=not args.nodebug, port=port, log_config=log_config)


async def worker(_args):
    settings = get_settings()
    logging.info(f"Starting thumbnail worker on queue {settings.thumbnail_queue}, storage at {settings.folder_path}")
    await run_thumbnail_worker(settings)


def config_filevault(_args):
    settings = get_settings()
    print(f"# Reading settings from environment and {settings.env_file}")
    for fieldname, fieldinfo in type(settings).model_fields.items():
        if doc := fieldinfo.description:
            print(f"# {doc}")
        value = getattr(settings, fieldname)
        if value is None:
            print(f"#{ENV_PREFIX}{fieldname}=\n")
        else:
            print(f"{ENV_PREFIX}{fieldname}={value}\n")


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m filevault")

    subparsers = parser.add_subparsers(dest="action", title="action", help="Action to perform:", required=True)
    p = subparsers.add_parser("run", help="Run the backend API in development mode")
    p.add_argument(
        "--no-debug",
        action="store_true",
        dest="nodebug",
        help="Disable debug mode (useful for testing downstream clients)",
    )
    p.add_argument("-p", "--port", help="Port (default: the port setting)")
    p.set_defaults(func=run)

    p = subparsers.add_parser("worker", help="Run the thumbnail worker")
    p.set_defaults(func=worker)

    p = subparsers.add_parser("config", help="Print the current settings in .env format")
    p.set_defaults(func=config_filevault)

    args = parser.parse_args()

    logging.basicConfig(format="[%(levelname)-7s:%(name)-15s] %(message)s", level=logging.INFO)
    for noisy in ("elasticsearch", "elastic_transport", "pika"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    if inspect.iscoroutinefunction(args.func):
        asyncio.run(args.func(args))
    else:
        args.func(args)


if __name__ == "__main__":
    main()
