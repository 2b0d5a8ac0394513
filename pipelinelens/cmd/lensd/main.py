#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys

import uvicorn
from dotenv import load_dotenv

from pipelinelens.api.server import Server
from pipelinelens.config import ConfigError, parse_listen_addr, resolve_config
from pipelinelens.runstore.client import BackendClient
from pipelinelens.util.logging import get_logger, setup_logging

logger = get_logger("lensd")


def main() -> None:
    parser = argparse.ArgumentParser(prog="lensd")
    parser.add_argument("--listen", default="", help="listen address host:port")
    parser.add_argument("--api-url", dest="api_url", default="", help="pipeline backend base url")
    parser.add_argument("--auth-token", dest="auth_token", default="", help="bearer token for the backend")
    parser.add_argument("--serve-token", dest="serve_token", default="", help="bearer token required by this server")
    parser.add_argument("--config", default="", help="config file")
    parser.add_argument("--log-level", dest="log_level", default="", help="log level")
    args = parser.parse_args()

    load_dotenv(".env.local")
    load_dotenv(".env")

    try:
        cfg = resolve_config(args.config)
    except ConfigError as err:
        setup_logging("INFO")
        logger.error("Invalid configuration", error=str(err))
        sys.exit(2)

    if args.listen:
        cfg.listen_addr = args.listen
    if args.api_url:
        cfg.api_base_url = args.api_url
    if args.auth_token:
        cfg.auth_token = args.auth_token
    if args.log_level:
        cfg.log_level = args.log_level

    setup_logging(cfg.log_level)

    client = BackendClient(cfg.api_base_url, cfg.auth_token, cfg.request_timeout_s)
    server = Server(client, args.serve_token, cfg.run_list_limit)
    host, port = parse_listen_addr(cfg.listen_addr)

    logger.info("lensd listening", addr=f"{host}:{port}", api_base_url=cfg.api_base_url)
    if args.serve_token:
        logger.info("auth enabled", mode="bearer")

    try:
        uvicorn.run(server.handler(), host=host, port=port, log_level=cfg.log_level.lower())
    finally:
        client.close()


if __name__ == "__main__":
    main()
