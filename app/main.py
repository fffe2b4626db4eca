import logging
import sys

import uvicorn
from fastapi import FastAPI

from app.config import AppConfig, ConfigError, load_config
from app.features.blobs.api import router as blobs_router
from app.features.blobs.service import BlobService
from app.features.bridge.middleware import BlobGatewayMiddleware
from app.infra.db import DbConfig, connect, migrate
from app.infra.ipfs import IpfsClient
from app.infra.repo_mappings import MappingRepo
from app.web.health import router as health_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(cfg: AppConfig | None = None, ipfs: IpfsClient | None = None) -> FastAPI:
    cfg = cfg or load_config()
    conn = connect(DbConfig(path=cfg.db_path))
    migrate(conn)
    ipfs = ipfs or IpfsClient(cfg.ipfs_api_url, timeout_seconds=cfg.ipfs_timeout)
    mappings = MappingRepo(conn)

    app = FastAPI(title="Blossom IPFS bridge", version="0.1.0")
    app.state.cfg = cfg
    app.state.db = conn
    app.state.ipfs = ipfs
    app.state.blobs = BlobService(mappings=mappings, ipfs=ipfs)
    app.add_middleware(BlobGatewayMiddleware, mappings=mappings, gateway_base=cfg.gateway_url)
    app.include_router(health_router)
    app.include_router(blobs_router)
    return app


def main() -> None:
    try:
        cfg = load_config()
    except ConfigError as e:
        sys.exit(str(e))
    configure_logging(cfg.log_level)

    ipfs = IpfsClient(cfg.ipfs_api_url, timeout_seconds=cfg.ipfs_timeout)
    if not ipfs.is_up():
        sys.exit(f"IPFS API at {ipfs.api_url} is not accessible")

    app = create_app(cfg, ipfs=ipfs)
    logger.info("Running blossom server on :%d (gateway %s)", cfg.port, cfg.gateway_url)
    uvicorn.run(app, host="0.0.0.0", port=cfg.port, log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
