"""Entry point for the CNIC OCR API server."""

import uvicorn

from cnic_ocr.api.app import app
from cnic_ocr.utils.config import load_config
from cnic_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main() -> None:
    """Serve the FastAPI app on the configured host and port."""
    config = load_config()
    setup_logging(config.log_level)
    if not config.ocr.api_key:
        logger.warning("Starting without an OCR.space API key; extraction will fail")
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
