import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO"):
    """Root logging setup, called once by the app and the console entry point."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # Provider SDKs are chatty at INFO
    for noisy in ("httpx", "httpcore", "openai", "anthropic"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
