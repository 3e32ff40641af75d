import logging
import os
import sys
from pprint import pformat

# Configure logging
def setup_logging():
    # Create logger
    logger = logging.getLogger("request_tracker")
    logger.setLevel(os.getenv("LOG_LEVEL", "DEBUG").upper())

    # Uvicorn reloads import this module more than once
    if logger.handlers:
        return logger

    # Create console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)

    # Create formatter
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)

    # Add handler to logger
    logger.addHandler(console_handler)

    return logger

# Get the logger
logger = setup_logging()

def log_request_info(request, message="Request received"):
    """Log the request line, and headers at debug level"""
    logger.info(f"{message}: {request.method} {request.url.path}")
    headers = dict(request.headers)
    # Session tokens and the shared PIN must not end up in logs
    for secret_header in ("x-spoc-token", "x-spoc-pin", "x-test-token"):
        if secret_header in headers:
            headers[secret_header] = "<hidden>"
    logger.debug(f"Request headers: {pformat(headers)}")

def log_response_info(response, message="Response sent"):
    """Log the response status, and headers at debug level"""
    logger.info(f"{message}: Status {response.status_code}")
    logger.debug(f"Response headers: {pformat(dict(response.headers))}")
