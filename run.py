import logging

import config
from utils.config_validator import validate_or_exit
from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

# Validate critical configuration before the app is imported
validate_or_exit(config)

from app import main

if __name__ == '__main__':
    logging.info(f"Starting storefront API ({config.RUNTIME_ENVIRONMENT.value}) on "
                 f"{config.WEBAPP_HOST}:{config.WEBAPP_PORT}")
    main()
