import logging

from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

from app import main

# Keep per-request client and connection chatter out of the payment log
for logger_name in ['aiohttp.access', 'aiohttp.client', 'redis']:
    logging.getLogger(logger_name).setLevel(logging.WARNING)

if __name__ == '__main__':
    main()
