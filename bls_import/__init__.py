import logging

# Silent unless the application configures logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())
