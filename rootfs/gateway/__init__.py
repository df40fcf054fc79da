"""
The **gateway** package resolves Gateway API resources into a dynamic routing
configuration for the **drycc** gateway proxy.
"""
import logging.config

__version__ = '1.0.0'


def configure_logging(config=None):
    from gateway import settings  # lazy load
    logging.config.dictConfig(config if config is not None else settings.LOGGING)
