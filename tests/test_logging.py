import logging as pylogging

from cpfit import logging


def test_setup():
    logger = pylogging.getLogger("cpfit.test_setup")
    logging.setup(level=logging.DEBUG, logger=logger)
    logging.setup(level=logging.WARNING, logger=logger)
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
