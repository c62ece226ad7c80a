"""Support functions for xmppchat test suite."""

import os
import sys
import logging
import unittest

RESOURCES = ['lo-network']

if "TEST_USE" in os.environ:
    RESOURCES = os.environ["TEST_USE"].split()

# pylint: disable=W0602,C0103
logging_ready = False
def setup_logging():
    """Set up logging for the tests.

    Log level used depends on number of '-v' in sys.argv
    """
    # pylint: disable=W0603
    global logging_ready
    if logging_ready:
        return
    if sys.argv.count("-v") > 2:
        logging.basicConfig(level=logging.DEBUG)
    elif sys.argv.count("-v") == 2:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.ERROR)
    logging_ready = True

def filter_tests(suite):
    """Make a new TestSuite from `suite`, removing test classes
    with names starting with '_'."""
    result = unittest.TestSuite()
    for test in suite:
        if isinstance(test, unittest.TestSuite):
            result.addTest(filter_tests(test))
        elif not test.__class__.__name__.startswith("_"):
            result.addTest(test)
    return result

def load_tests(loader, tests, pattern):
    """Use default test list, just remove the classes which names start with
    '_'."""
    # pylint: disable=W0613
    suite = filter_tests(tests)
    return suite

def xml_elements_equal(element1, element2):
    """Check if two ElementTree elements are equal, ignoring whitespace-only
    text."""
    if element1.tag != element2.tag:
        return False
    if dict(element1.items()) != dict(element2.items()):
        return False
    if (element1.text or u"").strip() != (element2.text or u"").strip():
        return False
    if len(element1) != len(element2):
        return False
    for child1, child2 in zip(element1, element2):
        if not xml_elements_equal(child1, child2):
            return False
    return True

class RecordingHandler(logging.Handler):
    """Logging handler collecting the records in a list."""
    def __init__(self):
        logging.Handler.__init__(self, logging.DEBUG)
        self.records = []
    def emit(self, record):
        self.records.append(record)

def make_logger(name):
    """Return a non-propagating logger and its `RecordingHandler`."""
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RecordingHandler()
    logger.addHandler(handler)
    return logger, handler
