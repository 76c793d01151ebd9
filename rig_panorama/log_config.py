# -*- coding: utf-8 -*-
"""
Logging setup shared by the calibration and compositing entry points.

Modules only ever call logging.getLogger(__name__); the handlers live on the
package logger and are installed once by setup_logging.
"""
import logging
import sys

ROOT_LOGGER_NAME = 'rig_panorama'
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level=logging.INFO, log_file=None, format_string=None):
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    #Handlers are attached here, so do not hand records to the root logger too
    root_logger.propagate = False
    return root_logger
