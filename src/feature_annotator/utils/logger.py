"""Error reporting helpers for the annotator UI

- loggerRaise: fatal file/IO errors (logged, shown, re-raised)
- loggerWarn: recoverable user-data problems (logged and shown, not raised)
"""
import sys
import logging
import traceback
from PyQt5.QtWidgets import QMessageBox

# Debug when running from source, release when frozen into an executable
DEBUG_MODE = not getattr(sys, 'frozen', False)

_logger = logging.getLogger('feature_annotator')
_main_window = None


def set_main_window(window):
    """Set the window used as parent for error popups"""
    global _main_window
    _main_window = window


def loggerRaise(e: Exception, user_message: str = None, title: str = "Error"):
    """Report an exception and re-raise it

    Args:
        e: The exception to handle
        user_message: What failed, in user terms (optional)
        title: Title for the popup dialog

    DEBUG_MODE re-raises straight away so the full traceback is visible.
    Release builds log the traceback and show a critical popup first.
    """
    if DEBUG_MODE:
        raise e

    message = user_message or str(e)
    _logger.error(f"{message}: {traceback.format_exc()}")

    if _main_window:
        QMessageBox.critical(_main_window, title, f"{message}\n\n{e}")
    else:
        _logger.error(f"ERROR POPUP (no window): {title} - {message}")

    raise e


def loggerWarn(message: str, title: str = "Warning", parent=None):
    """Log a recoverable problem and tell the user about it

    Used for bad task payloads and similar user-data errors, where the
    application keeps running with its previous state.
    """
    _logger.warning(f"{title}: {message}")
    parent = parent or _main_window
    if parent is not None:
        QMessageBox.warning(parent, title, message)
