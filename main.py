"""
Main entry point for the ReportDiff application.

This module handles:
- Application initialization
- Command line argument parsing
- Logging configuration
- Theme and style setup
- Main window creation
- Exception handling
"""

from __future__ import annotations

import argparse
import faulthandler
import logging
import os
import signal
import sys
import traceback
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, List

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QPalette, QColor
from PyQt6.QtWidgets import QApplication, QMessageBox, QStyleFactory

from reportdiff import __version__
from reportdiff.services.settings import SettingsManager, Theme


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "ReportDiff"
APP_DISPLAY_NAME = "Report Diff"
APP_VERSION = __version__
APP_ORGANIZATION = "ReportDiff"

# Paths
if getattr(sys, 'frozen', False):
    # Running as compiled executable
    APP_DIR = Path(sys.executable).parent
else:
    # Running as script
    APP_DIR = Path(__file__).parent

LOGS_DIR = APP_DIR / "logs"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    original_path: Optional[str] = None
    edited_path: Optional[str] = None
    theme: Optional[Theme] = None
    log_level: str = "INFO"
    reset_settings: bool = False
    debug: bool = False


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Log formatter that colours console records by level."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',     # Cyan
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[1;31m',
    }
    RESET = '\033[0m'
    FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

    def __init__(self, use_colors: bool = True):
        super().__init__(fmt=self.FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        self.use_colors = use_colors and hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.use_colors:
            return text
        return f"{self.LEVEL_COLORS.get(record.levelno, '')}{text}{self.RESET}"


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Log level name
        log_file: Also write records to this file when given

    Returns:
        The root logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handlers: List[logging.Handler] = []

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(LogFormatter(use_colors=True))
    handlers.append(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(LogFormatter(use_colors=False))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    # chardet logs every probe at DEBUG
    logging.getLogger('chardet').setLevel(logging.WARNING)

    return root_logger


# =============================================================================
# Exception Handling
# =============================================================================

class ExceptionHandler:
    """
    sys.excepthook replacement.

    Logs unhandled exceptions at CRITICAL and, once the application is
    running, reports them in a dialog offering to quit.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._app: Optional[QApplication] = None

    def set_application(self, app: QApplication) -> None:
        self._app = app

    def handle_exception(self, exc_type: type, exc_value: BaseException, exc_tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return

        self.logger.critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_tb))

        if self._app is not None and QApplication.instance() is not None:
            details = ''.join(traceback.format_exception(exc_type, exc_value, exc_tb))
            self._report(f"{exc_type.__name__}: {exc_value}", details)

    def _report(self, summary: str, details: str) -> None:
        box = QMessageBox()
        box.setIcon(QMessageBox.Icon.Critical)
        box.setWindowTitle(f"{APP_NAME} Error")
        box.setText("An unexpected error occurred. Unsaved edits may be lost if you quit.")
        box.setInformativeText(summary)
        box.setDetailedText(details)
        box.setStandardButtons(QMessageBox.StandardButton.Ignore | QMessageBox.StandardButton.Close)
        box.setDefaultButton(QMessageBox.StandardButton.Ignore)

        if box.exec() == QMessageBox.StandardButton.Close:
            QApplication.quit()


# =============================================================================
# Command Line Parsing
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME.lower(),
        description="Compare an original and an edited report and revert individual changes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  %(prog)s report.txt                 edit a copy of report.txt\n"
            "  %(prog)s report.txt report_v2.txt   compare two versions\n"
        )
    )
    parser.add_argument('original', nargs='?', help='original report')
    parser.add_argument('edited', nargs='?', help='edited report (defaults to a copy of the original)')
    parser.add_argument('--theme', choices=[theme.name.lower() for theme in Theme],
                        help='colour theme for this run')
    parser.add_argument('--reset-settings', action='store_true',
                        help='restore default settings before starting')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='console log level (default: %(default)s)')
    parser.add_argument('-v', '--verbose', action='store_true', help='same as --log-level DEBUG')
    parser.add_argument('--debug', action='store_true',
                        help='log at DEBUG and also write a log file under logs/')
    parser.add_argument('--version', action='version', version=f'{APP_NAME} {APP_VERSION}')
    return parser


def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """Parse command line arguments (defaults to sys.argv)."""
    parsed = build_parser().parse_args(args)

    return CommandLineArgs(
        original_path=parsed.original,
        edited_path=parsed.edited,
        theme=Theme.from_string(parsed.theme) if parsed.theme else None,
        log_level='DEBUG' if parsed.debug or parsed.verbose else parsed.log_level,
        reset_settings=parsed.reset_settings,
        debug=parsed.debug,
    )


# =============================================================================
# Application Setup
# =============================================================================

def setup_application(args: CommandLineArgs) -> QApplication:
    """Create the QApplication and set its identity."""
    app = QApplication(sys.argv[:1])
    app.setApplicationName(APP_NAME)
    app.setApplicationDisplayName(APP_DISPLAY_NAME)
    app.setApplicationVersion(APP_VERSION)
    app.setOrganizationName(APP_ORGANIZATION)
    app.setQuitOnLastWindowClosed(True)

    if args.debug:
        logging.debug(f"Qt platform: {app.platformName()}")

    return app


def setup_settings(args: CommandLineArgs) -> SettingsManager:
    """
    Load application settings, applying command line overrides.

    Args:
        args: Parsed command line arguments

    Returns:
        SettingsManager instance
    """
    manager = SettingsManager()

    if args.reset_settings:
        logging.info("Resetting settings to defaults")
        manager.reset()

    # Command line theme overrides the stored one
    if args.theme is not None:
        manager.settings.ui.theme = args.theme

    return manager


# Palette colours per theme: (window, base, text, highlight, highlighted text, disabled text)
THEME_PALETTES = {
    Theme.DARK: ('#2d2d2d', '#232323', '#d4d4d4', '#2a82da', '#000000', '#7f7f7f'),
    Theme.LIGHT: ('#f0f0f0', '#ffffff', '#000000', '#0078d7', '#ffffff', '#a0a0a0'),
}

DARK_STYLESHEET = """
    QToolTip {
        color: #d4d4d4;
        background-color: #2d2d2d;
        border: 1px solid #3d3d3d;
        padding: 4px;
    }
    QMenu { background-color: #2d2d2d; border: 1px solid #3d3d3d; }
    QMenu::item:selected { background-color: #2a82da; }
    QTabBar::tab { background-color: #2d2d2d; padding: 6px 14px; border: 1px solid #3d3d3d; }
    QTabBar::tab:selected { background-color: #3d3d3d; }
    QPlainTextEdit, QTextBrowser { border: 1px solid #3d3d3d; }
    QSplitter::handle { background-color: #3d3d3d; }
"""


def build_palette(theme: Theme) -> QPalette:
    """Build the Fusion palette for a light or dark theme."""
    window, base, text, highlight, highlighted_text, disabled = (
        QColor(value) for value in THEME_PALETTES[theme]
    )

    palette = QPalette()
    for role, color in (
        (QPalette.ColorRole.Window, window),
        (QPalette.ColorRole.Button, window),
        (QPalette.ColorRole.AlternateBase, window),
        (QPalette.ColorRole.Base, base),
        (QPalette.ColorRole.ToolTipBase, base if theme == Theme.LIGHT else window),
        (QPalette.ColorRole.WindowText, text),
        (QPalette.ColorRole.Text, text),
        (QPalette.ColorRole.ButtonText, text),
        (QPalette.ColorRole.ToolTipText, text),
        (QPalette.ColorRole.Link, highlight),
        (QPalette.ColorRole.Highlight, highlight),
        (QPalette.ColorRole.HighlightedText, highlighted_text),
    ):
        palette.setColor(role, color)
    palette.setColor(QPalette.ColorRole.BrightText, QColor(Qt.GlobalColor.red))

    for role in (QPalette.ColorRole.WindowText, QPalette.ColorRole.Text, QPalette.ColorRole.ButtonText):
        palette.setColor(QPalette.ColorGroup.Disabled, role, disabled)

    return palette


def setup_theme(app: QApplication, theme: Optional[Theme] = None) -> None:
    """
    Apply the application theme.

    SYSTEM keeps the platform palette; LIGHT and DARK install a fixed
    Fusion palette.
    """
    logging.info(f"Setting up theme: {theme.name if theme else 'SYSTEM'}")

    app.setStyle(QStyleFactory.create("Fusion"))
    app.setStyleSheet("")

    if theme in THEME_PALETTES:
        app.setPalette(build_palette(theme))
    if theme == Theme.DARK:
        app.setStyleSheet(DARK_STYLESHEET)


def create_main_window(args: CommandLineArgs, settings_manager: SettingsManager):
    """Create the main window and load the reports named on the command line."""
    from reportdiff.ui.main_window import MainWindow

    window = MainWindow(settings_manager=settings_manager)

    if args.original_path:
        if not window.load_files(args.original_path, args.edited_path):
            logging.warning(f"Could not load {args.original_path} / {args.edited_path}")
    elif args.edited_path:
        logging.warning("An edited report was given without an original; ignoring it")

    return window


# =============================================================================
# Signal Handlers
# =============================================================================

def setup_signal_handlers(app: QApplication) -> QTimer:
    """
    Quit cleanly on SIGINT/SIGTERM.

    The returned timer lets Python signal handlers run during the Qt
    event loop; the caller keeps it alive.
    """
    timer = QTimer(app)
    timer.timeout.connect(lambda: None)

    if sys.platform != 'win32':
        for signum in (signal.SIGINT, signal.SIGTERM):
            signal.signal(signum, _signal_handler)
        timer.start(250)

    return timer


def _signal_handler(signum, frame) -> None:
    logging.info(f"Received {signal.Signals(signum).name}, quitting")
    QApplication.quit()


# =============================================================================
# Main Function
# =============================================================================

def main() -> int:
    """
    Application main entry point.

    Returns:
        Process exit code
    """
    # GUI launchers on Windows start without standard streams
    if sys.stdout is None:
        sys.stdout = open(os.devnull, 'w')
    if sys.stderr is None:
        sys.stderr = open(os.devnull, 'w')

    faulthandler.enable()

    args = parse_arguments()
    log_file = LOGS_DIR / f"{APP_NAME.lower()}_{datetime.now():%Y%m%d}.log" if args.debug else None
    logger = setup_logging(args.log_level, log_file)
    logger.info(f"{APP_NAME} {APP_VERSION} starting")

    exception_handler = ExceptionHandler(logger)
    sys.excepthook = exception_handler.handle_exception

    try:
        app = setup_application(args)
        exception_handler.set_application(app)

        settings_manager = setup_settings(args)
        setup_theme(app, settings_manager.settings.ui.theme)
        signal_timer = setup_signal_handlers(app)

        window = create_main_window(args, settings_manager)
        window.show()

        exit_code = app.exec()
        signal_timer.stop()
        logger.info(f"{APP_NAME} exited with code {exit_code}")
        return exit_code

    except Exception as e:
        logger.critical(f"Startup failed: {e}", exc_info=True)
        if QApplication.instance() is not None:
            QMessageBox.critical(None, f"{APP_NAME} could not start", f"{e}\n\nSee the log for details.")
        return 1


if __name__ == '__main__':
    sys.exit(main())
