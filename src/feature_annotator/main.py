import sys
import os
import json
import logging
import argparse

# PyQt5 import/s
from PyQt5 import QtWidgets
from PyQt5.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QFileDialog, QStatusBar, QLabel
)
from PyQt5.QtCore import Qt

from feature_annotator.components.annotation_canvas import AnnotationCanvas
from feature_annotator.components.annotation_toolbar import AnnotationToolbar
from feature_annotator.constants import CONFIG_DIR_NAME, CONFIG_FILE_NAME, MAX_RECENT_FILES
from feature_annotator.main_window.config_mixin import ConfigMixin
from feature_annotator.models.session import AnnotationSession
from feature_annotator.models.task_config import ConstructionError
from feature_annotator.services.annotation_io import (
    load_task_file, load_annotations_file, save_annotations_file
)
from feature_annotator.services.image_loader import ImageLoader, resolve_src
from feature_annotator.utils.logger import loggerRaise, loggerWarn, set_main_window


class AnnotatorWindow(ConfigMixin, QMainWindow):
    def __init__(self, config_dir=None):
        super().__init__()
        self.resize(800, 620)

        self.session = AnnotationSession()
        self.current_task_path = None

        # Recent tasks
        self.recent_files = []
        self.max_recent_files = MAX_RECENT_FILES
        self.config_dir = config_dir or os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)
        self.config_file = os.path.join(self.config_dir, CONFIG_FILE_NAME)

        self.image_loader = ImageLoader(self)
        self.image_loader.imageReady.connect(self._on_image_ready)
        self.image_loader.imageFailed.connect(self._on_image_failed)

        self._setup_ui()
        self._create_menu_bar()

        self.session.viewport.add_listener(self._update_zoom_label)
        self.session.add_control_listener(lambda state: self._update_window_title())

        self._load_config()
        self._update_recent_files_menu()
        self._update_window_title()

    def _setup_ui(self):
        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 8)

        self.toolbar = AnnotationToolbar(self.session)
        layout.addWidget(self.toolbar)

        self.canvas = AnnotationCanvas(self.session)
        self.canvas.setFixedSize(int(self.session.viewport.view_width),
                                 int(self.session.viewport.view_height))
        layout.addWidget(self.canvas, alignment=Qt.AlignLeft | Qt.AlignTop)
        layout.addStretch()

        self.setCentralWidget(central)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.zoom_label = QLabel()
        self.status_bar.addPermanentWidget(self.zoom_label)
        self._update_zoom_label()

    def _create_menu_bar(self):
        file_menu = self.menuBar().addMenu("&File")

        open_action = file_menu.addAction("&Open Task...")
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self.open_task)

        self.recent_menu = file_menu.addMenu("Recent Tasks")
        file_menu.addSeparator()

        import_action = file_menu.addAction("&Import Annotations...")
        import_action.setShortcut("Ctrl+I")
        import_action.triggered.connect(self.import_annotations)

        export_action = file_menu.addAction("&Export Annotations...")
        export_action.setShortcut("Ctrl+E")
        export_action.triggered.connect(self.export_annotations)

        file_menu.addSeparator()
        exit_action = file_menu.addAction("E&xit")
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)

    # ========================================
    # Task / annotation files
    # ========================================

    def open_task(self):
        filename, _ = QFileDialog.getOpenFileName(
            self, "Open Task", "", "Task Files (*.json);;All Files (*)")
        if filename:
            self.load_task(filename)

    def load_task(self, filename):
        """Load a task file and apply it; returns True on success"""
        try:
            config = load_task_file(filename)
        except ConstructionError as e:
            loggerWarn(f"{filename}\n\n{e}", "Invalid Task", parent=self)
            return False
        except (OSError, json.JSONDecodeError) as e:
            loggerRaise(e, f"Failed to read task file {filename}")

        config.src = str(resolve_src(config.src, os.path.dirname(os.path.abspath(filename))))
        self.apply_config(config)
        self.current_task_path = os.path.abspath(filename)
        self._add_to_recent_files(self.current_task_path)
        self._update_window_title()
        return True

    def apply_config(self, config):
        """Re-apply a task payload to the window"""
        self.canvas.clear_image()
        self.session.apply_config(config)
        self.canvas.setFixedSize(config.width, config.height)
        self.toolbar.apply_style(config.style)
        self.image_loader.load(config.src)

    def import_annotations(self):
        filename, _ = QFileDialog.getOpenFileName(
            self, "Import Annotations", "", "JSON Files (*.json);;All Files (*)")
        if not filename:
            return
        try:
            data = load_annotations_file(filename)
        except (OSError, ValueError) as e:
            loggerRaise(e, f"Failed to import annotations from {filename}")
        self.session.import_annotations(data)

    def export_annotations(self):
        filename, _ = QFileDialog.getSaveFileName(
            self, "Export Annotations", "annotations.json", "JSON Files (*.json);;All Files (*)")
        if not filename:
            return
        try:
            save_annotations_file(filename, self.session.export_all())
        except OSError as e:
            loggerRaise(e, f"Failed to export annotations to {filename}")
        self.status_bar.showMessage(f"Exported annotations to {filename}", 3000)

    # ========================================
    # Image loading
    # ========================================

    def _on_image_ready(self, image, width, height):
        self.canvas.set_image(image, width, height)

    def _on_image_failed(self, message):
        self.canvas.clear_image()
        self.status_bar.showMessage(f"Could not load image: {message}", 5000)

    def _update_zoom_label(self):
        self.zoom_label.setText(f"Zoom: {self.session.viewport.get_zoom_percent()}%")


def main(argv=None):
    """Main entry point for the Feature Annotator application"""
    parser = argparse.ArgumentParser(description='Annotate image features with boxes and polygons.')
    parser.add_argument('task', nargs='?', help='Task JSON file to open on startup.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging.')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    app = QtWidgets.QApplication(sys.argv[:1])
    app.setStyle("Fusion")

    window = AnnotatorWindow()
    set_main_window(window)
    window.show()
    if args.task:
        window.load_task(args.task)
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
