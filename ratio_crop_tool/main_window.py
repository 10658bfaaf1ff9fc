"""
Main application window.

Orchestrates opening a source image, ratio selection, the interactive crop
editor, and finalizing the crop into an asset written to the output folder.
"""

import logging
from pathlib import Path

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel,
    QFileDialog, QGroupBox, QMessageBox, QStatusBar, QToolBar, QComboBox,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QPixmap, QAction, QKeySequence, QShortcut

from ratio_crop_tool.config import IMAGE_EXTENSIONS, OUTPUT_EXTENSION
from ratio_crop_tool.crop_widget import ImageCropWidget, ImageLoaderThread, ProcessThread
from ratio_crop_tool.image_io import read_image_bytes, unique_path
from ratio_crop_tool.processor import RasterProcessor
from ratio_crop_tool.session import CropSession
from ratio_crop_tool.settings import load_settings

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Ratio Crop Tool")
        self.setMinimumSize(720, 520)
        self.resize(1100, 760)

        self._settings = load_settings()
        self._processor = RasterProcessor.from_settings(self._settings)
        self._source_path: Path | None = None
        self._output_root: Path | None = None
        self._loader: ImageLoaderThread | None = None
        self._process_thread: ProcessThread | None = None
        self._session: CropSession | None = None
        self._processing = False

        self._build_ui()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)
        main_layout.setContentsMargins(4, 4, 4, 4)

        self._crop_widget = ImageCropWidget()
        self._crop_widget.crop_changed.connect(self._update_crop_info)
        main_layout.addWidget(self._crop_widget, stretch=1)
        main_layout.addWidget(self._build_right_panel())

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Open an image to begin.")

        QShortcut(QKeySequence(Qt.Key.Key_C), self, self._crop_widget.recenter)
        QShortcut(QKeySequence(Qt.Key.Key_Return), self, self._confirm_crop)
        QShortcut(QKeySequence(Qt.Key.Key_Escape), self, self._cancel_session)

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_open = QAction("📂 Open Image", self)
        act_open.triggered.connect(self._select_image)
        toolbar.addAction(act_open)

        act_output = QAction("💾 Set Output Folder", self)
        act_output.triggered.connect(self._select_output_folder)
        toolbar.addAction(act_output)

    def _build_right_panel(self) -> QWidget:
        panel = QWidget()
        panel.setFixedWidth(230)
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(4, 0, 0, 0)

        ratio_group = QGroupBox("Aspect Ratio")
        ratio_layout = QVBoxLayout(ratio_group)
        self._ratio_combo = QComboBox()
        self._ratio_combo.addItems(self._settings["aspect_ratios"])
        self._ratio_combo.setCurrentText(self._settings["default_aspect_ratio"])
        self._ratio_combo.currentTextChanged.connect(self._on_ratio_changed)
        ratio_layout.addWidget(self._ratio_combo)
        layout.addWidget(ratio_group)

        actions_group = QGroupBox("Crop")
        actions_layout = QVBoxLayout(actions_group)
        self._crop_info_label = QLabel("Crop: —")
        actions_layout.addWidget(self._crop_info_label)
        self._btn_recenter = QPushButton("Re-center (C)")
        self._btn_recenter.clicked.connect(self._crop_widget.recenter)
        actions_layout.addWidget(self._btn_recenter)
        self._btn_confirm = QPushButton("Use image (Enter)")
        self._btn_confirm.clicked.connect(self._confirm_crop)
        actions_layout.addWidget(self._btn_confirm)
        self._btn_cancel = QPushButton("Cancel (Esc)")
        self._btn_cancel.clicked.connect(self._cancel_session)
        actions_layout.addWidget(self._btn_cancel)
        layout.addWidget(actions_group)

        help_label = QLabel(
            "Drag inside the box to move it.\n"
            "Drag the round handle to resize.\n"
            "Arrow keys nudge (Shift = ×10)."
        )
        help_label.setWordWrap(True)
        layout.addWidget(help_label)
        layout.addStretch()
        return panel

    # =========================================================================
    # File selection
    # =========================================================================

    def _select_image(self):
        patterns = " ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS))
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", "", f"Images ({patterns})")
        if not path:
            return
        self.open_image(Path(path))

    def _select_output_folder(self):
        folder = QFileDialog.getExistingDirectory(self, "Select Output Folder")
        if folder:
            self._output_root = Path(folder)
            self._status.showMessage(f"Output folder: {self._output_root}")

    def open_image(self, path: Path):
        try:
            data = read_image_bytes(path)
        except OSError as e:
            self._status.showMessage(f"Failed to read {path.name}: {e}")
            return

        self._cancel_session()
        self._source_path = path
        session = CropSession(self._processor, path.name)
        self._session = session

        self._crop_widget.set_loading(True)
        self._loader = ImageLoaderThread(
            session, data, self._crop_widget.viewport_size(), self._ratio_combo.currentText(), self,
        )
        self._loader.finished.connect(
            lambda pixmap, w, h, s=session: self._on_image_loaded(s, pixmap, w, h)
        )
        self._loader.error.connect(lambda err, s=session: self._on_image_load_error(s, err))
        self._loader.start()
        self._status.showMessage(f"Loading {path.name}…")
        self._update_button_states()

    def _on_image_loaded(self, session: CropSession, pixmap: QPixmap, img_w: int, img_h: int):
        """Called when background image loading completes."""
        if session is not self._session or session.closed:
            return  # Session was cancelled or replaced before loading finished
        self._crop_widget.set_session(session, pixmap)
        self._status.showMessage(f"{self._source_path.name}  ({img_w}×{img_h})")
        self._update_button_states()

    def _on_image_load_error(self, session: CropSession, error: str):
        """Called when background image loading fails."""
        if session is not self._session:
            return
        # A decode failure has already closed the session
        self._session = None
        self._crop_widget.set_loading(False)
        self._status.showMessage(f"Failed to load image: {error}")
        self._update_button_states()

    # =========================================================================
    # Crop editing
    # =========================================================================

    def _on_ratio_changed(self, token: str):
        self._crop_widget.set_aspect(token)

    def _update_crop_info(self):
        if not self._crop_widget.has_image():
            self._crop_info_label.setText("Crop: —")
            return
        crop = self._crop_widget.source_crop()
        self._crop_info_label.setText(
            f"Crop: {round(crop.width)} × {round(crop.height)}\n"
            f"at ({round(crop.x)}, {round(crop.y)})"
        )

    def _update_button_states(self):
        has_image = self._crop_widget.has_image()
        self._btn_recenter.setEnabled(has_image)
        self._btn_confirm.setEnabled(has_image and not self._processing)
        self._ratio_combo.setEnabled(not self._processing)
        self._btn_cancel.setEnabled(self._session is not None)

    def _cancel_session(self):
        """Discard the current image and crop without writing anything."""
        if self._session is not None:
            self._session.cancel()
        self._session = None
        self._processing = False
        self._source_path = None
        self._crop_widget.clear()
        self._update_crop_info()
        self._update_button_states()

    # =========================================================================
    # Finalization
    # =========================================================================

    def _confirm_crop(self):
        session = self._session
        if session is None:
            return
        if not session.is_ready():
            self._status.showMessage("Image preview not ready.")
            return
        if self._processing:
            return
        if self._output_root is None:
            self._select_output_folder()
            if self._output_root is None:
                return

        self._process_thread = ProcessThread(session, self)
        self._process_thread.finished.connect(lambda p, s=session: self._on_processed(s, p))
        self._process_thread.error.connect(lambda err, s=session: self._on_process_error(s, err))
        self._processing = True
        self._process_thread.start()
        self._status.showMessage("Processing…")
        self._update_button_states()

    def _on_processed(self, session: CropSession, processed):
        if session is not self._session:
            return  # Session cancelled while processing
        asset = session.build_asset(processed)
        out_path = unique_path(self._output_root / f"{self._source_path.stem}{OUTPUT_EXTENSION}")
        try:
            out_path.write_bytes(asset.data)
        except OSError as e:
            logger.error("Could not write %s: %s", out_path, e)
            QMessageBox.warning(self, "Save Failed", f"Could not write {out_path}:\n{e}")
            self._cancel_session()
            return
        logger.info("Saved asset %s (%dx%d) to %s", asset.id, asset.width, asset.height, out_path)
        self._cancel_session()
        self._status.showMessage(f"Saved {out_path.name}  ({asset.width}×{asset.height})  id {asset.id}")

    def _on_process_error(self, session: CropSession, error: str):
        if session is not self._session:
            return
        # Session stays open so the user can retry without reopening the image
        self._processing = False
        self._status.showMessage(f"Failed to process image: {error}")
        self._update_button_states()

    def closeEvent(self, event):
        if self._session is not None:
            self._session.cancel()
        for thread in (self._loader, self._process_thread):
            if thread is not None and thread.isRunning():
                thread.wait(2000)
        super().closeEvent(event)
