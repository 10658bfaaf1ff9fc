"""
Interactive crop-overlay widget and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``ImageLoaderThread`` and
``ProcessThread``, and the ``ImageCropWidget`` editor.  The widget holds no
crop math of its own; it forwards input to the current ``CropSession`` and
paints whatever rectangle the session's controller reports.
"""

import asyncio

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, pyqtSignal, QThread
from PyQt6.QtGui import (
    QPainter, QPixmap, QColor, QPen, QBrush, QImage,
    QKeyEvent, QMouseEvent, QPaintEvent, QResizeEvent,
)

from ratio_crop_tool.config import HANDLE_SIZE, NUDGE_SMALL, NUDGE_LARGE
from ratio_crop_tool.errors import NotReadyError
from ratio_crop_tool.geometry import to_source
from ratio_crop_tool.interaction import CropInteractionController, DragMode
from ratio_crop_tool.models import DisplayRect, SourceRect, ViewportDimensions
from ratio_crop_tool.session import CropSession
from ratio_crop_tool.worker import load_image


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgb = pil_img.convert("RGBA")
    data = img_rgb.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgb.width, img_rgb.height, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimg)


def _qrect(rect: DisplayRect) -> QRectF:
    return QRectF(rect.x, rect.y, rect.width, rect.height)


# =============================================================================
# Background workers
# =============================================================================

class ImageLoaderThread(QThread):
    """Background thread that starts a crop session and builds its preview."""
    finished = pyqtSignal(QPixmap, int, int)
    error = pyqtSignal(str)

    def __init__(self, session: CropSession, data: bytes, viewport: ViewportDimensions, aspect, parent=None):
        super().__init__(parent)
        self._session = session
        self._data = data
        self._viewport = viewport
        self._aspect = aspect

    def run(self):
        try:
            crop = asyncio.run(self._session.begin(self._data, self._viewport, self._aspect))
            if crop is None:
                return  # Session was cancelled while decoding
            img = load_image(self._data)
            self.finished.emit(pil_to_qpixmap(img), img.width, img.height)
        except Exception as e:
            self.error.emit(str(e))


class ProcessThread(QThread):
    """Background thread confirming a crop session through the raster pipeline."""
    finished = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, session: CropSession, parent=None):
        super().__init__(parent)
        self._session = session

    def run(self):
        try:
            processed = asyncio.run(self._session.confirm())
            if processed is not None:
                self.finished.emit(processed)
        except Exception as e:
            self.error.emit(str(e))


# =============================================================================
# Image Crop Widget — interactive crop overlay on image
# =============================================================================

class ImageCropWidget(QWidget):
    """Widget that displays an image with an aspect-locked, movable crop overlay."""

    crop_changed = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 300)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMouseTracking(True)

        self._pixmap: QPixmap | None = None
        self._session: CropSession | None = None
        self._loading = False

    @property
    def controller(self) -> CropInteractionController | None:
        return self._session.controller if self._session is not None else None

    def set_loading(self, loading: bool):
        """Show/hide loading indicator."""
        self._loading = loading
        self.update()

    def set_session(self, session: CropSession, pixmap: QPixmap):
        """Display ``pixmap`` and edit the crop of an already-begun session."""
        self._loading = False
        self._pixmap = pixmap
        self._session = session
        session.resize_viewport(self.viewport_size())
        self.crop_changed.emit()
        self.update()

    def set_aspect(self, aspect):
        """Restart the crop for a different ratio on the current image."""
        if not self.has_image():
            return
        if self._session.set_aspect(aspect) is not None:
            self.crop_changed.emit()
            self.update()

    def recenter(self):
        if self.has_image() and self.controller.recenter() is not None:
            self.crop_changed.emit()
            self.update()

    def source_crop(self) -> SourceRect:
        """Confirmed crop in source pixels; raises NotReadyError before an image is set."""
        if self._session is None:
            raise NotReadyError("Image preview not ready.")
        return self._session.controller.confirm_source()

    def has_image(self) -> bool:
        """Return True if an image is loaded and ready for crop operations."""
        return self._pixmap is not None and self._session is not None and self._session.is_ready()

    def clear(self):
        self._pixmap = None
        self._session = None
        self._loading = False
        self.update()

    def viewport_size(self) -> ViewportDimensions:
        return ViewportDimensions(max(1, self.width()), max(1, self.height()))

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if not self.has_image():
            painter.setPen(QColor(128, 128, 128))
            msg = "Loading image…" if self._loading else "No image loaded"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, msg)
            painter.end()
            return

        controller = self.controller
        crop = controller.crop
        bounds = controller.image_bounds

        # Draw image
        dest = _qrect(bounds)
        painter.drawPixmap(dest.toRect(), self._pixmap)

        # Dim area outside crop
        crop_rect = _qrect(crop)
        dim = QColor(0, 0, 0, 140)

        # Top strip
        painter.fillRect(QRectF(dest.left(), dest.top(), dest.width(), crop_rect.top() - dest.top()), dim)
        # Bottom strip
        painter.fillRect(QRectF(dest.left(), crop_rect.bottom(), dest.width(), dest.bottom() - crop_rect.bottom()), dim)
        # Left strip
        painter.fillRect(QRectF(dest.left(), crop_rect.top(), crop_rect.left() - dest.left(), crop_rect.height()), dim)
        # Right strip
        painter.fillRect(QRectF(crop_rect.right(), crop_rect.top(), dest.right() - crop_rect.right(), crop_rect.height()), dim)

        # Draw crop border
        painter.setPen(QPen(QColor(14, 165, 233), 2))
        painter.drawRect(crop_rect)

        # Draw rule-of-thirds lines
        pen_thirds = QPen(QColor(255, 255, 255, 80), 1, Qt.PenStyle.DashLine)
        painter.setPen(pen_thirds)
        for i in range(1, 3):
            x = crop_rect.left() + crop_rect.width() * i / 3
            painter.drawLine(QPointF(x, crop_rect.top()), QPointF(x, crop_rect.bottom()))
            y = crop_rect.top() + crop_rect.height() * i / 3
            painter.drawLine(QPointF(crop_rect.left(), y), QPointF(crop_rect.right(), y))

        # Draw resize handle (bottom-right only; top-left stays anchored)
        hs = HANDLE_SIZE
        painter.setPen(QPen(QColor(14, 165, 233), 2))
        painter.setBrush(QBrush(QColor(255, 255, 255)))
        painter.drawEllipse(QPointF(crop_rect.right(), crop_rect.bottom()), hs, hs)

        # Draw crop size label in source pixels
        source = to_source(crop, controller.fit)
        painter.setPen(QColor(255, 255, 255))
        label = f"{round(source.width)} × {round(source.height)}"
        painter.drawText(
            crop_rect.adjusted(0, -20, 0, 0).toRect(),
            Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignBottom,
            label,
        )

        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        if self._session is not None:
            self._session.resize_viewport(self.viewport_size())
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or not self.has_image():
            return
        pos = event.position()
        mode = self.controller.hit_test((pos.x(), pos.y()))
        if mode is not None:
            self._session.pointer_down((pos.x(), pos.y()), mode)

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self.has_image():
            return

        pos = event.position()

        # Update cursor
        if not self.controller.is_dragging():
            mode = self.controller.hit_test((pos.x(), pos.y()))
            if mode is DragMode.RESIZE:
                self.setCursor(Qt.CursorShape.SizeFDiagCursor)
            elif mode is DragMode.MOVE:
                self.setCursor(Qt.CursorShape.SizeAllCursor)
            else:
                self.setCursor(Qt.CursorShape.ArrowCursor)
            return

        if self._session.pointer_move((pos.x(), pos.y())):
            self.crop_changed.emit()
            self.update()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton and self._session is not None:
            self._session.pointer_up()

    def leaveEvent(self, event):
        if self._session is not None:
            self._session.pointer_up()
        super().leaveEvent(event)

    # --- Keyboard nudge ---

    def keyPressEvent(self, event: QKeyEvent):
        if not self.has_image():
            return
        amount = NUDGE_LARGE if event.modifiers() & Qt.KeyboardModifier.ShiftModifier else NUDGE_SMALL
        offsets = {
            Qt.Key.Key_Left: (-amount, 0),
            Qt.Key.Key_Right: (amount, 0),
            Qt.Key.Key_Up: (0, -amount),
            Qt.Key.Key_Down: (0, amount),
        }
        offset = offsets.get(event.key())
        if offset is None:
            super().keyPressEvent(event)
            return
        if self.controller.nudge(*offset):
            self.crop_changed.emit()
            self.update()
