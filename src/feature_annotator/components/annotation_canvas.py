"""Annotation canvas - Qt widget hosting the image, shapes and pointer input.

The canvas owns no annotation state. Mouse input is forwarded to the
AnnotationSession state machine; the session's viewport asks for repaints
through its listener, and paintEvent hands a QPainter surface to the
AnnotationRenderer.
"""

from PyQt5.QtCore import Qt
from PyQt5.QtGui import QPainter
from PyQt5.QtWidgets import QWidget

from feature_annotator.components.annotation_renderer import AnnotationRenderer
from feature_annotator.models.session import DrawMode
from feature_annotator.services.drawing_surface import QPainterSurface


class AnnotationCanvas(QWidget):
	"""Drawing surface for one AnnotationSession"""
	
	def __init__(self, session, parent=None):
		super().__init__(parent)
		self.session = session
		self.renderer = AnnotationRenderer()
		self.image = None
		
		self.setMouseTracking(True)
		self.setFocusPolicy(Qt.StrongFocus)
		self.resize(int(session.viewport.view_width), int(session.viewport.view_height))
		
		session.viewport.add_listener(self.update)
		session.add_control_listener(self._on_controls_changed)
		self._update_cursor(session.mode)
	
	def set_image(self, image, width, height):
		"""Show a loaded QImage and fit the view to its natural size"""
		self.image = image
		self.session.on_image_loaded(width, height)
		self.update()
	
	def clear_image(self):
		self.image = None
		self.update()
	
	def _on_controls_changed(self, state):
		self._update_cursor(state.mode)
	
	def _update_cursor(self, mode):
		if mode == DrawMode.PAN:
			self.setCursor(Qt.SizeAllCursor)
		else:
			self.setCursor(Qt.CrossCursor)
	
	# ========================================
	# Painting
	# ========================================
	
	def paintEvent(self, event):
		painter = QPainter(self)
		painter.setRenderHint(QPainter.Antialiasing)
		try:
			surface = QPainterSurface(painter, self.width(), self.height())
			self.renderer.paint(surface, self.session.viewport, self.session.features,
			                    current_shape=self.session.current_shape, image=self.image)
		finally:
			painter.end()
	
	def resizeEvent(self, event):
		super().resizeEvent(event)
		size = event.size()
		viewport = self.session.viewport
		if size.width() != viewport.view_width or size.height() != viewport.view_height:
			viewport.resize(size.width(), size.height())
	
	# ========================================
	# Mouse / keyboard
	# ========================================
	
	def mousePressEvent(self, event):
		if event.button() == Qt.LeftButton:
			self.setFocus()
			self.session.pointer_down(event.x(), event.y())
			event.accept()
			return
		super().mousePressEvent(event)
	
	def mouseMoveEvent(self, event):
		if self.session.is_dragging:
			self.session.pointer_move(event.x(), event.y())
			event.accept()
			return
		super().mouseMoveEvent(event)
	
	def mouseReleaseEvent(self, event):
		if event.button() == Qt.LeftButton:
			self.session.pointer_up()
			event.accept()
			return
		super().mouseReleaseEvent(event)
	
	def wheelEvent(self, event):
		"""Ctrl+wheel zooms; plain wheel is left to the parent"""
		if event.modifiers() & Qt.ControlModifier:
			delta = event.angleDelta().y()
			if delta > 0:
				self.session.zoom_in()
			elif delta < 0:
				self.session.zoom_out()
			event.accept()
			return
		super().wheelEvent(event)
	
	def keyPressEvent(self, event):
		key = event.key()
		if key == Qt.Key_Escape:
			self.session.cancel()
		elif key in (Qt.Key_Plus, Qt.Key_Equal):
			self.session.zoom_in()
		elif key == Qt.Key_Minus:
			self.session.zoom_out()
		else:
			super().keyPressEvent(event)
			return
		event.accept()
