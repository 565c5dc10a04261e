"""Annotation toolbar - zoom, mode, navigation and shape-kind controls."""

from PyQt5.QtWidgets import QWidget, QHBoxLayout, QPushButton, QComboBox, QLabel

from feature_annotator.constants import SHAPE_KIND_LABELS
from feature_annotator.models.session import DrawMode
from feature_annotator.models.shape import ShapeKind


class AnnotationToolbar(QWidget):
	"""Control row driving an AnnotationSession.

	Buttons call straight into the session; enablement, the shape-kind
	selector and the title follow the ControlState the session pushes.
	"""

	KIND_ORDER = [ShapeKind.BOX, ShapeKind.POLYGON]

	def __init__(self, session, parent=None):
		super().__init__(parent)
		self.session = session

		layout = QHBoxLayout()
		layout.setContentsMargins(0, 0, 0, 0)
		layout.setSpacing(4)

		# Zoom
		self.zoom_in_btn = self._add_button(layout, "+", "Zoom In (+)", session.zoom_in)
		self.zoom_out_btn = self._add_button(layout, "-", "Zoom Out (-)", session.zoom_out)

		# Mode
		self.pan_btn = self._add_button(layout, "Pan", "Drag to pan the image",
		                                lambda: session.set_mode(DrawMode.PAN))
		self.annotate_btn = self._add_button(layout, "Annotate", "Drag to draw shapes",
		                                     lambda: session.set_mode(DrawMode.ANNOTATE))
		self.pan_btn.setCheckable(True)
		self.annotate_btn.setCheckable(True)
		layout.addSpacing(20)

		# Navigation
		self.prev_feature_btn = self._add_button(layout, "<<", "Previous feature", session.previous_feature)
		self.prev_shape_btn = self._add_button(layout, "<", "Previous shape", session.previous_shape)

		self.kind_combo = QComboBox()
		for kind in self.KIND_ORDER:
			self.kind_combo.addItem(SHAPE_KIND_LABELS[kind.value], kind)
		self.kind_combo.currentIndexChanged.connect(self._on_kind_changed)
		layout.addWidget(self.kind_combo)

		self.delete_btn = self._add_button(layout, "X", "Delete current shape", session.delete_current)
		self.next_shape_btn = self._add_button(layout, ">", "Next shape", session.next_shape)
		self.next_feature_btn = self._add_button(layout, ">>", "Next feature", session.next_feature)
		layout.addSpacing(20)

		self.title_label = QLabel("Annotating:")
		self.title_label.setStyleSheet("font-family: sans-serif; font-size: 12px;")
		layout.addWidget(self.title_label)
		layout.addStretch()

		self.setLayout(layout)

		session.add_control_listener(self.apply_state)
		self.apply_state(session.control_state())

	def _add_button(self, layout, text, tooltip, slot):
		btn = QPushButton(text)
		btn.setToolTip(tooltip)
		# clicked(bool) would otherwise be passed to the slot
		btn.clicked.connect(lambda checked=False: slot())
		layout.addWidget(btn)
		return btn

	def buttons(self):
		return self.findChildren(QPushButton)

	def _on_kind_changed(self, index):
		"""Handle shape-kind selection; revert if the feature locks the kind"""
		if index < 0:
			return
		kind = self.kind_combo.itemData(index)
		if not self.session.set_selected_kind(kind):
			self.apply_state(self.session.control_state())

	def apply_state(self, state):
		"""Mirror a ControlState onto the widgets (without re-triggering signals)"""
		self.prev_feature_btn.setEnabled(state.prev_feature_enabled)
		self.next_feature_btn.setEnabled(state.next_feature_enabled)
		self.prev_shape_btn.setEnabled(state.prev_shape_enabled)
		self.next_shape_btn.setEnabled(state.next_shape_enabled)
		self.delete_btn.setEnabled(state.delete_enabled)

		self.kind_combo.blockSignals(True)
		self.kind_combo.setCurrentIndex(self.KIND_ORDER.index(state.selected_kind))
		self.kind_combo.blockSignals(False)
		self.kind_combo.setEnabled(state.kind_selector_enabled)

		self.pan_btn.setChecked(state.mode == DrawMode.PAN)
		self.annotate_btn.setChecked(state.mode == DrawMode.ANNOTATE)

		self.title_label.setText(state.title or "Annotating:")

	def apply_style(self, style):
		"""Forward host styling to the buttons.

		``style.css`` becomes a QPushButton style sheet; ``style.classes`` is
		exposed as the dynamic ``class`` property for application style sheets.
		"""
		rules = "; ".join(f"{prop}: {value}" for prop, value in style.css.items())
		sheet = f"QPushButton {{ {rules} }}" if rules else ""
		for btn in self.buttons():
			btn.setStyleSheet(sheet)
			btn.setProperty("class", " ".join(style.classes))
