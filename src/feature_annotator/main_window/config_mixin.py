"""Configuration management for the annotator window"""

import os
import json

from feature_annotator.utils.logger import loggerRaise, loggerWarn


class ConfigMixin:
	"""Recent tasks persisted in the user's config file

	Expects the host to define ``config_dir``, ``config_file``,
	``recent_files``, ``max_recent_files``, ``recent_menu`` and
	``load_task(path)``.
	"""

	def _load_config(self):
		"""Read the recent task list, keeping only tasks still on disk"""
		if not os.path.exists(self.config_file):
			return
		try:
			with open(self.config_file, 'r', encoding='utf-8') as f:
				stored = json.load(f).get('recent_files', [])
		except (OSError, ValueError) as e:
			loggerRaise(e, "Error loading config")
		self.recent_files = [p for p in stored if os.path.exists(p)][:self.max_recent_files]

	def _save_config(self):
		try:
			os.makedirs(self.config_dir, exist_ok=True)
			with open(self.config_file, 'w', encoding='utf-8') as f:
				json.dump({'recent_files': self.recent_files}, f, indent=2)
		except OSError as e:
			loggerRaise(e, "Error saving config")

	def _set_recent_files(self, paths):
		"""Replace the recent list, then refresh the menu and persist it"""
		self.recent_files = list(paths)[:self.max_recent_files]
		self._update_recent_files_menu()
		self._save_config()

	def _add_to_recent_files(self, task_path):
		self._set_recent_files([task_path] + [p for p in self.recent_files if p != task_path])

	def _update_recent_files_menu(self):
		"""Rebuild the Recent Tasks submenu"""
		menu = self.recent_menu
		menu.clear()
		for task_path in self.recent_files:
			action = menu.addAction(os.path.basename(task_path))
			action.setToolTip(task_path)
			action.triggered.connect(lambda checked, p=task_path: self._open_recent_file(p))
		if self.recent_files:
			menu.addSeparator()
			menu.addAction("Clear Recent Tasks").triggered.connect(self._clear_recent_files)
		else:
			menu.addAction("No recent tasks").setEnabled(False)

	def _clear_recent_files(self):
		self._set_recent_files([])

	def _open_recent_file(self, task_path):
		"""Open a task from the recent list, dropping it if it has gone missing"""
		if os.path.exists(task_path):
			self.load_task(task_path)
			return
		loggerWarn(f"The task file no longer exists:\n{task_path}", "File Not Found", parent=self)
		self._set_recent_files(p for p in self.recent_files if p != task_path)

	def _update_window_title(self):
		"""Window title shows the task file and the current feature"""
		name = os.path.basename(self.current_task_path) if self.current_task_path else "No Task"
		title = self.session.title_text()
		if title:
			self.setWindowTitle(f"{name} - {title} - Feature Annotator")
		else:
			self.setWindowTitle(f"{name} - Feature Annotator")
