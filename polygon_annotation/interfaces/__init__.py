"""
Interfaces module - UI adapters for the editing core.

Provides adapters to connect the core editing logic
with different UI frameworks (OpenCV HighGUI, etc).
"""

from .gui_adapter import GUIEditorAdapter

__all__ = ['GUIEditorAdapter']
