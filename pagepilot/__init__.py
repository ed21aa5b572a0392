"""
PagePilot - speech-driven page navigation and form/list control.

Turns an utterance plus the current screen into one structured UI action
and applies it, navigating first when the action needs another screen.
"""
__version__ = "1.0.0"
