"""
focustrack – focused-work session tracking.
Pomodoro, Flowtime and free sessions behind one lifecycle.
"""

__version__ = "0.1.0"
