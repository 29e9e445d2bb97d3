"""Core debugger automation."""

from bugcheck_analyzer.core.debugger import ANALYSIS_SCRIPT, DebuggerInvoker, scripted_session

__all__ = ["ANALYSIS_SCRIPT", "DebuggerInvoker", "scripted_session"]
